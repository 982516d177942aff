"""Turn orchestration: reactive fan-out and autonomous dialogue."""

from multiai.orchestrator.control import DialogueResult, DialogueState, RoundControl, RoundResult
from multiai.orchestrator.dialogue import DialogueOrchestrator
from multiai.orchestrator.reactive import ReactiveOrchestrator

__all__ = [
    "DialogueOrchestrator",
    "DialogueResult",
    "DialogueState",
    "ReactiveOrchestrator",
    "RoundControl",
    "RoundResult",
]
