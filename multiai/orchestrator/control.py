"""Round policies, cancellation and round outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from multiai.conversation.models import Message
    from multiai.memory.models import RelevanceResult

# sequential: one call after another. concurrent: all calls at once, results
# reordered by participant before commit.
FanOutPolicy = Literal["sequential", "concurrent"]

# abort: first failure discards the round's responses and appends one error
# message. continue: every participant is called; failures become error
# messages at their participant's position.
FailurePolicy = Literal["abort", "continue"]


class RoundControl:
    """Cancellation flag checked between provider calls, never during one."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class RoundResult:
    """Outcome of one reactive round.

    Attributes:
        user_message: The appended user message.
        messages: Messages appended after it, in participant order.
        relevant_memories: Search results per participant for this round.
        errors: Failures by participant id, in participant order.
        cancelled: True if the round stopped early on request.
    """

    user_message: Message
    messages: list[Message] = field(default_factory=list)
    relevant_memories: dict[str, list[RelevanceResult]] = field(default_factory=dict)
    errors: dict[str, Exception] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def failed(self) -> bool:
        return bool(self.errors)


@dataclass
class DialogueState:
    """Live progress of the running dialogue, if any."""

    active: bool = False
    current_round: int = 0
    max_rounds: int = 0
    topic: str = ""


@dataclass
class DialogueResult:
    messages: list[Message] = field(default_factory=list)
    rounds_completed: int = 0
    cancelled: bool = False
