"""Prompt text for reactive rounds, dialogue turns and round errors.

``AUTO_PROGRESS_PROMPTS`` and ``auto_progress_prompt`` are deliberately left
unused by the orchestrators; they serve callers that drive auto-progression.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from multiai.memory.models import RelevanceResult

MEMORY_SEPARATOR = " | "

AUTO_PROGRESS_PROMPTS: tuple[str, ...] = (
    "What are your thoughts on that perspective?",
    "Can you elaborate on that point?",
    "How would you approach this differently?",
    "What questions does this raise for you?",
    "Do you see any potential challenges with that approach?",
)


def compose_memory_prompt(text: str, memories: Sequence[RelevanceResult]) -> str:
    """Prefix *text* with a relevant-context block when memories were found."""
    if not memories:
        return text
    context = MEMORY_SEPARATOR.join(m.content for m in memories)
    return f"[RELEVANT CONTEXT FROM PREVIOUS CONVERSATIONS]: {context}\n\n[USER MESSAGE]: {text}"


def opening_prompt(display_name: str, topic: str) -> str:
    return f"You are {display_name}. Please share your perspective on: {topic}"


def reply_prompt(display_name: str, previous_name: str, previous_content: str) -> str:
    return (
        f"You are {display_name} responding to {previous_name}. "
        f'Their message was: "{previous_content}". Please provide your response.'
    )


def topic_announcement(topic: str) -> str:
    return f"Discussion Topic: {topic}"


def participant_failure(participant_id: str, exc: BaseException) -> str:
    return f"Failed to get response from {participant_id}: {exc}"


def round_failure(reason: str) -> str:
    return f"Error: Failed to get responses. {reason}"


def auto_progress_prompt(rng: random.Random | None = None) -> str:
    """Pick one of the canned follow-up prompts."""
    return (rng or random).choice(AUTO_PROGRESS_PROMPTS)  # noqa: S311
