"""Dialogue mode: participants take round-robin turns on a topic.

No memory is injected or stored while a dialogue runs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from multiai.conversation.models import MODERATOR, Message, MessageMetadata
from multiai.errors import DialogueError, ValidationError
from multiai.orchestrator import prompts
from multiai.orchestrator.control import DialogueResult, DialogueState

if TYPE_CHECKING:
    from multiai.app import AppContext
    from multiai.conversation.models import Conversation
    from multiai.orchestrator.control import RoundControl

logger = logging.getLogger(__name__)


class DialogueOrchestrator:
    """Runs AI-to-AI dialogues for one application context."""

    def __init__(self, ctx: AppContext) -> None:
        self._ctx = ctx
        self.state = DialogueState()

    def _validate(self, conversation: Conversation, topic: str, max_rounds: int) -> None:
        if self.state.active:
            msg = "A dialogue is already running"
            raise ValidationError(msg)
        if conversation.type == "single" or len(conversation.participants) < 2:
            msg = "AI Dialogue mode requires at least 2 AIs selected"
            raise ValidationError(msg)
        if not topic or not topic.strip():
            msg = "A discussion topic is required"
            raise ValidationError(msg)
        if max_rounds < 1:
            msg = f"max_rounds must be at least 1, got {max_rounds}"
            raise ValidationError(msg)

    async def run(
        self,
        conversation: Conversation,
        topic: str,
        *,
        max_rounds: int | None = None,
        control: RoundControl | None = None,
    ) -> DialogueResult:
        """Run a dialogue of *max_rounds* turns on *topic*.

        Without *max_rounds*, the conversation's ``max_auto_rounds`` applies,
        then the ``max_dialogue_rounds`` setting.

        Preconditions are checked before the conversation is touched. A
        failing turn aborts the dialogue: messages from earlier turns stay in
        the conversation and the failure is raised as ``DialogueError``.
        """
        ctx = self._ctx
        rounds = max_rounds
        if rounds is None:
            rounds = conversation.metadata.max_auto_rounds
        if rounds is None:
            rounds = ctx.settings.max_dialogue_rounds
        self._validate(conversation, topic, rounds)
        topic = topic.strip()
        resolved = ctx.registry.resolve(conversation.participants, ctx.credentials)

        conversation.append(
            Message(role="user", content=prompts.topic_announcement(topic), sender=MODERATOR)
        )
        self.state = DialogueState(active=True, current_round=0, max_rounds=rounds, topic=topic)
        result = DialogueResult()
        current_index = 0
        logger.info(
            "Starting AI dialogue (%d rounds, %d participants): %s",
            rounds,
            len(resolved),
            topic[:80],
        )

        try:
            for round_index in range(rounds):
                if round_index > 0 and ctx.settings.dialogue_round_delay > 0:
                    await asyncio.sleep(ctx.settings.dialogue_round_delay)
                if control is not None and control.cancelled:
                    logger.info("Dialogue cancelled after %d rounds", round_index)
                    result.cancelled = True
                    break

                participant_id, adapter = resolved[current_index]
                previous = conversation.messages[-1]
                name = ctx.registry.display_name(participant_id)
                if round_index == 0:
                    prompt = prompts.opening_prompt(name, topic)
                else:
                    prompt = prompts.reply_prompt(
                        name, ctx.registry.display_name(previous.sender), previous.content
                    )
                history = conversation.recent_history(ctx.settings.history_window)

                try:
                    reply = await adapter.complete(history, prompt)
                except Exception as exc:
                    logger.exception(
                        "Dialogue round %d failed (%s)", round_index + 1, participant_id
                    )
                    raise DialogueError(round_index + 1, participant_id, exc) from exc
                finally:
                    current_index = (current_index + 1) % len(resolved)

                message = Message(
                    role="assistant",
                    content=reply,
                    sender=participant_id,
                    metadata=MessageMetadata(responding_to=previous.sender, round=round_index + 1),
                )
                conversation.append(message)
                result.messages.append(message)
                result.rounds_completed = round_index + 1
                self.state.current_round = round_index + 1
                await ctx.save()
            else:
                logger.info("AI dialogue completed")
        finally:
            self.state = DialogueState()
            await ctx.save()

        return result
