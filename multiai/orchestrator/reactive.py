"""Reactive mode: one user message fanned out to every participant."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from multiai.conversation.models import SYSTEM, USER, Message
from multiai.errors import ValidationError
from multiai.orchestrator import prompts
from multiai.orchestrator.control import RoundResult

if TYPE_CHECKING:
    from multiai.app import AppContext
    from multiai.conversation.models import Conversation
    from multiai.memory.models import RelevanceResult
    from multiai.orchestrator.control import FailurePolicy, FanOutPolicy, RoundControl
    from multiai.providers.base import ProviderAdapter

logger = logging.getLogger(__name__)

# Assistant responses at or below this length are not worth remembering
MIN_STORED_RESPONSE_LENGTH = 50


@dataclass
class _Call:
    """One planned provider call within a round."""

    position: int
    participant_id: str
    adapter: ProviderAdapter
    prompt: str
    used_memories: int


@dataclass
class _Outcome:
    call: _Call
    text: str | None = None
    error: Exception | None = None


class ReactiveOrchestrator:
    """Sends a user message to all participants of a conversation."""

    def __init__(
        self,
        ctx: AppContext,
        *,
        fan_out: FanOutPolicy | None = None,
        failure_policy: FailurePolicy | None = None,
    ) -> None:
        self._ctx = ctx
        self.fan_out: FanOutPolicy = fan_out or ctx.settings.fan_out_policy
        self.failure_policy: FailurePolicy = failure_policy or ctx.settings.failure_policy

    async def handle_user_message(
        self,
        conversation: Conversation,
        text: str,
        *,
        control: RoundControl | None = None,
    ) -> RoundResult:
        """Run one reactive round.

        Participants and credentials are validated before anything is
        appended, so configuration problems raise without touching the
        conversation. Provider failures never raise: they end up as error
        messages according to ``failure_policy``.

        Returns:
            The round's user message, appended messages, memories and errors.
        """
        if not text or not text.strip():
            msg = "Cannot send an empty message"
            raise ValidationError(msg)

        ctx = self._ctx
        resolved = ctx.registry.resolve(conversation.participants, ctx.credentials)
        history = conversation.recent_history(ctx.settings.history_window)

        user_message = Message(role="user", content=text, sender=USER)
        conversation.append(user_message)
        logger.info("Sending message to %s", ", ".join(conversation.participants))

        # Memory is searched for every participant before any call
        relevant: dict[str, list[RelevanceResult]] = {
            pid: ctx.memory.search(pid, text) for pid, _ in resolved
        }

        if ctx.memory.config.auto_store:
            for pid, _ in resolved:
                ctx.memory.store(
                    pid,
                    text,
                    conversation=conversation,
                    category="user_message",
                    metadata={"sender": USER},
                )

        calls = [
            _Call(
                position=position,
                participant_id=pid,
                adapter=adapter,
                prompt=prompts.compose_memory_prompt(text, relevant[pid]),
                used_memories=len(relevant[pid]),
            )
            for position, (pid, adapter) in enumerate(resolved)
        ]

        if self.fan_out == "concurrent":
            outcomes, cancelled = await self._run_concurrent(calls, history, control)
        else:
            outcomes, cancelled = await self._run_sequential(
                calls, history, control, pace=conversation.type != "single"
            )

        result = RoundResult(
            user_message=user_message, relevant_memories=relevant, cancelled=cancelled
        )
        self._commit(conversation, outcomes, result)
        await ctx.save()
        return result

    # -- Fan-out ---------------------------------------------------------------

    async def _call(self, call: _Call, history: list[dict[str, str]]) -> _Outcome:
        try:
            text = await call.adapter.complete(list(history), call.prompt)
        except Exception as exc:
            logger.warning("Call to %s failed: %s", call.participant_id, exc)
            return _Outcome(call=call, error=exc)
        return _Outcome(call=call, text=text)

    async def _run_sequential(
        self,
        calls: list[_Call],
        history: list[dict[str, str]],
        control: RoundControl | None,
        *,
        pace: bool,
    ) -> tuple[list[_Outcome], bool]:
        outcomes: list[_Outcome] = []
        delay = self._ctx.settings.reactive_call_delay
        for call in calls:
            if call.position > 0 and pace and delay > 0:
                await asyncio.sleep(delay)
            if control is not None and control.cancelled:
                logger.info("Round cancelled before calling %s", call.participant_id)
                return outcomes, True
            outcome = await self._call(call, history)
            outcomes.append(outcome)
            if outcome.error is not None and self.failure_policy == "abort":
                break
        return outcomes, False

    async def _run_concurrent(
        self,
        calls: list[_Call],
        history: list[dict[str, str]],
        control: RoundControl | None,
    ) -> tuple[list[_Outcome], bool]:
        if control is not None and control.cancelled:
            return [], True
        outcomes = await asyncio.gather(*(self._call(call, history) for call in calls))
        return sorted(outcomes, key=lambda o: o.call.position), False

    # -- Commit ----------------------------------------------------------------

    def _commit(
        self, conversation: Conversation, outcomes: list[_Outcome], result: RoundResult
    ) -> None:
        """Append the round's messages in participant order."""
        failures = [o for o in outcomes if o.error is not None]
        for outcome in failures:
            result.errors[outcome.call.participant_id] = outcome.error

        if failures and self.failure_policy == "abort":
            first = failures[0]
            reason = prompts.participant_failure(first.call.participant_id, first.error)
            error_message = Message(
                role="assistant",
                content=prompts.round_failure(reason),
                sender=SYSTEM,
                is_error=True,
            )
            conversation.append(error_message)
            result.messages.append(error_message)
            logger.error("Round aborted: %s", reason)
            return

        for outcome in outcomes:
            call = outcome.call
            if outcome.error is not None:
                message = Message(
                    role="assistant",
                    content=prompts.round_failure(
                        prompts.participant_failure(call.participant_id, outcome.error)
                    ),
                    sender=call.participant_id,
                    is_error=True,
                )
            else:
                message = Message(
                    role="assistant",
                    content=outcome.text or "",
                    sender=call.participant_id,
                    used_memories=call.used_memories,
                    memory_enhanced=call.used_memories > 0,
                )
            conversation.append(message)
            result.messages.append(message)

        memory = self._ctx.memory
        if memory.config.auto_store:
            for message in result.messages:
                if not message.is_error and len(message.content) > MIN_STORED_RESPONSE_LENGTH:
                    memory.store(
                        message.sender,
                        message.content,
                        conversation=conversation,
                        category="ai_response",
                        metadata={"sender": message.sender},
                    )
