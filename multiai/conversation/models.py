"""Conversation and message models."""

from __future__ import annotations

import time
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from multiai.memory.models import BoundedExtensionModel, CamelModel, utc_now

CONVERSATION_EXPORT_FORMAT = "multi-ai-conversation-v1"

ConversationType = Literal["single", "bilateral", "multilateral"]
Role = Literal["user", "assistant"]

# Reserved senders that are not participants
USER = "user"
MODERATOR = "moderator"
SYSTEM = "system"


def make_conversation_id() -> str:
    """Millisecond timestamp, as used for conversation ids."""
    return str(int(time.time() * 1000))


class MessageMetadata(BoundedExtensionModel):
    """Dialogue bookkeeping plus a bounded set of extra keys."""

    responding_to: str | None = None
    round: int | None = None


class Message(CamelModel):
    """A single conversation message. Never edited after creation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    sender: str
    used_memories: int = Field(default=0, ge=0)
    memory_enhanced: bool = False
    is_error: bool = False
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)

    def to_api_message(self) -> dict[str, str]:
        """Format for a provider's chat history."""
        return {"role": self.role, "content": self.content}


class ConversationMetadata(BoundedExtensionModel):
    max_auto_rounds: int | None = Field(default=None, ge=1)
    auto_progress: bool = False


class Conversation(CamelModel):
    """An ordered exchange between the user and one or more participants.

    ``type`` is ``single`` exactly when there is one participant. Messages are
    only ever appended; ``title`` is the one field callers may change.
    """

    id: str = Field(default_factory=make_conversation_id)
    title: str = ""
    type: ConversationType = "single"
    participants: list[str] = Field(min_length=1)
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    metadata: ConversationMetadata = Field(default_factory=ConversationMetadata)

    @model_validator(mode="after")
    def _check_participants(self) -> Conversation:
        if len(set(self.participants)) != len(self.participants):
            msg = f"Duplicate participants: {self.participants}"
            raise ValueError(msg)
        if (self.type == "single") != (len(self.participants) == 1):
            msg = (
                f"Conversation type '{self.type}' does not fit "
                f"{len(self.participants)} participant(s)"
            )
            raise ValueError(msg)
        if not self.title:
            self.title = f"New {self.type.capitalize()} Conversation"
        return self

    def append(self, message: Message) -> None:
        self.messages.append(message)

    def recent_history(self, window: int, *, before: int | None = None) -> list[dict[str, str]]:
        """Trailing *window* messages as provider history, skipping error messages.

        *before* limits the history to messages preceding that index.
        """
        messages = self.messages if before is None else self.messages[:before]
        usable = [m for m in messages if not m.is_error]
        if window <= 0:
            return []
        return [m.to_api_message() for m in usable[-window:]]


class ConversationExport(Conversation):
    """The ``multi-ai-conversation-v1`` document."""

    exported_at: datetime = Field(default_factory=utc_now)
    format: str = CONVERSATION_EXPORT_FORMAT
