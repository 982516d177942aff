"""Conversation collection: create, rename, delete, export and import."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from multiai.conversation.models import (
    CONVERSATION_EXPORT_FORMAT,
    Conversation,
    ConversationExport,
    ConversationMetadata,
    make_conversation_id,
)
from multiai.errors import FormatError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from multiai.conversation.models import ConversationType

logger = logging.getLogger(__name__)

_LIST_ADAPTER = TypeAdapter(list[Conversation])
_UNSAFE_TITLE_RE = re.compile(r"[^a-zA-Z0-9]")


class ConversationManager:
    """Owns the ordered (newest first) list of conversations."""

    def __init__(self) -> None:
        self._conversations: list[Conversation] = []
        self.active_id: str | None = None

    # -- Lifecycle -------------------------------------------------------------

    def create(
        self,
        participants: list[str],
        conversation_type: ConversationType | None = None,
        *,
        title: str = "",
        max_auto_rounds: int | None = None,
    ) -> Conversation:
        """Create a conversation and make it active.

        The type defaults to ``single`` for one participant and
        ``multilateral`` otherwise. *max_auto_rounds* caps dialogue turns for
        this conversation; None leaves it to the settings. Raises
        ``ValidationError`` if the type and participant count disagree.
        """
        if conversation_type is None:
            conversation_type = "single" if len(participants) == 1 else "multilateral"
        try:
            conversation = Conversation(
                title=title,
                type=conversation_type,
                participants=list(participants),
                metadata=ConversationMetadata(max_auto_rounds=max_auto_rounds),
            )
        except PydanticValidationError as exc:
            msg = f"Invalid conversation: {exc.errors()[0]['msg']}"
            raise ValidationError(msg) from exc
        while self.get(conversation.id) is not None:
            conversation.id = f"{conversation.id}-{len(self._conversations)}"
        self._conversations.insert(0, conversation)
        self.active_id = conversation.id
        logger.info(
            "Created %s conversation %s with %s", conversation.type, conversation.id, participants
        )
        return conversation

    def get(self, conversation_id: str) -> Conversation | None:
        return next((c for c in self._conversations if c.id == conversation_id), None)

    @property
    def active(self) -> Conversation | None:
        return self.get(self.active_id) if self.active_id else None

    def conversations(self) -> list[Conversation]:
        return list(self._conversations)

    def rename(self, conversation_id: str, title: str) -> bool:
        """Change a conversation's title. Returns False if it does not exist."""
        conversation = self.get(conversation_id)
        if conversation is None:
            return False
        conversation.title = title
        return True

    def delete(self, conversation_id: str) -> bool:
        """Delete a conversation as a whole. Returns True if it existed."""
        remaining = [c for c in self._conversations if c.id != conversation_id]
        if len(remaining) == len(self._conversations):
            return False
        self._conversations = remaining
        if self.active_id == conversation_id:
            self.active_id = remaining[0].id if remaining else None
        logger.info("Deleted conversation %s", conversation_id)
        return True

    # -- State -----------------------------------------------------------------

    def load(self, raw: list[Any] | None) -> None:
        """Replace the collection with persisted conversations."""
        self._conversations = _LIST_ADAPTER.validate_python(raw or [])
        self.active_id = self._conversations[0].id if self._conversations else None

    def state(self) -> list[dict[str, Any]]:
        return [c.to_json_dict() for c in self._conversations]

    # -- Export / import -------------------------------------------------------

    @staticmethod
    def export_conversation(conversation: Conversation) -> ConversationExport:
        """Wrap a conversation in the ``multi-ai-conversation-v1`` format."""
        return ConversationExport.model_validate(conversation.model_dump())

    @staticmethod
    def export_filename(conversation: Conversation) -> str:
        safe_title = _UNSAFE_TITLE_RE.sub("_", conversation.title)
        return f"{safe_title}_{conversation.id}.json"

    def import_conversation(self, payload: Mapping[str, Any]) -> Conversation:
        """Add an exported conversation to the collection.

        Raises ``FormatError`` (without changing anything) if the format
        marker is wrong or the payload is malformed. A colliding id is
        replaced with a fresh one.
        """
        if not isinstance(payload, dict) or payload.get("format") != CONVERSATION_EXPORT_FORMAT:
            marker = payload.get("format") if isinstance(payload, dict) else None
            msg = f"Invalid conversation export format: {marker!r}"
            raise FormatError(msg)

        fields = {k: v for k, v in payload.items() if k not in ("format", "exportedAt")}
        try:
            conversation = Conversation.model_validate(fields)
        except PydanticValidationError as exc:
            msg = f"Malformed conversation export: {exc.error_count()} invalid field(s)"
            raise FormatError(msg) from exc

        if self.get(conversation.id) is not None:
            conversation.id = make_conversation_id()
            while self.get(conversation.id) is not None:
                conversation.id = f"{conversation.id}-{len(self._conversations)}"
        self._conversations.insert(0, conversation)
        logger.info(
            "Imported conversation %s (%d messages)", conversation.id, len(conversation.messages)
        )
        return conversation

    @staticmethod
    def as_text(conversation: Conversation) -> str:
        """Plain-text transcript, one ``SENDER: content`` block per message."""
        return "\n\n".join(
            f"{(m.sender or m.role).upper()}: {m.content}" for m in conversation.messages
        )
