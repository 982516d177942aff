"""Data models for participant memories and their export format."""

from __future__ import annotations

import random
import string
import time
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

MEMORY_EXPORT_FORMAT = "multi-ai-memory-export-v1"

# Upper bound on free-form keys carried next to the typed metadata fields.
MAX_EXTENSION_KEYS = 16

_ID_ALPHABET = string.ascii_lowercase + string.digits


def make_memory_id() -> str:
    """Millisecond timestamp followed by nine random base-36 characters."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))  # noqa: S311
    return f"{int(time.time() * 1000)}{suffix}"


def utc_now() -> datetime:
    return datetime.now(UTC)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BoundedExtensionModel(CamelModel):
    """Typed schema that also keeps a small number of unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow", frozen=True
    )

    @model_validator(mode="after")
    def _bound_extensions(self) -> BoundedExtensionModel:
        extra = self.__pydantic_extra__ or {}
        if len(extra) > MAX_EXTENSION_KEYS:
            msg = f"Too many extension keys: {len(extra)} (max {MAX_EXTENSION_KEYS})"
            raise ValueError(msg)
        return self

    @property
    def extensions(self) -> dict[str, Any]:
        return dict(self.__pydantic_extra__ or {})


class MemoryMetadata(BoundedExtensionModel):
    """Conversation snapshot captured when a memory is stored."""

    message_count: int = 0
    conversation_title: str = "Unknown"
    participants: list[str] = Field(default_factory=list)
    sender: str | None = None


class MemoryRecord(CamelModel):
    """A stored snippet of conversation content owned by one participant.

    Records are immutable; the store only prepends, deletes, or replaces them
    with re-identified copies on import.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=make_memory_id)
    owner_participant_id: str = Field(alias="aiId")
    content: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=utc_now)
    keywords: list[str] | None = Field(default=None, max_length=20)
    conversation_id: str | None = None
    conversation_type: str = "single"
    category: str = Field(default="general", alias="type")
    user_id: str | None = None
    imported_at: datetime | None = None
    metadata: MemoryMetadata = Field(default_factory=MemoryMetadata)

    def age_days(self, now: datetime | None = None) -> float:
        """Age of the record in fractional days."""
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=UTC)
        return ((now or utc_now()) - created).total_seconds() / 86400


class RelevanceResult(BaseModel):
    """A memory record scored against one query. Never persisted."""

    record: MemoryRecord
    relevance_score: float = Field(ge=0.0, le=1.0)

    @property
    def content(self) -> str:
        return self.record.content

    @property
    def id(self) -> str:
        return self.record.id


class MemoryConfig(CamelModel):
    """Process-wide memory settings, read-only during an operation."""

    user_id: str = "default-user"
    enabled: bool = False
    auto_store: bool = True
    max_relevant_memories: int = Field(default=5, ge=1)
    search_sensitivity: float = Field(default=0.3, ge=0.0, le=1.0)
    max_memory_age_days: int = Field(default=30, ge=0, alias="maxMemoryAge")
    separate_memories: bool = Field(default=True, alias="separateAIMemories")
    cross_sharing_enabled: bool = Field(default=False, alias="crossAIMemorySharing")


class MemoryStats(BaseModel):
    """Record count and approximate serialized size for one participant."""

    total: int = 0
    storage_bytes: int = 0

    @property
    def storage_kb(self) -> int:
        return round(self.storage_bytes / 1024)


class MemoryExport(CamelModel):
    """The ``multi-ai-memory-export-v1`` document."""

    ai_memories: dict[str, list[MemoryRecord]] = Field(alias="aiMemories")
    config: MemoryConfig
    exported_at: datetime = Field(default_factory=utc_now)
    format: str = MEMORY_EXPORT_FORMAT
