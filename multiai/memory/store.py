"""Per-participant memory store.

Each participant owns a newest-first list of ``MemoryRecord``. The store is
purely in-memory; ``AppContext.save()`` persists ``state()`` and clears ``dirty``.
Disabled memory makes ``store`` and ``search`` no-ops.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from multiai.errors import FormatError
from multiai.memory.keywords import extract_keywords
from multiai.memory.models import (
    MEMORY_EXPORT_FORMAT,
    MemoryConfig,
    MemoryExport,
    MemoryMetadata,
    MemoryRecord,
    MemoryStats,
    RelevanceResult,
    make_memory_id,
    utc_now,
)
from multiai.memory.scoring import score_relevance

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from multiai.conversation.models import Conversation

logger = logging.getLogger(__name__)

_STATE_ADAPTER = TypeAdapter(dict[str, list[MemoryRecord]])


class MemoryStore:
    """Append-only (newest first) memory log keyed by participant id."""

    def __init__(self, config: MemoryConfig | None = None) -> None:
        self.config = config or MemoryConfig()
        self._memories: dict[str, list[MemoryRecord]] = {}
        self._stats: dict[str, MemoryStats] = {}
        self.dirty = False

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    # -- Write ---------------------------------------------------------------

    def store(
        self,
        participant_id: str,
        content: str,
        *,
        conversation: Conversation | None = None,
        category: str = "general",
        metadata: Mapping[str, Any] | None = None,
    ) -> MemoryRecord | None:
        """Store a memory for one participant.

        Args:
            participant_id: Owner of the new record.
            content: Text to remember; trimmed before storing.
            conversation: Active conversation, snapshotted into the record.
            category: Tag such as ``user_message`` or ``ai_response``.
            metadata: Extra keys (e.g. ``sender``) merged into the metadata.

        Returns:
            The new record, or None if memory is disabled or content is blank.
        """
        if not self.enabled:
            return None
        text = (content or "").strip()
        if not text:
            return None

        snapshot: dict[str, Any] = {
            "message_count": len(conversation.messages) if conversation else 0,
            "conversation_title": conversation.title if conversation else "Unknown",
            "participants": list(conversation.participants) if conversation else [participant_id],
            **(metadata or {}),
        }
        record = MemoryRecord(
            owner_participant_id=participant_id,
            content=text,
            keywords=extract_keywords(text),
            conversation_id=conversation.id if conversation else None,
            conversation_type=conversation.type if conversation else "single",
            category=category,
            user_id=self.config.user_id,
            metadata=MemoryMetadata.model_validate(snapshot),
        )
        self._memories[participant_id] = [record, *self._memories.get(participant_id, [])]
        self._changed(participant_id)
        logger.debug("Memory stored for %s: %s", participant_id, text[:50])
        return record

    # -- Read ----------------------------------------------------------------

    def search(
        self,
        participant_id: str,
        query: str,
        limit: int | None = None,
    ) -> list[RelevanceResult]:
        """Search a participant's memories for content relevant to *query*.

        With cross-sharing enabled, other participants' records are scored
        too.

        Returns:
            Results scoring at least ``search_sensitivity``, best first; equal
            scores come out newest first across every participant searched.
        """
        if not self.enabled or not (query or "").strip():
            return []
        if participant_id not in self._memories and not self.config.cross_sharing_enabled:
            return []

        candidates = list(self._memories.get(participant_id, []))
        if self.config.cross_sharing_enabled:
            for other_id, records in self._memories.items():
                if other_id != participant_id:
                    candidates.extend(records)
        if not candidates:
            return []

        query_keywords = extract_keywords(query)
        scored = [
            RelevanceResult(record=record, relevance_score=score_relevance(query_keywords, record))
            for record in candidates
        ]
        relevant = [r for r in scored if r.relevance_score >= self.config.search_sensitivity]
        # Exact ties on score and age keep store order (sorted() is stable)
        now = utc_now()
        relevant = sorted(
            relevant,
            key=lambda r: (r.relevance_score, -r.record.age_days(now)),
            reverse=True,
        )
        max_results = self.config.max_relevant_memories if limit is None else limit
        results = relevant[:max_results]
        logger.debug("Found %d relevant memories for %s", len(results), participant_id)
        return results

    def search_many(
        self, participant_ids: Iterable[str], query: str
    ) -> dict[str, list[RelevanceResult]]:
        """Search independently for each participant."""
        if not self.enabled:
            return {}
        return {pid: self.search(pid, query) for pid in participant_ids}

    def records(self, participant_id: str) -> list[MemoryRecord]:
        """All records for a participant, newest first."""
        return list(self._memories.get(participant_id, []))

    def participants(self) -> list[str]:
        return list(self._memories)

    def __len__(self) -> int:
        return sum(len(records) for records in self._memories.values())

    # -- Delete --------------------------------------------------------------

    def delete(self, participant_id: str, record_id: str) -> bool:
        """Delete a record by id. Returns True if something was removed."""
        records = self._memories.get(participant_id, [])
        kept = [r for r in records if r.id != record_id]
        if len(kept) == len(records):
            return False
        self._memories[participant_id] = kept
        self._changed(participant_id)
        logger.info("Memory deleted for %s: %s", participant_id, record_id)
        return True

    def clear(self, participant_id: str) -> int:
        """Remove all records for a participant. Returns the count removed."""
        count = len(self._memories.get(participant_id, []))
        self._memories[participant_id] = []
        self._changed(participant_id)
        logger.info("All memories cleared for %s (%d)", participant_id, count)
        return count

    def reset(self) -> None:
        """Drop every participant's memories."""
        self._memories = {}
        self._stats = {}
        self.dirty = True
        logger.info("All memories reset")

    # -- Load / state --------------------------------------------------------

    def load_with_expiry(
        self,
        raw_state: Mapping[str, Any] | None,
        max_age_days: int | None = None,
        *,
        now: datetime | None = None,
    ) -> int:
        """Replace contents with *raw_state*, dropping expired records.

        Records older than *max_age_days* (default: the configured age) are
        skipped; 0 disables the filter. Returns the number of records dropped.
        """
        parsed = _STATE_ADAPTER.validate_python(dict(raw_state or {}))
        max_age = self.config.max_memory_age_days if max_age_days is None else max_age_days
        now = now or utc_now()

        dropped = 0
        loaded: dict[str, list[MemoryRecord]] = {}
        for participant_id, records in parsed.items():
            if max_age > 0:
                kept = [r for r in records if r.age_days(now) <= max_age]
                dropped += len(records) - len(kept)
            else:
                kept = records
            loaded[participant_id] = kept

        self._memories = loaded
        self._recompute_stats()
        self.dirty = False
        if dropped:
            logger.info("Dropped %d expired memories (older than %d days)", dropped, max_age)
        return dropped

    def state(self) -> dict[str, list[dict[str, Any]]]:
        """JSON-serializable mapping of participant id to records."""
        return {
            pid: [r.to_json_dict() for r in records] for pid, records in self._memories.items()
        }

    # -- Export / import -----------------------------------------------------

    def export_all(self) -> MemoryExport:
        """Snapshot every participant's memories with the current config."""
        return MemoryExport(
            ai_memories={pid: list(records) for pid, records in self._memories.items()},
            config=self.config,
        )

    def export_filename(self, now: datetime | None = None) -> str:
        day = (now or utc_now()).date().isoformat()
        return f"multi_ai_memories_{self.config.user_id}_{day}.json"

    def import_merge(self, snapshot: Mapping[str, Any] | MemoryExport) -> int:
        """Merge an exported snapshot into the store.

        Imported records get fresh ids and ``imported_at``, and are placed
        ahead of existing records. Raises ``FormatError`` (without touching
        the store) when the format marker is missing or unknown.

        Returns:
            Number of participants that received records.
        """
        data = snapshot.to_json_dict() if isinstance(snapshot, MemoryExport) else snapshot
        if not isinstance(data, dict) or data.get("format") != MEMORY_EXPORT_FORMAT:
            marker = data.get("format") if isinstance(data, dict) else None
            msg = f"Invalid multi-AI memory export format: {marker!r}"
            raise FormatError(msg)

        try:
            incoming = _STATE_ADAPTER.validate_python(data.get("aiMemories") or {})
        except PydanticValidationError as exc:
            msg = f"Malformed memory export: {exc.error_count()} invalid field(s)"
            raise FormatError(msg) from exc

        imported_at = utc_now()
        for participant_id, records in incoming.items():
            copies = [
                r.model_copy(update={"id": make_memory_id(), "imported_at": imported_at})
                for r in records
            ]
            self._memories[participant_id] = [*copies, *self._memories.get(participant_id, [])]
            self._changed(participant_id)
        logger.info("Imported memories for %d participants", len(incoming))
        return len(incoming)

    # -- Stats ---------------------------------------------------------------

    def stats(self) -> dict[str, MemoryStats]:
        return dict(self._stats)

    def _changed(self, participant_id: str) -> None:
        self.dirty = True
        self._stats[participant_id] = _participant_stats(self._memories[participant_id])

    def _recompute_stats(self) -> None:
        self._stats = {pid: _participant_stats(records) for pid, records in self._memories.items()}


def _participant_stats(records: list[MemoryRecord]) -> MemoryStats:
    payload = json.dumps([r.to_json_dict() for r in records])
    return MemoryStats(total=len(records), storage_bytes=len(payload.encode("utf-8")))
