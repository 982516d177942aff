"""Keyword memory: extraction, scoring and the per-participant store."""

from multiai.memory.keywords import extract_keywords
from multiai.memory.models import MemoryConfig, MemoryExport, MemoryRecord, RelevanceResult
from multiai.memory.scoring import score_relevance
from multiai.memory.store import MemoryStore

__all__ = [
    "MemoryConfig",
    "MemoryExport",
    "MemoryRecord",
    "MemoryStore",
    "RelevanceResult",
    "extract_keywords",
    "score_relevance",
]
