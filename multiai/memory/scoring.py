"""Keyword-overlap relevance scoring.

    raw   = exact * 1.0 + partial * 0.5 + content_hits * 0.3
    score = min(raw / len(query_keywords), 1.0)

``partial`` counts every (query, memory) keyword pair where one contains the
other, so exact matches are also counted as partial matches.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from multiai.memory.keywords import extract_keywords

if TYPE_CHECKING:
    from collections.abc import Sequence

    from multiai.memory.models import MemoryRecord

EXACT_WEIGHT = 1.0
PARTIAL_WEIGHT = 0.5
CONTENT_WEIGHT = 0.3


def score_relevance(query_keywords: Sequence[str], memory: MemoryRecord) -> float:
    """Score *memory* against *query_keywords*, in ``[0, 1]``.

    An empty query scores 0.
    """
    if not query_keywords:
        return 0.0

    memory_keywords = (
        memory.keywords if memory.keywords is not None else extract_keywords(memory.content)
    )
    memory_keyword_set = set(memory_keywords)
    content = memory.content.lower()

    exact = sum(1 for q in query_keywords if q in memory_keyword_set)
    partial = sum(1 for q in query_keywords for m in memory_keywords if m in q or q in m)
    content_hits = sum(1 for q in query_keywords if q in content)

    raw = exact * EXACT_WEIGHT + partial * PARTIAL_WEIGHT + content_hits * CONTENT_WEIGHT
    return min(raw / len(query_keywords), 1.0)
