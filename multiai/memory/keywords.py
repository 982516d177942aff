"""Keyword extraction used to index and query memories."""

import re

MAX_KEYWORDS = 20
MIN_KEYWORD_LENGTH = 3

STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "be", "been", "have", "has", "had",
    "do", "does", "did", "will", "would", "could", "should", "may", "might", "can",
    "this", "that", "these", "those", "i", "you", "he", "she", "it", "we", "they",
    "me", "him", "her", "us", "them",
})  # fmt: skip

_NON_WORD_RE = re.compile(r"[^\w\s]")


def extract_keywords(text: str) -> list[str]:
    """Return up to 20 lower-cased, stop-word-filtered tokens in original order."""
    if not text:
        return []
    cleaned = _NON_WORD_RE.sub(" ", text.lower())
    keywords = [
        word
        for word in cleaned.split()
        if len(word) >= MIN_KEYWORD_LENGTH and word not in STOP_WORDS
    ]
    return keywords[:MAX_KEYWORDS]
