"""Token-overlap similarity used by the recommendation engine."""
from __future__ import annotations

import re
from typing import Iterable

_PUNCTUATION = re.compile(r"[^\w\s]")
MIN_TOKEN_LENGTH = 3


def tokenize(text: str | None) -> set[str]:
    """Lower-case, strip punctuation and keep words longer than two characters."""

    if not text:
        return set()
    cleaned = _PUNCTUATION.sub("", text.lower())
    return {token for token in cleaned.split() if len(token) >= MIN_TOKEN_LENGTH}


def similarity(first: str | None, second: str | None) -> float:
    """Jaccard similarity of the two token sets, 0 when both are empty."""

    tokens_a = tokenize(first)
    tokens_b = tokenize(second)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def contains_keywords(text: str | None, keywords: Iterable[str]) -> bool:
    """Substring match of any keyword, case-insensitive."""

    if not text:
        return False
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in keywords)
