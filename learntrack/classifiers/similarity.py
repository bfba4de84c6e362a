"""
Bigram string similarity shared by the classifier and the roadmap matcher.

Computes the Sørensen–Dice coefficient over overlapping character bigrams:

    similarity = 2 * |shared bigrams| / (|bigrams(a)| + |bigrams(b)|)

Bigrams are counted as a multiset, so a bigram repeated twice in one string
can match at most twice in the other. Whitespace and punctuation are ordinary
characters. Comparison is case-insensitive.
"""

from __future__ import annotations

from collections import Counter
from typing import Final

NGRAM_SIZE: Final[int] = 2


def _bigrams(text: str) -> list[str]:
    return [text[i : i + NGRAM_SIZE] for i in range(len(text) - NGRAM_SIZE + 1)]


def string_similarity(first: str, second: str) -> float:
    """Return the bigram Dice similarity of two strings in [0.0, 1.0].

    Args:
        first: First string.
        second: Second string.

    Returns:
        1.0 for identical strings (of length >= 2), 0.0 when either string is
        shorter than one bigram or nothing is shared.

    Example:
        >>> string_similarity("react", "react")
        1.0
        >>> string_similarity("a", "a")
        0.0
    """
    first = first.lower()
    second = second.lower()

    if len(first) < NGRAM_SIZE or len(second) < NGRAM_SIZE:
        return 0.0

    available = Counter(_bigrams(first))
    matches = 0
    for bigram in _bigrams(second):
        if available[bigram] > 0:
            available[bigram] -= 1
            matches += 1

    total = len(first) + len(second) - 2 * (NGRAM_SIZE - 1)
    return (2 * matches) / total


def best_similarity(text: str, candidates: list[str] | tuple[str, ...]) -> float:
    """Return the highest similarity between text and any candidate.

    Args:
        text: The text to compare.
        candidates: Strings to compare against.

    Returns:
        Maximum similarity, or 0.0 when there are no candidates.
    """
    return max((string_similarity(text, c) for c in candidates), default=0.0)
