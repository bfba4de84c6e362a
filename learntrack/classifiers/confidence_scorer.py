"""
Confidence Scorer for classified entries.

Additive heuristic producing an integer in [0, 100]:

    base                                   50
    non-empty title                       +10
    tags                                  +5 each, at most +20
    primary topic set                     +10
    summary set                           +10
    video completion (watched / length)   +round(25 * ratio)
    "completed" in title                  +20   (else "revising" +15)
    a tutorial/course/learn tag           +25
    status approved                       +20

The sum is clamped to [0, 100]. Pure and deterministic: the same entry always
scores the same, so the approval-time score of an unchanged entry is exactly
its pending-time score plus the approval bonus (before clamping).
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Final

BASE_SCORE: Final[int] = 50
TITLE_BONUS: Final[int] = 10
TAG_BONUS: Final[int] = 5
MAX_TAG_BONUS: Final[int] = 20
TOPIC_BONUS: Final[int] = 10
SUMMARY_BONUS: Final[int] = 10
VIDEO_COMPLETION_BONUS: Final[int] = 25
COMPLETED_BONUS: Final[int] = 20
REVISING_BONUS: Final[int] = 15
LEARNING_TAG_BONUS: Final[int] = 25
APPROVED_BONUS: Final[int] = 20

MIN_SCORE: Final[int] = 0
MAX_SCORE: Final[int] = 100

LEARNING_TAGS: Final[frozenset[str]] = frozenset({"tutorial", "course", "learn"})
STATUS_APPROVED: Final[str] = "approved"


def _positive_number(value: Any) -> float | None:
    """Return value as a float if it is a finite positive number, else None."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    number = float(value)
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def _status_value(status: Any) -> str:
    # Accepts EntryStatus members as well as raw strings
    return str(getattr(status, "value", status) or "")


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (2.5 -> 3)."""
    return math.floor(value + 0.5)


def clamp_score(value: float) -> int:
    """Clamp a raw score to the [0, 100] integer range."""
    return int(min(max(value, MIN_SCORE), MAX_SCORE))


def score_entry(entry: Any) -> int:
    """Compute the confidence score of an entry-shaped record.

    Args:
        entry: Object exposing title, tags, primary_topic, summary, is_video,
            video_length, watched_length and status. Missing attributes are
            treated as absent.

    Returns:
        Integer confidence in [0, 100].
    """
    title = getattr(entry, "title", None) or ""
    tags = list(getattr(entry, "tags", None) or ())

    score = BASE_SCORE

    if title:
        score += TITLE_BONUS

    score += min(len(tags) * TAG_BONUS, MAX_TAG_BONUS)

    if getattr(entry, "primary_topic", None):
        score += TOPIC_BONUS

    if getattr(entry, "summary", None):
        score += SUMMARY_BONUS

    if getattr(entry, "is_video", False):
        video_length = _positive_number(getattr(entry, "video_length", None))
        watched_length = _positive_number(getattr(entry, "watched_length", None))
        if video_length is not None and watched_length is not None:
            bonus = VIDEO_COMPLETION_BONUS * watched_length / video_length
            # An overflowing ratio saturates at the ceiling instead of raising
            score += round_half_up(bonus) if math.isfinite(bonus) else MAX_SCORE

    lower_title = title.lower()
    if "completed" in lower_title:
        score += COMPLETED_BONUS
    elif "revising" in lower_title:
        score += REVISING_BONUS

    if any(str(tag).lower() in LEARNING_TAGS for tag in tags):
        score += LEARNING_TAG_BONUS

    if _status_value(getattr(entry, "status", None)) == STATUS_APPROVED:
        score += APPROVED_BONUS

    return clamp_score(score)
