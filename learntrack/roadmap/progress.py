"""
Progress Aggregator - recency-weighted topic progress.

progress = round(sum(confidence * w) / sum(w)), clamped to [0, 100], where

    w = max(0, 1 - days_since_creation / DECAY_WINDOW_DAYS)

Entries without a creation time count as created now (w = 1). Entries whose
confidence is not a finite number in [0, 100] are ignored. Once every entry
is older than the decay window the total weight is zero and progress is 0.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime, timezone
from numbers import Real
from typing import Any, Final

from learntrack.classifiers.confidence_scorer import round_half_up

DECAY_WINDOW_DAYS: Final[float] = 30.0
SECONDS_PER_DAY: Final[float] = 86_400.0
MIN_PROGRESS: Final[int] = 0
MAX_PROGRESS: Final[int] = 100


def _field(item: Any, name: str, camel: str) -> Any:
    if isinstance(item, dict):
        return item.get(name, item.get(camel))
    return getattr(item, name, None)


def _valid_confidence(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    number = float(value)
    if not math.isfinite(number) or not MIN_PROGRESS <= number <= MAX_PROGRESS:
        return None
    return number


def _as_utc(value: Any) -> datetime | None:
    """Coerce a datetime or ISO-8601 string to an aware UTC datetime."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def recency_weight(created_at: Any, now: datetime) -> float:
    """Linear decay weight of an entry created at created_at.

    Missing or unparsable timestamps weigh 1.0.
    """
    created = _as_utc(created_at)
    if created is None:
        return 1.0
    days_old = (now - created).total_seconds() / SECONDS_PER_DAY
    return max(0.0, 1.0 - days_old / DECAY_WINDOW_DAYS)


def calculate_progress(entries: Iterable[Any] | None, now: datetime | None = None) -> int:
    """Compute a topic's progress from its attached entries.

    Args:
        entries: Records exposing confidence and optional created_at, either
            as attributes or as dict keys (camelCase keys also accepted).
        now: Reference time; defaults to the current UTC time.

    Returns:
        Integer progress in [0, 100].
    """
    if not entries:
        return 0

    reference = _as_utc(now) or datetime.now(timezone.utc)

    total_weight = 0.0
    weighted_sum = 0.0
    for item in entries:
        confidence = _valid_confidence(_field(item, "confidence", "confidence"))
        if confidence is None:
            continue
        weight = recency_weight(_field(item, "created_at", "createdAt"), reference)
        total_weight += weight
        weighted_sum += confidence * weight

    if total_weight == 0:
        return 0

    progress = round_half_up(weighted_sum / total_weight)
    return min(max(progress, MIN_PROGRESS), MAX_PROGRESS)


def overall_progress(progress_values: Iterable[int]) -> int:
    """Rounded mean of per-topic progress values, 0 for no topics."""
    values = [min(max(v, MIN_PROGRESS), MAX_PROGRESS) for v in progress_values]
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))
