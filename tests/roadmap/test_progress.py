"""
Tests for the recency-weighted progress aggregator.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from learntrack.roadmap.progress import calculate_progress, overall_progress, recency_weight

NOW = datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)


def _ref(confidence: object, days_ago: float | None = 0) -> SimpleNamespace:
    created = None if days_ago is None else NOW - timedelta(days=days_ago)
    return SimpleNamespace(confidence=confidence, created_at=created)


class TestRecencyWeight:
    def test_fresh_entry_weighs_one(self) -> None:
        assert recency_weight(NOW, NOW) == 1.0

    def test_linear_decay(self) -> None:
        assert recency_weight(NOW - timedelta(days=15), NOW) == pytest.approx(0.5)

    def test_older_than_window_weighs_zero(self) -> None:
        assert recency_weight(NOW - timedelta(days=45), NOW) == 0.0

    def test_missing_timestamp_weighs_one(self) -> None:
        assert recency_weight(None, NOW) == 1.0

    def test_unparsable_timestamp_weighs_one(self) -> None:
        assert recency_weight("yesterday", NOW) == 1.0

    def test_naive_datetime_treated_as_utc(self) -> None:
        naive = datetime(2024, 1, 16, 12, 0)

        assert recency_weight(naive, NOW) == pytest.approx(0.5)


class TestCalculateProgress:
    def test_no_entries(self) -> None:
        assert calculate_progress([], now=NOW) == 0
        assert calculate_progress(None, now=NOW) == 0

    def test_single_fresh_entry(self) -> None:
        assert calculate_progress([_ref(80)], now=NOW) == 80

    def test_weighted_average(self) -> None:
        entries = [_ref(100, 0), _ref(40, 15)]

        # (100 * 1 + 40 * 0.5) / 1.5 = 80
        assert calculate_progress(entries, now=NOW) == 80

    def test_all_entries_expired(self) -> None:
        assert calculate_progress([_ref(90, 31), _ref(70, 60)], now=NOW) == 0

    def test_missing_created_at_counts_as_now(self) -> None:
        assert calculate_progress([_ref(70, None)], now=NOW) == 70

    def test_invalid_confidences_ignored(self) -> None:
        entries = [_ref(150), _ref("x"), _ref(float("nan")), _ref(True), _ref(60)]

        assert calculate_progress(entries, now=NOW) == 60

    def test_only_invalid_confidences(self) -> None:
        assert calculate_progress([_ref(-1)], now=NOW) == 0

    def test_dict_entries_with_camel_case_iso_timestamps(self) -> None:
        entries = [
            {"confidence": 100, "createdAt": "2024-01-16T12:00:00Z"},
            {"confidence": 40, "createdAt": NOW.isoformat()},
        ]

        # (100 * 0.5 + 40 * 1) / 1.5 = 60
        assert calculate_progress(entries, now=NOW) == 60

    def test_rounds_half_up(self) -> None:
        assert calculate_progress([_ref(50), _ref(51)], now=NOW) == 51

    def test_result_in_range(self) -> None:
        entries = [_ref(100, d) for d in range(0, 30, 3)]

        assert 0 <= calculate_progress(entries, now=NOW) <= 100


class TestOverallProgress:
    def test_empty(self) -> None:
        assert overall_progress([]) == 0

    def test_mean(self) -> None:
        assert overall_progress([100, 0, 0]) == 33

    def test_mean_rounds_half_up(self) -> None:
        assert overall_progress([50, 51]) == 51
