"""
Tests for RoadmapMatcher.

Expected confidences follow from the bigram similarity of the lowercased
"title tags" search text against catalog names; with no tags the search
text keeps a trailing space, e.g. "react " vs "react" = 8/9.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from learntrack.roadmap.catalog import RoadmapCatalog
from learntrack.roadmap.matcher import (
    FALLBACK_CONFIDENCE,
    CrossReferenceResult,
    RoadmapMatcher,
    build_search_text,
    match_entry,
)


@pytest.fixture
def catalog() -> RoadmapCatalog:
    return RoadmapCatalog.from_mapping(
        {
            "id": "test",
            "name": "Test",
            "topics": [
                {
                    "id": "frontend",
                    "name": "Frontend",
                    "subtopics": [{"id": "react", "name": "React"}],
                },
                {
                    "id": "backend",
                    "name": "Backend",
                    "subtopics": [{"id": "django", "name": "Django"}],
                },
            ],
        }
    )


@pytest.fixture
def matcher(catalog: RoadmapCatalog) -> RoadmapMatcher:
    return RoadmapMatcher(catalog)


def _entry(title: str, tags: list[str] | None = None) -> SimpleNamespace:
    return SimpleNamespace(title=title, tags=tags or [])


class TestSearchText:
    def test_joins_title_and_tags_lowercase(self) -> None:
        assert build_search_text("Hello", ["A", "b"]) == "hello a b"

    def test_missing_values(self) -> None:
        assert build_search_text(None, None) == " "


class TestMatching:
    """Single running maximum across topics and subtopics."""

    def test_subtopic_match(self, matcher: RoadmapMatcher) -> None:
        result = matcher.match(_entry("React"))

        assert result is not None
        assert result.topic_id == "frontend"
        assert result.subtopic_id == "react"
        assert result.subtopic_name == "React"
        assert result.matched_text == "React"
        assert result.confidence == pytest.approx(800 / 9)

    def test_later_topic_subtopic_can_win(self, matcher: RoadmapMatcher) -> None:
        result = matcher.match(_entry("Django"))

        assert result.topic_id == "backend"
        assert result.subtopic_id == "django"
        assert result.confidence == pytest.approx(1000 / 11)

    def test_tags_contribute_to_search_text(self, matcher: RoadmapMatcher) -> None:
        result = matcher.match(_entry("Intro", ["react"]))

        assert result.subtopic_id == "react"
        assert result.confidence == pytest.approx(800 / 14)

    def test_topic_level_match_has_no_subtopic(self) -> None:
        catalog = RoadmapCatalog.from_mapping(
            {"name": "T", "topics": [{"id": "docker", "name": "Docker"}]}
        )

        result = RoadmapMatcher(catalog).match(_entry("Docker"))

        assert result.topic_id == "docker"
        assert result.subtopic_id is None
        assert result.is_valid()

    def test_first_candidate_wins_ties(self) -> None:
        catalog = RoadmapCatalog.from_mapping(
            {
                "name": "T",
                "topics": [
                    {"id": "first", "name": "Docker"},
                    {"id": "second", "name": "Docker"},
                ],
            }
        )

        assert RoadmapMatcher(catalog).match(_entry("Docker")).topic_id == "first"

    def test_confidence_within_bounds(self, matcher: RoadmapMatcher) -> None:
        result = matcher.match(_entry("Frontend", ["frontend"]))

        assert 0 <= result.confidence <= 100


class TestFallback:
    """Nothing above threshold lands in Miscellaneous."""

    def test_no_match_falls_back(self, matcher: RoadmapMatcher) -> None:
        result = matcher.match(_entry("zzzz"))

        assert result.topic_id == "miscellaneous"
        assert result.topic_name == "Miscellaneous"
        assert result.subtopic_id is None
        assert result.confidence == FALLBACK_CONFIDENCE
        assert result.is_fallback

    def test_weak_similarity_falls_back(self, matcher: RoadmapMatcher) -> None:
        # "nd " shares one bigram with "backend" -> 2/8, below threshold
        result = matcher.match(_entry("nd"))

        assert result.is_fallback


class TestNoCatalog:
    def test_none_catalog(self) -> None:
        assert match_entry(_entry("React"), None) is None

    def test_empty_catalog(self) -> None:
        catalog = RoadmapCatalog.from_mapping({"name": "Empty", "topics": []})

        assert RoadmapMatcher(catalog).match(_entry("React")) is None


class TestResultValidity:
    def test_missing_topic_id_invalid(self) -> None:
        result = CrossReferenceResult(
            topic_id="", confidence=50, matched_text="x", topic_name="X"
        )

        assert result.is_valid() is False

    def test_subtopic_without_name_invalid(self) -> None:
        result = CrossReferenceResult(
            topic_id="t", confidence=50, matched_text="x", topic_name="T", subtopic_id="s"
        )

        assert result.is_valid() is False

    def test_result_is_frozen(self) -> None:
        result = CrossReferenceResult(
            topic_id="t", confidence=50, matched_text="x", topic_name="T"
        )

        with pytest.raises(AttributeError):
            result.topic_id = "other"  # type: ignore[misc]
