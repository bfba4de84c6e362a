"""
Roadmap Matcher (cross-referencer).

Assigns an approved entry to the catalog topic or subtopic whose name is most
similar to the entry's title and tags.

Algorithm:
1. search_text = lowercase(title + " " + " ".join(tags))
2. Walk topics in catalog order; for each topic compare its name, then each
   of its subtopics' names, against search_text.
3. A candidate replaces the leader only when its similarity is strictly
   greater than MIN_MATCH_SIMILARITY and than the current best. Topic-level
   and subtopic-level candidates share one running maximum across the whole
   catalog, so the first candidate at a given score wins.
4. No candidate above the threshold: catch-all "miscellaneous" topic with
   confidence 100.
5. Rescale the winning similarity to a 0-100 confidence.
6. Malformed results (no topic id/name, subtopic id without name) are
   discarded and None is returned.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Final

from learntrack.classifiers.similarity import string_similarity
from learntrack.core.logging import get_logger
from learntrack.roadmap.catalog import (
    MISCELLANEOUS_TOPIC_ID,
    MISCELLANEOUS_TOPIC_NAME,
    RoadmapCatalog,
)

logger = get_logger(__name__)

MIN_MATCH_SIMILARITY: Final[float] = 0.3
FALLBACK_CONFIDENCE: Final[float] = 100.0
MAX_CONFIDENCE: Final[float] = 100.0


@dataclass(frozen=True, slots=True)
class CrossReferenceResult:
    """Outcome of one match attempt.

    Attributes:
        topic_id: Matched catalog topic id
        subtopic_id: Matched subtopic id, None for topic-level matches
        confidence: Match confidence in [0, 100]
        matched_text: Catalog name that produced the match
        topic_name: Name of the matched topic
        subtopic_name: Name of the matched subtopic, if any
    """

    topic_id: str
    confidence: float
    matched_text: str
    topic_name: str
    subtopic_id: str | None = field(default=None)
    subtopic_name: str | None = field(default=None)

    @property
    def is_fallback(self) -> bool:
        return self.topic_id == MISCELLANEOUS_TOPIC_ID

    def is_valid(self) -> bool:
        """Whether the result carries every field needed to attach it."""
        if not self.topic_id or not self.topic_name:
            return False
        return not (self.subtopic_id and not self.subtopic_name)


def build_search_text(title: str | None, tags: Iterable[str] | None) -> str:
    """Combine an entry's title and tags into the lowercase matching text."""
    return f"{title or ''} {' '.join(tags or ())}".lower()


def _rescale(similarity: float) -> float:
    return min(max(similarity * 100, 0.0), MAX_CONFIDENCE)


class RoadmapMatcher:
    """Fuzzy matcher bound to a single catalog.

    Usage:
        matcher = RoadmapMatcher(catalog)
        result = matcher.match(entry)
        if result is not None:
            store.attach_entry(user_id, result.topic_id, result.subtopic_id, ref)
    """

    __slots__ = ("_catalog", "_threshold")

    def __init__(
        self,
        catalog: RoadmapCatalog | None,
        threshold: float = MIN_MATCH_SIMILARITY,
    ) -> None:
        self._catalog = catalog
        self._threshold = threshold

    @property
    def catalog(self) -> RoadmapCatalog | None:
        return self._catalog

    def match(self, entry: Any) -> CrossReferenceResult | None:
        """Match an entry-shaped record against the catalog.

        Args:
            entry: Object exposing title and tags.

        Returns:
            CrossReferenceResult, or None when there is no usable catalog or
            the winning candidate is malformed.
        """
        if self._catalog is None or len(self._catalog) == 0:
            logger.warning("match_without_catalog")
            return None

        search_text = build_search_text(
            getattr(entry, "title", None), getattr(entry, "tags", None)
        )

        best: CrossReferenceResult | None = None
        best_score = 0.0

        for topic in self._catalog:
            score = string_similarity(search_text, topic.name.lower())
            if score > best_score and score > self._threshold:
                best_score = score
                best = CrossReferenceResult(
                    topic_id=topic.id,
                    confidence=score,
                    matched_text=topic.name,
                    topic_name=topic.name,
                )

            for subtopic in topic.subtopics:
                score = string_similarity(search_text, subtopic.name.lower())
                if score > best_score and score > self._threshold:
                    best_score = score
                    best = CrossReferenceResult(
                        topic_id=topic.id,
                        subtopic_id=subtopic.id,
                        confidence=score,
                        matched_text=subtopic.name,
                        topic_name=topic.name,
                        subtopic_name=subtopic.name,
                    )

        if best is None:
            result = CrossReferenceResult(
                topic_id=MISCELLANEOUS_TOPIC_ID,
                confidence=FALLBACK_CONFIDENCE,
                matched_text=MISCELLANEOUS_TOPIC_NAME,
                topic_name=MISCELLANEOUS_TOPIC_NAME,
            )
        else:
            result = CrossReferenceResult(
                topic_id=best.topic_id,
                subtopic_id=best.subtopic_id,
                confidence=_rescale(best.confidence),
                matched_text=best.matched_text,
                topic_name=best.topic_name,
                subtopic_name=best.subtopic_name,
            )

        if not result.is_valid():
            logger.warning("match_discarded_invalid", result=repr(result))
            return None

        logger.debug(
            "entry_matched",
            topic_id=result.topic_id,
            subtopic_id=result.subtopic_id,
            confidence=result.confidence,
        )
        return result


def match_entry(entry: Any, catalog: RoadmapCatalog | None) -> CrossReferenceResult | None:
    """Match an entry against a catalog without keeping a matcher around."""
    return RoadmapMatcher(catalog).match(entry)
