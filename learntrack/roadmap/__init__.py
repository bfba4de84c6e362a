"""Roadmap components: static catalog, cross-reference matcher, progress."""
from learntrack.roadmap.catalog import (
    MISCELLANEOUS_TOPIC_ID,
    MISCELLANEOUS_TOPIC_NAME,
    CatalogSubtopic,
    CatalogTopic,
    RoadmapCatalog,
)
from learntrack.roadmap.matcher import (
    CrossReferenceResult,
    RoadmapMatcher,
    build_search_text,
    match_entry,
)
from learntrack.roadmap.progress import calculate_progress, overall_progress

__all__ = [
    "MISCELLANEOUS_TOPIC_ID",
    "MISCELLANEOUS_TOPIC_NAME",
    "CatalogSubtopic",
    "CatalogTopic",
    "CrossReferenceResult",
    "RoadmapCatalog",
    "RoadmapMatcher",
    "build_search_text",
    "calculate_progress",
    "match_entry",
    "overall_progress",
]
