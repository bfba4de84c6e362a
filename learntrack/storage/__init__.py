"""Storage layer: entry and roadmap stores with their models."""
from learntrack.storage.entry_store import (
    EntryQuery,
    EntryStoreProtocol,
    InMemoryEntryStore,
    LearningStats,
)
from learntrack.storage.exceptions import (
    EntryNotFoundError,
    EntryStateError,
    RoadmapNotFoundError,
    SubtopicNotFoundError,
    TopicNotFoundError,
)
from learntrack.storage.models import (
    Entry,
    EntrySource,
    EntryStatus,
    NodeStatus,
    RoadmapEntryRef,
    RoadmapSubtopic,
    RoadmapTopic,
    UserRoadmap,
)
from learntrack.storage.roadmap_store import (
    InMemoryRoadmapStore,
    RoadmapStoreProtocol,
    build_user_roadmap,
)

__all__ = [
    "Entry",
    "EntryNotFoundError",
    "EntryQuery",
    "EntrySource",
    "EntryStateError",
    "EntryStatus",
    "EntryStoreProtocol",
    "InMemoryEntryStore",
    "InMemoryRoadmapStore",
    "LearningStats",
    "NodeStatus",
    "RoadmapEntryRef",
    "RoadmapNotFoundError",
    "RoadmapStoreProtocol",
    "RoadmapSubtopic",
    "RoadmapTopic",
    "SubtopicNotFoundError",
    "TopicNotFoundError",
    "UserRoadmap",
    "build_user_roadmap",
]
