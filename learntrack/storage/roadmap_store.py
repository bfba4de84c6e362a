"""
Roadmap Tree Store - per-user roadmap documents.

Owns the canonical topic tree of each user. The matcher never writes here
directly; it produces a CrossReferenceResult and the tracker calls
attach_entry(), which is an atomic append-if-absent:

- the entry id is checked against the topic's list and, independently,
  the subtopic's list
- a list that already holds the id is left untouched (idempotent attach)
- every list that changed gets its progress recomputed

Completed topics and subtopics stay at 100 regardless of later attaches.
"""

from __future__ import annotations

import copy
import threading
from datetime import datetime
from typing import Protocol, runtime_checkable

from learntrack.core.logging import get_logger
from learntrack.roadmap.catalog import (
    MISCELLANEOUS_DESCRIPTION,
    MISCELLANEOUS_TOPIC_ID,
    MISCELLANEOUS_TOPIC_NAME,
    RoadmapCatalog,
)
from learntrack.roadmap.progress import calculate_progress
from learntrack.storage.exceptions import (
    RoadmapNotFoundError,
    SubtopicNotFoundError,
    TopicNotFoundError,
)
from learntrack.storage.models import (
    NodeStatus,
    RoadmapEntryRef,
    RoadmapSubtopic,
    RoadmapTopic,
    UserRoadmap,
    utcnow,
)

logger = get_logger(__name__)

COMPLETED_PROGRESS = 100


@runtime_checkable
class RoadmapStoreProtocol(Protocol):
    """Protocol for roadmap store implementations."""

    def get_or_create(self, user_id: str, catalog: RoadmapCatalog) -> UserRoadmap: ...

    def get(self, user_id: str) -> UserRoadmap: ...

    def attach_entry(
        self,
        user_id: str,
        topic_id: str,
        subtopic_id: str | None,
        ref: RoadmapEntryRef,
        now: datetime | None = None,
    ) -> bool: ...

    def complete(
        self, user_id: str, topic_id: str, subtopic_id: str | None = None
    ) -> RoadmapTopic: ...

    def reorder(self, user_id: str, topic_ids: list[str]) -> UserRoadmap: ...


def build_user_roadmap(user_id: str, catalog: RoadmapCatalog) -> UserRoadmap:
    """Instantiate a fresh roadmap from the catalog.

    Every node starts at progress 0, in_progress, with no entries. A
    Miscellaneous topic is appended when the catalog lacks one, so the
    matcher's fallback always has somewhere to land.
    """
    topics = [
        RoadmapTopic(
            id=topic.id,
            name=topic.name,
            description=topic.description,
            order=index,
            subtopics=[
                RoadmapSubtopic(
                    id=sub.id,
                    name=sub.name,
                    description=sub.description,
                    order=sub_index,
                )
                for sub_index, sub in enumerate(topic.subtopics, start=1)
            ],
        )
        for index, topic in enumerate(catalog, start=1)
    ]
    if not catalog.has_miscellaneous():
        topics.append(
            RoadmapTopic(
                id=MISCELLANEOUS_TOPIC_ID,
                name=MISCELLANEOUS_TOPIC_NAME,
                description=MISCELLANEOUS_DESCRIPTION,
                order=len(topics) + 1,
            )
        )
    return UserRoadmap(
        user_id=user_id,
        roadmap_id=catalog.id,
        name=catalog.name,
        description=catalog.description,
        topics=topics,
    )


def refresh_progress(node: RoadmapTopic | RoadmapSubtopic, now: datetime | None = None) -> None:
    """Recompute a node's progress from its entries (completed stays 100)."""
    if node.status == NodeStatus.COMPLETED:
        node.progress = COMPLETED_PROGRESS
    else:
        node.progress = calculate_progress(node.entries, now=now)


class InMemoryRoadmapStore:
    """Thread-safe in-process roadmap store, one active roadmap per user."""

    def __init__(self) -> None:
        self._roadmaps: dict[str, UserRoadmap] = {}
        self._lock = threading.Lock()

    def get_or_create(self, user_id: str, catalog: RoadmapCatalog) -> UserRoadmap:
        """Return the user's roadmap, creating it from the catalog if absent."""
        with self._lock:
            roadmap = self._roadmaps.get(user_id)
            if roadmap is None:
                roadmap = build_user_roadmap(user_id, catalog)
                self._roadmaps[user_id] = roadmap
                logger.info("roadmap_initialized", user_id=user_id, topics=len(roadmap.topics))
            return copy.deepcopy(roadmap)

    def get(self, user_id: str) -> UserRoadmap:
        with self._lock:
            return copy.deepcopy(self._require(user_id))

    def attach_entry(
        self,
        user_id: str,
        topic_id: str,
        subtopic_id: str | None,
        ref: RoadmapEntryRef,
        now: datetime | None = None,
    ) -> bool:
        """Append an entry snapshot to a topic and optional subtopic.

        Args:
            user_id: Roadmap owner
            topic_id: Target topic id
            subtopic_id: Target subtopic id, or None for topic-level matches
            ref: Snapshot to append
            now: Reference time for progress recomputation

        Returns:
            True if the snapshot was appended to at least one list.

        Raises:
            RoadmapNotFoundError: If the user has no roadmap
            TopicNotFoundError: If topic_id is not in the roadmap
        """
        with self._lock:
            roadmap = self._require(user_id)
            topic = roadmap.topic(topic_id)
            if topic is None:
                raise TopicNotFoundError(topic_id)

            appended = False
            if not topic.has_entry(ref.entry_id):
                topic.entries.append(ref)
                refresh_progress(topic, now)
                appended = True

            if subtopic_id:
                subtopic = topic.subtopic(subtopic_id)
                if subtopic is None:
                    logger.warning(
                        "attach_subtopic_missing", topic_id=topic_id, subtopic_id=subtopic_id
                    )
                elif not subtopic.has_entry(ref.entry_id):
                    subtopic.entries.append(ref)
                    refresh_progress(subtopic, now)
                    appended = True

            if appended:
                roadmap.updated_at = utcnow()

        logger.debug(
            "entry_attached" if appended else "entry_already_attached",
            user_id=user_id,
            topic_id=topic_id,
            subtopic_id=subtopic_id,
            entry_id=ref.entry_id,
        )
        return appended

    def complete(
        self, user_id: str, topic_id: str, subtopic_id: str | None = None
    ) -> RoadmapTopic:
        """Mark a topic, or one of its subtopics, as completed.

        Returns:
            Copy of the (updated) topic.

        Raises:
            RoadmapNotFoundError, TopicNotFoundError, SubtopicNotFoundError
        """
        with self._lock:
            roadmap = self._require(user_id)
            topic = roadmap.topic(topic_id)
            if topic is None:
                raise TopicNotFoundError(topic_id)

            node: RoadmapTopic | RoadmapSubtopic = topic
            if subtopic_id:
                subtopic = topic.subtopic(subtopic_id)
                if subtopic is None:
                    raise SubtopicNotFoundError(topic_id, subtopic_id)
                node = subtopic

            node.status = NodeStatus.COMPLETED
            node.progress = COMPLETED_PROGRESS
            roadmap.updated_at = utcnow()
            return copy.deepcopy(topic)

    def reorder(self, user_id: str, topic_ids: list[str]) -> UserRoadmap:
        """Set topic order from a list of ids; unlisted topics keep relative order after."""
        with self._lock:
            roadmap = self._require(user_id)
            unknown = [tid for tid in topic_ids if roadmap.topic(tid) is None]
            if unknown:
                raise TopicNotFoundError(unknown[0])

            position = {tid: index for index, tid in enumerate(topic_ids)}
            roadmap.topics.sort(key=lambda t: (position.get(t.id, len(position)), t.order))
            for index, topic in enumerate(roadmap.topics, start=1):
                topic.order = index
            roadmap.updated_at = utcnow()
            return copy.deepcopy(roadmap)

    def _require(self, user_id: str) -> UserRoadmap:
        roadmap = self._roadmaps.get(user_id)
        if roadmap is None or not roadmap.is_active:
            raise RoadmapNotFoundError(user_id)
        return roadmap
