"""
Storage models for entries and per-user roadmaps.

Entries are mutable records owned by the entry store. Roadmap topics and
subtopics carry denormalized RoadmapEntryRef snapshots: the title, url and
tags are copied at attach time and are not refreshed if the entry changes
later.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_tags(tags: list[str] | tuple[str, ...]) -> list[str]:
    return [t.strip().lower() for t in tags if t and t.strip()]


class EntryStatus(str, Enum):
    """Review lifecycle of an entry."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EntrySource(str, Enum):
    """Where an entry came from."""

    CHROME_EXTENSION = "chrome_extension"
    MANUAL = "manual"
    IMPORT = "import"


class NodeStatus(str, Enum):
    """Status of a roadmap topic or subtopic."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(slots=True)
class Entry:
    """A classified browsing-history visit.

    Attributes:
        url: Visited URL
        title: Page title
        timestamp: When the page was visited
        visit_time: Seconds spent on the page
        tags: Lowercase tags from classification
        keywords: Matched category keywords
        primary_topic: Best-guess category, "General" by default
        confidence: Integer score in [0, 100]
        is_video: Whether the page is on a video platform
        video_length: Total video length in seconds
        watched_length: Watched portion in seconds
        status: pending, approved or rejected
    """

    url: str
    title: str
    timestamp: datetime = field(default_factory=utcnow)
    visit_time: float = 0
    tags: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    primary_topic: str = "General"
    confidence: int = 50
    is_video: bool = False
    video_length: float = 0
    watched_length: float = 0
    status: EntryStatus = EntryStatus.PENDING
    source: EntrySource = EntrySource.CHROME_EXTENSION
    summary: str | None = None
    notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    approved_at: datetime | None = None
    cross_referenced_at: datetime | None = None

    def __post_init__(self) -> None:
        self.tags = normalize_tags(self.tags)
        self.timestamp = ensure_utc(self.timestamp)


@dataclass(frozen=True, slots=True)
class RoadmapEntryRef:
    """Snapshot of an entry attached to a topic or subtopic."""

    entry_id: str
    confidence: float
    title: str | None = None
    url: str | None = None
    created_at: datetime | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_entry(cls, entry: Entry, confidence: float) -> RoadmapEntryRef:
        return cls(
            entry_id=entry.id,
            confidence=confidence,
            title=entry.title,
            url=entry.url,
            created_at=entry.created_at,
            tags=tuple(entry.tags),
        )


@dataclass(slots=True)
class RoadmapSubtopic:
    id: str
    name: str
    order: int
    description: str | None = None
    progress: int = 0
    status: NodeStatus = NodeStatus.IN_PROGRESS
    entries: list[RoadmapEntryRef] = field(default_factory=list)

    def has_entry(self, entry_id: str) -> bool:
        return any(ref.entry_id == entry_id for ref in self.entries)


@dataclass(slots=True)
class RoadmapTopic:
    id: str
    name: str
    order: int
    description: str | None = None
    progress: int = 0
    status: NodeStatus = NodeStatus.IN_PROGRESS
    subtopics: list[RoadmapSubtopic] = field(default_factory=list)
    entries: list[RoadmapEntryRef] = field(default_factory=list)

    def has_entry(self, entry_id: str) -> bool:
        return any(ref.entry_id == entry_id for ref in self.entries)

    def subtopic(self, subtopic_id: str) -> RoadmapSubtopic | None:
        return next((s for s in self.subtopics if s.id == subtopic_id), None)


@dataclass(slots=True)
class UserRoadmap:
    """A user's live roadmap built from the static catalog."""

    user_id: str
    roadmap_id: str
    name: str
    description: str | None = None
    topics: list[RoadmapTopic] = field(default_factory=list)
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def topic(self, topic_id: str) -> RoadmapTopic | None:
        return next((t for t in self.topics if t.id == topic_id), None)
