"""
Entry Store - persistence for classified entries.

InMemoryEntryStore keeps entries in a dict guarded by a lock, so concurrent
request threads never observe a half-applied update. Reads return copies;
callers mutate the store only through update().

Pattern: Repository with Protocol for dependency injection
"""

from __future__ import annotations

import copy
import threading
from collections import Counter
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Final, Protocol, runtime_checkable

from learntrack.classifiers.confidence_scorer import round_half_up
from learntrack.storage.exceptions import EntryNotFoundError, EntryStateError
from learntrack.storage.models import (
    Entry,
    EntryStatus,
    ensure_utc,
    normalize_tags,
    utcnow,
)

STATUS_ALL: Final[str] = "all"

SORT_NEWEST: Final[str] = "newest"
SORT_OLDEST: Final[str] = "oldest"
SORT_TITLE: Final[str] = "title"
SORT_CONFIDENCE: Final[str] = "confidence"
SORT_OPTIONS: Final[tuple[str, ...]] = (SORT_NEWEST, SORT_OLDEST, SORT_TITLE, SORT_CONFIDENCE)

_ENTRY_FIELDS: Final[frozenset[str]] = frozenset(f.name for f in fields(Entry))
_IMMUTABLE_FIELDS: Final[frozenset[str]] = frozenset({"id", "created_at"})


@dataclass(frozen=True, slots=True)
class LearningStats:
    total_watch_time: float
    total_video_time: float
    avg_confidence: int
    entries_count: int


@dataclass(frozen=True, slots=True)
class EntryQuery:
    """Filter, sort and pagination options for list_entries().

    Attributes:
        status: An EntryStatus value or "all"
        search: Case-insensitive substring over title, tags and primary topic
        tags: Keep entries carrying at least one of these tags
        exclude_id: Entry id to leave out (e.g. the entry being viewed)
        date_from: Inclusive lower bound on visit timestamp
        date_to: Inclusive upper bound on visit timestamp
        sort: newest, oldest, title or confidence
        page: 1-based page number
        limit: Page size
    """

    status: str = EntryStatus.APPROVED.value
    search: str = ""
    tags: tuple[str, ...] = ()
    exclude_id: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    sort: str = SORT_NEWEST
    page: int = 1
    limit: int = 10


@runtime_checkable
class EntryStoreProtocol(Protocol):
    """Protocol for entry store implementations."""

    def create(self, entry: Entry) -> Entry: ...

    def get(self, entry_id: str) -> Entry: ...

    def update(self, entry_id: str, **changes: Any) -> Entry: ...

    def update_unless_status(
        self,
        entry_id: str,
        status: EntryStatus,
        error: str,
        changes: Callable[[Entry], Mapping[str, Any]],
    ) -> Entry: ...

    def delete(self, entry_id: str) -> Entry: ...

    def list_entries(self, query: EntryQuery) -> tuple[list[Entry], int]: ...

    def with_status(self, status: EntryStatus) -> list[Entry]: ...

    def find_by_url(self, url: str, start: datetime, end: datetime) -> Entry | None: ...

    def count(self, status: EntryStatus, since: datetime | None = None) -> int: ...

    def top_tags(self, limit: int = 10) -> list[tuple[str, int]]: ...

    def learning_stats(self) -> LearningStats | None: ...


def _status_value(status: Any) -> str:
    return str(getattr(status, "value", status))


def _checked_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Reject unknown or immutable fields and normalize tags and timestamps.

    Raises:
        AttributeError: On unknown or immutable field names
    """
    bad = set(changes) - (_ENTRY_FIELDS - _IMMUTABLE_FIELDS)
    if bad:
        raise AttributeError(f"Cannot update entry fields: {', '.join(sorted(bad))}")

    if "tags" in changes:
        changes["tags"] = normalize_tags(changes["tags"])
    if isinstance(changes.get("timestamp"), datetime):
        changes["timestamp"] = ensure_utc(changes["timestamp"])
    return changes


def _sort_key(sort: str) -> tuple[Any, bool]:
    if sort == SORT_OLDEST:
        return (lambda e: e.timestamp), False
    if sort == SORT_TITLE:
        return (lambda e: e.title.lower()), False
    if sort == SORT_CONFIDENCE:
        return (lambda e: e.confidence), True
    return (lambda e: e.timestamp), True


class InMemoryEntryStore:
    """Thread-safe in-process entry store."""

    def __init__(self) -> None:
        self._entries: dict[str, Entry] = {}
        self._lock = threading.Lock()

    def create(self, entry: Entry) -> Entry:
        with self._lock:
            self._entries[entry.id] = copy.deepcopy(entry)
            return copy.deepcopy(entry)

    def get(self, entry_id: str) -> Entry:
        with self._lock:
            return copy.deepcopy(self._require(entry_id))

    def update(self, entry_id: str, **changes: Any) -> Entry:
        """Apply field changes to an entry and bump updated_at.

        Raises:
            EntryNotFoundError: If the entry does not exist
            AttributeError: On unknown or immutable field names
        """
        changes = _checked_changes(changes)
        with self._lock:
            return self._apply(self._require(entry_id), changes)

    def update_unless_status(
        self,
        entry_id: str,
        status: EntryStatus,
        error: str,
        changes: Callable[[Entry], Mapping[str, Any]],
    ) -> Entry:
        """Atomically update an entry unless it already has the given status.

        The status check and the write happen under one lock acquisition, so
        two concurrent transitions of the same entry cannot both succeed.

        Args:
            entry_id: Entry to update
            status: Status that refuses the update
            error: Message of the EntryStateError raised on refusal
            changes: Builds the field changes from the current entry

        Raises:
            EntryNotFoundError: If the entry does not exist
            EntryStateError: If the entry already has status
        """
        with self._lock:
            entry = self._require(entry_id)
            if _status_value(entry.status) == _status_value(status):
                raise EntryStateError(error)
            checked = _checked_changes(dict(changes(copy.deepcopy(entry))))
            return self._apply(entry, checked)

    @staticmethod
    def _apply(entry: Entry, changes: Mapping[str, Any]) -> Entry:
        for name, value in changes.items():
            setattr(entry, name, value)
        entry.updated_at = utcnow()
        return copy.deepcopy(entry)

    def delete(self, entry_id: str) -> Entry:
        with self._lock:
            entry = self._require(entry_id)
            del self._entries[entry_id]
            return entry

    def list_entries(self, query: EntryQuery) -> tuple[list[Entry], int]:
        """Filter, sort and paginate entries.

        Returns:
            Tuple of (page of entries, total matching count)
        """
        with self._lock:
            matched = [e for e in self._entries.values() if self._matches(e, query)]
            key, reverse = _sort_key(query.sort)
            matched.sort(key=key, reverse=reverse)
            total = len(matched)
            page = max(query.page, 1)
            limit = max(query.limit, 1)
            start = (page - 1) * limit
            return copy.deepcopy(matched[start : start + limit]), total

    def with_status(self, status: EntryStatus) -> list[Entry]:
        with self._lock:
            return [
                copy.deepcopy(e)
                for e in self._entries.values()
                if _status_value(e.status) == _status_value(status)
            ]

    def find_by_url(self, url: str, start: datetime, end: datetime) -> Entry | None:
        """Return an entry for url visited within [start, end], if any."""
        start, end = ensure_utc(start), ensure_utc(end)
        with self._lock:
            for entry in self._entries.values():
                if entry.url == url and start <= entry.timestamp <= end:
                    return copy.deepcopy(entry)
        return None

    def count(self, status: EntryStatus, since: datetime | None = None) -> int:
        since = ensure_utc(since) if since is not None else None
        with self._lock:
            return sum(
                1
                for e in self._entries.values()
                if _status_value(e.status) == _status_value(status)
                and (since is None or e.created_at >= since)
            )

    def top_tags(self, limit: int = 10) -> list[tuple[str, int]]:
        """Most frequent tags across approved entries, most common first."""
        with self._lock:
            counter = Counter(
                tag
                for e in self._entries.values()
                if e.status == EntryStatus.APPROVED
                for tag in e.tags
            )
        return sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]

    def learning_stats(self) -> LearningStats | None:
        """Aggregate watch time and confidence over approved entries."""
        with self._lock:
            approved = [e for e in self._entries.values() if e.status == EntryStatus.APPROVED]
        if not approved:
            return None
        return LearningStats(
            total_watch_time=sum(e.watched_length for e in approved),
            total_video_time=sum(e.video_length for e in approved),
            avg_confidence=round_half_up(sum(e.confidence for e in approved) / len(approved)),
            entries_count=len(approved),
        )

    def __len__(self) -> int:
        return len(self._entries)

    # -------------------------------------------------------------------------

    def _require(self, entry_id: str) -> Entry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    @staticmethod
    def _matches(entry: Entry, query: EntryQuery) -> bool:
        if query.status != STATUS_ALL and _status_value(entry.status) != query.status:
            return False
        if query.exclude_id and entry.id == query.exclude_id:
            return False
        if query.tags and not set(query.tags) & set(entry.tags):
            return False
        if query.date_from and entry.timestamp < ensure_utc(query.date_from):
            return False
        if query.date_to and entry.timestamp > ensure_utc(query.date_to):
            return False
        if query.search:
            needle = query.search.lower()
            haystacks = [entry.title.lower(), entry.primary_topic.lower(), *entry.tags]
            if not any(needle in h for h in haystacks):
                return False
        return True
