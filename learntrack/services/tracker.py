"""
Learning Tracker service.

Orchestrates the entry lifecycle:

    raw history -> ContentClassifier -> score_entry -> pending Entry
    approve      -> score_entry (approved) -> RoadmapMatcher -> attach_entry
    read roadmap -> calculate_progress per topic/subtopic -> overall progress

Per-item failures during ingestion and bulk approval are logged and reported
in the returned summaries instead of aborting the whole request.
"""

from __future__ import annotations

import copy
import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, time, timedelta, timezone
from numbers import Real
from typing import Any, Final

from learntrack.classifiers.confidence_scorer import score_entry
from learntrack.classifiers.content_classifier import ContentClassifierProtocol
from learntrack.core.logging import get_logger, tracking_context
from learntrack.core.tracing import get_tracer, span_attributes, traced
from learntrack.roadmap.catalog import RoadmapCatalog
from learntrack.roadmap.matcher import CrossReferenceResult, RoadmapMatcher
from learntrack.roadmap.progress import overall_progress
from learntrack.storage.entry_store import EntryQuery, EntryStoreProtocol, LearningStats
from learntrack.storage.exceptions import EntryNotFoundError, EntryStateError
from learntrack.storage.models import (
    Entry,
    EntrySource,
    EntryStatus,
    RoadmapEntryRef,
    RoadmapTopic,
    UserRoadmap,
    ensure_utc,
    utcnow,
)
from learntrack.storage.roadmap_store import RoadmapStoreProtocol, refresh_progress

logger = get_logger(__name__)
tracer = get_tracer(__name__)

DEFAULT_USER_ID: Final[str] = "default"
DEFAULT_BATCH_SIZE: Final[int] = 10
DEFAULT_RECENT_DAYS: Final[int] = 7
DEFAULT_TOP_TAGS: Final[int] = 10
DEFAULT_PENDING_LIMIT: Final[int] = 10

# Fields a reviewer may edit on an entry
EDITABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {"title", "tags", "keywords", "primary_topic", "summary", "notes"}
)

ERROR_NOT_FOUND: Final[str] = "Entry not found"
ERROR_ALREADY_APPROVED: Final[str] = "Entry already approved"

DURATION_PATTERN: Final[re.Pattern[str]] = re.compile(r"(\d+):(\d+):(\d+)")


# =============================================================================
# Inputs and results
# =============================================================================


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """One raw history record as posted by the browser extension."""

    url: str
    title: str
    timestamp: datetime | None = None
    visit_time: float = 0
    video_length: float | str | None = None
    watched_length: float | str | None = None


@dataclass(frozen=True, slots=True)
class SubmitSummary:
    processed_count: int
    total_count: int
    skipped_count: int = 0
    error_count: int = 0
    entry_ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class EntryError:
    entry_id: str
    error: str


@dataclass(frozen=True, slots=True)
class ApprovalSummary:
    approved: int
    approved_ids: tuple[str, ...] = ()
    errors: tuple[EntryError, ...] = ()


@dataclass(frozen=True, slots=True)
class CrossReferenceSummary:
    total_processed: int
    matched_count: int
    error_count: int
    errors: tuple[EntryError, ...] = ()


@dataclass(frozen=True, slots=True)
class RoadmapView:
    """Roadmap with progress recomputed at read time."""

    roadmap: UserRoadmap
    overall_progress: int
    last_updated: datetime = field(default_factory=utcnow)


@dataclass(frozen=True, slots=True)
class EntryCounts:
    approved: int
    pending: int
    rejected: int
    recent_approved: int
    recent_pending: int
    top_tags: tuple[tuple[str, int], ...]
    learning_stats: LearningStats | None


# =============================================================================
# Helpers
# =============================================================================


def parse_duration(value: Any) -> float:
    """Convert a video duration to seconds.

    Accepts a non-negative number of seconds or an "HH:MM:SS" string.
    Anything else (None, NaN, negative, unparsable text) yields 0.

    Example:
        >>> parse_duration("01:02:03")
        3723.0
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, Real):
        number = float(value)
        return number if math.isfinite(number) and number > 0 else 0.0
    if isinstance(value, str):
        match = DURATION_PATTERN.search(value)
        if not match:
            return 0.0
        hours, minutes, seconds = (int(g) for g in match.groups())
        return float(hours * 3600 + minutes * 60 + seconds)
    return 0.0


def day_window(start: datetime, stop: datetime) -> tuple[datetime, datetime]:
    """Return [start of start's day, end of stop's day] in UTC."""
    start_utc = ensure_utc(start)
    stop_utc = ensure_utc(stop)
    window_start = datetime.combine(start_utc.date(), time.min, tzinfo=timezone.utc)
    window_end = datetime.combine(stop_utc.date(), time.max, tzinfo=timezone.utc)
    return window_start, window_end


def _batches(items: list[HistoryItem], size: int) -> Iterable[list[HistoryItem]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


# =============================================================================
# Service
# =============================================================================


class LearningTracker:
    """Application service for ingestion, review and roadmap tracking.

    All collaborators are injected so tests can swap in fakes.

    Example:
        tracker = LearningTracker(
            classifier=ContentClassifier(),
            entry_store=InMemoryEntryStore(),
            roadmap_store=InMemoryRoadmapStore(),
            catalog=RoadmapCatalog.from_yaml(),
        )
        tracker.submit_history(start, stop, items)
    """

    def __init__(
        self,
        classifier: ContentClassifierProtocol,
        entry_store: EntryStoreProtocol,
        roadmap_store: RoadmapStoreProtocol,
        catalog: RoadmapCatalog,
        user_id: str = DEFAULT_USER_ID,
        batch_size: int = DEFAULT_BATCH_SIZE,
        recent_window_days: int = DEFAULT_RECENT_DAYS,
        pending_limit: int = DEFAULT_PENDING_LIMIT,
    ) -> None:
        self._classifier = classifier
        self._entries = entry_store
        self._roadmaps = roadmap_store
        self._catalog = catalog
        self._matcher = RoadmapMatcher(catalog)
        self._user_id = user_id
        self._batch_size = max(batch_size, 1)
        self._recent_window = timedelta(days=recent_window_days)
        self._pending_limit = max(pending_limit, 1)

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def classifier(self) -> ContentClassifierProtocol:
        return self._classifier

    @property
    def catalog(self) -> RoadmapCatalog:
        return self._catalog

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------

    def submit_history(
        self, start_time: datetime, stop_time: datetime, items: list[HistoryItem]
    ) -> SubmitSummary:
        """Classify raw history and store learning pages as pending entries.

        Items already stored for the same URL within the submission's day
        window are skipped, as are pages the classifier rejects.

        Args:
            start_time: Start of the harvested history range
            stop_time: End of the harvested history range
            items: Raw history records

        Returns:
            SubmitSummary with processed/skipped/error counts
        """
        window = day_window(start_time, stop_time)
        created: list[str] = []
        skipped = 0
        errors = 0

        with (
            tracking_context(self._user_id, "submit_history"),
            traced(tracer, "submit_history", {"history.total": len(items)}) as span,
        ):
            logger.info("history_submitted", total=len(items), batch_size=self._batch_size)

            for batch_number, batch in enumerate(_batches(items, self._batch_size), start=1):
                for item in batch:
                    try:
                        entry = self._ingest_item(item, window)
                    except Exception as e:  # noqa: BLE001 - one bad item must not sink the batch
                        errors += 1
                        logger.error("history_item_failed", url=item.url, error=str(e))
                        continue
                    if entry is None:
                        skipped += 1
                    else:
                        created.append(entry.id)
                logger.debug("history_batch_done", batch=batch_number, size=len(batch))

            span.set_attribute("history.processed", len(created))

        logger.info(
            "history_processed",
            processed=len(created),
            skipped=skipped,
            errors=errors,
            total=len(items),
        )
        return SubmitSummary(
            processed_count=len(created),
            total_count=len(items),
            skipped_count=skipped,
            error_count=errors,
            entry_ids=tuple(created),
        )

    def _ingest_item(
        self, item: HistoryItem, window: tuple[datetime, datetime]
    ) -> Entry | None:
        if self._entries.find_by_url(item.url, *window) is not None:
            logger.debug("history_item_duplicate", url=item.url)
            return None

        result = self._classifier.classify(item.title, item.url)
        if not result.is_learning_content:
            logger.debug("history_item_not_learning", url=item.url, topic=result.primary_topic)
            return None

        entry = Entry(
            url=item.url,
            title=item.title,
            timestamp=item.timestamp or utcnow(),
            visit_time=item.visit_time or 0,
            tags=list(result.tags),
            keywords=list(result.keywords),
            primary_topic=result.primary_topic,
            summary=result.summary,
            is_video=result.is_video,
            video_length=parse_duration(item.video_length),
            watched_length=parse_duration(item.watched_length),
            status=EntryStatus.PENDING,
            source=EntrySource.CHROME_EXTENSION,
        )
        entry.confidence = score_entry(entry)
        stored = self._entries.create(entry)
        logger.info(
            "entry_created",
            entry_id=stored.id,
            title=stored.title,
            confidence=stored.confidence,
        )
        return stored

    # -------------------------------------------------------------------------
    # Review
    # -------------------------------------------------------------------------

    def approve_entry(self, entry_id: str) -> Entry:
        """Approve one entry, rescore it and cross-reference it.

        Raises:
            EntryNotFoundError: If the entry does not exist
            EntryStateError: If the entry is already approved
        """
        with (
            tracking_context(self._user_id, "approve_entry", entry_id=entry_id),
            traced(tracer, "approve_entry", {"entry.id": entry_id}) as span,
        ):
            self._ensure_approvable(self._entries.get(entry_id))

            # The status check is repeated under the store lock, so of two
            # concurrent approvals only one goes through
            approved = self._entries.update_unless_status(
                entry_id,
                EntryStatus.APPROVED,
                ERROR_ALREADY_APPROVED,
                lambda current: {
                    "status": EntryStatus.APPROVED,
                    "approved_at": utcnow(),
                    "confidence": score_entry(replace(current, status=EntryStatus.APPROVED)),
                },
            )
            span.set_attribute("entry.confidence", approved.confidence)
            logger.info("entry_approved", confidence=approved.confidence)

            try:
                self.cross_reference_entry(entry_id)
            except Exception as e:  # noqa: BLE001 - approval stands even if matching fails
                logger.error("cross_reference_failed", entry_id=entry_id, error=str(e))

            return self._entries.get(approved.id)

    @staticmethod
    def _ensure_approvable(entry: Entry) -> None:
        if entry.status == EntryStatus.APPROVED:
            raise EntryStateError(ERROR_ALREADY_APPROVED)

    def approve_entries(self, entry_ids: list[str]) -> ApprovalSummary:
        """Approve several entries, reporting failures per id."""
        approved: list[str] = []
        errors: list[EntryError] = []
        for entry_id in entry_ids:
            try:
                self.approve_entry(entry_id)
            except EntryNotFoundError:
                errors.append(EntryError(entry_id, ERROR_NOT_FOUND))
            except EntryStateError as e:
                errors.append(EntryError(entry_id, e.message))
            else:
                approved.append(entry_id)
        return ApprovalSummary(
            approved=len(approved), approved_ids=tuple(approved), errors=tuple(errors)
        )

    def reject_entry(self, entry_id: str) -> Entry:
        entry = self._entries.update(entry_id, status=EntryStatus.REJECTED)
        logger.info("entry_rejected", entry_id=entry_id)
        return entry

    def update_entry(self, entry_id: str, changes: Mapping[str, Any]) -> Entry:
        """Edit reviewer-editable fields and optionally change status.

        Unknown fields are ignored. A status of "approved" runs the full
        approval path; "rejected" rejects the entry.

        Raises:
            EntryNotFoundError: If the entry does not exist
            EntryStateError: If approving an already-approved entry
        """
        edits = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        raw_status = changes.get("status")
        status = EntryStatus(raw_status) if raw_status is not None else None

        # A refused transition must leave the entry untouched
        if status == EntryStatus.APPROVED:
            self._ensure_approvable(self._entries.get(entry_id))

        entry = (
            self._entries.update(entry_id, **edits) if edits else self._entries.get(entry_id)
        )

        if status is None:
            return entry
        if status == EntryStatus.APPROVED:
            return self.approve_entry(entry_id)
        if status == EntryStatus.REJECTED:
            return self.reject_entry(entry_id)
        return self._entries.update(entry_id, status=status)

    def get_entry(self, entry_id: str) -> Entry:
        return self._entries.get(entry_id)

    def list_entries(self, query: EntryQuery) -> tuple[list[Entry], int]:
        return self._entries.list_entries(query)

    def pending_entries(self, limit: int | None = None) -> list[Entry]:
        """Newest pending entries awaiting review.

        Args:
            limit: Page size; defaults to the configured pending limit
        """
        page, _ = self._entries.list_entries(
            EntryQuery(status=EntryStatus.PENDING.value, limit=limit or self._pending_limit)
        )
        return page

    def delete_entry(self, entry_id: str) -> Entry:
        entry = self._entries.delete(entry_id)
        logger.info("entry_deleted", entry_id=entry_id)
        return entry

    # -------------------------------------------------------------------------
    # Cross-referencing
    # -------------------------------------------------------------------------

    def cross_reference_entry(self, entry_id: str) -> CrossReferenceResult | None:
        """Match an entry against the catalog and attach it to the roadmap.

        Returns:
            The match, or None when no usable match exists.

        Raises:
            EntryNotFoundError: If the entry does not exist
            TopicNotFoundError: If the matched topic is missing from the roadmap
        """
        with traced(tracer, "cross_reference_entry", {"entry.id": entry_id}) as span:
            entry = self._entries.get(entry_id)
            match = self._matcher.match(entry)
            if match is None:
                logger.info("cross_reference_no_match", entry_id=entry_id)
                return None

            span.set_attributes(
                span_attributes(
                    {"match.topic_id": match.topic_id, "match.subtopic_id": match.subtopic_id}
                )
            )
            self._roadmaps.get_or_create(self._user_id, self._catalog)
            self._roadmaps.attach_entry(
                self._user_id,
                match.topic_id,
                match.subtopic_id,
                RoadmapEntryRef.from_entry(entry, match.confidence),
            )
            self._entries.update(entry_id, cross_referenced_at=utcnow())
            logger.info(
                "entry_cross_referenced",
                entry_id=entry_id,
                topic_id=match.topic_id,
                subtopic_id=match.subtopic_id,
                confidence=match.confidence,
            )
            return match

    def cross_reference_all(self) -> CrossReferenceSummary:
        """Cross-reference every approved entry; attaching is idempotent."""
        entries = self._entries.with_status(EntryStatus.APPROVED)
        logger.info("cross_reference_all_started", total=len(entries))

        matched = 0
        errors: list[EntryError] = []
        for entry in entries:
            try:
                if self.cross_reference_entry(entry.id) is not None:
                    matched += 1
            except Exception as e:  # noqa: BLE001 - reported per entry
                logger.error("cross_reference_failed", entry_id=entry.id, error=str(e))
                errors.append(EntryError(entry.id, str(e)))

        return CrossReferenceSummary(
            total_processed=len(entries),
            matched_count=matched,
            error_count=len(errors),
            errors=tuple(errors),
        )

    # -------------------------------------------------------------------------
    # Roadmap
    # -------------------------------------------------------------------------

    def get_roadmap(self, user_id: str | None = None, now: datetime | None = None) -> RoadmapView:
        """Return the user's roadmap with time-decayed progress.

        Progress decays with time even when no entry changes, so it is
        recomputed for every topic and subtopic on read.
        """
        roadmap = copy.deepcopy(
            self._roadmaps.get_or_create(user_id or self._user_id, self._catalog)
        )
        for topic in roadmap.topics:
            refresh_progress(topic, now)
            for subtopic in topic.subtopics:
                refresh_progress(subtopic, now)

        return RoadmapView(
            roadmap=roadmap,
            overall_progress=overall_progress(t.progress for t in roadmap.topics),
        )

    def complete_topic(self, topic_id: str, subtopic_id: str | None = None) -> RoadmapTopic:
        """Mark a topic or subtopic as completed.

        Returns:
            The updated RoadmapTopic.
        """
        self._roadmaps.get_or_create(self._user_id, self._catalog)
        topic = self._roadmaps.complete(self._user_id, topic_id, subtopic_id)
        logger.info("topic_completed", topic_id=topic_id, subtopic_id=subtopic_id)
        return topic

    def reorder_topics(self, topic_ids: list[str]) -> UserRoadmap:
        self._roadmaps.get_or_create(self._user_id, self._catalog)
        return self._roadmaps.reorder(self._user_id, topic_ids)

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def entry_counts(self, now: datetime | None = None) -> EntryCounts:
        since = (now or utcnow()) - self._recent_window
        return EntryCounts(
            approved=self._entries.count(EntryStatus.APPROVED),
            pending=self._entries.count(EntryStatus.PENDING),
            rejected=self._entries.count(EntryStatus.REJECTED),
            recent_approved=self._entries.count(EntryStatus.APPROVED, since=since),
            recent_pending=self._entries.count(EntryStatus.PENDING, since=since),
            top_tags=tuple(self._entries.top_tags(DEFAULT_TOP_TAGS)),
            learning_stats=self._entries.learning_stats(),
        )
