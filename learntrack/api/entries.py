"""
Entry API Endpoints

POST   /v1/entries/submit           - Ingest raw browser history
GET    /v1/entries                  - Filtered, sorted, paginated listing
GET    /v1/entries/pending          - Newest entries awaiting review
GET    /v1/entries/count            - Status totals and learning statistics
POST   /v1/entries/approve          - Bulk approval
POST   /v1/entries/cross-reference  - Re-match every approved entry
GET    /v1/entries/{entry_id}
PUT    /v1/entries/{entry_id}       - Edit fields and/or change status
DELETE /v1/entries/{entry_id}
POST   /v1/entries/{entry_id}/process - Cross-reference one entry

The submit body uses the browser extension's camelCase field names
(startTime, visitTime, videoLength, ...); snake_case is accepted as well.

Endpoints are plain functions so FastAPI runs them in its threadpool; the
stores behind the tracker are lock-guarded.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field

from learntrack.api.dependencies import get_tracker
from learntrack.services.tracker import (
    HistoryItem,
    LearningTracker,
)
from learntrack.storage.entry_store import SORT_NEWEST, SORT_OPTIONS, STATUS_ALL, EntryQuery
from learntrack.storage.models import EntrySource, EntryStatus

# =============================================================================
# Constants
# =============================================================================

API_PREFIX = "/v1/entries"
ENTRIES_TAG = "entries"
MAX_PAGE_SIZE = 100
SORT_PATTERN = "^(" + "|".join(SORT_OPTIONS) + ")$"
STATUS_PATTERN = "^(" + "|".join([STATUS_ALL, *(s.value for s in EntryStatus)]) + ")$"

MESSAGE_SUBMITTED = "History processed successfully"
MESSAGE_DELETED = "Entry deleted"


# =============================================================================
# Request Models
# =============================================================================


class HistoryItemRequest(BaseModel):
    """One history record from the extension."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., min_length=1)
    title: str = ""
    timestamp: datetime | None = None
    visit_time: float = Field(default=0, ge=0, alias="visitTime")
    video_length: float | str | None = Field(default=None, alias="videoLength")
    watched_length: float | str | None = Field(default=None, alias="watchedLength")

    def to_item(self) -> HistoryItem:
        return HistoryItem(
            url=self.url,
            title=self.title,
            timestamp=self.timestamp,
            visit_time=self.visit_time,
            video_length=self.video_length,
            watched_length=self.watched_length,
        )


class SubmitRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_time: datetime = Field(..., alias="startTime")
    stop_time: datetime = Field(..., alias="stopTime")
    history: list[HistoryItemRequest] = Field(default_factory=list)


class ApproveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entry_ids: list[str] = Field(..., min_length=1, alias="entryIds")


class EntryUpdateRequest(BaseModel):
    """Editable entry fields. Only fields present in the body are applied."""

    title: str | None = Field(default=None, min_length=1)
    tags: list[str] | None = None
    keywords: list[str] | None = None
    primary_topic: str | None = None
    summary: str | None = None
    notes: str | None = None
    status: EntryStatus | None = None


# =============================================================================
# Response Models
# =============================================================================


class EntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    title: str
    timestamp: datetime
    visit_time: float
    tags: list[str]
    keywords: list[str]
    primary_topic: str
    confidence: int
    is_video: bool
    video_length: float
    watched_length: float
    status: EntryStatus
    source: EntrySource
    summary: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    approved_at: datetime | None = None
    cross_referenced_at: datetime | None = None


class SubmitResponse(BaseModel):
    message: str
    processed_count: int
    total_count: int
    skipped_count: int
    error_count: int
    entry_ids: list[str]


class EntryListResponse(BaseModel):
    entries: list[EntryResponse]
    total: int
    page: int
    limit: int
    pages: int


class TagCount(BaseModel):
    tag: str
    count: int


class LearningStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_watch_time: float
    total_video_time: float
    avg_confidence: int
    entries_count: int


class CountResponse(BaseModel):
    approved: int
    pending: int
    rejected: int
    recent_approved: int
    recent_pending: int
    top_tags: list[TagCount]
    learning_stats: LearningStatsResponse | None = None


class EntryErrorResponse(BaseModel):
    entry_id: str
    error: str


class ApprovalResponse(BaseModel):
    approved: int
    approved_ids: list[str]
    errors: list[EntryErrorResponse]


class CrossReferenceResponse(BaseModel):
    entry_id: str
    matched: bool
    topic_id: str | None = None
    topic_name: str | None = None
    subtopic_id: str | None = None
    subtopic_name: str | None = None
    matched_text: str | None = None
    confidence: float | None = None


class CrossReferenceAllResponse(BaseModel):
    total_processed: int
    matched_count: int
    error_count: int
    errors: list[EntryErrorResponse]


class DeleteResponse(BaseModel):
    message: str
    id: str


# =============================================================================
# Router
# =============================================================================


entries_router = APIRouter(prefix=API_PREFIX, tags=[ENTRIES_TAG])

TrackerDep = Annotated[LearningTracker, Depends(get_tracker)]


@entries_router.post("/submit", response_model=SubmitResponse, summary="Submit browser history")
def submit_history(request: SubmitRequest, tracker: TrackerDep) -> SubmitResponse:
    summary = tracker.submit_history(
        request.start_time,
        request.stop_time,
        [item.to_item() for item in request.history],
    )
    return SubmitResponse(
        message=MESSAGE_SUBMITTED,
        processed_count=summary.processed_count,
        total_count=summary.total_count,
        skipped_count=summary.skipped_count,
        error_count=summary.error_count,
        entry_ids=list(summary.entry_ids),
    )


@entries_router.get("", response_model=EntryListResponse, summary="List entries")
def list_entries(
    tracker: TrackerDep,
    status_filter: Annotated[
        str, Query(alias="status", pattern=STATUS_PATTERN)
    ] = EntryStatus.APPROVED.value,
    search: str = "",
    tags: Annotated[list[str] | None, Query()] = None,
    exclude_id: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    sort: Annotated[str, Query(pattern=SORT_PATTERN)] = SORT_NEWEST,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 10,
) -> EntryListResponse:
    query = EntryQuery(
        status=status_filter,
        search=search.strip(),
        tags=tuple(t.lower() for t in tags or ()),
        exclude_id=exclude_id,
        date_from=date_from,
        date_to=date_to,
        sort=sort,
        page=page,
        limit=limit,
    )
    entries, total = tracker.list_entries(query)
    return EntryListResponse(
        entries=[EntryResponse.model_validate(e) for e in entries],
        total=total,
        page=page,
        limit=limit,
        pages=-(-total // limit),
    )


@entries_router.get("/pending", response_model=list[EntryResponse], summary="Pending entries")
def pending_entries(
    tracker: TrackerDep,
    limit: Annotated[int | None, Query(ge=1, le=MAX_PAGE_SIZE)] = None,
) -> list[EntryResponse]:
    """Newest pending entries; limit defaults to the LT_PENDING_LIMIT setting."""
    return [EntryResponse.model_validate(e) for e in tracker.pending_entries(limit)]


@entries_router.get("/count", response_model=CountResponse, summary="Entry statistics")
def entry_counts(tracker: TrackerDep) -> CountResponse:
    counts = tracker.entry_counts()
    return CountResponse(
        approved=counts.approved,
        pending=counts.pending,
        rejected=counts.rejected,
        recent_approved=counts.recent_approved,
        recent_pending=counts.recent_pending,
        top_tags=[TagCount(tag=tag, count=count) for tag, count in counts.top_tags],
        learning_stats=(
            LearningStatsResponse.model_validate(counts.learning_stats)
            if counts.learning_stats is not None
            else None
        ),
    )


@entries_router.post("/approve", response_model=ApprovalResponse, summary="Approve entries")
def approve_entries(request: ApproveRequest, tracker: TrackerDep) -> ApprovalResponse:
    summary = tracker.approve_entries(request.entry_ids)
    return ApprovalResponse(
        approved=summary.approved,
        approved_ids=list(summary.approved_ids),
        errors=[EntryErrorResponse(entry_id=e.entry_id, error=e.error) for e in summary.errors],
    )


@entries_router.post(
    "/cross-reference",
    response_model=CrossReferenceAllResponse,
    summary="Cross-reference all approved entries",
)
def cross_reference_all(tracker: TrackerDep) -> CrossReferenceAllResponse:
    summary = tracker.cross_reference_all()
    return CrossReferenceAllResponse(
        total_processed=summary.total_processed,
        matched_count=summary.matched_count,
        error_count=summary.error_count,
        errors=[EntryErrorResponse(entry_id=e.entry_id, error=e.error) for e in summary.errors],
    )


@entries_router.get(
    "/{entry_id}",
    response_model=EntryResponse,
    responses={404: {"description": "Entry not found"}},
)
def get_entry(entry_id: str, tracker: TrackerDep) -> EntryResponse:
    return EntryResponse.model_validate(tracker.get_entry(entry_id))


@entries_router.put(
    "/{entry_id}",
    response_model=EntryResponse,
    responses={
        404: {"description": "Entry not found"},
        409: {"description": "Entry already approved"},
    },
)
def update_entry(
    entry_id: str, request: EntryUpdateRequest, tracker: TrackerDep
) -> EntryResponse:
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    return EntryResponse.model_validate(tracker.update_entry(entry_id, changes))


@entries_router.delete(
    "/{entry_id}",
    response_model=DeleteResponse,
    status_code=status.HTTP_200_OK,
    responses={404: {"description": "Entry not found"}},
)
def delete_entry(entry_id: str, tracker: TrackerDep) -> DeleteResponse:
    entry = tracker.delete_entry(entry_id)
    return DeleteResponse(message=MESSAGE_DELETED, id=entry.id)


@entries_router.post(
    "/{entry_id}/process",
    response_model=CrossReferenceResponse,
    responses={404: {"description": "Entry not found"}},
)
def process_entry(entry_id: str, tracker: TrackerDep) -> CrossReferenceResponse:
    """Cross-reference one entry against the roadmap catalog."""
    match = tracker.cross_reference_entry(entry_id)
    if match is None:
        return CrossReferenceResponse(entry_id=entry_id, matched=False)
    return CrossReferenceResponse(
        entry_id=entry_id,
        matched=True,
        topic_id=match.topic_id,
        topic_name=match.topic_name,
        subtopic_id=match.subtopic_id,
        subtopic_name=match.subtopic_name,
        matched_text=match.matched_text,
        confidence=match.confidence,
    )
