"""
Roadmap API Endpoints

GET /v1/roadmap                        - User roadmap with live progress
PUT /v1/roadmap/reorder                - Reorder topics
PUT /v1/roadmap/{topic_id}/complete    - Mark a topic (or ?subtopic_id=) completed
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from learntrack.api.dependencies import get_tracker
from learntrack.services.tracker import LearningTracker, RoadmapView
from learntrack.storage.models import NodeStatus

API_PREFIX = "/v1/roadmap"
ROADMAP_TAG = "roadmap"


# =============================================================================
# Models
# =============================================================================


class EntryRefResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    entry_id: str
    confidence: float
    title: str | None = None
    url: str | None = None
    created_at: datetime | None = None
    tags: list[str] = Field(default_factory=list)


class SubtopicResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    order: int
    description: str | None = None
    progress: int
    status: NodeStatus
    entries: list[EntryRefResponse]


class TopicResponse(SubtopicResponse):
    subtopics: list[SubtopicResponse]


class RoadmapResponse(BaseModel):
    user_id: str
    roadmap_id: str
    name: str
    description: str | None = None
    topics: list[TopicResponse]
    overall_progress: int = Field(ge=0, le=100)
    last_updated: datetime


class ReorderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic_ids: list[str] = Field(..., min_length=1, alias="topicIds")


def _roadmap_response(view: RoadmapView) -> RoadmapResponse:
    roadmap = view.roadmap
    return RoadmapResponse(
        user_id=roadmap.user_id,
        roadmap_id=roadmap.roadmap_id,
        name=roadmap.name,
        description=roadmap.description,
        topics=[TopicResponse.model_validate(t) for t in roadmap.topics],
        overall_progress=view.overall_progress,
        last_updated=view.last_updated,
    )


# =============================================================================
# Router
# =============================================================================


roadmap_router = APIRouter(prefix=API_PREFIX, tags=[ROADMAP_TAG])

TrackerDep = Annotated[LearningTracker, Depends(get_tracker)]


@roadmap_router.get("", response_model=RoadmapResponse, summary="Get roadmap with progress")
def get_roadmap(tracker: TrackerDep) -> RoadmapResponse:
    view = tracker.get_roadmap()
    return _roadmap_response(view)


@roadmap_router.put(
    "/reorder",
    response_model=RoadmapResponse,
    responses={404: {"description": "Unknown topic id"}},
)
def reorder_topics(request: ReorderRequest, tracker: TrackerDep) -> RoadmapResponse:
    tracker.reorder_topics(request.topic_ids)
    view = tracker.get_roadmap()
    return _roadmap_response(view)


@roadmap_router.put(
    "/{topic_id}/complete",
    response_model=TopicResponse,
    responses={404: {"description": "Topic or subtopic not found"}},
)
def complete_topic(
    topic_id: str,
    tracker: TrackerDep,
    subtopic_id: Annotated[str | None, Query()] = None,
) -> TopicResponse:
    return TopicResponse.model_validate(tracker.complete_topic(topic_id, subtopic_id))
