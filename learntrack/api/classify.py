"""
Classification API Endpoints

POST /v1/classify       - Preview how a page would be classified and scored
POST /v1/classify/score - Score an entry-shaped record

Neither endpoint stores anything.

Patterns Applied:
- FastAPI router with Pydantic request/response models
- Classifier injected via Depends(get_classifier)
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from learntrack.api.dependencies import get_classifier
from learntrack.classifiers.confidence_scorer import score_entry
from learntrack.classifiers.content_classifier import ContentClassifierProtocol
from learntrack.services.tracker import parse_duration
from learntrack.storage.models import Entry, EntryStatus

# =============================================================================
# Constants
# =============================================================================

API_PREFIX = "/v1"
CLASSIFY_TAG = "classify"
CLASSIFY_SUMMARY = "Classify a visited page"
SCORE_SUMMARY = "Compute the confidence score of an entry"

ERROR_URL_EMPTY = "URL cannot be empty or whitespace"


# =============================================================================
# Request/Response Models
# =============================================================================


class ClassifyRequest(BaseModel):
    """Request body for page classification."""

    title: str = Field(default="", description="Page title", examples=["React Hooks Tutorial"])
    url: str = Field(
        ...,
        min_length=1,
        description="Page URL",
        examples=["https://react.dev/learn"],
    )

    @field_validator("url")
    @classmethod
    def validate_url_not_whitespace(cls, v: str) -> str:
        if not v.strip():
            raise ValueError(ERROR_URL_EMPTY)
        return v


class ClassifyResponse(BaseModel):
    tags: list[str]
    keywords: list[str]
    primary_topic: str
    summary: str
    is_learning_content: bool
    is_video: bool
    confidence: int = Field(ge=0, le=100, description="Score the page would get as a pending entry")


class ScoreRequest(BaseModel):
    """Entry-shaped record to score. Every field is optional."""

    title: str = ""
    tags: list[str] = Field(default_factory=list)
    primary_topic: str | None = None
    summary: str | None = None
    is_video: bool = False
    video_length: float | str | None = None
    watched_length: float | str | None = None
    status: EntryStatus = EntryStatus.PENDING


class ScoreResponse(BaseModel):
    confidence: int = Field(ge=0, le=100)


# =============================================================================
# Router
# =============================================================================


classify_router = APIRouter(prefix=API_PREFIX, tags=[CLASSIFY_TAG])


@classify_router.post(
    "/classify",
    response_model=ClassifyResponse,
    summary=CLASSIFY_SUMMARY,
    responses={
        200: {"description": "Page classified successfully"},
        422: {"description": "Validation error (empty url)"},
    },
)
def classify_page(
    request: ClassifyRequest,
    classifier: Annotated[ContentClassifierProtocol, Depends(get_classifier)],
) -> ClassifyResponse:
    """Classify a page and report the score it would receive on ingestion.

    Excluded pages come back with primary_topic "Excluded" and
    is_learning_content False.
    """
    result = classifier.classify(request.title, request.url)
    preview = Entry(
        url=request.url,
        title=request.title,
        tags=list(result.tags),
        primary_topic=result.primary_topic,
        summary=result.summary,
        is_video=result.is_video,
    )
    return ClassifyResponse(
        tags=list(result.tags),
        keywords=list(result.keywords),
        primary_topic=result.primary_topic,
        summary=result.summary,
        is_learning_content=result.is_learning_content,
        is_video=result.is_video,
        confidence=score_entry(preview),
    )


@classify_router.post(
    "/classify/score",
    response_model=ScoreResponse,
    summary=SCORE_SUMMARY,
)
def score_record(request: ScoreRequest) -> ScoreResponse:
    record = request.model_copy(
        update={
            "video_length": parse_duration(request.video_length),
            "watched_length": parse_duration(request.watched_length),
        }
    )
    return ScoreResponse(confidence=score_entry(record))
