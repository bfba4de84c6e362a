"""
Exception handlers mapping domain errors to HTTP responses.

    EntryNotFoundError, RoadmapNotFoundError,
    TopicNotFoundError, SubtopicNotFoundError  -> 404
    EntryStateError                            -> 409
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from learntrack.core.exceptions import LearningTrackerError
from learntrack.core.logging import get_logger
from learntrack.storage.exceptions import (
    EntryNotFoundError,
    EntryStateError,
    RoadmapNotFoundError,
    SubtopicNotFoundError,
    TopicNotFoundError,
)

logger = get_logger(__name__)

STATUS_BY_ERROR: dict[type[LearningTrackerError], int] = {
    EntryNotFoundError: status.HTTP_404_NOT_FOUND,
    RoadmapNotFoundError: status.HTTP_404_NOT_FOUND,
    TopicNotFoundError: status.HTTP_404_NOT_FOUND,
    SubtopicNotFoundError: status.HTTP_404_NOT_FOUND,
    EntryStateError: status.HTTP_409_CONFLICT,
}


async def tracker_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.warning(
        "request_failed",
        path=request.url.path,
        error=type(exc).__name__,
        detail=str(exc),
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    for error_type in STATUS_BY_ERROR:
        app.add_exception_handler(error_type, tracker_error_handler)
