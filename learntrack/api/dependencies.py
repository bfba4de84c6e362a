"""
Dependency providers for the API routers.

The lifespan handler builds one LearningTracker and registers it with
set_tracker(); routers resolve it through Depends(get_tracker). Tests swap
it out with app.dependency_overrides.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, status

from learntrack.classifiers.content_classifier import ContentClassifierProtocol
from learntrack.core.config import Settings
from learntrack.services.tracker import LearningTracker

ERROR_NOT_READY = "Service is not ready"

_tracker: LearningTracker | None = None


def build_tracker(settings: Settings) -> LearningTracker:
    """Wire a tracker with in-memory stores from application settings.

    Raises:
        ConfigurationError: If the catalog or content rules cannot be loaded
    """
    from learntrack.classifiers.content_classifier import ContentClassifier
    from learntrack.roadmap.catalog import RoadmapCatalog
    from learntrack.storage.entry_store import InMemoryEntryStore
    from learntrack.storage.roadmap_store import InMemoryRoadmapStore

    return LearningTracker(
        classifier=ContentClassifier(
            rules_path=settings.content_rules_path,
            cache_size=settings.classifier_cache_size,
        ),
        entry_store=InMemoryEntryStore(),
        roadmap_store=InMemoryRoadmapStore(),
        catalog=RoadmapCatalog.from_yaml(settings.catalog_path),
        user_id=settings.default_user_id,
        batch_size=settings.submit_batch_size,
        recent_window_days=settings.recent_window_days,
        pending_limit=settings.pending_limit,
    )


def set_tracker(tracker: LearningTracker | None) -> None:
    global _tracker
    _tracker = tracker


def get_tracker() -> LearningTracker:
    """Dependency provider for the LearningTracker.

    Raises:
        HTTPException: 503 before the lifespan handler has run
    """
    if _tracker is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=ERROR_NOT_READY
        )
    return _tracker


def get_classifier(
    tracker: Annotated[LearningTracker, Depends(get_tracker)],
) -> ContentClassifierProtocol:
    return tracker.classifier
