"""Application services coordinating classifiers, matcher and stores."""

from learntrack.services.tracker import (
    ApprovalSummary,
    CrossReferenceSummary,
    EntryCounts,
    EntryError,
    HistoryItem,
    LearningTracker,
    RoadmapView,
    SubmitSummary,
    day_window,
    parse_duration,
)

__all__ = [
    "ApprovalSummary",
    "CrossReferenceSummary",
    "EntryCounts",
    "EntryError",
    "HistoryItem",
    "LearningTracker",
    "RoadmapView",
    "SubmitSummary",
    "day_window",
    "parse_duration",
]
