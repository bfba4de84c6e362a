"""
Storage exceptions.

Raised by the entry and roadmap stores; the API layer maps them to HTTP
status codes (not found -> 404, state conflicts -> 409).
"""

from __future__ import annotations

from learntrack.core.exceptions import LearningTrackerError


class EntryNotFoundError(LearningTrackerError):
    """Raised when an entry id does not exist."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Entry not found: {entry_id}")
        self.entry_id = entry_id


class RoadmapNotFoundError(LearningTrackerError):
    """Raised when a user has no active roadmap."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"No active roadmap for user: {user_id}")
        self.user_id = user_id


class TopicNotFoundError(LearningTrackerError):
    """Raised when a topic id is not part of the user's roadmap."""

    def __init__(self, topic_id: str) -> None:
        super().__init__(f"Topic not found: {topic_id}")
        self.topic_id = topic_id


class SubtopicNotFoundError(LearningTrackerError):
    """Raised when a subtopic id is not part of its topic."""

    def __init__(self, topic_id: str, subtopic_id: str) -> None:
        super().__init__(f"Subtopic not found: {topic_id}/{subtopic_id}")
        self.topic_id = topic_id
        self.subtopic_id = subtopic_id


class EntryStateError(LearningTrackerError):
    """Raised when an entry cannot make the requested status transition."""
    pass
