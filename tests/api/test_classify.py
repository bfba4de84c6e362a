"""
Classification API Endpoint Tests

- POST /v1/classify returns the classification plus its pending-entry score
- POST /v1/classify/score scores an entry-shaped record
- Empty or whitespace URLs are rejected with 422
- The classifier is resolved through the tracker dependency

Anti-Patterns Avoided:
- Constants for repeated string literals
- FakeContentClassifier used (no rules file in tests)
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from learntrack.api.classify import classify_router
from learntrack.api.dependencies import get_tracker
from learntrack.classifiers.content_classifier import (
    EXCLUDED_RESULT,
    ClassificationResult,
    FakeContentClassifier,
)
from learntrack.roadmap.catalog import RoadmapCatalog
from learntrack.services.tracker import LearningTracker
from learntrack.storage.entry_store import InMemoryEntryStore
from learntrack.storage.roadmap_store import InMemoryRoadmapStore

# =============================================================================
# Constants
# =============================================================================

CLASSIFY_ENDPOINT = "/v1/classify"
SCORE_ENDPOINT = "/v1/classify/score"

URL_TUTORIAL = "https://react.dev/learn"
URL_PLAIN = "https://plain.test"
URL_EXCLUDED = "https://netflix.com/watch"

HTTP_200_OK = 200
HTTP_422_UNPROCESSABLE_ENTITY = 422

TUTORIAL_RESULT = ClassificationResult(
    tags=("react", "tutorial"),
    keywords=("react",),
    primary_topic="Frontend",
    summary="This content covers Frontend concepts.",
    is_learning_content=True,
)
PLAIN_RESULT = ClassificationResult(primary_topic="", summary="", is_learning_content=True)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_classifier() -> FakeContentClassifier:
    return FakeContentClassifier(
        responses={
            URL_TUTORIAL: TUTORIAL_RESULT,
            URL_PLAIN: PLAIN_RESULT,
            URL_EXCLUDED: EXCLUDED_RESULT,
        }
    )


@pytest.fixture
def client(fake_classifier: FakeContentClassifier) -> TestClient:
    """Create test client with a tracker wrapping the fake classifier."""
    tracker = LearningTracker(
        classifier=fake_classifier,
        entry_store=InMemoryEntryStore(),
        roadmap_store=InMemoryRoadmapStore(),
        catalog=RoadmapCatalog.from_mapping({"name": "Empty", "topics": []}),
    )
    app = FastAPI()
    app.include_router(classify_router)
    app.dependency_overrides[get_tracker] = lambda: tracker
    return TestClient(app)


# =============================================================================
# POST /v1/classify
# =============================================================================


class TestClassify:
    def test_returns_classification(
        self, client: TestClient, fake_classifier: FakeContentClassifier
    ) -> None:
        response = client.post(
            CLASSIFY_ENDPOINT, json={"title": "React Tutorial", "url": URL_TUTORIAL}
        )

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["tags"] == ["react", "tutorial"]
        assert data["keywords"] == ["react"]
        assert data["primary_topic"] == "Frontend"
        assert data["is_learning_content"] is True
        assert data["is_video"] is False
        assert fake_classifier.calls == [("React Tutorial", URL_TUTORIAL)]

    def test_confidence_is_pending_score(self, client: TestClient) -> None:
        data = client.post(CLASSIFY_ENDPOINT, json={"title": "Intro", "url": URL_PLAIN}).json()

        assert data["confidence"] == 60

    def test_confidence_clamped(self, client: TestClient) -> None:
        # 50 + 10 + 10 + 10 + 10 + 25 exceeds the ceiling
        data = client.post(
            CLASSIFY_ENDPOINT, json={"title": "React Tutorial", "url": URL_TUTORIAL}
        ).json()

        assert data["confidence"] == 100

    def test_title_optional(self, client: TestClient) -> None:
        data = client.post(CLASSIFY_ENDPOINT, json={"url": URL_PLAIN}).json()

        assert data["confidence"] == 50

    def test_excluded_page(self, client: TestClient) -> None:
        data = client.post(
            CLASSIFY_ENDPOINT, json={"title": "Show", "url": URL_EXCLUDED}
        ).json()

        assert data["primary_topic"] == "Excluded"
        assert data["is_learning_content"] is False
        assert data["tags"] == []


class TestClassifyValidation:
    def test_empty_url_returns_422(self, client: TestClient) -> None:
        response = client.post(CLASSIFY_ENDPOINT, json={"title": "x", "url": ""})

        assert response.status_code == HTTP_422_UNPROCESSABLE_ENTITY

    def test_whitespace_url_returns_422(self, client: TestClient) -> None:
        response = client.post(CLASSIFY_ENDPOINT, json={"title": "x", "url": "   "})

        assert response.status_code == HTTP_422_UNPROCESSABLE_ENTITY

    def test_missing_url_returns_422(self, client: TestClient) -> None:
        response = client.post(CLASSIFY_ENDPOINT, json={"title": "x"})

        assert response.status_code == HTTP_422_UNPROCESSABLE_ENTITY


# =============================================================================
# POST /v1/classify/score
# =============================================================================


class TestScore:
    def test_titled_record(self, client: TestClient) -> None:
        response = client.post(SCORE_ENDPOINT, json={"title": "x"})

        assert response.status_code == HTTP_200_OK
        assert response.json() == {"confidence": 60}

    def test_empty_record(self, client: TestClient) -> None:
        assert client.post(SCORE_ENDPOINT, json={}).json()["confidence"] == 50

    def test_approved_bonus(self, client: TestClient) -> None:
        data = client.post(SCORE_ENDPOINT, json={"title": "x", "status": "approved"}).json()

        assert data["confidence"] == 80

    def test_video_durations_parsed(self, client: TestClient) -> None:
        data = client.post(
            SCORE_ENDPOINT,
            json={
                "title": "x",
                "is_video": True,
                "video_length": "00:10:00",
                "watched_length": 300,
            },
        ).json()

        # round_half_up(25 * 0.5) = 13
        assert data["confidence"] == 73

    def test_unparsable_duration_gives_no_bonus(self, client: TestClient) -> None:
        data = client.post(
            SCORE_ENDPOINT,
            json={"title": "x", "is_video": True, "video_length": "soon", "watched_length": 10},
        ).json()

        assert data["confidence"] == 60

    def test_tag_bonus_capped(self, client: TestClient) -> None:
        tags = ["a", "b", "c", "d", "e", "f"]

        data = client.post(SCORE_ENDPOINT, json={"tags": tags}).json()

        assert data["confidence"] == 70

    def test_invalid_status_returns_422(self, client: TestClient) -> None:
        response = client.post(SCORE_ENDPOINT, json={"status": "archived"})

        assert response.status_code == HTTP_422_UNPROCESSABLE_ENTITY
