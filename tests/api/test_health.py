"""
Tests for HealthService and the health router in isolation.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from learntrack.api.health import HealthService, get_health_service, router

HEALTH_ENDPOINT = "/health"
READY_ENDPOINT = "/ready"


@pytest.fixture
def health_service():
    """Process-wide service, reset after each test."""
    service = get_health_service()
    yield service
    service.set_catalog_loaded(False)
    service.set_rules_loaded(False)


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.include_router(router)
    return TestClient(app)


class TestHealthService:
    def test_check_health(self) -> None:
        data = HealthService(version="9.9.9").check_health()

        assert data == {"status": "healthy", "version": "9.9.9", "service": "learning-tracker"}

    def test_not_ready_by_default(self) -> None:
        data, is_ready = HealthService().check_readiness()

        assert is_ready is False
        assert data["status"] == "not_ready"

    def test_ready_needs_every_check(self) -> None:
        service = HealthService()
        service.set_catalog_loaded(True)

        _, is_ready = service.check_readiness()

        assert is_ready is False

    def test_ready_when_all_loaded(self) -> None:
        service = HealthService()
        service.set_catalog_loaded(True)
        service.set_rules_loaded(True)

        data, is_ready = service.check_readiness()

        assert is_ready is True
        assert data["checks"] == {"catalog_loaded": True, "content_rules_loaded": True}


class TestHealthRouter:
    def test_health(self, client: TestClient) -> None:
        assert client.get(HEALTH_ENDPOINT).json()["status"] == "healthy"

    def test_ready_flips_with_flags(self, client: TestClient, health_service: HealthService) -> None:
        assert client.get(READY_ENDPOINT).status_code == 503

        health_service.set_catalog_loaded(True)
        health_service.set_rules_loaded(True)

        assert client.get(READY_ENDPOINT).status_code == 200
