"""
Learning Tracker - Health API Routes

GET /health - liveness, always 200 with service info
GET /ready  - readiness, 503 until the catalog and content rules are loaded

Patterns Applied:
- HealthService class holding readiness flags set by the lifespan handler
- Pydantic response models
"""

from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from learntrack import __version__
from learntrack.core.logging import SERVICE_NAME, get_logger

router = APIRouter(tags=["health"])

logger = get_logger(__name__)


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response model.

    Each check is a named boolean; the service is ready when all are True.
    """
    status: str
    checks: dict[str, bool]


# =============================================================================
# Health Service
# =============================================================================


class HealthService:
    """Tracks whether the static data the service depends on is loaded."""

    def __init__(self, version: str = __version__):
        self._version = version
        self._catalog_loaded = False
        self._rules_loaded = False

    def check_health(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "version": self._version,
            "service": SERVICE_NAME,
        }

    def check_readiness(self) -> tuple[dict[str, Any], bool]:
        """Check if service is ready to accept requests.

        Returns:
            Tuple of (readiness dict, is_ready bool)
        """
        checks = {
            "catalog_loaded": self._catalog_loaded,
            "content_rules_loaded": self._rules_loaded,
        }

        is_ready = all(checks.values())
        result: dict[str, Any] = {
            "status": "ready" if is_ready else "not_ready",
            "checks": checks,
        }
        return result, is_ready

    def set_catalog_loaded(self, loaded: bool) -> None:
        self._catalog_loaded = loaded

    def set_rules_loaded(self, loaded: bool) -> None:
        self._rules_loaded = loaded


# Process-wide instance, flipped by the lifespan handler
_health_service = HealthService()


def get_health_service() -> HealthService:
    return _health_service


# =============================================================================
# Endpoints
# =============================================================================


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Basic liveness check endpoint",
)
async def health_check() -> HealthResponse:
    service = get_health_service()
    data = service.check_health()
    logger.debug("health_check", status=data["status"])
    return HealthResponse(**data)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "Service is ready"},
        503: {"description": "Service is not ready"},
    },
    summary="Readiness Check",
    description="Readiness check endpoint for Kubernetes",
)
async def readiness_check() -> JSONResponse:
    """Readiness check endpoint.

    Returns:
        200 if ready, 503 if not ready
    """
    service = get_health_service()
    data, is_ready = service.check_readiness()

    status_code = status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE

    logger.debug("readiness_check", status=data["status"], is_ready=is_ready)
    return JSONResponse(content=data, status_code=status_code)
