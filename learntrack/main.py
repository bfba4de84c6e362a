"""
Learning Tracker - Main Application Entry Point

- FastAPI app with lifespan handler
- uvicorn learntrack.main:app

Patterns Applied:
- Lifespan context manager
- One-time configure_logging() at startup

Anti-Patterns Avoided:
- Deprecated @app.on_event - using modern lifespan pattern
- structlog.configure() per request - one-time at startup
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learntrack.api.classify import classify_router
from learntrack.api.dependencies import build_tracker, set_tracker
from learntrack.api.entries import entries_router
from learntrack.api.errors import register_exception_handlers
from learntrack.api.health import get_health_service
from learntrack.api.health import router as health_router
from learntrack.api.roadmap import roadmap_router
from learntrack.core.config import get_settings
from learntrack.core.logging import configure_logging, get_logger
from learntrack.core.tracing import configure_tracing

settings = get_settings()

# Configure logging ONCE at module load
configure_logging(
    log_level=settings.log_level,
    json_output=settings.log_json,
)

logger = get_logger(__name__)


# =============================================================================
# Lifespan Context Manager
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load static data and wire the tracker on startup.

    A catalog or content-rules file that fails validation raises here, so
    the process never starts serving with a broken curriculum.
    """
    # =========================================================================
    # STARTUP
    # =========================================================================
    logger.info(
        "startup",
        service=settings.service_name,
        version=settings.version,
        environment=settings.environment,
    )

    if settings.tracing_enabled:
        configure_tracing(
            service_name=settings.service_name,
            console_export=settings.tracing_console_export,
            sample_ratio=settings.tracing_sample_ratio,
        )
        logger.info("tracing_configured")

    tracker = build_tracker(settings)
    set_tracker(tracker)

    health = get_health_service()
    health.set_catalog_loaded(True)
    health.set_rules_loaded(True)
    logger.info(
        "static_data_loaded",
        catalog=tracker.catalog.id,
        topics=len(tracker.catalog),
        rules_path=str(settings.content_rules_path),
    )

    app.state.initialized = True
    app.state.environment = settings.environment

    yield

    # =========================================================================
    # SHUTDOWN
    # =========================================================================
    logger.info("shutdown", service=settings.service_name)

    set_tracker(None)
    health.set_catalog_loaded(False)
    health.set_rules_loaded(False)
    app.state.initialized = False


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Learning Tracker",
    description="Turns browsing history into reviewed learning entries and roadmap progress",
    version=settings.version,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
    lifespan=lifespan,
)

# The browser extension posts from a chrome-extension:// origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "development" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(classify_router)
app.include_router(entries_router)
app.include_router(roadmap_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    return {
        "service": settings.service_name,
        "version": settings.version,
        "docs": "/docs",
    }
