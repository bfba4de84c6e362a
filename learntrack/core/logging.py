"""
Learning Tracker - Structured Logging Module

Every log line carries the service name plus whatever review context is
bound with tracking_context() (user id, operation), so a submit or an
approval can be followed across the classifier, matcher and stores.

Browser-history URLs often carry long tracking query strings; the
shorten_urls processor keeps them from flooding the JSON logs.

Patterns Applied:
- One-time configure_logging() at startup
- structlog contextvars for per-request context

Anti-Patterns Avoided:
- structlog.configure() called per get_logger() - prevented via _configured flag
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.typing import EventDict

SERVICE_NAME = "learning-tracker"

# Longest URL value written to a log line
MAX_LOGGED_URL_LENGTH = 200
URL_ELLIPSIS = "..."

# Event-dict keys that hold visited URLs
URL_KEYS = frozenset({"url", "page_url"})

_configured: bool = False


def add_service_info(
    logger: logging.Logger,  # noqa: ARG001 - Required by structlog interface
    method_name: str,  # noqa: ARG001 - Required by structlog interface
    event_dict: EventDict,
) -> EventDict:
    """Stamp every log entry with the service name."""
    event_dict["service"] = SERVICE_NAME
    return event_dict


def shorten_urls(
    logger: logging.Logger,  # noqa: ARG001 - Required by structlog interface
    method_name: str,  # noqa: ARG001 - Required by structlog interface
    event_dict: EventDict,
) -> EventDict:
    """Cut URL fields down to MAX_LOGGED_URL_LENGTH characters."""
    for key in URL_KEYS & event_dict.keys():
        value = event_dict[key]
        if isinstance(value, str) and len(value) > MAX_LOGGED_URL_LENGTH:
            keep = MAX_LOGGED_URL_LENGTH - len(URL_ELLIPSIS)
            event_dict[key] = value[:keep] + URL_ELLIPSIS
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True,
) -> None:
    """Configure structlog for the application.

    Must be called once at application startup; later calls are no-ops.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Whether to use the JSON renderer (True for production)
    """
    global _configured

    if _configured:
        return

    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_service_info,
            shorten_urls,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


@contextmanager
def tracking_context(user_id: str, operation: str, **extra: Any) -> Iterator[None]:
    """Bind user_id and operation to every log line emitted inside the block.

    Nested blocks override the outer values and restore them on exit.

    Example:
        with tracking_context("alice", "approve", entry_id=entry_id):
            logger.info("entry_approved")  # carries user_id/operation/entry_id
    """
    values = {"user_id": user_id, "operation": operation, **extra}
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Never reconfigures structlog; configure_logging() owns that.
    """
    return structlog.get_logger(name)


def reset_logging() -> None:
    """Reset logging configuration for testing."""
    global _configured
    _configured = False
    structlog.reset_defaults()
