"""
Learning Tracker - OpenTelemetry Tracing Module

Spans wrap history ingestion, approval and roadmap cross-referencing so a
slow submit can be broken down per stage. Span attributes come from entry
and match fields, so traced() drops None values and flattens enums to their
string values before handing them to OpenTelemetry.

Patterns Applied:
- One-time configure_tracing() at startup
- Manual spans only, no auto-instrumentation
- Parent-based ratio sampling so a busy extension can be sampled down
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from enum import Enum
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from learntrack import __version__

_configured: bool = False

SERVICE_NAME = "learning-tracker"

# Primitive types OpenTelemetry accepts as attribute values
_ATTRIBUTE_TYPES = (str, bool, int, float)


def configure_tracing(
    service_name: str = SERVICE_NAME,
    console_export: bool = False,
    sample_ratio: float = 1.0,
) -> None:
    """Configure OpenTelemetry tracing for the application.

    Args:
        service_name: Name of the service for trace attribution
        console_export: Whether to export spans to stdout (development only)
        sample_ratio: Fraction of root traces to keep, clamped to [0, 1]
    """
    global _configured

    if _configured:
        return

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": __version__,
        }
    )

    ratio = min(max(sample_ratio, 0.0), 1.0)
    provider = TracerProvider(
        resource=resource,
        sampler=ParentBased(root=TraceIdRatioBased(ratio)),
    )

    if console_export:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    _configured = True


def get_tracer(name: str) -> Any:
    """Get a tracer instance for creating spans.

    Without configure_tracing() this returns OpenTelemetry's no-op tracer,
    which keeps unit tests free of exporter setup.
    """
    return trace.get_tracer(name)


def span_attributes(attributes: Mapping[str, Any]) -> dict[str, Any]:
    """Convert entry/match fields into valid span attributes.

    None values are dropped, enums become their value, and anything that is
    not a primitive is stringified.
    """
    converted: dict[str, Any] = {}
    for key, value in attributes.items():
        if value is None:
            continue
        if isinstance(value, Enum):
            value = value.value
        if not isinstance(value, _ATTRIBUTE_TYPES):
            value = str(value)
        converted[key] = value
    return converted


@contextmanager
def traced(tracer: Any, name: str, attributes: Mapping[str, Any] | None = None) -> Iterator[Any]:
    """Start a span with attributes cleaned by span_attributes().

    Exceptions propagate; OpenTelemetry records them on the span and marks
    it as an error.

    Example:
        with traced(tracer, "approve_entry", {"entry.id": entry_id}) as span:
            ...
            span.set_attribute("entry.confidence", confidence)
    """
    with tracer.start_as_current_span(
        name, attributes=span_attributes(attributes or {})
    ) as span:
        yield span


def reset_tracing() -> None:
    """Reset tracing configuration for testing."""
    global _configured
    _configured = False
