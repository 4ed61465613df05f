"""
OpenTelemetry tracing for the chat watcher.

Provides:
- setup_tracing(): Initialize TracerProvider with OTLP exporter
- get_tracer(): Get a named tracer instance
- traced(): Context manager for creating spans that record exceptions
- force_flush(): Export pending spans before the function instance idles
- add_trace_context: structlog processor that injects trace_id/span_id
- current_trace_fields(): Cloud Logging trace correlation fields

Usage:
    from src.observability.tracing import setup_tracing, get_tracer

    setup_tracing("chat-watcher", "http://localhost:4317")
    tracer = get_tracer("chat_watcher")

    with traced(tracer, "fetch", {"source_id": source_id}):
        ...
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import StatusCode, Tracer
from opentelemetry.trace.propagation import get_current_span

logger = logging.getLogger(__name__)

# Module-level provider so callers can check/flush without importing settings
_provider: TracerProvider | None = None


def setup_tracing(
    service_name: str,
    otlp_endpoint: str | None = None,
    *,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """
    Initialize the OpenTelemetry TracerProvider.

    Uses the OTLP gRPC exporter by default. Pass a custom exporter for
    testing (e.g., InMemorySpanExporter).

    Args:
        service_name: Logical service name.
        otlp_endpoint: OTLP collector endpoint (e.g., "http://localhost:4317").
        exporter: Optional custom exporter (overrides OTLP).

    Returns:
        The configured TracerProvider.
    """
    global _provider

    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)

    if exporter is None:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )

        exporter = OTLPSpanExporter(
            endpoint=otlp_endpoint or "http://localhost:4317",
            insecure=otlp_endpoint is None or otlp_endpoint.startswith("http://"),
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))
    else:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    _provider = provider
    logger.info(
        "OpenTelemetry tracing initialized: service=%s endpoint=%s",
        service_name,
        otlp_endpoint or "(custom exporter)",
    )
    return provider


def get_tracer(name: str) -> Tracer:
    """
    Get a named tracer from the global TracerProvider.

    Safe to call even when tracing is not enabled; returns a no-op tracer.
    """
    return trace.get_tracer(name)


def is_tracing_enabled() -> bool:
    """Check whether tracing has been initialized."""
    return _provider is not None


def force_flush(timeout_millis: int = 5000) -> bool:
    """
    Export buffered spans now.

    Serverless instances may be throttled right after a response, so spans
    are flushed at the end of every invocation. Failure is logged and
    tolerated; the spans are only delayed or lost.

    Returns:
        True if flushed (or tracing disabled), False on failure
    """
    if _provider is None:
        return True

    try:
        flushed = _provider.force_flush(timeout_millis)
    except Exception as e:
        logger.error("Failed to flush spans: %s", e)
        return False

    if not flushed:
        logger.error("Failed to flush spans within %d ms", timeout_millis)
    return flushed


@contextmanager
def traced(
    tracer: Tracer,
    name: str,
    attributes: dict[str, Any] | None = None,
):
    """
    Context manager that creates a span and records exceptions.

    Usage:
        with traced(tracer, "classify", {"count": 12}):
            ...
    """
    with tracer.start_as_current_span(name) as span:
        if attributes:
            for k, v in attributes.items():
                if v is not None:
                    span.set_attribute(k, v)
        try:
            yield span
        except Exception as exc:
            span.set_status(StatusCode.ERROR, str(exc))
            span.record_exception(exc)
            raise


def current_trace_fields(project_id: str) -> dict[str, Any]:
    """
    Cloud Logging correlation fields for the active span.

    Returns an empty dict when no valid span is active.
    """
    ctx = get_current_span().get_span_context()
    if not ctx.is_valid:
        return {}

    return {
        "logging.googleapis.com/trace": f"projects/{project_id}/traces/{ctx.trace_id:032x}",
        "logging.googleapis.com/spanId": f"{ctx.span_id:016x}",
        "logging.googleapis.com/trace_sampled": ctx.trace_flags.sampled,
    }


def add_trace_context(
    logger_: Any, method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """
    Structlog processor that injects trace_id and span_id into log entries.

    Usage:
        structlog.configure(processors=[
            ...,
            add_trace_context,
            ...,
        ])
    """
    ctx = get_current_span().get_span_context()

    if ctx.is_valid:
        event_dict["trace_id"] = f"{ctx.trace_id:032x}"
        event_dict["span_id"] = f"{ctx.span_id:016x}"

    return event_dict
