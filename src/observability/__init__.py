"""Observability layer - logging, metrics, and tracing."""

from src.observability.logging import request_logger, setup_logging
from src.observability.metrics import MetricsCollector, get_metrics
from src.observability.tracing import force_flush, get_tracer, setup_tracing

__all__ = [
    "setup_logging",
    "request_logger",
    "MetricsCollector",
    "get_metrics",
    "setup_tracing",
    "get_tracer",
    "force_flush",
]
