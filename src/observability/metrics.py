"""
Prometheus metrics for the chat watcher.

Defines and exposes metrics for:
- Messages fetched, matched and flagged negative per source
- Messages inserted per invocation
- Invocation outcomes
- Per-stage latency (watermark, fetch, classify, insert)

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    start_http_server,
)

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


class MetricsCollector:
    """
    Prometheus metrics collector for chat ingestion.

    Usage:
        metrics = get_metrics()
        metrics.record_fetched("dQw4w9WgXcQ", 120)
        metrics.record_invocation("success")
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.messages_fetched = Counter(
            "chat_watcher_messages_fetched_total",
            "Total chat messages returned by the chat source",
            ["source_id"],
        )

        self.messages_matched = Counter(
            "chat_watcher_messages_matched_total",
            "Total new allow-listed chat messages committed for storage",
            ["source_id"],
        )

        # Unlabeled: duplicates dropped on insert are only known per batch
        self.messages_stored = Counter(
            "chat_watcher_messages_stored_total",
            "Total chat messages inserted into the store",
        )

        self.negative_messages = Counter(
            "chat_watcher_negative_messages_total",
            "Total matched chat messages flagged negative",
            ["source_id"],
        )

        self.invocations = Counter(
            "chat_watcher_invocations_total",
            "Total watch invocations by outcome",
            ["outcome"],  # success, noop, invalid, error
        )

        self.stage_latency = Histogram(
            "chat_watcher_stage_latency_seconds",
            "Latency of each invocation stage",
            ["stage"],
            buckets=LATENCY_BUCKETS,
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info("Prometheus metrics server started on port %d", port)

    def record_fetched(self, source_id: str, count: int) -> None:
        self.messages_fetched.labels(source_id=source_id).inc(count)

    def record_matched(self, source_id: str, matched: int, negative: int) -> None:
        """Record committed allow-listed messages and how many were negative."""
        self.messages_matched.labels(source_id=source_id).inc(matched)
        self.negative_messages.labels(source_id=source_id).inc(negative)

    def record_stored(self, inserted: int) -> None:
        """Record rows actually inserted, after duplicates are dropped."""
        self.messages_stored.inc(inserted)

    def record_invocation(self, outcome: str) -> None:
        self.invocations.labels(outcome=outcome).inc()

    def record_stage_latency(self, stage: str, latency: float) -> None:
        """
        Record stage latency.

        Args:
            stage: Stage name (watermark, fetch, classify, insert)
            latency: Latency in seconds
        """
        self.stage_latency.labels(stage=stage).observe(latency)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
