"""
One scheduled chat ingestion invocation.

Pipeline:
    span -> base threshold
    videos (live/upcoming) + per-source watermarks -> priority selection
    per target: fetch -> threshold cut -> author allow-list
    all targets: sentiment tagging -> single all-or-nothing insert

Nothing is written unless every stage succeeded for every target. The next
invocation re-reads the watermark from the store, so a failed invocation is
simply re-run by the scheduler.
"""

import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Protocol

import structlog

from src.chat.errors import (
    ChatFetchError,
    ChatWatcherError,
    NoCandidatesError,
    SentimentError,
    StorageError,
)
from src.chat.filters import filter_by_threshold, separate_by_allowlist
from src.chat.repository import ChatRepository
from src.chat.schemas import ChatMessage, ClassifiedMessage, Source, SourceStatus
from src.chat.selection import select_targets
from src.chat.tagger import SentimentTagger
from src.chat.threshold import resolve_threshold
from src.observability.metrics import MetricsCollector, get_metrics
from src.observability.tracing import get_tracer, traced

_POLLED_STATUSES = (SourceStatus.LIVE.value, SourceStatus.UPCOMING.value)


class ChatFetcher(Protocol):
    """Source of ordered chat messages for one broadcast."""

    async def fetch_messages(
        self, source: Source, max_results: int | None = None
    ) -> list[ChatMessage]:
        ...


@dataclass
class SourceOutcome:
    """Counts for one polled source."""

    source_id: str
    status: str
    threshold: int
    fetched: int = 0
    new: int = 0
    matched: int = 0
    negative: int = 0


@dataclass
class WatchResult:
    """Summary of one invocation."""

    status: str  # "ok" or "noop"
    span: int
    stored: int = 0
    sources: list[SourceOutcome] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class ChatWatcherService:
    """Runs the ingestion pipeline for one invocation."""

    def __init__(
        self,
        repository: ChatRepository,
        fetcher: ChatFetcher,
        tagger: SentimentTagger,
        allowed_author_ids: Sequence[str],
        max_results: int | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._repo = repository
        self._fetcher = fetcher
        self._tagger = tagger
        self._allowed = frozenset(allowed_author_ids)
        self._max_results = max_results
        self._metrics = metrics or get_metrics()
        self._tracer = get_tracer("chat_watcher")

    @contextmanager
    def _stage(self, stage: str, source_id: str | None = None) -> Iterator[None]:
        """Time a stage and wrap unexpected failures with stage/source context."""
        start = time.perf_counter()
        try:
            with traced(self._tracer, stage, {"source_id": source_id}):
                yield
        except ChatWatcherError:
            raise
        except Exception as e:
            if stage == "fetch":
                raise ChatFetchError(f"fetch failed: {e}", source_id=source_id) from e
            if stage == "classify":
                raise SentimentError(f"classify failed: {e}", source_id=source_id) from e
            raise StorageError(
                f"{stage} failed: {e}", source_id=source_id, stage=stage
            ) from e
        finally:
            self._metrics.record_stage_latency(stage, time.perf_counter() - start)

    async def run(
        self,
        span_minutes: int,
        now: datetime | None = None,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> WatchResult:
        """
        Execute one invocation.

        Args:
            span_minutes: Lookback span (already parsed from the request)
            now: Current time; defaults to utcnow
            log: Request-scoped logger

        Returns:
            WatchResult; status "noop" when there is nothing to poll

        Raises:
            InvalidSpanError: If span_minutes is out of range
            CollaboratorError: If fetching, scoring or the store fails
        """
        log = log or structlog.get_logger(__name__)
        now = now or datetime.now(timezone.utc)

        # Validates the span before any external call
        base_threshold = resolve_threshold(span_minutes, now)
        log = log.bind(span=span_minutes)

        with self._stage("sources"):
            sources = await self._repo.get_sources_by_status(_POLLED_STATUSES)

        if not sources:
            log.info("No live or upcoming sources")
            self._metrics.record_invocation("noop")
            return WatchResult(status="noop", span=span_minutes)

        with self._stage("watermark"):
            watermarks = await self._repo.get_last_published_at_by_source(
                [s.source_id for s in sources]
            )

        try:
            selection = select_targets(sources, watermarks)
        except NoCandidatesError:
            log.info("No live or upcoming sources", candidates=len(sources))
            self._metrics.record_invocation("noop")
            return WatchResult(status="noop", span=span_minutes)

        outcomes: list[SourceOutcome] = []
        classified: list[ClassifiedMessage] = []

        for target in selection.targets:
            if target.is_live:
                threshold = resolve_threshold(
                    span_minutes, now, watermarks.get(target.source_id)
                )
            else:
                # Upcoming sources are polled in rotation; catch up from the
                # watermark (0 when never stored) rather than the span
                threshold = selection.upcoming_watermark

            outcome = SourceOutcome(
                source_id=target.source_id,
                status=target.status,
                threshold=threshold,
            )
            source_log = log.bind(source_id=target.source_id, status=target.status)

            with self._stage("fetch", target.source_id):
                messages = await self._fetcher.fetch_messages(target, self._max_results)
            self._metrics.record_fetched(target.source_id, len(messages))

            fresh = filter_by_threshold(messages, threshold)
            matched, _ = separate_by_allowlist(fresh, self._allowed)

            with self._stage("classify", target.source_id):
                tagged = await self._tagger.classify(matched)

            outcome.fetched = len(messages)
            outcome.new = len(fresh)
            outcome.matched = len(matched)
            outcome.negative = sum(1 for c in tagged if c.is_negative)
            outcomes.append(outcome)
            classified.extend(tagged)

            source_log.info(
                "Processed live chat",
                threshold=threshold,
                base_threshold=base_threshold,
                fetched=outcome.fetched,
                new=outcome.new,
                matched=outcome.matched,
                negative=outcome.negative,
            )

        stored = 0
        if classified:
            with self._stage("insert"):
                stored = await self._repo.insert_records(
                    [c.to_record() for c in classified]
                )
            self._metrics.record_stored(stored)
            for outcome in outcomes:
                self._metrics.record_matched(
                    outcome.source_id, outcome.matched, outcome.negative
                )

        log.info(
            "Chat watch completed",
            targets=[o.source_id for o in outcomes],
            stored=stored,
        )
        self._metrics.record_invocation("success")
        return WatchResult(
            status="ok", span=span_minutes, stored=stored, sources=outcomes
        )
