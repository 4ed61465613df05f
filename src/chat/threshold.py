"""
Lookback threshold for filtering fetched chat messages.

The threshold is the unix time below (and at) which messages are ignored.
It combines the caller's lookback span with the persisted watermark, and
the watermark always wins when it is newer, so a large span can never pull
already-stored messages back into the filtered set.
"""

import re
from datetime import datetime

from src.chat.errors import InvalidSpanError

# The upstream scheduler runs every 60 minutes
DEFAULT_SPAN_MINUTES = 60

# Anything longer than a week is outside this service's use case
MAX_SPAN_MINUTES = 10080

_SPAN_PATTERN = re.compile(r"-?[0-9]+")


def _validate_span(span_minutes: int) -> int:
    if isinstance(span_minutes, bool) or not isinstance(span_minutes, int):
        raise InvalidSpanError(f"span must be an integer, got {span_minutes!r}")
    if span_minutes < 0:
        raise InvalidSpanError(f"span must not be negative, got {span_minutes}")
    if span_minutes > MAX_SPAN_MINUTES:
        raise InvalidSpanError(
            f"span must not exceed {MAX_SPAN_MINUTES} minutes, got {span_minutes}"
        )
    return span_minutes


def parse_span(raw: str | None) -> int:
    """
    Parse the ``span`` query parameter.

    Args:
        raw: Raw parameter value, or None when absent

    Returns:
        Span in minutes (DEFAULT_SPAN_MINUTES when absent)

    Raises:
        InvalidSpanError: If the value is not an integer in [0, MAX_SPAN_MINUTES]
    """
    if raw is None or raw == "":
        return DEFAULT_SPAN_MINUTES

    text = raw.strip()
    # int() would also accept "+5", "1_000" and non-ASCII digits
    if not _SPAN_PATTERN.fullmatch(text):
        raise InvalidSpanError(f"span must be an integer, got {raw!r}")

    return _validate_span(int(text))


def resolve_threshold(
    span_minutes: int,
    now: datetime,
    watermark: int | None = None,
) -> int:
    """
    Compute the exclusive lower bound for message ``published_at``.

    Args:
        span_minutes: Lookback span in minutes
        now: Current time (timezone-aware)
        watermark: Latest persisted ``published_at`` (unix seconds), if any

    Returns:
        ``max(now - span, watermark)`` as unix seconds

    Raises:
        InvalidSpanError: If span_minutes is out of range
    """
    span = _validate_span(span_minutes)
    base = int(now.timestamp()) - span * 60

    if watermark is None:
        return base
    return max(base, watermark)
