"""Tests for span parsing and threshold resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from src.chat.errors import InvalidSpanError
from src.chat.threshold import (
    DEFAULT_SPAN_MINUTES,
    MAX_SPAN_MINUTES,
    parse_span,
    resolve_threshold,
)

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
NOW_TS = int(NOW.timestamp())


class TestParseSpan:
    """Tests for parse_span()."""

    def test_absent_defaults_to_sixty(self):
        assert parse_span(None) == DEFAULT_SPAN_MINUTES == 60

    def test_empty_defaults_to_sixty(self):
        assert parse_span("") == 60

    @pytest.mark.parametrize("raw,expected", [("0", 0), ("30", 30), ("10080", 10080), (" 15 ", 15)])
    def test_valid_values(self, raw, expected):
        assert parse_span(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "1.5", "--5", "+5", "1_000", "٣", "10 0"])
    def test_non_numeric_rejected(self, raw):
        with pytest.raises(InvalidSpanError):
            parse_span(raw)

    def test_negative_rejected(self):
        with pytest.raises(InvalidSpanError, match="negative"):
            parse_span("-1")

    def test_over_one_week_rejected(self):
        with pytest.raises(InvalidSpanError, match=str(MAX_SPAN_MINUTES)):
            parse_span("10081")

    def test_invalid_span_is_value_error(self):
        """Callers catching ValueError also see span errors."""
        with pytest.raises(ValueError):
            parse_span("soon")


class TestResolveThreshold:
    """Tests for resolve_threshold()."""

    @pytest.mark.parametrize("span", [0, 1, 60, 1440, MAX_SPAN_MINUTES])
    def test_without_watermark_is_now_minus_span(self, span):
        assert resolve_threshold(span, NOW) == NOW_TS - span * 60

    def test_zero_span_is_now(self):
        assert resolve_threshold(0, NOW) == NOW_TS

    def test_newer_watermark_wins(self):
        watermark = NOW_TS - 60
        assert resolve_threshold(60, NOW, watermark) == watermark

    def test_older_watermark_loses(self):
        watermark = NOW_TS - 7200
        assert resolve_threshold(60, NOW, watermark) == NOW_TS - 3600

    @pytest.mark.parametrize("span", [0, 30, 60, 10080])
    def test_never_below_watermark(self, span):
        watermark = NOW_TS - 1800
        assert resolve_threshold(span, NOW, watermark) >= watermark
        assert resolve_threshold(span, NOW, watermark) >= NOW_TS - span * 60

    def test_zero_watermark_is_a_value(self):
        """A watermark of 0 is still compared, not treated as absent."""
        assert resolve_threshold(60, NOW, 0) == NOW_TS - 3600

    def test_span_over_max_rejected(self):
        with pytest.raises(InvalidSpanError):
            resolve_threshold(MAX_SPAN_MINUTES + 1, NOW)

    def test_negative_span_rejected(self):
        with pytest.raises(InvalidSpanError):
            resolve_threshold(-5, NOW)

    def test_non_int_span_rejected(self):
        with pytest.raises(InvalidSpanError):
            resolve_threshold("60", NOW)  # type: ignore[arg-type]

    def test_bool_span_rejected(self):
        with pytest.raises(InvalidSpanError):
            resolve_threshold(True, NOW)  # type: ignore[arg-type]

    def test_non_utc_now(self):
        jst = timezone(timedelta(hours=9))
        assert resolve_threshold(60, NOW.astimezone(jst)) == NOW_TS - 3600
