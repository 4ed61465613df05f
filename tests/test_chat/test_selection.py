"""Tests for priority selection of sources."""

import pytest

from src.chat.errors import NoCandidatesError
from src.chat.schemas import Source
from src.chat.selection import SelectionResult, select_targets


def _source(source_id: str, status: str) -> Source:
    return Source(source_id=source_id, chat_id=f"chat_{source_id}", status=status)


class TestLivePriority:
    """Live broadcasts take priority over upcoming ones."""

    def test_live_wins_over_upcoming(self):
        sources = [_source("A", "upcoming"), _source("B", "live")]

        result = select_targets(sources, {"A": 100})

        assert [s.source_id for s in result.targets] == ["B"]
        assert result.upcoming_target is None

    def test_all_live_sources_selected_in_id_order(self):
        sources = [_source("c", "live"), _source("a", "live"), _source("b", "upcoming")]

        result = select_targets(sources, {})

        assert [s.source_id for s in result.live_targets] == ["a", "c"]
        assert [s.source_id for s in result.targets] == ["a", "c"]

    def test_live_ignores_watermarks(self):
        sources = [_source("A", "live")]
        result = select_targets(sources, {"A": 999})
        assert result.upcoming_watermark == 0


class TestUpcomingSelection:
    """Only one upcoming source is polled when nothing is live."""

    def test_oldest_watermark_selected(self):
        sources = [_source("A", "upcoming"), _source("B", "upcoming")]

        result = select_targets(sources, {"A": 100, "B": 50})

        assert result.upcoming_target.source_id == "B"
        assert result.upcoming_watermark == 50
        assert len(result.targets) == 1

    def test_never_stored_source_first(self):
        sources = [_source("A", "upcoming"), _source("B", "upcoming")]

        result = select_targets(sources, {"A": 100})

        assert result.upcoming_target.source_id == "B"
        assert result.upcoming_watermark == 0

    def test_never_stored_tie_goes_to_smallest_id(self):
        sources = [_source("z", "upcoming"), _source("m", "upcoming"), _source("k", "upcoming")]

        result = select_targets(sources, {"k": 10})

        assert result.upcoming_target.source_id == "m"

    def test_single_upcoming_uses_its_watermark(self):
        result = select_targets([_source("A", "upcoming")], {"A": 1234})

        assert result.upcoming_target.source_id == "A"
        assert result.upcoming_watermark == 1234

    def test_single_upcoming_never_stored(self):
        result = select_targets([_source("A", "upcoming")], {})
        assert result.upcoming_watermark == 0

    def test_equal_watermarks_tie_broken_by_id(self):
        sources = [_source("b", "upcoming"), _source("a", "upcoming")]

        result = select_targets(sources, {"a": 70, "b": 70})

        assert result.upcoming_target.source_id == "a"

    def test_other_statuses_are_ignored(self):
        sources = [_source("old", "none"), _source("A", "upcoming")]

        result = select_targets(sources, {"A": 5})

        assert result.upcoming_target.source_id == "A"


class TestNoCandidates:
    """Nothing to poll."""

    def test_empty_sources_raise(self):
        with pytest.raises(NoCandidatesError):
            select_targets([], {})

    def test_only_finished_sources_raise(self):
        with pytest.raises(NoCandidatesError):
            select_targets([_source("done", "none")], {"done": 1})


class TestSelectionResult:
    def test_empty_result_has_no_targets(self):
        assert SelectionResult().targets == []
