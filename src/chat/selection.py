"""
Priority selection of sources to poll in one invocation.

Each liveChatMessages.list call costs YouTube Data API quota, so an
invocation polls either every live broadcast or a single upcoming one:

- Live broadcasts take absolute priority; chat activity concentrates there.
- Otherwise one upcoming broadcast is polled. Sources never stored before
  go first (full catch-up), then the one with the oldest watermark, so all
  upcoming sources get refreshed in turn over successive invocations.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from src.chat.errors import NoCandidatesError
from src.chat.schemas import Source


@dataclass
class SelectionResult:
    """Sources chosen for this invocation."""

    live_targets: list[Source] = field(default_factory=list)
    upcoming_target: Source | None = None
    upcoming_watermark: int = 0

    @property
    def targets(self) -> list[Source]:
        """All sources to poll, live first."""
        if self.live_targets:
            return list(self.live_targets)
        return [self.upcoming_target] if self.upcoming_target else []


def select_targets(
    sources: Iterable[Source],
    watermarks: Mapping[str, int],
) -> SelectionResult:
    """
    Pick the sources to poll.

    Args:
        sources: Candidate sources (any status)
        watermarks: Latest stored ``published_at`` per source_id; sources
            with no stored messages are absent

    Returns:
        SelectionResult with either live targets or one upcoming target

    Raises:
        NoCandidatesError: If there is no live and no upcoming source
    """
    ordered = sorted(sources, key=lambda s: s.source_id)

    live = [s for s in ordered if s.is_live]
    if live:
        return SelectionResult(live_targets=live)

    upcoming = [s for s in ordered if s.is_upcoming]
    if not upcoming:
        raise NoCandidatesError("No live or upcoming sources to poll")

    # Never-stored sources first; watermark 0 means fetch everything
    for source in upcoming:
        if source.source_id not in watermarks:
            return SelectionResult(upcoming_target=source, upcoming_watermark=0)

    if len(upcoming) == 1:
        only = upcoming[0]
        return SelectionResult(
            upcoming_target=only,
            upcoming_watermark=watermarks[only.source_id],
        )

    # Oldest watermark wins; ties go to the smallest source_id
    chosen = min(upcoming, key=lambda s: (watermarks[s.source_id], s.source_id))
    return SelectionResult(
        upcoming_target=chosen,
        upcoming_watermark=watermarks[chosen.source_id],
    )
