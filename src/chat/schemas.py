"""Data models for live chat ingestion."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class SourceStatus(str, Enum):
    """Broadcast states that matter for polling priority."""

    LIVE = "live"
    UPCOMING = "upcoming"


@dataclass
class Source:
    """A monitored broadcast (one row of the ``videos`` table).

    ``source_id`` is the stable video id; ``chat_id`` is the live chat
    thread, which can change over the broadcast's lifetime. ``status`` is
    kept as a plain string because discovery may write states other than
    live/upcoming (e.g. "none" once a stream has ended).
    """

    source_id: str
    chat_id: str
    status: str
    updated_at: datetime | None = None

    @property
    def is_live(self) -> bool:
        return self.status == SourceStatus.LIVE.value

    @property
    def is_upcoming(self) -> bool:
        return self.status == SourceStatus.UPCOMING.value


@dataclass(frozen=True)
class ChatMessage:
    """One chat message as returned by the chat source."""

    author_id: str
    text: str
    published_at: int  # unix seconds
    source_id: str


@dataclass(frozen=True)
class ClassifiedMessage:
    """A chat message tagged with the sentiment flag."""

    message: ChatMessage
    is_negative: bool

    def to_record(self) -> "ChatRecord":
        return ChatRecord(
            message=self.message.text,
            source_id=self.message.source_id,
            published_at=datetime.fromtimestamp(
                self.message.published_at, tz=timezone.utc
            ),
            is_negative=self.is_negative,
        )


@dataclass
class ChatRecord:
    """A persisted chat row, keyed by (message, source_id)."""

    message: str
    source_id: str
    published_at: datetime
    is_negative: bool = False
