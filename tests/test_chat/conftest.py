"""Shared fixtures for chat pipeline tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.chat.schemas import ChatMessage


def _make_message(
    published_at: int,
    text: str = "hello",
    author_id: str = "UC_allowed_channel",
    source_id: str = "vid_live",
) -> ChatMessage:
    """Helper to create a ChatMessage with sensible defaults."""
    return ChatMessage(
        author_id=author_id,
        text=text,
        published_at=published_at,
        source_id=source_id,
    )


@pytest.fixture
def mock_database() -> AsyncMock:
    """Mock Database instance matching the Database API."""
    db = AsyncMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=None)
    db.fetchrow = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value="INSERT 0 1")

    conn = AsyncMock()
    conn.execute = AsyncMock(return_value="INSERT 0 0")
    tx = MagicMock()
    tx.__aenter__ = AsyncMock(return_value=conn)
    tx.__aexit__ = AsyncMock(return_value=False)
    db.transaction = MagicMock(return_value=tx)
    db.conn = conn
    return db


@pytest.fixture
def mock_scorer() -> AsyncMock:
    """Scorer returning neutral sentiment."""
    scorer = AsyncMock()
    scorer.analyze_sentiment = AsyncMock(return_value=(0.0, 0.0))
    return scorer


@pytest.fixture
def make_message():
    """Factory fixture for ChatMessage."""
    return _make_message
