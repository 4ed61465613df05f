"""Pytest fixtures for chat-watcher tests."""

import pytest

from src.chat.schemas import Source


@pytest.fixture
def live_source() -> Source:
    """A live broadcast with an active chat."""
    return Source(source_id="vid_live", chat_id="chat_live", status="live")
