"""Filters applied to a fetched chat batch."""

from collections.abc import Collection, Sequence

from src.chat.schemas import ChatMessage


def filter_by_threshold(
    messages: Sequence[ChatMessage],
    threshold: int,
) -> list[ChatMessage]:
    """
    Keep the suffix of messages published strictly after ``threshold``.

    The chat source returns messages ascending by ``published_at``, so the
    first message past the threshold starts the suffix. The order is not
    re-verified. A message published exactly at the threshold is excluded:
    once stored, its timestamp becomes the next watermark and a re-fetch of
    the same message is dropped here.
    """
    for i, message in enumerate(messages):
        if message.published_at > threshold:
            return list(messages[i:])
    return []


def separate_by_allowlist(
    messages: Sequence[ChatMessage],
    allowed_author_ids: Collection[str],
) -> tuple[list[ChatMessage], list[ChatMessage]]:
    """Split messages into (allow-listed authors, everyone else), keeping order."""
    allowed = set(allowed_author_ids)
    matched: list[ChatMessage] = []
    unmatched: list[ChatMessage] = []

    for message in messages:
        if message.author_id in allowed:
            matched.append(message)
        else:
            unmatched.append(message)

    return matched, unmatched
