"""
YouTube live chat client.

Thin adapter over ``liveChatMessages.list`` of the YouTube Data API v3.
Messages come back ascending by ``snippet.publishedAt``; the filters rely
on that order and it is not re-checked here.

Usage:
    async with YouTubeChatClient(api_keys="key1,key2") as client:
        messages = await client.fetch_messages(source)
"""

from datetime import datetime
from typing import Any

import structlog

from src.chat.errors import ChatFetchError
from src.chat.schemas import ChatMessage, Source
from src.ingestion.http_client import APIKeyRotator, HTTPClient, HTTPClientError, RetryConfig

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://www.googleapis.com/youtube/v3"


def parse_published_at(value: str) -> int:
    """
    Parse an RFC 3339 ``publishedAt`` into unix seconds (truncated).

    Raises:
        ValueError: If the timestamp is malformed or lacks a UTC offset
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        raise ValueError(f"publishedAt has no UTC offset: {value!r}")
    return int(parsed.timestamp())


def item_to_message(item: dict[str, Any], source_id: str) -> ChatMessage:
    """Map one liveChatMessage resource to a ChatMessage."""
    snippet = item["snippet"]
    return ChatMessage(
        author_id=snippet.get("authorChannelId", ""),
        text=snippet.get("displayMessage", ""),
        published_at=parse_published_at(snippet["publishedAt"]),
        source_id=source_id,
    )


class YouTubeChatClient:
    """Fetches live chat messages for a broadcast."""

    def __init__(
        self,
        api_keys: str,
        api_url: str = DEFAULT_API_URL,
        http_client: HTTPClient | None = None,
        max_retries: int = 0,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            api_keys: One key or comma-separated keys (rotated per request)
            api_url: YouTube Data API base URL
            http_client: Pre-built HTTP client (tests)
            max_retries: Retries on 429/5xx/transport errors
            timeout: Request timeout in seconds
        """
        rotator = APIKeyRotator.from_env_var(api_keys)
        if rotator is None:
            raise ValueError("At least one YouTube API key is required")

        self._rotator = rotator
        self._url = f"{api_url.rstrip('/')}/liveChat/messages"
        self._http = http_client or HTTPClient(
            RetryConfig(max_retries=max_retries), timeout=timeout
        )
        self._owns_http = http_client is None
        self._entered = False

    async def __aenter__(self) -> "YouTubeChatClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def start(self) -> None:
        if not self._entered:
            await self._http.__aenter__()
            self._entered = True

    async def close(self) -> None:
        if self._entered and self._owns_http:
            await self._http.aclose()
        self._entered = False

    async def fetch_messages(
        self,
        source: Source,
        max_results: int | None = None,
    ) -> list[ChatMessage]:
        """
        Fetch the current page of chat messages for ``source``.

        Args:
            source: Broadcast to poll (its ``chat_id`` is the liveChatId)
            max_results: Optional ``maxResults`` (200-2000)

        Returns:
            Messages in the order returned by the API

        Raises:
            ChatFetchError: On HTTP failure or an unparseable response
        """
        if not source.chat_id:
            raise ChatFetchError(
                f"Source {source.source_id} has no live chat id",
                source_id=source.source_id,
            )

        params: dict[str, Any] = {"liveChatId": source.chat_id, "part": "snippet"}
        if max_results:
            params["maxResults"] = max_results

        try:
            response = await self._http.get(
                self._url,
                params=params,
                api_key_rotator=self._rotator,
                api_key_param="key",
            )
            payload = response.json()
            messages = [
                item_to_message(item, source.source_id)
                for item in payload.get("items", [])
            ]
        except HTTPClientError as e:
            raise ChatFetchError(
                f"liveChatMessages.list failed for {source.source_id}: {e}",
                source_id=source.source_id,
            ) from e
        except (KeyError, TypeError, ValueError) as e:
            raise ChatFetchError(
                f"Malformed live chat response for {source.source_id}: {e}",
                source_id=source.source_id,
            ) from e

        logger.debug(
            "Fetched live chat messages",
            source_id=source.source_id,
            count=len(messages),
        )
        return messages
