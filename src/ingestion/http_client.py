"""
HTTP infrastructure shared by the YouTube and Natural Language clients.

Provides:
- APIKeyRotator: Round-robin rotation for comma-separated API keys
- RetryConfig: Exponential backoff configuration (no retries by default)
- HTTPClient: Async HTTP client with optional retry and key rotation

Retries are off unless HTTP_MAX_RETRIES is set: a failed invocation is
re-run by the scheduler, which re-reads the watermark from the store.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})
_RETRYABLE_EXCEPTIONS = (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError)


@dataclass
class APIKeyRotator:
    """
    Round-robin API key rotation.

    YouTube Data API quota is per project key; several keys spread the
    liveChatMessages.list cost.

    Example:
        rotator = APIKeyRotator.from_env_var("key1,key2")
        key = await rotator.get_key()
    """

    keys: list[str]
    _current_index: int = field(default=0, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @classmethod
    def from_env_var(cls, value: str | None) -> "APIKeyRotator | None":
        """Create a rotator from a comma-separated value, or None if empty."""
        if not value:
            return None

        keys = [k.strip() for k in value.split(",") if k.strip()]
        if not keys:
            return None

        return cls(keys=keys)

    async def get_key(self) -> str:
        """Get the next API key in rotation."""
        async with self._lock:
            key = self.keys[self._current_index]
            self._current_index = (self._current_index + 1) % len(self.keys)
            return key

    @property
    def key_count(self) -> int:
        return len(self.keys)


@dataclass
class RetryConfig:
    """
    Exponential backoff configuration.

    Formula: min(max_backoff, base_delay * 2^attempt) * (1 + random(0, jitter_factor))
    """

    max_retries: int = 0
    max_backoff_seconds: float = 60.0
    base_delay: float = 1.0
    jitter_factor: float = 0.1

    def calculate_backoff(self, attempt: int) -> float:
        """Backoff in seconds for a 0-indexed retry attempt."""
        delay = min(self.base_delay * (2**attempt), self.max_backoff_seconds)
        return delay + delay * self.jitter_factor * random.random()

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in _RETRYABLE_STATUS


class HTTPClientError(Exception):
    """Base exception for HTTP client errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(HTTPClientError):
    """Raised on HTTP 429 (quota exceeded) once retries are exhausted."""

    pass


class HTTPClient:
    """
    Async HTTP client with optional retry and API key rotation.

    Example:
        async with HTTPClient(RetryConfig(max_retries=0)) as client:
            response = await client.get(
                "https://www.googleapis.com/youtube/v3/liveChat/messages",
                params={"liveChatId": chat_id, "part": "snippet"},
                api_key_rotator=rotator,
                api_key_param="key",
            )
    """

    def __init__(
        self,
        retry_config: RetryConfig | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize HTTP client.

        Args:
            retry_config: Retry behavior. Defaults to no retries.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests)
        """
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        api_key_rotator: APIKeyRotator | None = None,
        api_key_param: str | None = None,
    ) -> httpx.Response:
        """Perform a GET request."""
        return await self._request(
            "GET",
            url,
            params=params,
            api_key_rotator=api_key_rotator,
            api_key_param=api_key_param,
        )

    async def post(
        self,
        url: str,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        api_key_rotator: APIKeyRotator | None = None,
        api_key_param: str | None = None,
    ) -> httpx.Response:
        """Perform a POST request with a JSON body."""
        return await self._request(
            "POST",
            url,
            params=params,
            json_body=json_body,
            api_key_rotator=api_key_rotator,
            api_key_param=api_key_param,
        )

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        api_key_rotator: APIKeyRotator | None = None,
        api_key_param: str | None = None,
    ) -> httpx.Response:
        """
        Execute a request.

        Raises:
            HTTPClientError: On error status or transport failure
            RateLimitError: On 429
        """
        if not self._client:
            raise RuntimeError("HTTPClient must be used as async context manager")

        attempts = self.retry_config.max_retries + 1

        for attempt in range(attempts):
            request_params = dict(params) if params else {}
            if api_key_rotator and api_key_param:
                request_params[api_key_param] = await api_key_rotator.get_key()

            try:
                response = await self._client.request(
                    method,
                    url,
                    params=request_params or None,
                    json=json_body,
                )
            except _RETRYABLE_EXCEPTIONS as e:
                if attempt + 1 < attempts:
                    await self._backoff(attempt, url, type(e).__name__)
                    continue
                raise HTTPClientError(
                    f"{method} {url} failed after {attempt + 1} attempts: {e}"
                ) from e
            except httpx.HTTPError as e:
                raise HTTPClientError(f"{method} {url} failed: {e}") from e

            if response.status_code < 400:
                return response

            if self.retry_config.is_retryable_status(response.status_code) and attempt + 1 < attempts:
                await self._backoff(attempt, url, f"status {response.status_code}")
                continue

            error_cls = RateLimitError if response.status_code == 429 else HTTPClientError
            raise error_cls(
                f"{method} {url} failed with status {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        # Loop always returns or raises
        raise HTTPClientError(f"{method} {url} failed")

    async def _backoff(self, attempt: int, url: str, reason: str) -> None:
        backoff = self.retry_config.calculate_backoff(attempt)
        logger.warning(
            "Retryable %s from %s, attempt %d/%d, backing off %.2fs",
            reason,
            url,
            attempt + 1,
            self.retry_config.max_retries + 1,
            backoff,
        )
        await asyncio.sleep(backoff)
