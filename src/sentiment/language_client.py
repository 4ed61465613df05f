"""
Cloud Natural Language sentiment client.

Calls ``documents:analyzeSentiment`` (API v2) over REST and returns the
document-level ``(score, magnitude)`` pair. Score is in [-1, 1]; magnitude
is the non-negative overall strength of emotion.
"""

from typing import Any

from src.chat.errors import SentimentError
from src.ingestion.http_client import APIKeyRotator, HTTPClient, HTTPClientError, RetryConfig

DEFAULT_API_URL = "https://language.googleapis.com/v2"


class LanguageClient:
    """Document sentiment scoring via the Natural Language API."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        http_client: HTTPClient | None = None,
        max_retries: int = 0,
        timeout: float = 30.0,
    ) -> None:
        rotator = APIKeyRotator.from_env_var(api_key)
        if rotator is None:
            raise ValueError("A Natural Language API key is required")

        self._rotator = rotator
        self._url = f"{api_url.rstrip('/')}/documents:analyzeSentiment"
        self._http = http_client or HTTPClient(
            RetryConfig(max_retries=max_retries), timeout=timeout
        )
        self._owns_http = http_client is None
        self._entered = False

    async def __aenter__(self) -> "LanguageClient":
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

    async def analyze_sentiment(self, text: str) -> tuple[float, float]:
        """
        Score ``text``.

        Raises:
            SentimentError: On HTTP failure or a response without documentSentiment
        """
        body = {
            "document": {"type": "PLAIN_TEXT", "content": text},
            "encodingType": "UTF8",
        }

        try:
            response = await self._http.post(
                self._url,
                json_body=body,
                api_key_rotator=self._rotator,
                api_key_param="key",
            )
            sentiment = response.json()["documentSentiment"]
            score = float(sentiment.get("score", 0.0))
            magnitude = float(sentiment.get("magnitude", 0.0))
        except HTTPClientError as e:
            raise SentimentError(f"analyzeSentiment failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise SentimentError(f"Malformed analyzeSentiment response: {e}") from e

        return score, magnitude
