"""Live chat ingestion - HTTP client and YouTube chat fetcher."""

from src.ingestion.http_client import (
    APIKeyRotator,
    HTTPClient,
    HTTPClientError,
    RateLimitError,
    RetryConfig,
)
from src.ingestion.youtube_client import YouTubeChatClient

__all__ = [
    "APIKeyRotator",
    "HTTPClient",
    "HTTPClientError",
    "RateLimitError",
    "RetryConfig",
    "YouTubeChatClient",
]
