"""Application settings using Pydantic Settings for environment-based configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.chat.errors import ConfigurationError

DEFAULT_LOCAL_SERVICE_NAME = "fetch-chat-function"


class Settings(BaseSettings):
    """
    Central configuration for the chat-watcher service.

    All settings can be overridden via environment variables.
    Prefix is not used so the deployment keeps its existing env var names
    (YOUTUBE_API_KEY, TARGET_CHANNEL_ID, SERVICE_NAME, PORT, ...).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # Service identity / hosting
    service_name: str | None = None
    local_only: bool = False
    port: int = Field(default=8080, ge=1, le=65535)

    # YouTube Data API (comma-separated keys are rotated per request)
    youtube_api_key: str | None = None
    youtube_api_url: str = "https://www.googleapis.com/youtube/v3"
    chat_max_results: int | None = Field(default=None, ge=200, le=2000)

    # Author channel ids whose messages are kept (comma-separated)
    target_channel_id: str | None = None

    # Cloud Natural Language API
    language_api_key: str | None = None
    language_api_url: str = "https://language.googleapis.com/v2"

    # PostgreSQL
    database_url: PostgresDsn | None = None
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5

    # Outbound HTTP (no retries by default; the scheduler owns retries)
    http_timeout_seconds: float = Field(default=30.0, gt=0)
    http_max_retries: int = Field(default=0, ge=0, le=10)

    # Observability
    metrics_port: int = 8000
    tracing_enabled: bool = False
    otel_exporter_otlp_endpoint: str | None = None
    otel_service_name: str = "patotta-stone-function-chat"
    google_cloud_project: str | None = None

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def api_host(self) -> str:
        """Bind address: loopback only when LOCAL_ONLY is set."""
        return "127.0.0.1" if self.local_only else "0.0.0.0"

    @property
    def effective_service_name(self) -> str:
        """Service label for logs, with a local-development fallback."""
        if self.service_name:
            return self.service_name
        return DEFAULT_LOCAL_SERVICE_NAME

    @property
    def target_channel_ids(self) -> list[str]:
        """Allow-listed author channel ids."""
        if not self.target_channel_id:
            return []
        return [c.strip() for c in self.target_channel_id.split(",") if c.strip()]

    @property
    def effective_language_api_key(self) -> str | None:
        """Language API key, falling back to the first YouTube key."""
        if self.language_api_key:
            return self.language_api_key
        if self.youtube_api_key:
            return self.youtube_api_key.split(",")[0].strip() or None
        return None

    def missing_required(self) -> list[str]:
        """Names of required settings that are absent."""
        missing: list[str] = []
        if not self.youtube_api_key or not self.youtube_api_key.strip(", "):
            missing.append("YOUTUBE_API_KEY")
        if not self.target_channel_ids:
            missing.append("TARGET_CHANNEL_ID")
        if self.database_url is None:
            missing.append("DATABASE_URL")
        if not self.service_name and not self.local_only:
            missing.append("SERVICE_NAME")
        if self.tracing_enabled and not self.google_cloud_project:
            missing.append("GOOGLE_CLOUD_PROJECT")
        return missing


def ensure_configured(settings: Settings) -> None:
    """
    Fail fast when required configuration is absent.

    Called once during application startup, before any request is accepted.

    Raises:
        ConfigurationError: listing every missing setting
    """
    missing = settings.missing_required()
    if missing:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}",
            missing=missing,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    Clear cache with get_settings.cache_clear() if needed.
    """
    return Settings()
