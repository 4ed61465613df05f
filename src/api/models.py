"""
Request and response models for the chat watcher API.
"""

from pydantic import BaseModel, Field


class SourceOutcomeItem(BaseModel):
    """Per-source counts for one invocation."""

    source_id: str = Field(..., description="Broadcast (video) id")
    status: str = Field(..., description="Broadcast status: live or upcoming")
    threshold: int = Field(
        ...,
        description="Unix seconds; only messages published after this were kept",
    )
    fetched: int = Field(default=0, description="Messages returned by the chat source")
    new: int = Field(default=0, description="Messages past the threshold")
    matched: int = Field(default=0, description="New messages from allow-listed authors")
    negative: int = Field(default=0, description="Matched messages flagged negative")


class ChatWatchResponse(BaseModel):
    """Response model for a chat watch invocation."""

    status: str = Field(
        ...,
        description="ok when sources were polled, noop when there was nothing to poll",
    )
    span: int = Field(..., description="Lookback span in minutes")
    stored: int = Field(default=0, description="Rows inserted into the store")
    sources: list[SourceOutcomeItem] = Field(default_factory=list)


class ComponentHealth(BaseModel):
    """Health status of a single infrastructure component."""

    status: str = Field(..., description="healthy or unhealthy")
    latency_ms: float | None = Field(default=None, description="Check latency")
    details: dict = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(
        ...,
        description="Overall service status: healthy or unhealthy",
    )
    configured: bool = Field(..., description="All required settings are present")
    missing_config: list[str] = Field(default_factory=list)
    components: dict[str, ComponentHealth] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(
        ...,
        description="Error message",
    )
    error_type: str = Field(
        default="error",
        description="Error category: invalid_argument, collaborator, internal",
    )
    stage: str | None = Field(
        default=None,
        description="Pipeline stage that failed (fetch, classify, insert, ...)",
    )
    source_id: str | None = Field(
        default=None,
        description="Source being processed when the failure happened",
    )
