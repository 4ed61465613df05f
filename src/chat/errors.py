"""Exceptions raised by the chat ingestion pipeline."""


class ChatWatcherError(Exception):
    """Base exception for all chat-watcher errors."""

    def __init__(self, message: str, *args: object) -> None:
        self.message = message
        super().__init__(message, *args)


class ConfigurationError(ChatWatcherError):
    """Required identifiers or credentials are missing. Not recoverable per request."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class InvalidSpanError(ChatWatcherError, ValueError):
    """The requested lookback span is not an integer in [0, 10080]."""


class NoCandidatesError(ChatWatcherError):
    """Neither live nor upcoming sources are available to poll."""


class CollaboratorError(ChatWatcherError):
    """An external collaborator (chat source, sentiment service, store) failed."""

    stage: str = "unknown"

    def __init__(self, message: str, source_id: str | None = None) -> None:
        super().__init__(message)
        self.source_id = source_id


class ChatFetchError(CollaboratorError):
    """Fetching live chat messages failed."""

    stage = "fetch"


class SentimentError(CollaboratorError):
    """Scoring a message with the sentiment service failed."""

    stage = "classify"


class StorageError(CollaboratorError):
    """Reading from or writing to the chat store failed."""

    def __init__(
        self,
        message: str,
        source_id: str | None = None,
        stage: str = "insert",
    ) -> None:
        super().__init__(message, source_id=source_id)
        self.stage = stage
