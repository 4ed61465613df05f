"""
Incremental live chat ingestion.

Decides, for each scheduled invocation, which broadcasts to poll, which
fetched messages are new, and how each message is tagged:

- threshold: lookback span combined with the stored watermark
- selection: live-first, then oldest-watermark upcoming source
- filters: strict watermark cut and author allow-list
- tagger: stamp/emoji cleanup and negative flag from a sentiment scorer
- repository: watermark queries and all-or-nothing inserts
"""

from src.chat.errors import (
    ChatFetchError,
    ChatWatcherError,
    CollaboratorError,
    ConfigurationError,
    InvalidSpanError,
    NoCandidatesError,
    SentimentError,
    StorageError,
)
from src.chat.filters import filter_by_threshold, separate_by_allowlist
from src.chat.schemas import (
    ChatMessage,
    ChatRecord,
    ClassifiedMessage,
    Source,
    SourceStatus,
)
from src.chat.selection import SelectionResult, select_targets
from src.chat.tagger import SentimentTagger, is_negative, preprocess_text
from src.chat.threshold import (
    DEFAULT_SPAN_MINUTES,
    MAX_SPAN_MINUTES,
    parse_span,
    resolve_threshold,
)

__all__ = [
    # Errors
    "ChatFetchError",
    "ChatWatcherError",
    "CollaboratorError",
    "ConfigurationError",
    "InvalidSpanError",
    "NoCandidatesError",
    "SentimentError",
    "StorageError",
    # Models
    "ChatMessage",
    "ChatRecord",
    "ClassifiedMessage",
    "Source",
    "SourceStatus",
    # Decision logic
    "DEFAULT_SPAN_MINUTES",
    "MAX_SPAN_MINUTES",
    "SelectionResult",
    "SentimentTagger",
    "filter_by_threshold",
    "is_negative",
    "parse_span",
    "preprocess_text",
    "resolve_threshold",
    "select_targets",
    "separate_by_allowlist",
]
