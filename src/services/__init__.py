"""Services that orchestrate chat ingestion."""

from src.services.chat_watcher import ChatWatcherService, SourceOutcome, WatchResult

__all__ = ["ChatWatcherService", "SourceOutcome", "WatchResult"]
