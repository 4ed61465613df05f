"""
Dependency injection for FastAPI endpoints.

Clients and the connection pool are process-level singletons, created on
first use and reused across invocations of a warm instance.
"""

import asyncio

from src.chat.repository import ChatRepository
from src.chat.tagger import SentimentTagger
from src.config.settings import get_settings
from src.ingestion.youtube_client import YouTubeChatClient
from src.sentiment.language_client import LanguageClient
from src.services.chat_watcher import ChatWatcherService
from src.storage.database import Database

# Global instances (initialized on first request)
_database: Database | None = None
_chat_client: YouTubeChatClient | None = None
_language_client: LanguageClient | None = None
_chat_watcher: ChatWatcherService | None = None

# get_chat_watcher_service takes the other locks while holding its own
_database_lock = asyncio.Lock()
_chat_client_lock = asyncio.Lock()
_language_client_lock = asyncio.Lock()
_chat_watcher_lock = asyncio.Lock()


async def get_database() -> Database:
    """Get the connected Database instance."""
    global _database

    async with _database_lock:
        if _database is None:
            database = Database()
            await database.connect()
            _database = database

    return _database


async def get_chat_repository() -> ChatRepository:
    """Get a ChatRepository bound to the shared database."""
    return ChatRepository(await get_database())


async def get_chat_client() -> YouTubeChatClient:
    """Get the YouTube live chat client."""
    global _chat_client

    async with _chat_client_lock:
        if _chat_client is None:
            settings = get_settings()
            client = YouTubeChatClient(
                api_keys=settings.youtube_api_key or "",
                api_url=settings.youtube_api_url,
                max_retries=settings.http_max_retries,
                timeout=settings.http_timeout_seconds,
            )
            await client.start()
            _chat_client = client

    return _chat_client


async def get_language_client() -> LanguageClient:
    """Get the Natural Language sentiment client."""
    global _language_client

    async with _language_client_lock:
        if _language_client is None:
            settings = get_settings()
            client = LanguageClient(
                api_key=settings.effective_language_api_key or "",
                api_url=settings.language_api_url,
                max_retries=settings.http_max_retries,
                timeout=settings.http_timeout_seconds,
            )
            await client.start()
            _language_client = client

    return _language_client


async def get_chat_watcher_service() -> ChatWatcherService:
    """
    Get the chat watcher service.

    Wires repository, YouTube client and sentiment tagger together.
    """
    global _chat_watcher

    async with _chat_watcher_lock:
        if _chat_watcher is None:
            settings = get_settings()
            _chat_watcher = ChatWatcherService(
                repository=await get_chat_repository(),
                fetcher=await get_chat_client(),
                tagger=SentimentTagger(await get_language_client()),
                allowed_author_ids=settings.target_channel_ids,
                max_results=settings.chat_max_results,
            )

    return _chat_watcher


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _chat_client, _language_client, _chat_watcher

    _chat_watcher = None

    if _chat_client is not None:
        await _chat_client.close()
        _chat_client = None

    if _language_client is not None:
        await _language_client.close()
        _language_client = None

    if _database is not None:
        await _database.close()
        _database = None
