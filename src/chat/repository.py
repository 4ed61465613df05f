"""Database repository for the chats and videos tables."""

import logging
from collections.abc import Sequence
from datetime import datetime

from src.chat.schemas import ChatRecord, Source
from src.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS videos (
    source_id    TEXT PRIMARY KEY,
    status       TEXT NOT NULL,
    chat_id      TEXT NOT NULL DEFAULT '',
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_videos_status
    ON videos(status);

CREATE TABLE IF NOT EXISTS chats (
    message      TEXT NOT NULL,
    source_id    TEXT NOT NULL,
    published_at TIMESTAMPTZ NOT NULL,
    is_negative  BOOLEAN NOT NULL DEFAULT FALSE,
    PRIMARY KEY (message, source_id)
);

CREATE INDEX IF NOT EXISTS idx_chats_source_published
    ON chats(source_id, published_at DESC);
"""

_UPSERT_SOURCE_SQL = """
INSERT INTO videos (source_id, status, chat_id)
VALUES ($1, $2, $3)
ON CONFLICT (source_id) DO UPDATE SET
    status = EXCLUDED.status,
    chat_id = EXCLUDED.chat_id,
    updated_at = NOW()
"""

# Repeated text in the same source is a key collision, not a failure
_BULK_INSERT_SQL = """
INSERT INTO chats (message, source_id, published_at, is_negative)
SELECT * FROM unnest(
    $1::text[], $2::text[], $3::timestamptz[], $4::boolean[]
)
ON CONFLICT (message, source_id) DO NOTHING
"""


def _record_to_source(record) -> Source:
    """Convert an asyncpg Record to a Source dataclass."""
    return Source(
        source_id=record["source_id"],
        chat_id=record["chat_id"],
        status=record["status"],
        updated_at=record["updated_at"],
    )


def _to_unix(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp())


class ChatRepository:
    """Persistence for chat records and the watermark queries built on them."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_tables(self) -> None:
        """Create the chats and videos tables (idempotent)."""
        await self._db.execute(_CREATE_TABLES_SQL)
        logger.info("Chat tables ensured")

    # ── Sources ─────────────────────────────────────────────────

    async def get_sources_by_status(self, statuses: Sequence[str]) -> list[Source]:
        """Fetch sources whose status is one of ``statuses``."""
        rows = await self._db.fetch(
            """
            SELECT source_id, status, chat_id, updated_at
            FROM videos
            WHERE status = ANY($1::text[])
            ORDER BY source_id
            """,
            list(statuses),
        )
        return [_record_to_source(r) for r in rows]

    async def upsert_source(self, source: Source) -> None:
        """Insert or update a source. Discovery owns this table; used by tooling."""
        await self._db.execute(
            _UPSERT_SOURCE_SQL,
            source.source_id,
            source.status,
            source.chat_id,
        )

    # ── Watermarks ──────────────────────────────────────────────

    async def get_last_published_at(self, source_id: str | None = None) -> int | None:
        """
        Latest stored ``published_at`` as unix seconds.

        Args:
            source_id: Restrict to one source; None for the global watermark

        Returns:
            Unix seconds, or None when nothing is stored
        """
        if source_id is None:
            value = await self._db.fetchval("SELECT MAX(published_at) FROM chats")
        else:
            value = await self._db.fetchval(
                "SELECT MAX(published_at) FROM chats WHERE source_id = $1",
                source_id,
            )
        return _to_unix(value)

    async def get_last_published_at_by_source(
        self, source_ids: Sequence[str]
    ) -> dict[str, int]:
        """
        Latest stored ``published_at`` for each source.

        Sources without stored messages are absent from the result.
        """
        if not source_ids:
            return {}

        rows = await self._db.fetch(
            """
            SELECT source_id, MAX(published_at) AS published_at
            FROM chats
            WHERE source_id = ANY($1::text[])
            GROUP BY source_id
            """,
            list(source_ids),
        )
        return {
            r["source_id"]: _to_unix(r["published_at"])
            for r in rows
            if r["published_at"] is not None
        }

    # ── Records ─────────────────────────────────────────────────

    async def insert_records(self, records: Sequence[ChatRecord]) -> int:
        """
        Insert chat records in a single transaction.

        Either every row is written or none is, so the next watermark read
        never sees a partial batch.

        Returns:
            Number of rows actually inserted
        """
        if not records:
            return 0

        messages = [r.message for r in records]
        source_ids = [r.source_id for r in records]
        published = [r.published_at for r in records]
        negatives = [r.is_negative for r in records]

        async with self._db.transaction() as conn:
            status = await conn.execute(
                _BULK_INSERT_SQL, messages, source_ids, published, negatives
            )

        # Status string is "INSERT 0 <rows>"
        inserted = int(status.split()[-1]) if status else 0
        logger.info("Inserted %d of %d chat records", inserted, len(records))
        return inserted
