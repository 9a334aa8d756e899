"""RecordStore — append-only conversation log shared by every channel.

Records are never edited. Ordering uses the autoincrement ``id``, which
follows write order, so a channel's history comes back exactly as it was
appended even when several turns share a timestamp.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from mantle.memory.models import (
    ChannelCount,
    MemoryRecord,
    MemoryStats,
    RecordMetadata,
    Role,
)

if TYPE_CHECKING:
    from mantle.db import Database

logger = logging.getLogger(__name__)

_COLUMNS = "id, channel, role, content, metadata, created_at"


class RecordStore:
    """Persists conversational turns keyed by channel."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # -- Write -----------------------------------------------------------------

    async def append(
        self,
        channel: str,
        role: Role | str,
        content: str,
        metadata: RecordMetadata | dict[str, Any] | None = None,
    ) -> int:
        """Persist one turn and return its id.

        Raises:
            ValueError: empty channel or a role other than user/assistant.
            pydantic.ValidationError: metadata with unknown or mistyped keys.
        """
        if not channel:
            msg = "channel must be a non-empty string"
            raise ValueError(msg)
        role = Role.normalize(role)
        if isinstance(metadata, dict):
            metadata = RecordMetadata.model_validate(metadata)
        serialized = metadata.to_json() if metadata is not None else None
        created_at = datetime.now(UTC).isoformat()

        db = await self._db.connect()
        try:
            cursor = await db.execute(
                """
                INSERT INTO memory (channel, role, content, metadata, created_at)
                VALUES (?, ?, ?, ?, ?)
                RETURNING id
                """,
                (channel, role.value, content, serialized, created_at),
            )
            # drain RETURNING before commit; libsql refuses to commit a running statement
            [row] = await cursor.fetchall()
            await db.commit()
        finally:
            await db.close()

        logger.debug("Stored [%s/%s] #%d: %s", channel, role.value, row[0], content[:80])
        return row[0]

    async def purge(self, channel: str | None = None) -> int:
        """Delete every record for ``channel``, or all records. Returns the count."""
        db = await self._db.connect()
        try:
            if channel is not None:
                cursor = await db.execute("DELETE FROM memory WHERE channel = ?", (channel,))
            else:
                cursor = await db.execute("DELETE FROM memory")
            await db.commit()
            removed = cursor.rowcount
        finally:
            await db.close()

        scope = "all" if channel is None else channel
        logger.info("Purged %d memory record(s) (channel=%s)", removed, scope)
        return removed

    # -- Read ------------------------------------------------------------------

    async def recent(self, channel: str, limit: int = 50) -> list[MemoryRecord]:
        """Return up to ``limit`` most recent records for ``channel``, oldest first."""
        if limit <= 0:
            return []
        rows = await self._fetch(
            f"SELECT {_COLUMNS} FROM memory WHERE channel = ? ORDER BY id DESC LIMIT ?",
            (channel, limit),
        )
        return [MemoryRecord.from_row(row) for row in reversed(rows)]

    async def recent_across_channels(self, limit: int = 100) -> list[MemoryRecord]:
        """Return up to ``limit`` most recent records of any channel, oldest first."""
        if limit <= 0:
            return []
        rows = await self._fetch(
            f"SELECT {_COLUMNS} FROM memory ORDER BY id DESC LIMIT ?",
            (limit,),
        )
        return [MemoryRecord.from_row(row) for row in reversed(rows)]

    async def search(self, query: str, limit: int = 20) -> list[MemoryRecord]:
        """Case-insensitive substring search over content, newest first."""
        if limit <= 0 or not query:
            return []
        rows = await self._fetch(
            f"""
            SELECT {_COLUMNS} FROM memory
            WHERE instr(lower(content), lower(?)) > 0
            ORDER BY id DESC
            LIMIT ?
            """,
            (query, limit),
        )
        return [MemoryRecord.from_row(row) for row in rows]

    async def stats(self) -> MemoryStats:
        """Total record count plus a per-channel breakdown."""
        db = await self._db.connect()
        try:
            cursor = await db.execute("SELECT COUNT(*) FROM memory")
            total = (await cursor.fetchone())[0]
            cursor = await db.execute(
                "SELECT channel, COUNT(*) FROM memory GROUP BY channel ORDER BY channel"
            )
            rows = await cursor.fetchall()
        finally:
            await db.close()

        return MemoryStats(
            total=total,
            channels=[ChannelCount(channel=row[0], count=row[1]) for row in rows],
        )

    # -- Internal helpers ------------------------------------------------------

    async def _fetch(self, sql: str, params: tuple) -> list[tuple]:
        db = await self._db.connect()
        try:
            cursor = await db.execute(sql, params)
            return await cursor.fetchall()
        finally:
            await db.close()
