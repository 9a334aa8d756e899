"""PostLog — audit trail of posts published to external channels."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mantle.db import Database

logger = logging.getLogger(__name__)


@dataclass
class PostLogEntry:
    """One published (or attempted) post."""

    id: int
    channel: str
    content: str
    post_id: str | None
    status: str
    created_at: str

    @classmethod
    def from_row(cls, row: tuple) -> PostLogEntry:
        return cls(
            id=row[0],
            channel=row[1],
            content=row[2],
            post_id=row[3],
            status=row[4],
            created_at=row[5],
        )


class PostLog:
    """Append-only post log. Write and list only."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def log(
        self,
        channel: str,
        content: str,
        post_id: str | None = None,
        status: str = "posted",
    ) -> None:
        db = await self._db.connect()
        try:
            await db.execute(
                """
                INSERT INTO post_log (channel, content, post_id, status, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (channel, content, post_id, status, datetime.now(UTC).isoformat()),
            )
            await db.commit()
        finally:
            await db.close()
        logger.info("Logged %s post on %s (post_id=%s)", status, channel, post_id)

    async def recent(self, channel: str | None = None, limit: int = 20) -> list[PostLogEntry]:
        """Newest posts first, optionally for one channel."""
        if limit <= 0:
            return []
        db = await self._db.connect()
        try:
            if channel:
                cursor = await db.execute(
                    "SELECT * FROM post_log WHERE channel = ? ORDER BY id DESC LIMIT ?",
                    (channel, limit),
                )
            else:
                cursor = await db.execute(
                    "SELECT * FROM post_log ORDER BY id DESC LIMIT ?", (limit,)
                )
            rows = await cursor.fetchall()
        finally:
            await db.close()
        return [PostLogEntry.from_row(row) for row in rows]
