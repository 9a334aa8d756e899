"""KeyValueStore — agent-level settings and state via libsql."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mantle.db import Database

logger = logging.getLogger(__name__)


def _decode(raw: str) -> Any:
    """Return parsed JSON when ``raw`` is JSON, otherwise the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@dataclass
class KVEntry:
    key: str
    value: Any
    updated_at: str


class KeyValueStore:
    """Durable key → value store.

    Strings are stored verbatim; anything else is JSON-encoded. Reads
    decode JSON when possible, so ``set(k, {"a": 1})`` reads back as a dict
    and ``set(k, "x")`` reads back as ``"x"``.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, key: str) -> Any:
        """Return the value for ``key``, or None if unset."""
        entry = await self.entry(key)
        return entry.value if entry else None

    async def entry(self, key: str) -> KVEntry | None:
        """Return the full entry (value plus ``updated_at``), or None."""
        db = await self._db.connect()
        try:
            cursor = await db.execute(
                "SELECT key, value, updated_at FROM kv WHERE key = ?", (key,)
            )
            row = await cursor.fetchone()
        finally:
            await db.close()
        if not row:
            return None
        return KVEntry(key=row[0], value=_decode(row[1]), updated_at=row[2])

    async def set(self, key: str, value: Any) -> None:
        """Insert or overwrite ``key`` in a single statement."""
        serialized = value if isinstance(value, str) else json.dumps(value)
        now = datetime.now(UTC).isoformat()
        db = await self._db.connect()
        try:
            await db.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE
                    SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, serialized, now),
            )
            await db.commit()
        finally:
            await db.close()
        logger.debug("kv set: %s", key)

    async def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if a row was removed; missing keys are fine."""
        db = await self._db.connect()
        try:
            cursor = await db.execute("DELETE FROM kv WHERE key = ?", (key,))
            await db.commit()
            return cursor.rowcount > 0
        finally:
            await db.close()
