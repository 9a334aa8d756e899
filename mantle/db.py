"""Async storage handle over libsql.

Provides a thin async wrapper around the synchronous ``libsql`` driver using
``asyncio.to_thread()``.  Connection target is fixed when the handle is built:

- **Production**: ``TURSO_DATABASE_URL`` + ``TURSO_AUTH_TOKEN`` → remote Turso
- **Dev/test**: no Turso env vars → local SQLite file via ``database_path``

Every store receives the same ``Database`` instance at construction time and
opens a short-lived connection per operation.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import libsql

from mantle.errors import StorageInitError

if TYPE_CHECKING:
    from mantle.config import Settings

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS memory (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        channel TEXT NOT NULL DEFAULT 'chat',
        role TEXT NOT NULL,
        content TEXT NOT NULL,
        metadata TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS kv (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS skills (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        file_path TEXT NOT NULL DEFAULT '',
        squidbay_listed INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS scans (
        id TEXT PRIMARY KEY,
        trigger_type TEXT NOT NULL DEFAULT 'manual',
        version TEXT,
        result TEXT NOT NULL DEFAULT 'clean',
        risk_score REAL NOT NULL DEFAULT 0,
        trust_score REAL NOT NULL DEFAULT 100,
        findings TEXT NOT NULL DEFAULT '[]',
        summary TEXT NOT NULL DEFAULT '{}',
        permissions TEXT NOT NULL DEFAULT '[]',
        scanner_version TEXT NOT NULL DEFAULT '',
        patterns_checked INTEGER NOT NULL DEFAULT 0,
        categories_checked INTEGER NOT NULL DEFAULT 0,
        files_scanned INTEGER NOT NULL DEFAULT 0,
        total_bytes INTEGER NOT NULL DEFAULT 0,
        scan_duration_ms INTEGER NOT NULL DEFAULT 0,
        scanned_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS post_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        channel TEXT NOT NULL,
        content TEXT NOT NULL,
        post_id TEXT,
        status TEXT NOT NULL DEFAULT 'posted',
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_memory_channel ON memory(channel)",
    "CREATE INDEX IF NOT EXISTS idx_memory_created ON memory(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_scans_date ON scans(scanned_at)",
    "CREATE INDEX IF NOT EXISTS idx_post_log_channel ON post_log(channel)",
)


class _AsyncCursor:
    """Thin async wrapper around a synchronous libsql cursor."""

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    async def fetchone(self) -> tuple | None:
        return await asyncio.to_thread(self._cursor.fetchone)

    async def fetchall(self) -> list[tuple]:
        return await asyncio.to_thread(self._cursor.fetchall)

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount


class _AsyncConnection:
    """Thin async wrapper around a synchronous libsql connection."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    async def execute(self, sql: str, params: tuple = ()) -> _AsyncCursor:
        cursor = await asyncio.to_thread(self._conn.execute, sql, params)
        return _AsyncCursor(cursor)

    async def commit(self) -> None:
        await asyncio.to_thread(self._conn.commit)

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)


def _open_local(path: str) -> Any:
    """Open a local libsql connection with WAL mode and busy timeout."""
    conn = libsql.connect(path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


class Database:
    """Storage handle shared by every store.

    Pass *path* for a local file (tests use ``tmp_path / "test.db"``) or
    *url* + *auth_token* for a remote Turso database.
    """

    def __init__(
        self,
        path: Path | None = None,
        *,
        url: str = "",
        auth_token: str = "",
    ) -> None:
        if path is None and not url:
            msg = "Database needs either a local path or a remote url"
            raise ValueError(msg)
        self.path = path
        self.url = url
        self._auth_token = auth_token

    @classmethod
    def from_settings(cls, settings: Settings) -> Database:
        """Build the handle described by ``settings``."""
        if settings.turso_database_url:
            return cls(url=settings.turso_database_url, auth_token=settings.turso_auth_token)
        return cls(path=settings.database_path)

    @property
    def target(self) -> str:
        """Human-readable connection target for log lines."""
        return self.url or str(self.path)

    async def connect(self) -> _AsyncConnection:
        """Return an async-wrapped libsql connection."""
        if self.url:
            conn = await asyncio.to_thread(
                libsql.connect,
                database=self.url,
                auth_token=self._auth_token,
            )
            return _AsyncConnection(conn)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = await asyncio.to_thread(_open_local, str(self.path))
        return _AsyncConnection(conn)

    async def initialise(self) -> None:
        """Open the medium and create all tables.

        Raises:
            StorageInitError: the medium is unavailable or the schema
                cannot be created. There is no degraded mode.
        """
        try:
            db = await self.connect()
        except Exception as exc:
            msg = f"Cannot open database at {self.target}"
            raise StorageInitError(msg) from exc

        try:
            for statement in _SCHEMA:
                await db.execute(statement)
            await db.commit()
        except Exception as exc:
            msg = f"Cannot create schema in {self.target}"
            raise StorageInitError(msg) from exc
        finally:
            await db.close()

        logger.info("Database ready at %s", self.target)
