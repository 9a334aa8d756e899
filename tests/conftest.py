"""Shared test fixtures."""

from pathlib import Path

import pytest

from mantle.db import Database
from mantle.memory.store import RecordStore


@pytest.fixture
async def db(tmp_path: Path) -> Database:
    """An initialised database in a temporary directory."""
    database = Database(path=tmp_path / "test.db")
    await database.initialise()
    return database


@pytest.fixture
async def records(db: Database) -> RecordStore:
    return RecordStore(db)


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("mantle.config.settings.turso_database_url", "")
