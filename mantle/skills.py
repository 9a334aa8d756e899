"""SkillStore — inventory of installed skills, listed in the system prompt."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mantle.db import Database


@dataclass
class Skill:
    id: str
    name: str
    description: str = ""
    file_path: str = ""
    squidbay_listed: bool = False
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.now(UTC).isoformat()


class SkillStore:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def add(self, skill: Skill) -> Skill:
        """Insert a new skill. Returns the same skill object."""
        db = await self._db.connect()
        try:
            await db.execute(
                """
                INSERT INTO skills
                    (id, name, description, file_path, squidbay_listed, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    skill.id,
                    skill.name,
                    skill.description,
                    skill.file_path,
                    int(skill.squidbay_listed),
                    skill.created_at,
                    skill.created_at,
                ),
            )
            await db.commit()
            return skill
        finally:
            await db.close()

    async def list_skills(self) -> list[Skill]:
        """All installed skills, newest first."""
        db = await self._db.connect()
        try:
            cursor = await db.execute(
                """
                SELECT id, name, description, file_path, squidbay_listed, created_at
                FROM skills ORDER BY created_at DESC, rowid DESC
                """
            )
            rows = await cursor.fetchall()
        finally:
            await db.close()
        return [
            Skill(
                id=row[0],
                name=row[1],
                description=row[2] or "",
                file_path=row[3] or "",
                squidbay_listed=bool(row[4]),
                created_at=row[5],
            )
            for row in rows
        ]
