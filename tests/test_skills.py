"""Tests for the skill inventory."""

from mantle.db import Database
from mantle.skills import Skill, SkillStore


async def test_add_and_list(db: Database) -> None:
    store = SkillStore(db)
    await store.add(Skill(id="s1", name="weather", description="Forecasts"))
    await store.add(Skill(id="s2", name="translate", squidbay_listed=True))

    skills = await store.list_skills()
    assert [s.name for s in skills] == ["translate", "weather"]
    assert skills[0].squidbay_listed is True
    assert skills[1].description == "Forecasts"


async def test_created_at_defaults(db: Database) -> None:
    skill = Skill(id="s1", name="weather")
    assert skill.created_at


async def test_empty_inventory(db: Database) -> None:
    assert await SkillStore(db).list_skills() == []
