"""Tests for the agent-to-agent handler."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from mantle.a2a import SQUIDBAY_LINKS, A2AHandler
from mantle.agent import ChatReply
from mantle.db import Database
from mantle.scans.ledger import ScanLedger
from mantle.scans.models import NewScan
from mantle.skills import Skill, SkillStore


@pytest.fixture
def agent() -> MagicMock:
    mock = MagicMock()
    mock.name = "Squid"
    mock.chat = AsyncMock(return_value=ChatReply(reply="Hello, agent."))
    return mock


@pytest.fixture
def skills(db: Database) -> SkillStore:
    return SkillStore(db)


@pytest.fixture
def ledger(db: Database) -> ScanLedger:
    return ScanLedger(db)


@pytest.fixture
def handler(agent: MagicMock, skills: SkillStore, ledger: ScanLedger) -> A2AHandler:
    return A2AHandler(agent, skills, ledger, agent_id="agent-42", version="0.3.0")


# -- card --------------------------------------------------------------------


async def test_card_for_fresh_agent(handler: A2AHandler) -> None:
    card = await handler.card()

    assert card["agent_id"] == "agent-42"
    assert card["name"] == "Squid"
    assert card["version"] == "0.3.0"
    assert card["capabilities"] == {"chat": True, "a2a": True, "skills": []}
    assert card["trust_score"] is None
    assert card["lightning_address"] is None
    assert card["squidbay"] == SQUIDBAY_LINKS


async def test_card_lists_skills_and_trust(
    agent: MagicMock, skills: SkillStore, ledger: ScanLedger
) -> None:
    await skills.add(Skill(id="weather", name="Weather", description="Forecasts"))
    await ledger.record(NewScan(trigger_type="manual", risk_score=12.5))
    handler = A2AHandler(agent, skills, ledger, lightning_address="squid@getalby.com")

    card = await handler.card()

    assert card["capabilities"]["skills"] == [
        {"id": "weather", "name": "Weather", "description": "Forecasts"}
    ]
    assert card["trust_score"] == 87.5
    assert card["lightning_address"] == "squid@getalby.com"


async def test_agent_card_method(handler: A2AHandler) -> None:
    assert await handler.handle("agent.card") == await handler.card()


# -- chat --------------------------------------------------------------------


async def test_chat_tags_calling_agent(handler: A2AHandler, agent: MagicMock) -> None:
    result = await handler.handle("chat", {"message": "hi", "agent_id": "agent-7"})

    assert result == {"result": "Hello, agent."}
    message, channel, meta = agent.chat.await_args.args
    assert (message, channel) == ("hi", "a2a")
    assert meta.from_agent == "agent-7"


async def test_chat_from_anonymous_agent(handler: A2AHandler, agent: MagicMock) -> None:
    await handler.handle("chat", {"message": "hi"})
    assert agent.chat.await_args.args[2].from_agent is None


@pytest.mark.parametrize("params", [None, {}, {"message": "  "}])
async def test_chat_requires_message(
    handler: A2AHandler, agent: MagicMock, params: dict | None
) -> None:
    assert await handler.handle("chat", params) == {"error": "params.message is required"}
    agent.chat.assert_not_awaited()


# -- other methods -----------------------------------------------------------


async def test_invoke_lists_available_skills(handler: A2AHandler, skills: SkillStore) -> None:
    await skills.add(Skill(id="weather", name="Weather"))

    result = await handler.handle("invoke", {"skill": "weather"})
    assert result == {"error": "Skill invocation coming soon", "available_skills": ["Weather"]}


async def test_unknown_method(handler: A2AHandler) -> None:
    assert await handler.handle("teleport") == {"error": "Unknown method: teleport"}
