"""Agent-to-agent surface: the agent card and JSON method calls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mantle.memory.models import RecordMetadata

if TYPE_CHECKING:
    from mantle.agent import Agent
    from mantle.scans.ledger import ScanLedger
    from mantle.skills import SkillStore

logger = logging.getLogger(__name__)

A2A_CHANNEL = "a2a"
SQUIDBAY_LINKS = {"marketplace": "https://squidbay.io", "api": "https://api.squidbay.io"}


class A2AHandler:
    """Answers other agents.

    Methods: ``agent.card`` returns the card, ``chat`` talks to the agent on
    the ``a2a`` channel with the caller's id stored as ``from_agent``, and
    ``invoke`` lists the installed skills. Anything else yields an error
    payload rather than an exception.
    """

    def __init__(
        self,
        agent: Agent,
        skills: SkillStore,
        ledger: ScanLedger,
        *,
        agent_id: str = "",
        version: str = "",
        lightning_address: str = "",
    ) -> None:
        self._agent = agent
        self._skills = skills
        self._ledger = ledger
        self.agent_id = agent_id
        self.version = version
        self.lightning_address = lightning_address

    async def card(self) -> dict[str, Any]:
        """Discovery document: identity, skills and current trust score."""
        skills = await self._skills.list_skills()
        latest = await self._ledger.latest()
        return {
            "agent_id": self.agent_id,
            "name": self._agent.name,
            "description": "AI agent powered by Claude",
            "version": self.version,
            "capabilities": {
                "chat": True,
                "a2a": True,
                "skills": [
                    {"id": s.id, "name": s.name, "description": s.description} for s in skills
                ],
            },
            "trust_score": latest.trust_score if latest else None,
            "lightning_address": self.lightning_address or None,
            "squidbay": dict(SQUIDBAY_LINKS),
        }

    async def handle(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        params = params or {}
        if method == "agent.card":
            return await self.card()

        if method == "chat":
            message = params.get("message") or ""
            if not message.strip():
                return {"error": "params.message is required"}
            caller = params.get("agent_id") or None
            logger.info("A2A chat from %s", caller or "unknown agent")
            result = await self._agent.chat(
                message,
                A2A_CHANNEL,
                RecordMetadata(from_agent=caller),
            )
            return {"result": result.reply}

        if method == "invoke":
            skills = await self._skills.list_skills()
            return {
                "error": "Skill invocation coming soon",
                "available_skills": [s.name for s in skills],
            }

        logger.warning("Unknown A2A method: %s", method)
        return {"error": f"Unknown method: {method}"}
