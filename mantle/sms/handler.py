"""Inbound SMS processing: text in, agent reply texted back."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mantle.memory.models import RecordMetadata

if TYPE_CHECKING:
    from mantle.agent import Agent
    from mantle.sms.client import SMSClient

logger = logging.getLogger(__name__)

SMS_CHANNEL = "sms"
FALLBACK_REPLY = "Something went wrong. Check the logs."


class InboundSMSHandler:
    """Runs an inbound text through ``Agent.chat`` on the ``sms`` channel.

    The sender's number is stored on the user turn. When ``owner_number``
    is set, texts from any other number are ignored. The reply is texted
    back when a client is available and always returned, so a webhook can
    answer inline instead.
    """

    def __init__(
        self,
        agent: Agent,
        client: SMSClient | None = None,
        *,
        owner_number: str = "",
    ) -> None:
        self._agent = agent
        self._client = client
        self._owner_number = owner_number

    async def handle(self, from_number: str, body: str) -> str | None:
        """Answer one inbound text. Returns the reply, or None if ignored."""
        if self._owner_number and from_number != self._owner_number:
            logger.warning("SMS rejected: from=%s is not the owner", from_number)
            return None

        if not body or not body.strip():
            logger.debug("SMS ignored: empty body from %s", from_number)
            return None

        logger.info("SMS from %s: %s", from_number, body[:80])
        try:
            result = await self._agent.chat(
                body, SMS_CHANNEL, RecordMetadata(from_number=from_number)
            )
            reply = result.reply
        except Exception:
            logger.exception("Error processing SMS from %s", from_number)
            reply = FALLBACK_REPLY

        if self._client is not None:
            await self._client.send(from_number, reply)
        return reply
