"""SMS implementation of the NotificationChannel protocol."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mantle.sms.client import SMSClient

logger = logging.getLogger(__name__)


class SMSChannel:
    """Sends owner notifications via SMS (Telnyx).

    Every message is prefixed with ``[agent_name]`` so the owner can tell
    which agent is texting.
    """

    def __init__(self, client: SMSClient, agent_name: str = "") -> None:
        self._client = client
        self._agent_name = agent_name

    @property
    def name(self) -> str:
        return "sms"

    async def send(self, user_id: str, message: str) -> bool:
        """Send a plain text SMS."""
        body = f"[{self._agent_name}] {message}" if self._agent_name else message
        return await self._client.send(user_id, body)
