"""Outbound SMS through the Telnyx messaging API."""

from __future__ import annotations

import logging

import aiohttp

logger = logging.getLogger(__name__)

# Telnyx splits long bodies into segments; ten is the most we send.
MAX_SMS_LENGTH = 1600

TELNYX_API_URL = "https://api.telnyx.com/v2/messages"


def _fit(body: str) -> str:
    if len(body) <= MAX_SMS_LENGTH:
        return body
    return body[: MAX_SMS_LENGTH - 3] + "..."


class SMSClient:
    """Texts a phone number from the configured Telnyx number.

    ``send`` never raises; every failure is logged and reported as False.
    """

    def __init__(self, api_key: str, from_number: str) -> None:
        self._api_key = api_key
        self._from_number = from_number
        self._session: aiohttp.ClientSession | None = None

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._from_number)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send(self, to: str, body: str) -> bool:
        """Text ``body`` to ``to``, truncated to ``MAX_SMS_LENGTH``."""
        if not self.configured:
            logger.error("Cannot text %s: Telnyx key or sender number missing", to)
            return False

        text = _fit(body)
        message = {"from": self._from_number, "to": to, "text": text, "type": "SMS"}
        try:
            async with self._get_session().post(TELNYX_API_URL, json=message) as resp:
                if resp.status != 200:
                    detail = await resp.text()
                    logger.error(
                        "Telnyx rejected SMS to %s (%d): %s", to, resp.status, detail[:200]
                    )
                    return False
        except Exception:
            logger.exception("Telnyx unreachable, SMS to %s not sent", to)
            return False

        logger.info("Texted %s (%d chars)", to, len(text))
        return True
