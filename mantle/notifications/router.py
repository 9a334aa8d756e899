"""NotificationRouter — delivers owner alerts through registered channels."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mantle.notifications.channels import NotificationChannel

logger = logging.getLogger(__name__)


class NotificationRouter:
    """Picks a channel for each outbound alert and delivers it.

    Delivery is fire-and-forget: ``send`` reports success as a bool and
    never raises, whatever the channel does.
    """

    def __init__(self, owner_id: str = "") -> None:
        self.owner_id = owner_id
        self._channels: dict[str, NotificationChannel] = {}
        self._default = ""

    def register(self, channel: NotificationChannel, *, default: bool = False) -> None:
        """Add ``channel``; ``default=True`` also makes it the fallback."""
        if channel.name in self._channels:
            msg = f"Channel '{channel.name}' is already registered"
            raise ValueError(msg)
        self._channels[channel.name] = channel
        if default:
            self._default = channel.name
        logger.info("Registered %s channel (default=%s)", channel.name, default)

    @property
    def channels(self) -> tuple[str, ...]:
        return tuple(self._channels)

    @property
    def default(self) -> str:
        return self._default

    def channel(self, name: str) -> NotificationChannel | None:
        return self._channels.get(name)

    def _pick(self, name: str | None) -> NotificationChannel | None:
        # explicit name, then the default, then a lone channel
        if name:
            return self._channels.get(name)
        if self._default:
            return self._channels[self._default]
        if len(self._channels) == 1:
            return next(iter(self._channels.values()))
        return None

    async def send(self, recipient: str, text: str, *, channel: str | None = None) -> bool:
        """Deliver ``text`` to ``recipient``. Returns False if nothing was sent."""
        target = self._pick(channel)
        if target is None:
            logger.warning("No channel for alert (requested=%s): %s", channel, text[:80])
            return False
        try:
            return await target.send(recipient, text)
        except Exception:
            logger.exception("Alert delivery via %s failed", target.name)
            return False

    async def notify_owner(self, text: str, *, channel: str | None = None) -> bool:
        """Send ``text`` to the configured owner, if there is one."""
        if not self.owner_id:
            logger.warning("No owner configured, alert dropped: %s", text[:80])
            return False
        return await self.send(self.owner_id, text, channel=channel)
