"""Context assembly — the bounded turn list sent to the model for one request."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mantle.memory.models import Role

if TYPE_CHECKING:
    from mantle.memory.models import MemoryRecord, RecordMetadata
    from mantle.memory.store import RecordStore

logger = logging.getLogger(__name__)

CROSS_CHANNEL_HEADER = "[Context from other channels for reference]"
CROSS_CHANNEL_ACK = "Noted, I have context from other channels."


def format_cross_channel(records: list[MemoryRecord]) -> str:
    """Render records as ``[channel] role: content`` lines under a header."""
    lines = [f"[{r.channel}] {r.role.value}: {r.content}" for r in records]
    return "\n".join([CROSS_CHANNEL_HEADER, *lines])


class ContextAssembler:
    """Builds the message list for a new incoming message.

    Same-channel history is sent verbatim. On any channel other than the
    primary one, the latest turns from other channels are prepended as a
    single user/assistant pair so the model can reference them.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        primary_channel: str = "chat",
        history_limit: int = 30,
        cross_channel_limit: int = 10,
    ) -> None:
        self._store = store
        self.primary_channel = primary_channel
        self.history_limit = history_limit
        self.cross_channel_limit = cross_channel_limit

    async def assemble(
        self,
        channel: str,
        message: str,
        metadata: RecordMetadata | dict[str, Any] | None = None,
    ) -> list[dict[str, str]]:
        """Persist ``message`` as a user turn, then build the context for it.

        The incoming message is always the final turn, even if another
        append lands on the same channel while history is being read.
        """
        record_id = await self._store.append(channel, Role.USER, message, metadata)

        history = await self._store.recent(channel, self.history_limit)
        messages = await self._cross_channel_block(channel)

        messages.extend(r.to_turn() for r in history if r.id != record_id)
        messages.append({"role": Role.USER.value, "content": message})

        logger.debug(
            "Assembled %d turn(s) for channel=%s (history=%d)",
            len(messages),
            channel,
            len(history),
        )
        return messages

    async def _cross_channel_block(self, channel: str) -> list[dict[str, str]]:
        if channel == self.primary_channel:
            return []

        recent = await self._store.recent_across_channels(self.cross_channel_limit)
        others = [r for r in recent if r.channel != channel]
        if not others:
            return []

        return [
            {"role": Role.USER.value, "content": format_cross_channel(others)},
            {"role": Role.ASSISTANT.value, "content": CROSS_CHANNEL_ACK},
        ]
