"""Token usage derived from assistant turns in the conversation log."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mantle.memory.models import Role, UsageStats

if TYPE_CHECKING:
    from mantle.memory.store import RecordStore


class UsageAccountant:
    """Read-only aggregation over the most recent ``window`` records."""

    def __init__(self, store: RecordStore, *, window: int = 1000) -> None:
        self._store = store
        self.window = window

    async def usage(self) -> UsageStats:
        """Sum input/output tokens across assistant turns that carry counts."""
        stats = UsageStats()
        for record in await self._store.recent_across_channels(self.window):
            meta = record.metadata
            if record.role is not Role.ASSISTANT or meta is None or not meta.has_token_counts:
                continue
            stats.total_input_tokens += meta.input_tokens or 0
            stats.total_output_tokens += meta.output_tokens or 0
            stats.assistant_message_count += 1
        return stats
