"""Data models for the cross-channel conversation log."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

METADATA_VERSION = 1


class Role(StrEnum):
    """Who authored a turn."""

    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def normalize(cls, value: str) -> Role:
        """Coerce ``value`` into a Role. Raises ValueError for anything else."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            msg = f"Invalid role {value!r}; expected 'user' or 'assistant'"
            raise ValueError(msg) from None


class RecordMetadata(BaseModel):
    """Structured attachment stored alongside a turn.

    Attributes:
        version: Payload schema version.
        model: Model that produced an assistant turn.
        input_tokens: Prompt tokens billed for an assistant turn.
        output_tokens: Completion tokens billed for an assistant turn.
        stop_reason: Why the model stopped generating.
        post_id: Platform id of a published post (Moltbook etc.).
        tweet_id: Platform id of a published tweet.
        scheduled: True when a post was made by the scheduler.
        from_agent: Sending agent id for agent-to-agent turns.
        from_number: Sender phone number for SMS turns.
        attributes: Free-form nested extras for channel-specific data.
    """

    model_config = ConfigDict(extra="forbid")

    version: int = METADATA_VERSION
    model: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    stop_reason: str | None = None
    post_id: str | None = None
    tweet_id: str | None = None
    scheduled: bool | None = None
    from_agent: str | None = None
    from_number: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def has_token_counts(self) -> bool:
        return self.input_tokens is not None or self.output_tokens is not None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_json(cls, raw: str | None) -> RecordMetadata | None:
        """Parse stored metadata. Malformed payloads degrade to None."""
        if raw is None:
            return None
        try:
            return cls.model_validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring malformed record metadata: %s", raw[:80])
            return None


class MemoryRecord(BaseModel):
    """One immutable conversational turn."""

    id: int
    channel: str
    role: Role
    content: str
    metadata: RecordMetadata | None = None
    created_at: str

    @classmethod
    def from_row(cls, row: tuple) -> MemoryRecord:
        """Build from ``(id, channel, role, content, metadata, created_at)``."""
        return cls(
            id=row[0],
            channel=row[1],
            role=row[2],
            content=row[3],
            metadata=RecordMetadata.from_json(row[4]),
            created_at=row[5],
        )

    def to_turn(self) -> dict[str, str]:
        """Format for the Claude messages API."""
        return {"role": self.role.value, "content": self.content}


class ChannelCount(BaseModel):
    channel: str
    count: int


class MemoryStats(BaseModel):
    """Record totals, overall and per channel."""

    total: int
    channels: list[ChannelCount]


class UsageStats(BaseModel):
    """Cumulative token usage across assistant turns."""

    total_input_tokens: int = 0
    total_output_tokens: int = 0
    assistant_message_count: int = 0
