"""The chat path — persistent memory in, Claude reply out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from mantle.errors import ExternalServiceError
from mantle.llm.prompt import build_system_prompt
from mantle.memory.models import RecordMetadata, Role

if TYPE_CHECKING:
    from mantle.errors import ErrorCategory
    from mantle.llm.client import LanguageModelClient
    from mantle.memory.context import ContextAssembler
    from mantle.memory.store import RecordStore
    from mantle.posts import PostLog
    from mantle.skills import SkillStore

logger = logging.getLogger(__name__)


@dataclass
class ChatReply:
    """What a surface gets back from ``Agent.chat``."""

    reply: str
    input_tokens: int = 0
    output_tokens: int = 0
    error: bool = False
    error_category: ErrorCategory | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"reply": self.reply, "error": True, "category": str(self.error_category)}
        return {
            "reply": self.reply,
            "usage": {
                "input_tokens": self.input_tokens,
                "output_tokens": self.output_tokens,
            },
        }


class Agent:
    """Answers messages from any channel using the shared conversation log.

    The user turn is written before the model is called and stays in the
    log if the call fails. No lock is held while waiting on the model, so
    other channels keep reading and writing.
    """

    def __init__(
        self,
        *,
        name: str,
        records: RecordStore,
        assembler: ContextAssembler,
        skills: SkillStore,
        posts: PostLog,
        llm: LanguageModelClient,
    ) -> None:
        self.name = name
        self._records = records
        self._assembler = assembler
        self._skills = skills
        self._posts = posts
        self._llm = llm

    async def system_prompt(self) -> str:
        return build_system_prompt(self.name, await self._skills.list_skills())

    async def chat(
        self,
        message: str,
        channel: str = "chat",
        metadata: RecordMetadata | dict[str, Any] | None = None,
    ) -> ChatReply:
        """Record ``message`` on ``channel``, ask Claude, record the reply."""
        logger.info("Message on %s: %s", channel, message[:80])
        messages = await self._assembler.assemble(channel, message, metadata)
        system = await self.system_prompt()

        try:
            completion = await self._llm.complete(messages, system=system)
        except ExternalServiceError as exc:
            logger.error(
                "Chat on %s failed (%s)", channel, exc.category, exc_info=exc.__cause__ or exc
            )
            return ChatReply(reply=exc.message, error=True, error_category=exc.category)

        await self._records.append(
            channel,
            Role.ASSISTANT,
            completion.text,
            RecordMetadata(
                model=completion.model,
                input_tokens=completion.input_tokens,
                output_tokens=completion.output_tokens,
                stop_reason=completion.stop_reason,
            ),
        )
        return ChatReply(
            reply=completion.text,
            input_tokens=completion.input_tokens,
            output_tokens=completion.output_tokens,
        )

    async def record_post(
        self,
        channel: str,
        content: str,
        post_id: str | None = None,
        *,
        scheduled: bool = False,
    ) -> int:
        """Remember a published post and add it to the post log.

        Returns the id of the assistant record written to memory.
        """
        fields: dict[str, Any] = {}
        if scheduled:
            fields["scheduled"] = True
        if post_id is not None:
            fields["tweet_id" if channel == "x" else "post_id"] = post_id
        meta = RecordMetadata(**fields) if fields else None
        record_id = await self._records.append(channel, Role.ASSISTANT, content, meta)
        await self._posts.log(channel, content, post_id)
        return record_id
