"""Async Claude API client with failure categorisation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import anthropic

from mantle.errors import ErrorCategory, ExternalServiceError

logger = logging.getLogger(__name__)

FAILURE_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.AUTH_FAILURE: (
        "My Claude API key is invalid. Please check ANTHROPIC_API_KEY in your environment."
    ),
    ErrorCategory.RATE_LIMITED: (
        "I'm being rate-limited by the Claude API. Try again in a moment."
    ),
    ErrorCategory.OVERLOADED: (
        "The Claude API is temporarily overloaded. Try again in a few seconds."
    ),
    ErrorCategory.UNKNOWN: "Something went wrong talking to Claude. Check the logs.",
}

_OVERLOADED_STATUS = 529


@dataclass
class Completion:
    """A successful model reply."""

    text: str
    input_tokens: int
    output_tokens: int
    stop_reason: str | None
    model: str


def categorize(exc: anthropic.APIError) -> ErrorCategory:
    """Map an SDK error onto a stable failure category."""
    if isinstance(exc, anthropic.AuthenticationError):
        return ErrorCategory.AUTH_FAILURE
    if isinstance(exc, anthropic.RateLimitError):
        return ErrorCategory.RATE_LIMITED
    if getattr(exc, "status_code", None) == _OVERLOADED_STATUS:
        return ErrorCategory.OVERLOADED
    return ErrorCategory.UNKNOWN


class LanguageModelClient:
    """Single-shot completions — no tools, no streaming."""

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        max_tokens: int = 4096,
        timeout_seconds: float = 120.0,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._timeout = timeout_seconds
        self._client: anthropic.AsyncAnthropic | None = None

    def _get_client(self) -> anthropic.AsyncAnthropic:
        """Lazily initialize the Anthropic client."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key, timeout=self._timeout
            )
        return self._client

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        system: str,
        max_tokens: int | None = None,
    ) -> Completion:
        """Send ``messages`` and return the text reply with token counts.

        Raises:
            ExternalServiceError: categorised failure; the SDK error is
                chained as ``__cause__``.
        """
        client = self._get_client()
        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=max_tokens or self.max_tokens,
                system=system,
                messages=messages,
            )
        except anthropic.APIError as exc:
            category = categorize(exc)
            logger.error("Claude API error (%s): %s", category, exc)
            raise ExternalServiceError(category, FAILURE_MESSAGES[category]) from exc

        text = "\n".join(block.text for block in response.content if block.type == "text")
        return Completion(
            text=text,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            stop_reason=response.stop_reason,
            model=response.model,
        )
