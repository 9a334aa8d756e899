"""Error types shared across the storage, scan and chat paths."""

from __future__ import annotations

from enum import StrEnum


class StorageInitError(RuntimeError):
    """Raised when the durable store cannot be opened at startup."""


class QuotaExceededError(Exception):
    """Raised when a manual scan is requested after the free allowance is used."""

    def __init__(self, used: int, allowed: int) -> None:
        self.used = used
        self.allowed = allowed
        super().__init__(f"Free scan limit reached ({used}/{allowed} used)")

    def to_dict(self) -> dict[str, object]:
        return {
            "error": "Free scan limit reached",
            "scans_used": self.used,
            "scans_free": self.allowed,
        }


class ErrorCategory(StrEnum):
    """Why an external service call failed."""

    AUTH_FAILURE = "auth_failure"
    RATE_LIMITED = "rate_limited"
    OVERLOADED = "overloaded"
    UNKNOWN = "unknown"


class ExternalServiceError(Exception):
    """A language model or scanner call failed.

    ``message`` is safe to show to the user. The underlying SDK or HTTP
    error is chained as ``__cause__`` for operational logging.
    """

    def __init__(self, category: ErrorCategory, message: str) -> None:
        self.category = category
        self.message = message
        super().__init__(message)
