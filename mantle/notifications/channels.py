"""NotificationChannel protocol — interface for owner notification delivery."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class NotificationChannel(Protocol):
    """Protocol that all notification channels must satisfy.

    Delivery is fire-and-forget: implementations log their own failures
    and report them only through the boolean return value.
    """

    @property
    def name(self) -> str:
        """Unique channel identifier (e.g. 'sms')."""
        ...

    async def send(self, user_id: str, message: str) -> bool:
        """Send a plain text message. Returns True on success."""
        ...
