"""Owner notification delivery."""

from mantle.notifications.channels import NotificationChannel
from mantle.notifications.router import NotificationRouter
from mantle.notifications.sms_channel import SMSChannel

__all__ = [
    "NotificationChannel",
    "NotificationRouter",
    "SMSChannel",
]
