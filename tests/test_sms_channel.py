"""Tests for SMSChannel."""

from unittest.mock import AsyncMock, MagicMock

from mantle.notifications.channels import NotificationChannel
from mantle.notifications.sms_channel import SMSChannel


def _client(result: bool = True) -> MagicMock:
    client = MagicMock()
    client.send = AsyncMock(return_value=result)
    return client


def test_sms_channel_satisfies_protocol() -> None:
    channel = SMSChannel(_client(), agent_name="Squid")
    assert isinstance(channel, NotificationChannel)
    assert channel.name == "sms"


async def test_send_prefixes_agent_name() -> None:
    client = _client()
    channel = SMSChannel(client, agent_name="Squid")

    assert await channel.send("+15559876543", "Trust dropped") is True
    client.send.assert_awaited_once_with("+15559876543", "[Squid] Trust dropped")


async def test_send_without_agent_name() -> None:
    client = _client(result=False)
    channel = SMSChannel(client)

    assert await channel.send("+15559876543", "hello") is False
    client.send.assert_awaited_once_with("+15559876543", "hello")
