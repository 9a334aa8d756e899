"""Tests for ContextAssembler — same-channel history plus cross-channel block."""

import pytest

from mantle.memory.context import (
    CROSS_CHANNEL_ACK,
    CROSS_CHANNEL_HEADER,
    ContextAssembler,
)
from mantle.memory.store import RecordStore


@pytest.fixture
def assembler(records: RecordStore) -> ContextAssembler:
    return ContextAssembler(
        records, primary_channel="chat", history_limit=30, cross_channel_limit=10
    )


# -- persistence -------------------------------------------------------------


async def test_incoming_message_persisted_before_assembly(
    assembler: ContextAssembler, records: RecordStore
) -> None:
    await assembler.assemble("chat", "first", {"from_number": "+1555"})

    [record] = await records.recent("chat", 10)
    assert record.content == "first"
    assert record.role.value == "user"
    assert record.metadata.from_number == "+1555"


# -- primary channel ---------------------------------------------------------


async def test_primary_channel_has_no_cross_block(
    assembler: ContextAssembler, records: RecordStore
) -> None:
    await records.append("sms", "user", "sms message")
    await records.append("chat", "user", "hi")
    await records.append("chat", "assistant", "hello")

    messages = await assembler.assemble("chat", "how are you?")

    assert messages == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "user", "content": "how are you?"},
    ]


async def test_incoming_message_not_duplicated(assembler: ContextAssembler) -> None:
    messages = await assembler.assemble("chat", "only message")
    assert messages == [{"role": "user", "content": "only message"}]


# -- cross-channel block -----------------------------------------------------


async def test_cross_channel_block_prepended(
    assembler: ContextAssembler, records: RecordStore
) -> None:
    await records.append("chat", "user", "my dog is Rex")
    await records.append("chat", "assistant", "Nice name!")
    await records.append("sms", "user", "earlier sms")
    await records.append("sms", "assistant", "sms reply")

    messages = await assembler.assemble("sms", "what's my dog called?")

    assert messages[0] == {
        "role": "user",
        "content": (
            f"{CROSS_CHANNEL_HEADER}\n"
            "[chat] user: my dog is Rex\n"
            "[chat] assistant: Nice name!"
        ),
    }
    assert messages[1] == {"role": "assistant", "content": CROSS_CHANNEL_ACK}
    assert messages[2:] == [
        {"role": "user", "content": "earlier sms"},
        {"role": "assistant", "content": "sms reply"},
        {"role": "user", "content": "what's my dog called?"},
    ]


async def test_cross_block_never_contains_target_channel(
    assembler: ContextAssembler, records: RecordStore
) -> None:
    for i in range(6):
        await records.append("x", "assistant", f"tweet {i}")
        await records.append("moltbook", "assistant", f"post {i}")

    messages = await assembler.assemble("x", "new tweet idea?")

    block = messages[0]["content"]
    assert "[x]" not in block
    assert "[moltbook] assistant: post 5" in block


async def test_no_cross_block_when_only_target_channel(
    assembler: ContextAssembler, records: RecordStore
) -> None:
    await records.append("sms", "user", "hello")
    await records.append("sms", "assistant", "hi there")

    messages = await assembler.assemble("sms", "again")

    assert all(CROSS_CHANNEL_HEADER not in m["content"] for m in messages)
    assert messages[-1] == {"role": "user", "content": "again"}
    assert len(messages) == 3


async def test_cross_block_bounded_by_limit(records: RecordStore) -> None:
    assembler = ContextAssembler(records, cross_channel_limit=3)
    for i in range(5):
        await records.append("chat", "user", f"c{i}")

    messages = await assembler.assemble("a2a", "ping")

    # The window of 3 includes the just-appended a2a message, leaving 2 others.
    lines = messages[0]["content"].splitlines()[1:]
    assert lines == ["[chat] user: c3", "[chat] user: c4"]


# -- history window ----------------------------------------------------------


async def test_history_window_limits_same_channel(records: RecordStore) -> None:
    assembler = ContextAssembler(records, history_limit=4)
    for i in range(10):
        await records.append("chat", "user", f"m{i}")

    messages = await assembler.assemble("chat", "latest")

    assert [m["content"] for m in messages] == ["m7", "m8", "m9", "latest"]


async def test_incoming_is_last_even_after_concurrent_append(
    records: RecordStore, monkeypatch
) -> None:
    assembler = ContextAssembler(records)
    original_recent = records.recent

    async def recent_with_race(channel: str, limit: int = 50):
        await records.append(channel, "assistant", "late reply to someone else")
        return await original_recent(channel, limit)

    monkeypatch.setattr(records, "recent", recent_with_race)

    messages = await assembler.assemble("chat", "mine")

    assert messages[-1] == {"role": "user", "content": "mine"}
    assert {"role": "assistant", "content": "late reply to someone else"} in messages
    assert sum(1 for m in messages if m["content"] == "mine") == 1
