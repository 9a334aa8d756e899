"""Tests for UsageAccountant."""

from mantle.memory.models import UsageStats
from mantle.memory.store import RecordStore
from mantle.memory.usage import UsageAccountant


async def test_empty_store(records: RecordStore) -> None:
    stats = await UsageAccountant(records).usage()
    assert stats == UsageStats()


async def test_sums_assistant_token_counts(records: RecordStore) -> None:
    await records.append("chat", "user", "hi")
    await records.append("chat", "assistant", "hello", {"input_tokens": 10, "output_tokens": 4})
    await records.append("sms", "user", "yo")
    await records.append("sms", "assistant", "hey", {"input_tokens": 20, "output_tokens": 6})

    stats = await UsageAccountant(records).usage()

    assert stats.model_dump() == {
        "total_input_tokens": 30,
        "total_output_tokens": 10,
        "assistant_message_count": 2,
    }


async def test_missing_field_counts_as_zero(records: RecordStore) -> None:
    await records.append("chat", "assistant", "partial", {"output_tokens": 7})

    stats = await UsageAccountant(records).usage()

    assert stats.total_input_tokens == 0
    assert stats.total_output_tokens == 7
    assert stats.assistant_message_count == 1


async def test_ignores_user_turns_and_posts(records: RecordStore) -> None:
    await records.append("chat", "user", "hi", {"input_tokens": 99})
    await records.append("x", "assistant", "a tweet", {"tweet_id": "123"})
    await records.append("chat", "assistant", "no metadata")

    stats = await UsageAccountant(records).usage()

    assert stats == UsageStats()


async def test_malformed_metadata_contributes_nothing(records: RecordStore) -> None:
    await records.append("chat", "assistant", "good", {"input_tokens": 5, "output_tokens": 1})
    record_id = await records.append("chat", "assistant", "bad")
    conn = await records._db.connect()
    await conn.execute("UPDATE memory SET metadata = ? WHERE id = ?", ("{broken", record_id))
    await conn.commit()
    await conn.close()

    stats = await UsageAccountant(records).usage()

    assert stats.total_input_tokens == 5
    assert stats.assistant_message_count == 1


async def test_window_bounds_scan(records: RecordStore) -> None:
    await records.append("chat", "assistant", "old", {"input_tokens": 100, "output_tokens": 100})
    await records.append("chat", "assistant", "new", {"input_tokens": 1, "output_tokens": 2})

    stats = await UsageAccountant(records, window=1).usage()

    assert stats.total_input_tokens == 1
    assert stats.total_output_tokens == 2
