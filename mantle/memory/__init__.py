"""Cross-channel conversation memory — storage, context assembly, usage."""

from mantle.memory.context import ContextAssembler
from mantle.memory.models import MemoryRecord, MemoryStats, RecordMetadata, Role, UsageStats
from mantle.memory.store import RecordStore
from mantle.memory.usage import UsageAccountant

__all__ = [
    "ContextAssembler",
    "MemoryRecord",
    "MemoryStats",
    "RecordMetadata",
    "RecordStore",
    "Role",
    "UsageAccountant",
    "UsageStats",
]
