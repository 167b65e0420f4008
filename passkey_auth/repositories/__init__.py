"""Record store implementations."""

from passkey_auth.repositories.memory import MemoryRecordStore
from passkey_auth.repositories.sql import SqlRecordStore
from passkey_auth.repositories.store import (
    CounterAdvance,
    DuplicateRecordError,
    RecordStore,
)

__all__ = [
    "CounterAdvance",
    "DuplicateRecordError",
    "MemoryRecordStore",
    "RecordStore",
    "SqlRecordStore",
]
