from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from ledger import timeutil
from ledger.errors import StorageError
from ledger.storage import MemoryKeyValueStore


class FlakyStore(MemoryKeyValueStore):
    """In-memory store whose reads and writes can be made to fail on demand."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_reads = False
        self.fail_writes = False
        self.writes = 0

    async def get(self, key):
        if self.fail_reads:
            raise StorageError("disk on fire")
        return await super().get(key)

    async def set(self, key, value):
        if self.fail_writes:
            raise StorageError("disk full")
        self.writes += 1
        await super().set(key, value)

    async def remove(self, key):
        if self.fail_writes:
            raise StorageError("disk full")
        await super().remove(key)


@pytest.fixture
def kv():
    return FlakyStore()


@pytest.fixture
def clock(monkeypatch):
    """Make ``now_iso`` advance one second per call from a fixed instant."""
    base = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    ticks = count()

    def fake_now():
        return (base + timedelta(seconds=next(ticks))).isoformat(timespec="microseconds")

    monkeypatch.setattr(timeutil, "now_iso", fake_now)
    return fake_now
