import asyncio
import sqlite3

import pytest

from ledger.db import init_db
from ledger.errors import StorageError
from ledger.settings import Settings
from ledger.storage import MemoryKeyValueStore, SqliteKeyValueStore


def make_settings(tmp_path):
    return Settings(data_dir=tmp_path, db_path=tmp_path / "t.sqlite")


def test_init_db_creates_kv_table(tmp_path):
    settings = make_settings(tmp_path)
    init_db(settings)
    init_db(settings)

    conn = sqlite3.connect(str(settings.db_path))
    conn.row_factory = sqlite3.Row
    columns = [row["name"] for row in conn.execute("PRAGMA table_info(kv_store)").fetchall()]
    conn.close()
    assert columns == ["namespace", "key", "value", "created_at", "updated_at"]


def test_sqlite_set_get_remove(tmp_path):
    settings = make_settings(tmp_path)
    init_db(settings)
    kv = SqliteKeyValueStore(settings.db_path)

    async def scenario():
        assert await kv.get("transactions") is None
        await kv.set("transactions", [{"id": "a", "amount": 1.5}])
        await kv.set("transactions", [{"id": "b", "amount": 2}])
        value = await kv.get("transactions")
        await kv.remove("transactions")
        return value, await kv.get("transactions")

    value, after = asyncio.run(scenario())
    assert value == [{"id": "b", "amount": 2}]
    assert after is None


def test_sqlite_namespaces_are_isolated(tmp_path):
    settings = make_settings(tmp_path)
    init_db(settings)
    mine = SqliteKeyValueStore(settings.db_path, namespace="mine")
    theirs = SqliteKeyValueStore(settings.db_path, namespace="theirs")

    async def scenario():
        await mine.set("k", {"owner": "mine"})
        return await theirs.get("k"), await mine.get("k")

    assert asyncio.run(scenario()) == (None, {"owner": "mine"})


def test_sqlite_corrupt_value_raises_storage_error(tmp_path):
    settings = make_settings(tmp_path)
    init_db(settings)
    conn = sqlite3.connect(str(settings.db_path))
    conn.execute(
        "INSERT INTO kv_store(namespace, key, value) VALUES ('pfin', 'transactions', '{not json')"
    )
    conn.commit()
    conn.close()

    kv = SqliteKeyValueStore(settings.db_path)
    with pytest.raises(StorageError):
        asyncio.run(kv.get("transactions"))


def test_sqlite_without_schema_raises_storage_error(tmp_path):
    kv = SqliteKeyValueStore(tmp_path / "empty.sqlite")
    with pytest.raises(StorageError):
        asyncio.run(kv.set("k", 1))


def test_memory_store_copies_values():
    kv = MemoryKeyValueStore({"k": [1]})

    async def scenario():
        value = await kv.get("k")
        value.append(2)
        return await kv.get("k")

    assert asyncio.run(scenario()) == [1]


def test_memory_store_rejects_non_json():
    kv = MemoryKeyValueStore()
    with pytest.raises(StorageError):
        asyncio.run(kv.set("k", {"when": object()}))
    assert kv.keys() == []
