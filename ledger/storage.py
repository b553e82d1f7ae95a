"""Namespaced key-value persistence primitive.

Values are JSON-serializable. Backends raise ``StorageError`` when a read or
write cannot complete; a missing key reads as ``None``.
"""

from __future__ import annotations

import asyncio
import copy
import json
import sqlite3
from pathlib import Path
from typing import Any, Protocol

from .db import connect
from .errors import StorageError
from .logging_setup import get_logger

_logger = get_logger("ledger.storage")


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any | None:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...

    async def remove(self, key: str) -> None:
        ...


class MemoryKeyValueStore:
    """Process-local store; values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        try:
            # Reject anything a durable backend could not store either.
            json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"value for {key!r} is not JSON-serializable") from exc
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SqliteKeyValueStore:
    def __init__(self, db_path: str | Path, *, namespace: str = "pfin"):
        self.db_path = Path(db_path)
        self.namespace = namespace

    def _get_sync(self, key: str) -> Any | None:
        with connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE namespace = ? AND key = ?",
                (self.namespace, key),
            ).fetchone()
        if row is None:
            return None
        return json.loads(row["value"])

    def _set_sync(self, key: str, payload: str) -> None:
        with connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO kv_store(namespace, key, value)
                VALUES (?, ?, ?)
                ON CONFLICT(namespace, key) DO UPDATE SET value = excluded.value
                """,
                (self.namespace, key, payload),
            )

    def _remove_sync(self, key: str) -> None:
        with connect(self.db_path) as conn:
            conn.execute(
                "DELETE FROM kv_store WHERE namespace = ? AND key = ?",
                (self.namespace, key),
            )

    async def get(self, key: str) -> Any | None:
        try:
            return await asyncio.to_thread(self._get_sync, key)
        except (sqlite3.Error, json.JSONDecodeError) as exc:
            _logger.error("Failed to read key %s from %s", key, self.db_path)
            raise StorageError(f"failed to read {key!r}") from exc

    async def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"value for {key!r} is not JSON-serializable") from exc
        try:
            await asyncio.to_thread(self._set_sync, key, payload)
        except sqlite3.Error as exc:
            _logger.error("Failed to write key %s to %s", key, self.db_path)
            raise StorageError(f"failed to write {key!r}") from exc

    async def remove(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._remove_sync, key)
        except sqlite3.Error as exc:
            _logger.error("Failed to remove key %s from %s", key, self.db_path)
            raise StorageError(f"failed to remove {key!r}") from exc
