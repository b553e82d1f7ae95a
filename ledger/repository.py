"""Transaction persistence over a key-value store.

The whole collection lives under one key. Reads never raise: a missing key
and a failed read both come back as an empty list, and ``last_read_status``
tells them apart for diagnostics. Writes raise ``PersistenceError``; the
read-modify-write methods also raise it, without writing, when their read
failed.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from . import timeutil
from .errors import NotFoundError, PersistenceError, StorageError
from .logging_setup import get_logger
from .models import TRANSACTION_FIELDS, Transaction
from .storage import KeyValueStore

TRANSACTIONS_KEY = "transactions"

_logger = get_logger("ledger.repository")


class ReadStatus(enum.Enum):
    OK = "ok"
    MISSING = "missing"
    FAILED = "failed"


def sort_newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Order by date descending, then creation time descending."""
    return sorted(transactions, key=lambda t: (t.date, t.created_at), reverse=True)


class TransactionRepository:
    def __init__(self, store: KeyValueStore, *, key: str = TRANSACTIONS_KEY):
        self.store = store
        self.key = key
        self.last_read_status: ReadStatus | None = None

    async def get_all(self) -> list[Transaction]:
        try:
            raw = await self.store.get(self.key)
        except StorageError:
            _logger.warning("Reading %s failed; treating as empty", self.key, exc_info=True)
            self.last_read_status = ReadStatus.FAILED
            return []

        if raw is None:
            _logger.debug("No %s stored yet", self.key)
            self.last_read_status = ReadStatus.MISSING
            return []

        try:
            if not isinstance(raw, list):
                raise TypeError(f"expected a list, got {type(raw).__name__}")
            transactions = [Transaction.from_dict(item) for item in raw]
        except (KeyError, TypeError, AttributeError):
            _logger.warning("Stored %s are corrupt; treating as empty", self.key, exc_info=True)
            self.last_read_status = ReadStatus.FAILED
            return []

        self.last_read_status = ReadStatus.OK
        return transactions

    async def _write(self, transactions: list[Transaction], action: str) -> None:
        try:
            await self.store.set(self.key, [t.to_dict() for t in transactions])
        except StorageError as exc:
            _logger.error("Failed to %s (%d records)", action, len(transactions))
            raise PersistenceError(f"Failed to {action}") from exc

    async def _read_for_write(self, action: str) -> list[Transaction]:
        transactions = await self.get_all()
        if self.last_read_status is ReadStatus.FAILED:
            # Never overwrite rows that could not be read.
            _logger.error("Refusing to %s: stored %s are unreadable", action, self.key)
            raise PersistenceError(f"Failed to {action}")
        return transactions

    async def get_by_id(self, txn_id: str) -> Transaction | None:
        for txn in await self.get_all():
            if txn.id == txn_id:
                return txn
        return None

    async def save(self, transaction: Transaction) -> None:
        transactions = await self._read_for_write("save transaction")
        for index, existing in enumerate(transactions):
            if existing.id == transaction.id:
                transactions[index] = transaction
                break
        else:
            transactions.insert(0, transaction)
        await self._write(transactions, "save transaction")
        _logger.debug("Transaction saved id=%s", transaction.id)

    async def update(self, txn_id: str, changes: Mapping[str, Any]) -> Transaction:
        unknown = set(changes) - TRANSACTION_FIELDS
        if unknown:
            raise ValueError(f"unknown transaction fields: {', '.join(sorted(unknown))}")

        transactions = await self._read_for_write("update transaction")
        for index, existing in enumerate(transactions):
            if existing.id == txn_id:
                break
        else:
            raise NotFoundError(f"Transaction with ID {txn_id} not found")

        merged = dict(changes)
        merged.pop("updated_at", None)
        if merged.get("id", txn_id) != txn_id:
            raise ValueError("transaction id cannot be changed")
        if merged.get("created_at", existing.created_at) != existing.created_at:
            raise ValueError("created_at cannot be changed")
        for name in ("attachments", "tags"):
            if name in merged:
                merged[name] = tuple(merged[name] or ())
        updated = replace(existing, **merged, updated_at=timeutil.now_iso())
        transactions[index] = updated
        await self._write(transactions, "update transaction")
        _logger.debug("Transaction updated id=%s", txn_id)
        return updated

    async def delete(self, txn_id: str) -> None:
        transactions = await self._read_for_write("delete transaction")
        await self._write([t for t in transactions if t.id != txn_id], "delete transaction")
        _logger.debug("Transaction deleted id=%s", txn_id)

    async def delete_all(self) -> None:
        await self._write([], "delete all transactions")
        _logger.info("All transactions deleted")

    async def count(self) -> int:
        return len(await self.get_all())

    async def save_multiple(self, transactions: Iterable[Transaction]) -> None:
        batch = list(transactions)
        existing = await self._read_for_write("save transactions")
        seen = {t.id for t in existing}
        fresh = []
        for txn in batch:
            if txn.id not in seen:
                seen.add(txn.id)
                fresh.append(txn)
        await self._write(sort_newest_first(fresh + existing), "save transactions")
        _logger.info("Saved %d transactions (%d new)", len(batch), len(fresh))

    async def delete_multiple(self, ids: Iterable[str]) -> None:
        doomed = set(ids)
        transactions = await self._read_for_write("delete transactions")
        await self._write([t for t in transactions if t.id not in doomed], "delete transactions")
        _logger.info("Deleted %d transactions", len(doomed))

    async def replace_all(self, transactions: Iterable[Transaction]) -> None:
        await self._write(list(transactions), "replace transactions")

    async def get_by_date_range(self, start_date: str, end_date: str) -> list[Transaction]:
        return [t for t in await self.get_all() if start_date <= t.date <= end_date]

    async def get_by_category(self, category: str) -> list[Transaction]:
        return [t for t in await self.get_all() if t.category == category]

    async def get_by_type(self, txn_type: str) -> list[Transaction]:
        return [t for t in await self.get_all() if t.type == txn_type]
