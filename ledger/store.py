"""In-memory owner of the transaction collection.

Mutating actions are serialized through one ``asyncio.Lock`` so only one write
to the collection is ever in flight. Each action applies its change to memory
first, then writes the whole in-memory list through the repository; if that
write fails for any reason the list is restored to the snapshot taken before
the change. Validation and lookup failures are raised before memory is
touched.

Until one load has succeeded, a store whose load could not read storage
refuses to write, so unread rows are never replaced.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import timedelta
from typing import Any

from . import calculator, timeutil
from .entity import TransactionEntity
from .errors import ERROR_MESSAGES, LedgerError, NotFoundError, PersistenceError
from .logging_setup import get_logger
from .models import (
    BudgetProgress,
    CategorySummary,
    CreateTransactionData,
    DateRangeSummary,
    QuickStats,
    Transaction,
    TransactionFilter,
    TransactionGroup,
    TransactionSummary,
)
from .repository import ReadStatus, TransactionRepository, sort_newest_first

_logger = get_logger("ledger.store")


def sample_transactions() -> list[Transaction]:
    """The fixed first-run data set: two entries today, three yesterday."""
    today = timeutil.today()
    today_str = today.isoformat()
    yesterday_str = (today - timedelta(days=1)).isoformat()
    fixtures = [
        CreateTransactionData(450, "Lunch at cafe", "food", "expense", date=today_str),
        CreateTransactionData(1200, "New shirt", "shopping", "expense", date=today_str),
        CreateTransactionData(80, "Metro ticket", "transport", "expense", date=yesterday_str),
        CreateTransactionData(25000, "Salary", "other", "income", date=yesterday_str),
        CreateTransactionData(180, "Movie tickets", "entertainment", "expense", date=yesterday_str),
    ]
    return [TransactionEntity.create(data).record for data in fixtures]


class TransactionStore:
    def __init__(self, repository: TransactionRepository, *, seed_sample_data: bool = True):
        self.repository = repository
        self.seed_sample_data = seed_sample_data
        self._transactions: list[Transaction] = []
        self.filter = TransactionFilter()
        self.is_loading = False
        self.is_refreshing = False
        self.error: str | None = None
        self._loaded = False
        self._unread = False
        self._write_lock = asyncio.Lock()

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @asynccontextmanager
    async def _action(self):
        async with self._write_lock:
            self.is_loading = True
            self.error = None
            try:
                yield
            except LedgerError as exc:
                if self.error is None:
                    self.error = str(exc)
                raise
            finally:
                self.is_loading = False

    async def _commit(self, new_list: list[Transaction], failure_message: str) -> None:
        if self._unread:
            self.error = failure_message
            raise PersistenceError("Stored transactions have not been loaded")
        snapshot = self._transactions
        self._transactions = new_list
        try:
            await self.repository.replace_all(new_list)
        except BaseException as exc:
            self._transactions = snapshot
            if isinstance(exc, Exception):
                self.error = failure_message
            raise

    # CRUD actions

    async def add_transaction(self, data: CreateTransactionData | Mapping[str, Any]) -> Transaction:
        async with self._action():
            transaction = TransactionEntity.create(data).record
            _logger.info("Adding transaction id=%s type=%s", transaction.id, transaction.type)
            await self._commit(
                [transaction, *self._transactions], ERROR_MESSAGES["TRANSACTION_ADD_FAILED"]
            )
            _logger.info("Transaction added id=%s", transaction.id)
            return transaction

    async def update_transaction(self, txn_id: str, changes: Mapping[str, Any]) -> Transaction:
        async with self._action():
            existing = self.get_transaction_by_id(txn_id)
            if existing is None:
                raise NotFoundError(ERROR_MESSAGES["TRANSACTION_NOT_FOUND"])
            updated = TransactionEntity.from_record(existing).update(changes).record
            _logger.info("Updating transaction id=%s fields=%s", txn_id, sorted(changes))
            await self._commit(
                [updated if t.id == txn_id else t for t in self._transactions],
                ERROR_MESSAGES["TRANSACTION_UPDATE_FAILED"],
            )
            return updated

    async def delete_transaction(self, txn_id: str) -> None:
        async with self._action():
            _logger.info("Deleting transaction id=%s", txn_id)
            await self._commit(
                [t for t in self._transactions if t.id != txn_id],
                ERROR_MESSAGES["TRANSACTION_DELETE_FAILED"],
            )

    async def delete_multiple(self, ids: Iterable[str]) -> None:
        doomed = set(ids)
        async with self._action():
            _logger.info("Bulk deleting %d transactions", len(doomed))
            await self._commit(
                [t for t in self._transactions if t.id not in doomed],
                ERROR_MESSAGES["TRANSACTION_DELETE_FAILED"],
            )

    async def bulk_categorize(self, ids: Iterable[str], category: str) -> None:
        targets = set(ids)
        async with self._action():
            _logger.info("Bulk categorizing %d transactions as %s", len(targets), category)
            updated = [
                TransactionEntity.from_record(t).categorize(category).record if t.id in targets else t
                for t in self._transactions
            ]
            await self._commit(updated, ERROR_MESSAGES["TRANSACTION_UPDATE_FAILED"])

    async def load_transactions(self) -> None:
        """Load from storage, seeding sample data on first run. Never raises.

        A failed read keeps whatever is already in memory and only sets
        ``error``.
        """
        try:
            async with self._action():
                saved = await self.repository.get_all()
                status = self.repository.last_read_status

                if status is ReadStatus.FAILED:
                    _logger.error("Stored transactions could not be read")
                    self._unread = not self._loaded
                    self.error = ERROR_MESSAGES["TRANSACTION_LOAD_FAILED"]
                    return

                self._unread = False
                if status is ReadStatus.MISSING and self.seed_sample_data:
                    samples = sample_transactions()
                    await self._commit(
                        sort_newest_first(samples), ERROR_MESSAGES["TRANSACTION_LOAD_FAILED"]
                    )
                    self._loaded = True
                    _logger.info("Created %d sample transactions for new user", len(samples))
                    return

                self._transactions = sort_newest_first(saved)
                self._loaded = True
                _logger.info("Loaded %d transactions", len(saved))
        except Exception:
            _logger.exception("Failed to load transactions")
            if self.error is None:
                self.error = ERROR_MESSAGES["TRANSACTION_LOAD_FAILED"]

    async def refresh_transactions(self) -> None:
        self.is_refreshing = True
        try:
            await self.load_transactions()
        finally:
            self.is_refreshing = False

    # Filter state

    def set_filter(self, new_filter: TransactionFilter) -> None:
        _logger.debug("Setting transaction filter %s", new_filter)
        self.filter = new_filter

    def clear_filter(self) -> None:
        self.filter = TransactionFilter()

    def search_transactions(self, search_term: str) -> None:
        self.filter = replace(self.filter, search_term=search_term.strip() or None)

    def clear_error(self) -> None:
        self.error = None

    # Selectors

    def get_filtered_transactions(self) -> list[Transaction]:
        return self.filter.apply(self._transactions)

    def get_transaction_by_id(self, txn_id: str) -> Transaction | None:
        for txn in self._transactions:
            if txn.id == txn_id:
                return txn
        return None

    def get_summary(self) -> TransactionSummary:
        return calculator.calculate_summary(self.get_filtered_transactions())

    def get_today_summary(self) -> TransactionSummary:
        return calculator.calculate_summary(self.get_transactions_by_date(timeutil.today_iso()))

    def get_this_month_summary(self) -> TransactionSummary:
        start, end = timeutil.month_range()
        return calculator.calculate_summary(self.get_transactions_by_date_range(start, end))

    def get_grouped_transactions_by_date(self) -> list[TransactionGroup]:
        return calculator.group_by_date(self.get_filtered_transactions())

    def get_quick_stats(self) -> QuickStats:
        start, end = timeutil.month_range()
        today = self.get_transactions_by_date(timeutil.today_iso())
        month = self.get_transactions_by_date_range(start, end)
        return QuickStats(
            today=calculator.calculate_period_stats(today),
            this_month=calculator.calculate_period_stats(month),
            total=calculator.calculate_period_stats(self._transactions),
        )

    def get_top_categories(self, limit: int = 5) -> list[CategorySummary]:
        return calculator.get_top_categories(self._transactions, limit)

    def get_category_total(self, category: str) -> float:
        return calculator.total_amount(t for t in self._transactions if t.category == category)

    def get_transactions_by_date(self, date_str: str) -> list[Transaction]:
        return [t for t in self._transactions if t.date == date_str]

    def get_transactions_by_date_range(self, start_date: str, end_date: str) -> list[Transaction]:
        return [t for t in self._transactions if start_date <= t.date <= end_date]

    def get_recent_transactions(self, limit: int = 10) -> list[Transaction]:
        return self.get_filtered_transactions()[:limit]

    def get_largest_transactions(self, limit: int = 5) -> list[Transaction]:
        return sorted(self.get_filtered_transactions(), key=lambda t: t.amount, reverse=True)[:limit]

    def get_date_range_summary(self, bucket: str = "day") -> list[DateRangeSummary]:
        return calculator.calculate_date_range_summary(self.get_filtered_transactions(), bucket)

    def get_spending_trend(self, days: int = 30) -> list[DateRangeSummary]:
        return calculator.get_spending_trend(self._transactions, days)

    def get_budget_progress(
        self, category: str, budget_amount: float, start_date: str, end_date: str
    ) -> BudgetProgress:
        return calculator.get_budget_progress(
            self._transactions, category, budget_amount, start_date, end_date
        )
