"""Higher-level transaction workflows built on the store and the categorizer."""

from __future__ import annotations

import csv
import json
from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import timedelta
from io import StringIO
from typing import Any

from . import timeutil
from .categorizer import Categorizer
from .errors import ERROR_MESSAGES, LedgerError, NotFoundError
from .formatting import EXPORT_FIELDS, format_for_export
from .logging_setup import get_logger
from .logic import round2
from .models import (
    CreateTransactionData,
    ImportResult,
    Insights,
    SmartAddResult,
    Transaction,
    TransactionFilter,
)
from .store import TransactionStore

SMART_FILTER_PRESETS = ("today", "yesterday", "this_week", "this_month", "large_expenses")

_logger = get_logger("ledger.actions")


class TransactionActions:
    def __init__(self, store: TransactionStore, categorizer: Categorizer | None = None):
        self.store = store
        self.categorizer = categorizer or Categorizer()

    async def add_with_smart_category(
        self,
        *,
        amount: Any,
        description: str,
        type: str,
        **extra: Any,
    ) -> SmartAddResult:
        amount_hint = amount if isinstance(amount, (int, float)) and not isinstance(amount, bool) else None
        category = self.categorizer.suggest_category(description, amount_hint)
        transaction = await self.store.add_transaction(
            {"amount": amount, "description": description, "type": type, "category": category, **extra}
        )
        return SmartAddResult(
            transaction=transaction,
            suggested_category=category,
            confidence=self.categorizer.get_confidence_score(description, category),
        )

    async def add_quick_expense(
        self, amount: float, description: str, category: str | None = None
    ) -> Transaction:
        return await self.store.add_transaction(
            CreateTransactionData(
                amount=amount,
                description=description,
                category=category or self.categorizer.suggest_category(description, amount),
                type="expense",
            )
        )

    async def add_quick_income(self, amount: float, description: str) -> Transaction:
        return await self.store.add_transaction(
            CreateTransactionData(amount=amount, description=description, category="other", type="income")
        )

    async def duplicate_transaction(self, txn_id: str) -> Transaction:
        original = self.store.get_transaction_by_id(txn_id)
        if original is None:
            raise NotFoundError(ERROR_MESSAGES["TRANSACTION_NOT_FOUND"])
        return await self.store.add_transaction(
            CreateTransactionData(
                amount=original.amount,
                description=f"{original.description} (Copy)",
                category=original.category,
                type=original.type,
                tags=list(original.tags),
                notes=original.notes,
            )
        )

    async def update_and_learn(self, txn_id: str, changes: Mapping[str, Any]) -> Transaction:
        original = self.store.get_transaction_by_id(txn_id)
        if original is None:
            raise NotFoundError(ERROR_MESSAGES["TRANSACTION_NOT_FOUND"])
        updated = await self.store.update_transaction(txn_id, changes)
        new_category = changes.get("category")
        if new_category and new_category != original.category:
            self.categorizer.learn_from_transaction(original.description, new_category)
            _logger.info("Learned category %s from %r", new_category, original.description)
        return updated

    def apply_smart_filter(self, preset: str) -> TransactionFilter:
        today = timeutil.today()
        today_str = today.isoformat()
        if preset == "today":
            new_filter = TransactionFilter(date_from=today_str, date_to=today_str)
        elif preset == "yesterday":
            yesterday = (today - timedelta(days=1)).isoformat()
            new_filter = TransactionFilter(date_from=yesterday, date_to=yesterday)
        elif preset == "this_week":
            new_filter = TransactionFilter(
                date_from=timeutil.start_of_week(today).isoformat(), date_to=today_str
            )
        elif preset == "this_month":
            new_filter = TransactionFilter(date_from=today.replace(day=1).isoformat(), date_to=today_str)
        elif preset == "large_expenses":
            expenses = [t for t in self.store.transactions if t.type == "expense"]
            if expenses:
                average = sum(t.amount for t in expenses) / len(expenses)
                new_filter = TransactionFilter(type="expense", min_amount=average * 2)
            else:
                new_filter = TransactionFilter(type="expense")
        else:
            raise ValueError(f"preset must be one of {', '.join(SMART_FILTER_PRESETS)}")
        self.store.set_filter(new_filter)
        return new_filter

    async def bulk_delete(self, ids: list[str]) -> None:
        if not ids:
            return
        await self.store.delete_multiple(ids)

    async def bulk_categorize(self, ids: list[str], category: str) -> None:
        if not ids:
            return
        await self.store.bulk_categorize(ids, category)

    async def import_transactions(
        self, rows: Iterable[CreateTransactionData | Mapping[str, Any]]
    ) -> list[ImportResult]:
        results = []
        for row in rows:
            try:
                transaction = await self.store.add_transaction(row)
            except LedgerError as exc:
                results.append(ImportResult(success=False, error=str(exc), data=row))
            else:
                results.append(ImportResult(success=True, transaction=transaction))
        succeeded = sum(1 for r in results if r.success)
        _logger.info(
            "Import finished: %d total, %d ok, %d failed",
            len(results),
            succeeded,
            len(results) - succeeded,
        )
        return results

    def export_transactions(self, fmt: str = "json") -> str:
        rows = [format_for_export(t) for t in self.store.get_filtered_transactions()]
        if fmt == "json":
            return json.dumps(rows, indent=2, ensure_ascii=False)
        if fmt == "csv":
            output = StringIO()
            writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS)
            writer.writeheader()
            writer.writerows(rows)
            return output.getvalue()
        raise ValueError("format must be json or csv")

    async def clear_all_data(self) -> None:
        await self.store.delete_multiple([t.id for t in self.store.transactions])
        _logger.info("All transaction data cleared")

    def get_insights(self) -> Insights:
        transactions = self.store.transactions
        expenses = [t for t in transactions if t.type == "expense"]
        if not expenses:
            return Insights(
                top_spending_day=None,
                average_daily_spending=0.0,
                most_expensive_category=None,
                spending_pattern="insufficient_data",
                suggestions=["Start tracking your expenses to get insights"],
            )

        daily: dict[str, float] = defaultdict(float)
        for txn in expenses:
            daily[txn.date] += txn.amount
        top_day = max(sorted(daily.items()), key=lambda item: item[1])
        total = sum(daily.values())
        average_daily = round2(total / len(daily))

        top = self.store.get_top_categories(1)
        most_expensive = top[0] if top else None

        week_ago = timeutil.days_ago_iso(7)
        recent = sum(t.amount for t in expenses if t.date >= week_ago)
        pattern = "increasing" if recent > (total - recent) * 0.5 else "stable"

        suggestions = []
        if most_expensive and most_expensive.total_amount > total * 0.4:
            suggestions.append(f"Consider reducing spending on {most_expensive.category}")
        if average_daily > 1000:
            suggestions.append("Try setting daily spending limits")
        if pattern == "increasing":
            suggestions.append("Your spending has increased recently. Review your budget.")

        return Insights(
            top_spending_day=(top_day[0], round2(top_day[1])),
            average_daily_spending=average_daily,
            most_expensive_category=most_expensive,
            spending_pattern=pattern,
            suggestions=suggestions,
        )
