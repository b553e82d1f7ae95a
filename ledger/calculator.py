from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date as dt_date, timedelta
from decimal import Decimal

from . import timeutil
from .logic import round2, to_decimal
from .models import (
    BudgetProgress,
    CategorySummary,
    DateRangeSummary,
    PeriodStats,
    Transaction,
    TransactionGroup,
    TransactionSummary,
)

BUCKETS = ("day", "week", "month")

_ZERO = Decimal("0")


def _total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((to_decimal(t.amount) for t in transactions), _ZERO)


def _average(total: Decimal, count: int) -> float:
    if count == 0:
        return 0.0
    return round2(total / count)


def _percentage(value: Decimal, total: Decimal) -> float:
    if total == 0:
        return 0.0
    return round2(value / total * 100)


def total_amount(transactions: Iterable[Transaction]) -> float:
    return round2(_total(transactions))


def calculate_summary(transactions: Sequence[Transaction]) -> TransactionSummary:
    expenses = [t for t in transactions if t.type == "expense"]
    income = [t for t in transactions if t.type == "income"]
    total_expenses = _total(expenses)
    total_income = _total(income)
    return TransactionSummary(
        total_expenses=round2(total_expenses),
        total_income=round2(total_income),
        net_amount=round2(total_income - total_expenses),
        transaction_count=len(transactions),
        average_expense=_average(total_expenses, len(expenses)),
        average_income=_average(total_income, len(income)),
    )


def calculate_category_summary(transactions: Iterable[Transaction]) -> list[CategorySummary]:
    groups: dict[str, list[Transaction]] = defaultdict(list)
    for txn in transactions:
        if txn.type == "expense":
            groups[txn.category].append(txn)

    total_expenses = sum((_total(group) for group in groups.values()), _ZERO)
    summaries = []
    for category, group in groups.items():
        total = _total(group)
        summaries.append(
            CategorySummary(
                category=category,
                total_amount=round2(total),
                transaction_count=len(group),
                percentage=_percentage(total, total_expenses),
                average_amount=_average(total, len(group)),
            )
        )
    summaries.sort(key=lambda s: s.category)
    summaries.sort(key=lambda s: s.total_amount, reverse=True)
    return summaries


def date_period(date_str: str, bucket: str) -> str:
    if bucket == "day":
        return date_str
    parsed = dt_date.fromisoformat(date_str)
    if bucket == "week":
        return timeutil.start_of_week(parsed).isoformat()
    if bucket == "month":
        return f"{parsed.year:04d}-{parsed.month:02d}"
    raise ValueError(f"bucket must be one of {', '.join(BUCKETS)}")


def calculate_date_range_summary(
    transactions: Iterable[Transaction], bucket: str = "day"
) -> list[DateRangeSummary]:
    if bucket not in BUCKETS:
        raise ValueError(f"bucket must be one of {', '.join(BUCKETS)}")

    groups: dict[str, list[Transaction]] = defaultdict(list)
    for txn in transactions:
        groups[date_period(txn.date, bucket)].append(txn)

    result = []
    for period in sorted(groups):
        summary = calculate_summary(groups[period])
        result.append(
            DateRangeSummary(
                period=period,
                total_expenses=summary.total_expenses,
                total_income=summary.total_income,
                net_amount=summary.net_amount,
                transaction_count=summary.transaction_count,
            )
        )
    return result


def get_top_categories(transactions: Iterable[Transaction], limit: int = 5) -> list[CategorySummary]:
    return calculate_category_summary(transactions)[:limit]


def get_spending_trend(
    transactions: Iterable[Transaction], days: int = 30, today: dt_date | None = None
) -> list[DateRangeSummary]:
    end = today or timeutil.today()
    start = (end - timedelta(days=days)).isoformat()
    end_iso = end.isoformat()
    window = [t for t in transactions if start <= t.date <= end_iso]
    return calculate_date_range_summary(window, "day")


def get_budget_progress(
    transactions: Iterable[Transaction],
    category: str,
    budget_amount: float,
    start_date: str,
    end_date: str,
) -> BudgetProgress:
    budget = to_decimal(budget_amount)
    if not budget.is_finite() or budget < 0:
        raise ValueError("budget must be a finite, non-negative amount")
    spent = _total(
        t
        for t in transactions
        if t.type == "expense" and t.category == category and start_date <= t.date <= end_date
    )
    return BudgetProgress(
        spent=round2(spent),
        remaining=round2(max(_ZERO, budget - spent)),
        percentage=_percentage(spent, budget),
        is_over_budget=spent > budget,
    )


def calculate_period_stats(transactions: Sequence[Transaction]) -> PeriodStats:
    summary = calculate_summary(transactions)
    return PeriodStats(
        expenses=summary.total_expenses,
        income=summary.total_income,
        count=summary.transaction_count,
    )


def group_by_date(transactions: Iterable[Transaction]) -> list[TransactionGroup]:
    """Group by ``date``, newest date first; newest-created first within a day."""
    groups: dict[str, list[Transaction]] = defaultdict(list)
    for txn in transactions:
        groups[txn.date].append(txn)

    result = []
    for day in sorted(groups, reverse=True):
        members = sorted(groups[day], key=lambda t: t.created_at, reverse=True)
        summary = calculate_summary(members)
        result.append(
            TransactionGroup(
                date=day,
                transactions=members,
                total_expenses=summary.total_expenses,
                total_income=summary.total_income,
                net_amount=summary.net_amount,
            )
        )
    return result
