from dataclasses import replace
from datetime import date

import pytest

from ledger.calculator import (
    calculate_category_summary,
    calculate_date_range_summary,
    calculate_period_stats,
    calculate_summary,
    date_period,
    get_budget_progress,
    get_spending_trend,
    get_top_categories,
    group_by_date,
    total_amount,
)
from ledger.models import Transaction

_seq = 0


def txn(amount, category="food", type="expense", date="2026-03-04"):
    global _seq
    _seq += 1
    stamp = f"2026-03-01T09:00:{_seq % 60:02d}.000000+00:00"
    return Transaction(
        id=f"t{_seq}",
        amount=amount,
        description="something",
        category=category,
        date=date,
        type=type,
        created_at=stamp,
        updated_at=stamp,
    )


def test_summary_of_nothing_is_all_zero():
    s = calculate_summary([])
    assert s.total_expenses == 0
    assert s.total_income == 0
    assert s.net_amount == 0
    assert s.transaction_count == 0
    assert s.average_expense == 0
    assert s.average_income == 0


def test_summary_totals_and_averages():
    items = [
        txn(450),
        txn(1200, "shopping"),
        txn(80, "transport"),
        txn(25000, "other", "income"),
    ]
    s = calculate_summary(items)
    assert s.total_expenses == 1730
    assert s.total_income == 25000
    assert s.net_amount == 23270
    assert s.transaction_count == 4
    assert s.average_expense == 576.67
    assert s.average_income == 25000


def test_summary_rounds_decimal_sums():
    s = calculate_summary([txn(0.1), txn(0.2)])
    assert s.total_expenses == 0.3


def test_category_summary_ignores_income_and_sorts():
    items = [
        txn(100, "food"),
        txn(300, "shopping"),
        txn(100, "bills"),
        txn(200, "food"),
        txn(999, "other", "income"),
    ]
    result = calculate_category_summary(items)
    assert [c.category for c in result] == ["food", "shopping", "bills"]
    food = result[0]
    assert food.total_amount == 300
    assert food.transaction_count == 2
    assert food.average_amount == 150
    assert result[2].percentage == pytest.approx(14.29)


def test_category_ties_break_on_key():
    result = calculate_category_summary([txn(50, "transport"), txn(50, "bills"), txn(50, "health")])
    assert [c.category for c in result] == ["bills", "health", "transport"]


def test_category_percentages_sum_to_about_100():
    items = [txn(10, "food"), txn(10, "bills"), txn(10, "health")]
    total = sum(c.percentage for c in calculate_category_summary(items))
    assert total == pytest.approx(100, abs=0.05)


def test_top_categories_limit():
    items = [txn(i * 10, cat) for i, cat in enumerate(["food", "bills", "health", "other"], start=1)]
    assert [c.category for c in get_top_categories(items, limit=2)] == ["other", "health"]


@pytest.mark.parametrize(
    "value,bucket,expected",
    [
        ("2026-03-04", "day", "2026-03-04"),
        ("2026-03-04", "week", "2026-03-01"),  # Wednesday -> Sunday
        ("2026-03-01", "week", "2026-03-01"),
        ("2026-03-07", "week", "2026-03-01"),
        ("2026-03-04", "month", "2026-03"),
    ],
)
def test_date_period(value, bucket, expected):
    assert date_period(value, bucket) == expected


def test_date_range_summary_buckets_ascending():
    items = [
        txn(10, date="2026-03-09"),
        txn(20, date="2026-03-02"),
        txn(500, "other", "income", date="2026-03-03"),
    ]
    weekly = calculate_date_range_summary(items, "week")
    assert [p.period for p in weekly] == ["2026-03-01", "2026-03-08"]
    assert weekly[0].total_expenses == 20
    assert weekly[0].total_income == 500
    assert weekly[0].net_amount == 480
    assert weekly[0].transaction_count == 2

    daily = calculate_date_range_summary(items)
    assert [p.period for p in daily] == ["2026-03-02", "2026-03-03", "2026-03-09"]


def test_date_range_summary_rejects_unknown_bucket():
    with pytest.raises(ValueError, match="bucket"):
        calculate_date_range_summary([], "year")


def test_spending_trend_window():
    items = [
        txn(1, date="2026-02-01"),
        txn(2, date="2026-02-20"),
        txn(3, date="2026-03-02"),
        txn(4, date="2026-03-05"),
    ]
    trend = get_spending_trend(items, days=10, today=date(2026, 3, 2))
    assert [p.period for p in trend] == ["2026-02-20", "2026-03-02"]


def test_budget_at_exact_limit_is_not_over():
    items = [txn(60), txn(40), txn(500, "shopping")]
    progress = get_budget_progress(items, "food", 100, "2026-03-01", "2026-03-31")
    assert progress.spent == 100
    assert progress.remaining == 0
    assert progress.percentage == 100
    assert progress.is_over_budget is False


def test_budget_overspent():
    items = [txn(60), txn(41)]
    progress = get_budget_progress(items, "food", 100, "2026-03-01", "2026-03-31")
    assert progress.spent == 101
    assert progress.remaining == 0
    assert progress.percentage == 101
    assert progress.is_over_budget is True


def test_budget_range_is_inclusive_and_expense_only():
    items = [
        txn(10, date="2026-03-01"),
        txn(10, date="2026-03-31"),
        txn(10, date="2026-04-01"),
        txn(10, type="income"),
    ]
    progress = get_budget_progress(items, "food", 0, "2026-03-01", "2026-03-31")
    assert progress.spent == 20
    assert progress.percentage == 0
    assert progress.is_over_budget is True


def test_total_amount():
    assert total_amount([txn(1.1), txn(2.2, type="income")]) == 3.3


@pytest.mark.parametrize("budget", [float("nan"), float("inf"), -1])
def test_budget_must_be_finite_and_non_negative(budget):
    with pytest.raises(ValueError, match="finite"):
        get_budget_progress([txn(10)], "food", budget, "2026-03-01", "2026-03-31")


def test_period_stats():
    stats = calculate_period_stats([txn(120.5), txn(79.5), txn(1000, type="income")])
    assert (stats.expenses, stats.income, stats.count) == (200, 1000, 3)
    assert calculate_period_stats([]).count == 0


def test_group_by_date_orders_days_and_entries():
    def at(item, second):
        stamp = f"2026-03-05T10:00:{second:02d}.000000+00:00"
        return replace(item, created_at=stamp, updated_at=stamp)

    early = at(txn(100, date="2026-03-04"), 1)
    late = at(txn(300, type="income", date="2026-03-04"), 2)
    older = at(txn(50, date="2026-03-02"), 3)

    groups = group_by_date([early, older, late])
    assert [g.date for g in groups] == ["2026-03-04", "2026-03-02"]
    assert groups[0].transactions == [late, early]
    assert (groups[0].total_expenses, groups[0].total_income, groups[0].net_amount) == (100, 300, 200)
    assert groups[1].net_amount == -50
    assert group_by_date([]) == []
