from datetime import date

import pytest

from ledger import timeutil
from ledger.calculator import calculate_summary, group_by_date
from ledger.formatting import (
    EXPORT_FIELDS,
    format_amount,
    format_currency,
    format_description,
    format_for_display,
    format_for_export,
    format_summary,
    format_tags,
    format_transaction_group,
)
from ledger.models import Transaction

STAMP = "2026-03-04T09:30:00.000000+00:00"


def txn(amount=450, type="expense", date="2026-03-04", description="Lunch at cafe", **extra):
    return Transaction(
        id=extra.pop("id", "t1"),
        amount=amount,
        description=description,
        category=extra.pop("category", "food"),
        date=date,
        type=type,
        created_at=STAMP,
        updated_at=STAMP,
        **extra,
    )


@pytest.fixture
def on_march_4(monkeypatch):
    monkeypatch.setattr(timeutil, "today", lambda: date(2026, 3, 4))


@pytest.mark.parametrize(
    "amount, expected",
    [
        (25000, "₹25,000"),
        (125000, "₹1,25,000"),
        (12345678, "₹1,23,45,678"),
        (999, "₹999"),
        (12.5, "₹12.5"),
        (0.005, "₹0.01"),
        (0, "₹0"),
        (-450, "-₹450"),
    ],
)
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


def test_format_amount_sign_follows_type():
    assert format_amount(txn(450)) == "-₹450"
    assert format_amount(txn(25000, "income")) == "+₹25,000"
    assert format_amount(txn(5), symbol="$") == "-$5"


def test_format_description_truncates_long_text():
    assert format_description(txn()) == "Lunch at cafe"
    long_text = "x" * 60
    shortened = format_description(txn(description=long_text))
    assert shortened == "x" * 47 + "..."
    assert len(shortened) == 50
    assert format_description(txn(description="exactly ten"), max_length=11) == "exactly ten"


def test_format_tags():
    assert format_tags(txn(tags=("work", "team"))) == "#work #team"
    assert format_tags(txn()) == ""


def test_format_for_display(on_march_4):
    shown = format_for_display(txn(category="transport", tags=("work",)))
    assert shown == {
        "id": "t1",
        "display_amount": "-₹450",
        "display_date": "Today",
        "display_category": {"label": "Travel", "icon": "🚛"},
        "display_description": "Lunch at cafe",
        "display_tags": "#work",
        "is_expense": True,
        "is_income": False,
    }
    assert format_for_display(txn(date="2026-03-03"))["display_date"] == "Yesterday"
    assert format_for_display(txn(date="2026-02-27"))["display_date"] == "Feb 27, 2026"
    assert format_for_display(txn(category="unknown"))["display_category"]["label"] == "Other"


def test_format_transaction_group(on_march_4):
    rows = [
        txn(450, id="a"),
        txn(1200, id="b", date="2026-03-03"),
        txn(1000, "income", id="c", date="2026-03-03", category="other"),
    ]
    today, yesterday = (format_transaction_group(g) for g in group_by_date(rows))

    assert today["display_date"] == "Today"
    assert today["net_amount"] == "-₹450"
    assert today["count"] == 1
    assert today["transactions"][0]["id"] == "a"

    assert yesterday["date"] == "2026-03-03"
    assert yesterday["display_date"] == "Yesterday"
    assert yesterday["total_expenses"] == "₹1,200"
    assert yesterday["total_income"] == "₹1,000"
    assert yesterday["net_amount"] == "-₹200"
    assert yesterday["count"] == 2


def test_format_transaction_group_positive_net():
    (group,) = group_by_date([txn(25000, "income"), txn(450, id="t2")])
    assert format_transaction_group(group)["net_amount"] == "+₹24,550"


@pytest.mark.parametrize(
    "rows, label, count_text",
    [
        ([txn(100), txn(300, "income", id="t2")], "Profit", "2 transactions"),
        ([txn(100)], "Loss", "1 transaction"),
        ([], "Break Even", "0 transactions"),
    ],
)
def test_format_summary(rows, label, count_text):
    shown = format_summary(calculate_summary(rows))
    assert shown["net_amount_label"] == label
    assert shown["transaction_count"] == count_text
    assert shown["is_profit"] is (label == "Profit")
    assert shown["is_loss"] is (label == "Loss")


def test_format_summary_shows_absolute_net():
    shown = format_summary(calculate_summary([txn(125000)]))
    assert shown["total_expenses"] == "₹1,25,000"
    assert shown["total_income"] == "₹0"
    assert shown["net_amount"] == "₹1,25,000"


def test_format_for_export():
    row = format_for_export(txn(tags=("work", "team"), notes="paid by card"))
    assert tuple(row) == EXPORT_FIELDS
    assert row["category"] == "Food"
    assert row["tags"] == "work, team"
    assert row["notes"] == "paid by card"
    assert row["created"] == "March 4, 2026"
    assert format_for_export(txn())["notes"] == ""
