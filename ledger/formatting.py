"""Plain-data renderings of transactions for export and display."""

from decimal import ROUND_HALF_UP
from typing import Any

from .categories import get_category_icon, get_category_label
from .logic import to_decimal
from .models import Transaction, TransactionGroup, TransactionSummary
from .timeutil import format_long, relative_date

CURRENCY_SYMBOL = "₹"
DESCRIPTION_PREVIEW_LENGTH = 50

EXPORT_FIELDS = (
    "id",
    "date",
    "type",
    "category",
    "description",
    "amount",
    "tags",
    "notes",
    "created",
    "updated",
)


def _group_digits(digits: str) -> str:
    # Indian grouping: last three digits, then pairs (1,25,000)
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    return ",".join([head, *pairs, tail])


def format_currency(amount, symbol: str = CURRENCY_SYMBOL) -> str:
    """``25000`` -> ``₹25,000``; up to two decimals, trailing zeros dropped."""
    value = to_decimal(amount).quantize(to_decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, cents = f"{abs(value):.2f}".split(".")
    cents = cents.rstrip("0")
    return f"{sign}{symbol}{_group_digits(whole)}{'.' + cents if cents else ''}"


def format_amount(txn: Transaction, symbol: str = CURRENCY_SYMBOL) -> str:
    prefix = "-" if txn.type == "expense" else "+"
    return prefix + format_currency(txn.amount, symbol)


def format_description(txn: Transaction, max_length: int = DESCRIPTION_PREVIEW_LENGTH) -> str:
    if len(txn.description) <= max_length:
        return txn.description
    return txn.description[: max_length - 3] + "..."


def format_tags(txn: Transaction) -> str:
    return " ".join(f"#{tag}" for tag in txn.tags)


def format_for_export(txn: Transaction) -> dict[str, Any]:
    """Flatten a transaction into plain strings and numbers."""
    return {
        "id": txn.id,
        "date": txn.date,
        "type": txn.type,
        "category": get_category_label(txn.category),
        "description": txn.description,
        "amount": txn.amount,
        "tags": ", ".join(txn.tags),
        "notes": txn.notes or "",
        "created": format_long(txn.created_at),
        "updated": format_long(txn.updated_at),
    }


def format_for_display(txn: Transaction) -> dict[str, Any]:
    return {
        "id": txn.id,
        "display_amount": format_amount(txn),
        "display_date": relative_date(txn.date),
        "display_category": {
            "label": get_category_label(txn.category),
            "icon": get_category_icon(txn.category),
        },
        "display_description": format_description(txn),
        "display_tags": format_tags(txn),
        "is_expense": txn.type == "expense",
        "is_income": txn.type == "income",
    }


def format_transaction_group(group: TransactionGroup) -> dict[str, Any]:
    net = to_decimal(group.net_amount)
    return {
        "date": group.date,
        "display_date": relative_date(group.date),
        "total_expenses": format_currency(group.total_expenses),
        "total_income": format_currency(group.total_income),
        "net_amount": ("+" if net >= 0 else "-") + format_currency(abs(net)),
        "count": len(group.transactions),
        "transactions": [format_for_display(t) for t in group.transactions],
    }


def format_summary(summary: TransactionSummary) -> dict[str, Any]:
    is_profit = summary.net_amount > 0
    is_loss = summary.net_amount < 0
    count = summary.transaction_count
    return {
        "total_expenses": format_currency(summary.total_expenses),
        "total_income": format_currency(summary.total_income),
        "net_amount": format_currency(abs(summary.net_amount)),
        "net_amount_label": "Profit" if is_profit else "Loss" if is_loss else "Break Even",
        "transaction_count": f"{count} transaction{'' if count == 1 else 's'}",
        "is_profit": is_profit,
        "is_loss": is_loss,
    }
