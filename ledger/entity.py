"""Immutable transaction entity.

Every mutation returns a new ``TransactionEntity`` wrapping a new frozen
``Transaction`` record; unchanged fields are shared with the previous record.
Construction validates fail-fast and raises ``ValidationError`` carrying the
first failing message.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import replace
from decimal import Decimal
from typing import Any

from . import timeutil
from .errors import ValidationError
from .models import CreateTransactionData, Transaction
from .validation import (
    ValidationResult,
    validate_category,
    validate_tags,
    validate_transaction_amount,
    validate_transaction_date,
    validate_transaction_description,
    validate_type,
)

UPDATABLE_FIELDS = frozenset(
    {
        "amount",
        "description",
        "category",
        "date",
        "type",
        "attachments",
        "tags",
        "location",
        "notes",
    }
)


def _raise_first(name: str, result: ValidationResult) -> None:
    if not result.is_valid:
        raise ValidationError(result.errors[0], field=name, errors={name: result.errors})


def _check_tags(tags) -> None:
    errors = validate_tags(tags)
    if errors:
        raise ValidationError(errors[0], field="tags", errors={"tags": errors})


def _normalize_amount(value: Any) -> float | int:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    if isinstance(value, Decimal):
        return float(value)
    return float(str(value).strip())


def _generate_id() -> str:
    return f"txn_{uuid.uuid4().hex}"


class TransactionEntity:
    __slots__ = ("_props",)

    def __init__(self, props: Transaction):
        self._props = props

    @classmethod
    def create(cls, data: CreateTransactionData | Mapping[str, Any]) -> "TransactionEntity":
        if isinstance(data, CreateTransactionData):
            data = data.as_mapping()

        _raise_first("amount", validate_transaction_amount(data.get("amount")))
        _raise_first("description", validate_transaction_description(data.get("description")))
        _raise_first("category", validate_category(data.get("category")))
        _raise_first("type", validate_type(data.get("type")))
        if data.get("date"):
            _raise_first("date", validate_transaction_date(data["date"]))
        tags = tuple(data.get("tags") or ())
        if tags:
            _check_tags(tags)

        now = timeutil.now_iso()
        return cls(
            Transaction(
                id=_generate_id(),
                amount=_normalize_amount(data["amount"]),
                description=data["description"].strip(),
                category=data["category"],
                date=data.get("date") or timeutil.today_iso(),
                type=data["type"],
                attachments=tuple(data.get("attachments") or ()),
                tags=tags,
                location=data.get("location"),
                notes=data.get("notes"),
                created_at=now,
                updated_at=now,
            )
        )

    @classmethod
    def from_record(cls, record: Transaction) -> "TransactionEntity":
        return cls(record)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TransactionEntity":
        return cls(Transaction.from_dict(data))

    # Accessors

    @property
    def record(self) -> Transaction:
        return self._props

    @property
    def id(self) -> str:
        return self._props.id

    @property
    def amount(self) -> float:
        return self._props.amount

    @property
    def description(self) -> str:
        return self._props.description

    @property
    def category(self) -> str:
        return self._props.category

    @property
    def date(self) -> str:
        return self._props.date

    @property
    def type(self) -> str:
        return self._props.type

    @property
    def attachments(self) -> tuple[str, ...]:
        return self._props.attachments

    @property
    def tags(self) -> tuple[str, ...]:
        return self._props.tags

    @property
    def location(self) -> str | None:
        return self._props.location

    @property
    def notes(self) -> str | None:
        return self._props.notes

    @property
    def created_at(self) -> str:
        return self._props.created_at

    @property
    def updated_at(self) -> str:
        return self._props.updated_at

    @property
    def is_expense(self) -> bool:
        return self._props.type == "expense"

    @property
    def is_income(self) -> bool:
        return self._props.type == "income"

    @property
    def has_attachments(self) -> bool:
        return bool(self._props.attachments)

    @property
    def has_tags(self) -> bool:
        return bool(self._props.tags)

    @property
    def has_location(self) -> bool:
        return bool(self._props.location)

    @property
    def has_notes(self) -> bool:
        return bool(self._props.notes)

    # Mutations

    def _with(self, **changes: Any) -> "TransactionEntity":
        return TransactionEntity(replace(self._props, updated_at=timeutil.now_iso(), **changes))

    def update(self, changes: Mapping[str, Any]) -> "TransactionEntity":
        """Return a new entity with ``changes`` applied.

        Only the fields present are validated; ``id``, ``created_at`` and
        ``updated_at`` cannot be set through here.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            name = sorted(unknown)[0]
            raise ValidationError(f"Field cannot be updated: {name}", field=name)

        updates: dict[str, Any] = {}
        if "amount" in changes:
            _raise_first("amount", validate_transaction_amount(changes["amount"]))
            updates["amount"] = _normalize_amount(changes["amount"])
        if "description" in changes:
            _raise_first("description", validate_transaction_description(changes["description"]))
            updates["description"] = changes["description"].strip()
        if "category" in changes:
            _raise_first("category", validate_category(changes["category"]))
            updates["category"] = changes["category"]
        if "type" in changes:
            _raise_first("type", validate_type(changes["type"]))
            updates["type"] = changes["type"]
        if "date" in changes:
            _raise_first("date", validate_transaction_date(changes["date"]))
            updates["date"] = changes["date"]
        if "tags" in changes:
            tags = tuple(changes["tags"] or ())
            _check_tags(tags)
            updates["tags"] = tags
        if "attachments" in changes:
            updates["attachments"] = tuple(changes["attachments"] or ())
        if "location" in changes:
            updates["location"] = changes["location"]
        if "notes" in changes:
            updates["notes"] = changes["notes"]
        return self._with(**updates)

    def categorize(self, category: str) -> "TransactionEntity":
        return self.update({"category": category})

    def update_amount(self, amount: Any) -> "TransactionEntity":
        return self.update({"amount": amount})

    def add_tag(self, tag: str) -> "TransactionEntity":
        if tag in self.tags:
            return self
        tags = self.tags + (tag,)
        _check_tags(tags)
        return self._with(tags=tags)

    def remove_tag(self, tag: str) -> "TransactionEntity":
        if tag not in self.tags:
            return self
        return self._with(tags=tuple(t for t in self.tags if t != tag))

    def add_attachment(self, attachment_id: str) -> "TransactionEntity":
        if attachment_id in self.attachments:
            return self
        return self._with(attachments=self.attachments + (attachment_id,))

    def remove_attachment(self, attachment_id: str) -> "TransactionEntity":
        if attachment_id not in self.attachments:
            return self
        return self._with(attachments=tuple(a for a in self.attachments if a != attachment_id))

    def set_location(self, location: str | None) -> "TransactionEntity":
        return self._with(location=location)

    def set_notes(self, notes: str | None) -> "TransactionEntity":
        return self._with(notes=(notes or "").strip() or None)

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        return self._props.to_dict()

    def clone(self) -> "TransactionEntity":
        return TransactionEntity(self._props)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransactionEntity):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return (
            f"TransactionEntity(id={self.id!r}, type={self.type!r}, "
            f"amount={self.amount!r}, category={self.category!r}, date={self.date!r})"
        )
