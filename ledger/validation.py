"""Composable validation rules.

A rule is a predicate plus a message. ``create_validator`` runs every rule and
collects every failing message, which is what form-facing callers use to show
several errors per field. The entity layer only looks at the first message.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date as dt_date
from decimal import Decimal
from typing import Any

from .categories import get_category_by_key
from .errors import ERROR_MESSAGES
from .logic import TRANSACTION_TYPES

MAX_AMOUNT = 10_000_000
MIN_DESCRIPTION_LENGTH = 3
MAX_DESCRIPTION_LENGTH = 100
MAX_TAGS = 10
MAX_TAG_LENGTH = 20

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class ValidationRule:
    check: Callable[[Any], bool]
    message: str

    def validate(self, value: Any) -> bool:
        try:
            return bool(self.check(value))
        except (TypeError, ValueError, AttributeError):
            return False


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def create_validator(rules: Iterable[ValidationRule]) -> Callable[[Any], ValidationResult]:
    rules = tuple(rules)

    def run(value: Any) -> ValidationResult:
        errors = [rule.message for rule in rules if not rule.validate(value)]
        return ValidationResult(is_valid=not errors, errors=errors)

    return run


def _is_present(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() != ""
    return value is not None


def _as_number(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("booleans are not amounts")
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise TypeError(f"not a number: {type(value).__name__}")


def _is_iso_date(value: Any) -> bool:
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        return False
    dt_date.fromisoformat(value)
    return True


def required(message: str = ERROR_MESSAGES["REQUIRED_FIELD"]) -> ValidationRule:
    return ValidationRule(_is_present, message)


def min_length(minimum: int, message: str | None = None) -> ValidationRule:
    return ValidationRule(
        lambda value: len(value.strip()) >= minimum,
        message or f"Minimum {minimum} characters required",
    )


def max_length(maximum: int, message: str | None = None) -> ValidationRule:
    return ValidationRule(
        lambda value: len(value.strip()) <= maximum,
        message or f"Maximum {maximum} characters allowed",
    )


def positive(message: str = ERROR_MESSAGES["AMOUNT_TOO_SMALL"]) -> ValidationRule:
    return ValidationRule(lambda value: _as_number(value) > 0, message)


def max_amount(maximum: float, message: str | None = None) -> ValidationRule:
    return ValidationRule(
        lambda value: _as_number(value) <= maximum,
        message or f"Amount cannot exceed {maximum}",
    )


def is_number(message: str = ERROR_MESSAGES["INVALID_AMOUNT"]) -> ValidationRule:
    return ValidationRule(lambda value: math.isfinite(_as_number(value)), message)


def is_valid_date(message: str = ERROR_MESSAGES["INVALID_DATE"]) -> ValidationRule:
    return ValidationRule(_is_iso_date, message)


validate_transaction_amount = create_validator(
    [
        required(ERROR_MESSAGES["REQUIRED_FIELD"]),
        is_number(ERROR_MESSAGES["INVALID_AMOUNT"]),
        positive(ERROR_MESSAGES["AMOUNT_TOO_SMALL"]),
        max_amount(MAX_AMOUNT, ERROR_MESSAGES["AMOUNT_TOO_LARGE"]),
    ]
)

validate_transaction_description = create_validator(
    [
        required(ERROR_MESSAGES["REQUIRED_FIELD"]),
        min_length(MIN_DESCRIPTION_LENGTH, ERROR_MESSAGES["DESCRIPTION_TOO_SHORT"]),
        max_length(MAX_DESCRIPTION_LENGTH, ERROR_MESSAGES["DESCRIPTION_TOO_LONG"]),
    ]
)

validate_transaction_date = create_validator(
    [
        required(ERROR_MESSAGES["REQUIRED_FIELD"]),
        is_valid_date(ERROR_MESSAGES["INVALID_DATE"]),
    ]
)


def validate_category(value: Any) -> ValidationResult:
    if not _is_present(value):
        return ValidationResult(False, [ERROR_MESSAGES["REQUIRED_FIELD"]])
    if get_category_by_key(value) is None:
        return ValidationResult(False, [f"Invalid category: {value}"])
    return ValidationResult(True)


def validate_type(value: Any) -> ValidationResult:
    if not _is_present(value):
        return ValidationResult(False, [ERROR_MESSAGES["REQUIRED_FIELD"]])
    if value not in TRANSACTION_TYPES:
        return ValidationResult(False, [ERROR_MESSAGES["INVALID_TYPE"]])
    return ValidationResult(True)


def validate_tags(tags: Iterable[Any]) -> list[str]:
    tags = list(tags)
    errors: list[str] = []
    if len(tags) > MAX_TAGS:
        errors.append(f"Maximum {MAX_TAGS} tags allowed")
    for index, tag in enumerate(tags, start=1):
        if not isinstance(tag, str) or not tag.strip():
            errors.append(f"Tag {index} cannot be empty")
        elif len(tag) > MAX_TAG_LENGTH:
            errors.append(f'Tag "{tag}" is too long (max {MAX_TAG_LENGTH} characters)')
    return errors


def _field_errors(data: Mapping[str, Any], *, partial: bool) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}

    def check(name: str, result: ValidationResult) -> None:
        if not result.is_valid:
            errors[name] = result.errors

    if not partial or "amount" in data:
        check("amount", validate_transaction_amount(data.get("amount")))
    if not partial or "description" in data:
        check("description", validate_transaction_description(data.get("description")))
    if not partial or "category" in data:
        check("category", validate_category(data.get("category")))
    if not partial or "type" in data:
        check("type", validate_type(data.get("type")))
    if data.get("date") is not None or (partial and "date" in data):
        check("date", validate_transaction_date(data.get("date")))
    if data.get("tags"):
        tag_errors = validate_tags(data["tags"])
        if tag_errors:
            errors["tags"] = tag_errors
    return errors


@dataclass(frozen=True)
class TransactionValidationResult:
    is_valid: bool
    errors: dict[str, list[str]]


class TransactionValidator:
    """Field-level validation reporting every failing rule per field."""

    @staticmethod
    def validate_create(data: Mapping[str, Any]) -> TransactionValidationResult:
        errors = _field_errors(data, partial=False)
        return TransactionValidationResult(is_valid=not errors, errors=errors)

    @staticmethod
    def validate_update(data: Mapping[str, Any]) -> TransactionValidationResult:
        errors = _field_errors(data, partial=True)
        return TransactionValidationResult(is_valid=not errors, errors=errors)

    @staticmethod
    def get_field_error(result: TransactionValidationResult, name: str) -> str | None:
        messages = result.errors.get(name)
        return messages[0] if messages else None

    @staticmethod
    def has_field_error(result: TransactionValidationResult, name: str) -> bool:
        return bool(result.errors.get(name))
