from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

TRANSACTION_TYPES = ("expense", "income")

_CENT = Decimal("0.01")


def validate_type(s: str) -> str:
    if s not in TRANSACTION_TYPES:
        raise ValueError("type must be income or expense")
    return s


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value) -> float:
    """Round half-up to two decimals and return a plain float."""
    return float(to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))


def parse_amount(s: str) -> float:
    if not isinstance(s, str) or not s.strip():
        raise ValueError("amount required")
    try:
        d = Decimal(s.strip())
    except InvalidOperation as e:
        raise ValueError("amount invalid") from e
    if not d.is_finite():
        raise ValueError("amount invalid")
    if d <= 0:
        raise ValueError("amount must be positive")
    if d.quantize(_CENT, rounding=ROUND_HALF_UP) != d:
        raise ValueError("amount supports up to 2 decimals")
    return float(d)


def parse_tags(s: str | None) -> list[str]:
    if not s:
        return []
    return [tag.strip() for tag in s.split(",") if tag.strip()]
