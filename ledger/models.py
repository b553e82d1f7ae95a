from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float
    description: str
    category: str
    date: str
    type: str
    created_at: str
    updated_at: str
    attachments: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    location: str | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "description": self.description,
            "category": self.category,
            "date": self.date,
            "type": self.type,
            "attachments": list(self.attachments),
            "tags": list(self.tags),
            "location": self.location,
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Transaction":
        """Build a record from its persisted shape; raises KeyError on missing fields."""
        return cls(
            id=data["id"],
            amount=data["amount"],
            description=data["description"],
            category=data["category"],
            date=data["date"],
            type=data["type"],
            created_at=data["created_at"],
            updated_at=data["updated_at"],
            attachments=tuple(data.get("attachments") or ()),
            tags=tuple(data.get("tags") or ()),
            location=data.get("location"),
            notes=data.get("notes"),
        )


TRANSACTION_FIELDS = frozenset(f.name for f in fields(Transaction))


@dataclass
class CreateTransactionData:
    amount: Any
    description: str
    category: str
    type: str
    date: str | None = None
    attachments: list[str] | None = None
    tags: list[str] | None = None
    location: str | None = None
    notes: str | None = None

    def as_mapping(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class TransactionFilter:
    type: str | None = None
    category: str | None = None
    categories: tuple[str, ...] | None = None
    date_from: str | None = None
    date_to: str | None = None
    min_amount: float | None = None
    max_amount: float | None = None
    tags: tuple[str, ...] | None = None
    search_term: str | None = None

    def matches(self, txn: Transaction) -> bool:
        if self.type is not None and txn.type != self.type:
            return False
        if self.category is not None and txn.category != self.category:
            return False
        if self.categories is not None and txn.category not in self.categories:
            return False
        if self.date_from is not None and txn.date < self.date_from:
            return False
        if self.date_to is not None and txn.date > self.date_to:
            return False
        if self.min_amount is not None and txn.amount < self.min_amount:
            return False
        if self.max_amount is not None and txn.amount > self.max_amount:
            return False
        if self.tags and not any(tag in txn.tags for tag in self.tags):
            return False
        if self.search_term:
            haystack = f"{txn.description} {txn.notes or ''}".lower()
            if self.search_term.lower() not in haystack:
                return False
        return True

    def apply(self, transactions: Iterable[Transaction]) -> list[Transaction]:
        return [txn for txn in transactions if self.matches(txn)]


@dataclass(frozen=True)
class TransactionSummary:
    total_expenses: float
    total_income: float
    net_amount: float
    transaction_count: int
    average_expense: float
    average_income: float


@dataclass(frozen=True)
class CategorySummary:
    category: str
    total_amount: float
    transaction_count: int
    percentage: float
    average_amount: float


@dataclass(frozen=True)
class DateRangeSummary:
    period: str
    total_expenses: float
    total_income: float
    net_amount: float
    transaction_count: int


@dataclass(frozen=True)
class BudgetProgress:
    spent: float
    remaining: float
    percentage: float
    is_over_budget: bool


@dataclass(frozen=True)
class CategoryOption:
    category: str
    confidence: float


@dataclass(frozen=True)
class ImportResult:
    success: bool
    transaction: Transaction | None = None
    error: str | None = None
    data: Any = None


@dataclass(frozen=True)
class SmartAddResult:
    transaction: Transaction
    suggested_category: str
    confidence: float


@dataclass(frozen=True)
class Insights:
    top_spending_day: tuple[str, float] | None
    average_daily_spending: float
    most_expensive_category: CategorySummary | None
    spending_pattern: str
    suggestions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TransactionGroup:
    date: str
    transactions: list[Transaction]
    total_expenses: float
    total_income: float
    net_amount: float


@dataclass(frozen=True)
class PeriodStats:
    expenses: float
    income: float
    count: int


@dataclass(frozen=True)
class QuickStats:
    today: PeriodStats
    this_month: PeriodStats
    total: PeriodStats
