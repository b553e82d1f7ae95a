"""Keyword-based category suggestions.

Each ``Categorizer`` owns its keyword table. Learning from confirmed
transactions only grows that instance's table; ``save``/``load`` move it to
and from a key-value store.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .categories import CATEGORIES
from .errors import StorageError
from .logging_setup import get_logger
from .models import CategoryOption
from .storage import KeyValueStore

KEYWORDS_KEY = "category_keywords"

LOW_AMOUNT_THRESHOLD = 100
HIGH_AMOUNT_THRESHOLD = 10_000
BASELINE_CONFIDENCE = 0.1
EXACT_MATCH_BOOST = 0.3
MAX_CONFIDENCE = 0.95

DEFAULT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "food": (
        "restaurant", "cafe", "coffee", "lunch", "dinner", "breakfast",
        "food", "pizza", "burger", "kitchen", "meal", "snack",
        "grocery", "supermarket", "market", "fresh", "fruits",
        "vegetables", "meat", "dairy", "bread",
    ),
    "transport": (
        "uber", "ola", "taxi", "bus", "metro", "train", "flight",
        "fuel", "petrol", "diesel", "gas", "parking", "toll",
        "auto", "rickshaw", "cab", "transport", "travel",
    ),
    "shopping": (
        "amazon", "flipkart", "myntra", "shopping", "mall", "store",
        "clothes", "fashion", "shoes", "bag", "electronics",
        "mobile", "laptop", "gadget", "purchase", "buy",
    ),
    "entertainment": (
        "movie", "cinema", "theatre", "netflix", "spotify", "game",
        "entertainment", "fun", "party", "club", "bar", "concert",
        "music", "book", "magazine", "subscription",
    ),
    "bills": (
        "electricity", "water", "gas", "internet", "mobile", "phone",
        "bill", "utility", "maintenance", "rent", "loan", "emi",
        "insurance", "premium", "subscription",
    ),
    "health": (
        "hospital", "doctor", "medicine", "pharmacy", "medical",
        "health", "clinic", "dentist", "checkup", "treatment",
        "therapy", "gym", "fitness", "yoga", "wellness",
    ),
}

_logger = get_logger("ledger.categorizer")


def _normalize(text: str) -> str:
    return text.lower().strip()


def _is_whole_word(text: str, keyword: str) -> bool:
    return re.search(rf"(?:^| ){re.escape(keyword)}(?: |$)", text) is not None


def extract_keywords(description: str) -> list[str]:
    cleaned = re.sub(r"[^\w\s]", " ", description.lower())
    return [word for word in cleaned.split() if len(word) > 2]


class Categorizer:
    def __init__(self, keywords: dict[str, Iterable[str]] | None = None):
        source = DEFAULT_KEYWORDS if keywords is None else keywords
        self._keywords: dict[str, list[str]] = {
            category: list(words) for category, words in source.items()
        }

    def keywords(self, category: str) -> list[str]:
        return list(self._keywords.get(category, ()))

    def snapshot(self) -> dict[str, list[str]]:
        return {category: list(words) for category, words in self._keywords.items()}

    def reset(self) -> None:
        self._keywords = {category: list(words) for category, words in DEFAULT_KEYWORDS.items()}

    def suggest_category(self, description: str, amount: float | None = None) -> str:
        text = _normalize(description)
        for category, words in self._keywords.items():
            if any(word in text for word in words):
                return category

        if amount:
            if amount < LOW_AMOUNT_THRESHOLD:
                return "food"
            if amount > HIGH_AMOUNT_THRESHOLD:
                return "shopping"
        return "other"

    def get_confidence_score(self, description: str, category: str) -> float:
        words = self._keywords.get(category, [])
        if not words:
            return BASELINE_CONFIDENCE

        text = _normalize(description)
        matching = [word for word in words if word in text]
        if not matching:
            return BASELINE_CONFIDENCE

        confidence = len(matching) / len(words)
        if any(_is_whole_word(text, word) for word in words):
            confidence += EXACT_MATCH_BOOST
        return min(MAX_CONFIDENCE, confidence)

    def get_category_options(self, description: str, limit: int = 3) -> list[CategoryOption]:
        scored = [
            CategoryOption(category.key, self.get_confidence_score(description, category.key))
            for category in CATEGORIES
        ]
        scored.sort(key=lambda option: option.confidence, reverse=True)
        return [option for option in scored if option.confidence > BASELINE_CONFIDENCE][:limit]

    def add_custom_keywords(self, category: str, keywords: Iterable[str]) -> None:
        words = self._keywords.setdefault(category, [])
        for keyword in keywords:
            normalized = _normalize(keyword)
            if normalized and normalized not in words:
                words.append(normalized)

    def learn_from_transaction(self, description: str, category: str) -> None:
        self.add_custom_keywords(category, extract_keywords(description))

    async def save(self, store: KeyValueStore) -> None:
        await store.set(KEYWORDS_KEY, self.snapshot())

    async def load(self, store: KeyValueStore) -> bool:
        """Replace the table with a persisted one; keep the current table if none is usable."""
        try:
            raw = await store.get(KEYWORDS_KEY)
        except StorageError:
            _logger.warning("Could not read learned keywords; keeping defaults", exc_info=True)
            return False
        if not isinstance(raw, dict):
            return False
        self._keywords = {
            str(category): [str(word) for word in words]
            for category, words in raw.items()
            if isinstance(words, list)
        }
        return True
