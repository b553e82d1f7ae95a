from dataclasses import dataclass


@dataclass(frozen=True)
class Category:
    key: str
    label: str
    icon: str
    color: str


CATEGORIES: tuple[Category, ...] = (
    Category("food", "Food", "🍔", "#FF6B6B"),
    Category("transport", "Travel", "🚛", "#4ECDC4"),
    Category("shopping", "Shopping", "🛍️", "#45B7D1"),
    Category("entertainment", "Entertainment", "🎬", "#96CEB4"),
    Category("bills", "Bills", "💡", "#FFEAA7"),
    Category("health", "Healthcare", "🏥", "#DDA0DD"),
    Category("other", "Other", "💰", "#95A5A6"),
)

FALLBACK_CATEGORY = CATEGORIES[-1]

_BY_KEY = {category.key: category for category in CATEGORIES}


def category_keys() -> list[str]:
    return [category.key for category in CATEGORIES]


def get_category_by_key(key) -> Category | None:
    if not isinstance(key, str):
        return None
    return _BY_KEY.get(key)


def get_category_label(key: str) -> str:
    return (get_category_by_key(key) or FALLBACK_CATEGORY).label


def get_category_icon(key: str) -> str:
    return (get_category_by_key(key) or FALLBACK_CATEGORY).icon


def get_category_color(key: str) -> str:
    return (get_category_by_key(key) or FALLBACK_CATEGORY).color
