"""
Account and category models for the personal finance ledger.

Defines account kinds, category types, and the default category set
seeded into a fresh database.
"""

from enum import Enum


class AccountKind(str, Enum):
    """
    Kind of money store.

    - CASH: physical wallet, envelope, piggy bank
    - CARD: bank card; may carry a display color and the last four digits
    """

    CASH = "cash"
    CARD = "card"


class CategoryType(str, Enum):
    """Whether a category classifies income or expense transactions."""

    INCOME = "income"
    EXPENSE = "expense"


DEFAULT_CARD_COLOR = "#4CAF50"

# (name, icon, color) seeded on first run
DEFAULT_INCOME_CATEGORIES = [
    ("Salary", "wallet", "#4CAF50"),
    ("Business", "briefcase", "#2196F3"),
    ("Investment", "cash", "#FF9800"),
    ("Gift", "gift", "#E91E63"),
    ("Other Income", "add-circle", "#9C27B0"),
]

DEFAULT_EXPENSE_CATEGORIES = [
    ("Food & Dining", "restaurant", "#FF5722"),
    ("Shopping", "bag", "#795548"),
    ("Transportation", "car", "#607D8B"),
    ("Bills & Utilities", "flash", "#FF9800"),
    ("Entertainment", "film", "#9C27B0"),
    ("Healthcare", "heart", "#F44336"),
    ("Education", "book", "#2196F3"),
    ("Travel", "airplane", "#00BCD4"),
    ("Home", "home", "#4CAF50"),
    ("Other Expense", "remove-circle", "#9E9E9E"),
]

DEFAULT_CATEGORIES = [
    (name, CategoryType.INCOME, icon, color)
    for name, icon, color in DEFAULT_INCOME_CATEGORIES
] + [
    (name, CategoryType.EXPENSE, icon, color)
    for name, icon, color in DEFAULT_EXPENSE_CATEGORIES
]

# Icon tokens written by early releases that the icon set no longer ships
LEGACY_ICON_MAP = {
    "zap": "flash",
    "coffee": "cafe",
    "minus-circle": "remove-circle",
    "shopping-cart": "bag",
    "map-pin": "location",
    "dollar-sign": "cash",
    "plus-circle": "add-circle",
}
