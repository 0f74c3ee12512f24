from .account import (
    DEFAULT_CATEGORIES,
    DEFAULT_CARD_COLOR,
    LEGACY_ICON_MAP,
    AccountKind,
    CategoryType,
)
from .transaction import (
    BALANCE_EFFECT,
    DEBT_TRANSACTION_TYPE,
    OUTFLOW_TYPES,
    DebtDirection,
    DebtStatus,
    TransactionStatus,
    TransactionType,
)

__all__ = [
    "AccountKind",
    "CategoryType",
    "DEFAULT_CATEGORIES",
    "DEFAULT_CARD_COLOR",
    "LEGACY_ICON_MAP",
    "BALANCE_EFFECT",
    "DEBT_TRANSACTION_TYPE",
    "OUTFLOW_TYPES",
    "DebtDirection",
    "DebtStatus",
    "TransactionStatus",
    "TransactionType",
]
