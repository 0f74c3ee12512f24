"""
Financaar - Personal finance ledger

A transactional ledger over local SQLite storage: accounts, categorized
transactions, transfers and debts, with analytics derived from the
transaction log.
"""

from .config import VERSION
from .db import FinanceRepository, StorageError
from .ledger import LedgerEngine, LedgerError, LedgerErrorCode
from .models import AccountKind, CategoryType, DebtDirection, TransactionType
from .services import AnalyticsService

__version__ = VERSION

__all__ = [
    "AccountKind",
    "AnalyticsService",
    "CategoryType",
    "DebtDirection",
    "FinanceRepository",
    "LedgerEngine",
    "LedgerError",
    "LedgerErrorCode",
    "StorageError",
    "TransactionType",
]
