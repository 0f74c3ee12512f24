"""
Database module for the Financaar ledger.

This module provides the entity store: schema, migrations and row-level
CRUD for accounts, categories, transactions, debts and settings.

Structure:
- base.py: Base repository with connection management and the atomic unit
- migrations.py: Ordered schema migrations tracked in schema_version
- models.py: Row dataclasses (Account, Category, Transaction, Debt, ...)
- accounts.py / categories.py / transactions.py / debts.py / settings.py:
  one repository per table
- repository.py: Facade composing all sub-repositories
"""

from .accounts import AccountRepository
from .base import BaseRepository, StorageError
from .categories import CategoryRepository
from .debts import DebtRepository
from .migrations import LATEST_VERSION, get_schema_version
from .models import (
    Account,
    Category,
    Debt,
    DebtTotals,
    Setting,
    TotalBalance,
    Transaction,
)
from .repository import FinanceRepository
from .settings import SettingsRepository
from .transactions import TransactionRepository

__all__ = [
    # Base
    "BaseRepository",
    "StorageError",
    "LATEST_VERSION",
    "get_schema_version",
    # Models
    "Account",
    "Category",
    "Debt",
    "DebtTotals",
    "Setting",
    "TotalBalance",
    "Transaction",
    # Repositories
    "AccountRepository",
    "CategoryRepository",
    "DebtRepository",
    "FinanceRepository",
    "SettingsRepository",
    "TransactionRepository",
]
