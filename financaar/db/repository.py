"""
Main repository facade for the Financaar entity store.

Composes the per-table repositories over one database file. The facade is
constructed explicitly at application startup and handed to the ledger
engine and analytics service.
"""

import logging
from pathlib import Path
from typing import Optional

from .accounts import AccountRepository
from .base import BaseRepository
from .categories import CategoryRepository
from .debts import DebtRepository
from .models import Account, TotalBalance
from .settings import SettingsRepository
from .transactions import TransactionRepository

logger = logging.getLogger(__name__)


class FinanceRepository(BaseRepository):
    """
    Entity store for accounts, categories, transactions, debts and settings.

    Example:
        repo = FinanceRepository(Path("data/financaar.db"))
        with repo.atomic() as conn:
            repo.accounts.set_balance(account_id, 50.0, conn=conn)
            repo.transactions.insert(..., conn=conn)
    """

    def __init__(self, db_path: Optional[Path] = None, seed_categories: bool = True):
        """
        Open the store, apply pending migrations and seed default categories.

        Args:
            db_path: Path to the SQLite database file
            seed_categories: Insert the default categories into an empty table
        """
        super().__init__(db_path, init_schema=True)

        self.accounts = AccountRepository(self.db_path)
        self.categories = CategoryRepository(self.db_path)
        self.transactions = TransactionRepository(self.db_path)
        self.debts = DebtRepository(self.db_path)
        self.settings = SettingsRepository(self.db_path)

        if seed_categories:
            self.categories.seed_defaults()

        logger.info(f"FinanceRepository initialized with db_path: {self.db_path}")

    # =========================================================================
    # Read surface shortcuts
    # =========================================================================

    def list_accounts(self) -> list[Account]:
        return self.accounts.list_accounts()

    def get_total_balance(self) -> TotalBalance:
        return self.accounts.get_total_balance()

    # =========================================================================
    # Maintenance
    # =========================================================================

    def clear_all_data(self):
        """Remove all user data. Categories are kept."""
        with self.atomic() as conn:
            self.debts.clear(conn=conn)
            self.transactions.clear(conn=conn)
            self.accounts.clear(conn=conn)
            self.settings.clear(conn=conn)
        logger.info("Cleared all data")
