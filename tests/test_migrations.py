"""Tests for schema versioning and upgrades of legacy databases."""

import sqlite3

from financaar.db import LATEST_VERSION, FinanceRepository, get_schema_version
from financaar.db.migrations import V1_BASE_TABLES
from financaar.models import DebtStatus, TransactionType


def _connect(path):
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def _columns(conn, table):
    return {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}


def _build_legacy_database(path):
    """A database written before version tracking, with some data in it."""
    conn = _connect(path)
    for statement in V1_BASE_TABLES:
        conn.execute(statement)
    conn.execute(
        "INSERT INTO accounts (name, balance, type) VALUES ('Wallet', 300, 'cash')"
    )
    conn.execute(
        "INSERT INTO categories (name, type, icon, color) "
        "VALUES ('Bills', 'expense', 'zap', '#FF9800')"
    )
    conn.execute(
        "INSERT INTO transactions (type, amount, title, category_id, account_id, date) "
        "VALUES ('expense', 45, 'Power bill', 1, 1, '2025-03-01T10:00:00')"
    )
    conn.execute(
        "INSERT INTO debts (type, person_name, amount, date, status) "
        "VALUES ('got', 'Alex', 100, '2025-02-01T00:00:00', 'closed')"
    )
    conn.commit()
    conn.close()


class TestFreshDatabase:
    def test_created_at_latest_version(self, repo, db_path):
        with _connect(db_path) as conn:
            assert get_schema_version(conn) == LATEST_VERSION
            assert {"account_id", "transaction_id"} <= _columns(conn, "debts")

    def test_reopening_is_a_no_op(self, repo, db_path):
        FinanceRepository(db_path)
        FinanceRepository(db_path)

        with _connect(db_path) as conn:
            versions = [row["version"] for row in conn.execute("SELECT version FROM schema_version")]
        assert versions == list(range(1, LATEST_VERSION + 1))


class TestLegacyUpgrade:
    def test_upgrade_preserves_data(self, db_path):
        _build_legacy_database(db_path)

        repo = FinanceRepository(db_path)

        assert repo.accounts.get(1).balance == 300
        txn = repo.transactions.get(1)
        assert txn.type == TransactionType.EXPENSE
        assert txn.amount == 45
        assert txn.category_name == "Bills"

        debt = repo.debts.get(1)
        assert debt.status == DebtStatus.COMPLETED
        assert debt.account_id is None
        assert debt.transaction_id is None

    def test_upgrade_repairs_icons_and_drops_payments_table(self, db_path):
        _build_legacy_database(db_path)

        repo = FinanceRepository(db_path)

        assert repo.categories.get(1).icon == "flash"
        with _connect(db_path) as conn:
            tables = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
            assert get_schema_version(conn) == LATEST_VERSION
        assert "debt_payments" not in tables

    def test_legacy_database_not_reseeded(self, db_path):
        _build_legacy_database(db_path)

        repo = FinanceRepository(db_path)

        assert [c.name for c in repo.categories.list_categories()] == ["Bills"]

    def test_upgraded_database_accepts_debt_transactions(self, db_path):
        _build_legacy_database(db_path)
        repo = FinanceRepository(db_path)

        txn = repo.transactions.insert(TransactionType.BORROWED, 50, "Borrowed from Sam", 1)

        assert repo.transactions.get(txn.id).category_id is None
