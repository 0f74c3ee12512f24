"""
Ordered schema migrations for the Financaar database.

Each migration runs once, inside its own transaction, and is recorded in the
``schema_version`` table. Databases created before version tracking existed
are adopted at version 1 and upgraded from there.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Callable

from financaar.models import LEGACY_ICON_MAP

logger = logging.getLogger(__name__)

SCHEMA_VERSION_TABLE = """
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY,
        applied_at TEXT NOT NULL,
        description TEXT
    )
"""

# Version 1: the original table layout. Debts carry no account or
# transaction link and transactions require a category.
V1_BASE_TABLES = [
    """
    CREATE TABLE IF NOT EXISTS accounts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL CHECK(length(name) > 0),
        balance REAL NOT NULL DEFAULT 0,
        type TEXT NOT NULL CHECK(type IN ('cash', 'card')),
        color TEXT,
        emoji TEXT,
        description TEXT,
        last_four_digits TEXT,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL CHECK(length(name) > 0),
        type TEXT NOT NULL CHECK(type IN ('income', 'expense')),
        icon TEXT NOT NULL,
        color TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        type TEXT NOT NULL CHECK(
            type IN ('income', 'expense', 'transfer', 'debt_payment')
        ),
        amount REAL NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        category_id INTEGER NOT NULL REFERENCES categories(id),
        account_id INTEGER NOT NULL REFERENCES accounts(id),
        to_account_id INTEGER REFERENCES accounts(id),
        date TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        status TEXT NOT NULL DEFAULT 'success' CHECK(status IN ('success', 'failed'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS debts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        type TEXT NOT NULL CHECK(type IN ('got', 'gave')),
        person_name TEXT NOT NULL,
        amount REAL NOT NULL,
        description TEXT,
        date TEXT NOT NULL,
        due_date TEXT,
        status TEXT NOT NULL DEFAULT 'active' CHECK(status IN ('active', 'closed')),
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS debt_payments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        debt_id INTEGER NOT NULL REFERENCES debts(id),
        amount REAL NOT NULL,
        date TEXT NOT NULL,
        account_id INTEGER NOT NULL REFERENCES accounts(id),
        description TEXT,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS app_settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
]

# Version 2: debts remember the account they moved money through and the
# transaction that moved it; debt-related transactions have no category.
V2_LINKED_DEBTS = [
    """
    CREATE TABLE transactions_new (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        type TEXT NOT NULL CHECK(
            type IN ('income', 'expense', 'transfer', 'debt_payment', 'borrowed', 'lent')
        ),
        amount REAL NOT NULL CHECK(amount > 0),
        title TEXT NOT NULL CHECK(length(title) > 0),
        description TEXT,
        category_id INTEGER REFERENCES categories(id),
        account_id INTEGER NOT NULL REFERENCES accounts(id),
        to_account_id INTEGER REFERENCES accounts(id),
        date TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        status TEXT NOT NULL DEFAULT 'success' CHECK(status IN ('success', 'failed'))
    )
    """,
    """
    INSERT INTO transactions_new (
        id, type, amount, title, description, category_id, account_id,
        to_account_id, date, created_at, status
    )
    SELECT id, type, amount, title, description, NULLIF(category_id, ''),
           account_id, NULLIF(to_account_id, ''), date, created_at, status
    FROM transactions
    """,
    "DROP TABLE transactions",
    "ALTER TABLE transactions_new RENAME TO transactions",
    """
    CREATE TABLE debts_new (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        type TEXT NOT NULL CHECK(type IN ('got', 'gave')),
        person_name TEXT NOT NULL CHECK(length(person_name) > 0),
        amount REAL NOT NULL CHECK(amount > 0),
        description TEXT,
        account_id INTEGER REFERENCES accounts(id),
        date TEXT NOT NULL,
        due_date TEXT,
        status TEXT NOT NULL DEFAULT 'active' CHECK(status IN ('active', 'completed')),
        transaction_id INTEGER REFERENCES transactions(id),
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    INSERT INTO debts_new (
        id, type, person_name, amount, description, date, due_date, status,
        created_at, updated_at
    )
    SELECT id, type, person_name, amount, description, date, due_date,
           CASE WHEN status = 'closed' THEN 'completed' ELSE status END,
           created_at, updated_at
    FROM debts
    """,
    "DROP TABLE debts",
    "ALTER TABLE debts_new RENAME TO debts",
    # Never written to; repayments are now settlement transactions
    "DROP TABLE IF EXISTS debt_payments",
    "CREATE INDEX IF NOT EXISTS idx_transactions_account_id ON transactions(account_id)",
    "CREATE INDEX IF NOT EXISTS idx_transactions_to_account_id ON transactions(to_account_id)",
    "CREATE INDEX IF NOT EXISTS idx_transactions_category_id ON transactions(category_id)",
    "CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date)",
    "CREATE INDEX IF NOT EXISTS idx_debts_account_id ON debts(account_id)",
    "CREATE INDEX IF NOT EXISTS idx_debts_status ON debts(status)",
]

V3_ICON_REPAIR = [
    ("UPDATE categories SET icon = ? WHERE icon = ?", (new, old))
    for old, new in LEGACY_ICON_MAP.items()
]


def _run(statements) -> Callable[[sqlite3.Connection], None]:
    def migrate(conn: sqlite3.Connection):
        for statement in statements:
            if isinstance(statement, tuple):
                conn.execute(*statement)
            else:
                conn.execute(statement)

    return migrate


MIGRATIONS: list[tuple[int, str, Callable[[sqlite3.Connection], None]]] = [
    (1, "Base tables", _run(V1_BASE_TABLES)),
    (2, "Link debts to accounts and transactions", _run(V2_LINKED_DEBTS)),
    (3, "Repair legacy category icon tokens", _run(V3_ICON_REPAIR)),
]

LATEST_VERSION = MIGRATIONS[-1][0]


def _table_exists(conn: sqlite3.Connection, name: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
    ).fetchone()
    return row is not None


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied migration version, 0 for a fresh database."""
    if not _table_exists(conn, "schema_version"):
        return 0
    row = conn.execute("SELECT MAX(version) AS v FROM schema_version").fetchone()
    return row["v"] if row and row["v"] else 0


def _record(conn: sqlite3.Connection, version: int, description: str):
    conn.execute(
        "INSERT INTO schema_version (version, applied_at, description) VALUES (?, ?, ?)",
        (version, datetime.now(timezone.utc).isoformat(), description),
    )


def apply_migrations(conn: sqlite3.Connection) -> list[int]:
    """
    Apply every migration newer than the database's current version.

    Args:
        conn: Connection with foreign key enforcement disabled

    Returns:
        Versions applied, in order (empty when already up to date)
    """
    conn.execute(SCHEMA_VERSION_TABLE)
    conn.commit()

    current_version = get_schema_version(conn)
    if current_version == 0 and _table_exists(conn, "accounts"):
        # Database predates version tracking; its tables are the v1 layout
        _record(conn, 1, "Adopted pre-versioning database")
        conn.commit()
        current_version = 1
        logger.info("Adopted unversioned database at schema version 1")

    applied = []
    for version, description, migrate in MIGRATIONS:
        if version <= current_version:
            continue
        try:
            conn.execute("BEGIN")
            migrate(conn)
            _record(conn, version, description)
            conn.commit()
        except Exception:
            conn.rollback()
            logger.error(f"Migration to version {version} failed", exc_info=True)
            raise
        applied.append(version)
        logger.info(f"Migrated database to schema version {version} ({description})")

    return applied
