"""
Accounts repository module for account CRUD operations.

Handles all account-related database operations including:
- Creating, reading, updating and deleting accounts
- Balance writes (reserved for the ledger engine)
- Total balance by account kind
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from financaar.config import MAX_ACCOUNT_NAME_LENGTH
from financaar.models import AccountKind

from .base import BaseRepository
from .models import Account, TotalBalance

logger = logging.getLogger(__name__)

# Fields the UI may change; balance is deliberately absent
UPDATABLE_FIELDS = ("name", "emoji", "description", "color", "last_four_digits")


class AccountRepository(BaseRepository):
    """Repository for managing accounts and their balances."""

    def __init__(self, db_path=None, init_schema: bool = False):
        """
        Initialize the account repository.

        Args:
            db_path: Path to the SQLite database file
            init_schema: Whether to initialize schema (usually False,
                        as the main repository handles this)
        """
        super().__init__(db_path, init_schema=init_schema)

    # =========================================================================
    # Create Operations
    # =========================================================================

    def create(
        self,
        name: str,
        kind: AccountKind,
        balance: float = 0.0,
        color: Optional[str] = None,
        emoji: Optional[str] = None,
        description: Optional[str] = None,
        last_four_digits: Optional[str] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Account:
        """
        Create a new account.

        Args:
            name: Display name
            kind: Cash or card
            balance: Opening balance
            color: Card color (cards only)
            emoji: Optional emoji
            description: Optional description
            last_four_digits: Last four card digits (cards only)

        Returns:
            The created Account

        Raises:
            ValueError: If inputs are invalid
        """
        if not name or not name.strip():
            raise ValueError("Account name cannot be empty")
        if len(name.strip()) > MAX_ACCOUNT_NAME_LENGTH:
            raise ValueError(
                f"Account name exceeds {MAX_ACCOUNT_NAME_LENGTH} characters"
            )
        if last_four_digits is not None and (
            len(last_four_digits) != 4 or not last_four_digits.isdigit()
        ):
            raise ValueError(f"Invalid last four digits: {last_four_digits}")

        kind = AccountKind(kind)
        if kind == AccountKind.CASH:
            color = None
            last_four_digits = None

        account = Account(
            id=None,
            name=name,
            balance=balance,
            kind=kind,
            color=color,
            emoji=emoji,
            description=description,
            last_four_digits=last_four_digits,
            created_at=datetime.now(timezone.utc),
        )
        account.updated_at = account.created_at

        with self._get_connection(conn) as c:
            cursor = c.execute(
                """
                INSERT INTO accounts (
                    name, balance, type, color, emoji, description,
                    last_four_digits, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    account.name,
                    account.balance,
                    account.kind.value,
                    account.color,
                    account.emoji,
                    account.description,
                    account.last_four_digits,
                    account.created_at.isoformat(),
                    account.updated_at.isoformat(),
                ),
            )
            account.id = cursor.lastrowid

        logger.info(
            f"Created {kind.value} account '{account.name}' ({account.id}) "
            f"with balance {balance}"
        )
        return account

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get(
        self, account_id: int, conn: Optional[sqlite3.Connection] = None
    ) -> Optional[Account]:
        """Get an account by ID, or None if it does not exist."""
        with self._get_connection(conn) as c:
            row = c.execute(
                "SELECT * FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()
            return Account.from_row(row) if row else None

    def list_accounts(
        self,
        kind: Optional[AccountKind] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> list[Account]:
        """List accounts in creation order, optionally filtered by kind."""
        query = "SELECT * FROM accounts"
        params: list = []
        if kind:
            query += " WHERE type = ?"
            params.append(AccountKind(kind).value)
        query += " ORDER BY created_at ASC, id ASC"

        with self._get_connection(conn) as c:
            accounts = [Account.from_row(row) for row in c.execute(query, params)]
        logger.debug(f"Listed {len(accounts)} accounts")
        return accounts

    def get_total_balance(
        self, conn: Optional[sqlite3.Connection] = None
    ) -> TotalBalance:
        """Sum balances across all accounts, split into cash and cards."""
        with self._get_connection(conn) as c:
            row = c.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN type = 'cash' THEN balance END), 0) AS cash,
                    COALESCE(SUM(CASE WHEN type = 'card' THEN balance END), 0) AS cards,
                    COALESCE(SUM(balance), 0) AS total
                FROM accounts
                """
            ).fetchone()
        return TotalBalance(cash=row["cash"], cards=row["cards"], total=row["total"])

    # =========================================================================
    # Update Operations
    # =========================================================================

    def update(
        self, account_id: int, conn: Optional[sqlite3.Connection] = None, **fields
    ) -> Optional[Account]:
        """
        Update descriptive account fields.

        Args:
            account_id: Account to update
            **fields: Any of name, emoji, description, color, last_four_digits

        Returns:
            The updated Account, or None if it does not exist

        Raises:
            ValueError: If a field is not updatable
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update account fields: {sorted(unknown)}")
        if "name" in fields and (not fields["name"] or not fields["name"].strip()):
            raise ValueError("Account name cannot be empty")
        if not fields:
            return self.get(account_id, conn=conn)

        assignments = ", ".join(f"{name} = ?" for name in fields)
        params = [
            value.strip() if name == "name" else value
            for name, value in fields.items()
        ]
        params += [datetime.now(timezone.utc).isoformat(), account_id]

        with self._get_connection(conn) as c:
            cursor = c.execute(
                f"UPDATE accounts SET {assignments}, updated_at = ? WHERE id = ?",
                params,
            )
            if cursor.rowcount == 0:
                return None
            logger.info(f"Updated account {account_id}: {sorted(fields)}")
            return self.get(account_id, conn=c)

    def set_balance(
        self,
        account_id: int,
        balance: float,
        conn: Optional[sqlite3.Connection] = None,
    ) -> bool:
        """
        Overwrite an account's balance.

        Only the ledger engine calls this, inside its atomic unit.
        """
        with self._get_connection(conn) as c:
            cursor = c.execute(
                "UPDATE accounts SET balance = ?, updated_at = ? WHERE id = ?",
                (balance, datetime.now(timezone.utc).isoformat(), account_id),
            )
            return cursor.rowcount > 0

    # =========================================================================
    # Delete Operations
    # =========================================================================

    def delete(self, account_id: int, conn: Optional[sqlite3.Connection] = None) -> bool:
        """
        Delete an account.

        Transactions and debts referencing the account are not touched; with
        foreign keys enforced the delete fails while such rows exist.
        """
        with self._get_connection(conn) as c:
            cursor = c.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted account {account_id}")
        else:
            logger.debug(f"No account {account_id} to delete")
        return deleted

    def clear(
        self,
        kind: Optional[AccountKind] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> int:
        """
        Delete accounts (optionally of one kind) with everything referencing them.

        Returns:
            Number of accounts removed
        """
        where = ""
        params: tuple = ()
        if kind:
            where = " WHERE type = ?"
            params = (AccountKind(kind).value,)
        selected = f"SELECT id FROM accounts{where}"

        with self._get_connection(conn) as c:
            c.execute(
                f"""
                DELETE FROM debts
                WHERE account_id IN ({selected})
                   OR transaction_id IN (
                       SELECT id FROM transactions
                       WHERE account_id IN ({selected})
                          OR to_account_id IN ({selected})
                   )
                """,
                params * 3,
            )
            c.execute(
                f"""
                DELETE FROM transactions
                WHERE account_id IN ({selected}) OR to_account_id IN ({selected})
                """,
                params * 2,
            )
            cursor = c.execute(f"DELETE FROM accounts{where}", params)
            removed = cursor.rowcount

        label = f"{AccountKind(kind).value} " if kind else ""
        logger.info(f"Cleared {removed} {label}accounts")
        return removed
