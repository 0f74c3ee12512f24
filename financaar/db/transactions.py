"""
Transactions repository module for transaction CRUD operations.

Handles all transaction-related database operations including:
- Inserting ledger entries (called by the ledger engine)
- Reading and filtering transactions
- Deleting transactions
"""

import logging
import sqlite3
from datetime import date, datetime, time, timezone
from typing import Optional, Union

from financaar.models import TransactionStatus, TransactionType

from .base import BaseRepository
from .models import Transaction

logger = logging.getLogger(__name__)

SELECT_WITH_CATEGORY = """
    SELECT t.*, c.name AS category_name
    FROM transactions t
    LEFT JOIN categories c ON t.category_id = c.id
"""


def as_datetime(value: Union[date, datetime, None]) -> datetime:
    """
    Normalize a transaction date to naive local time.

    Plain dates fall at midnight; aware datetimes are converted to the local
    zone and stored without an offset.
    """
    if value is None:
        return datetime.now()
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    return datetime.combine(value, time())


class TransactionRepository(BaseRepository):
    """
    Repository for ledger transactions.

    Rows are written as given; balance validation and mutation happen in the
    ledger engine, which calls :meth:`insert` inside its atomic unit.
    """

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    # =========================================================================
    # Create Operations
    # =========================================================================

    def insert(
        self,
        type: TransactionType,
        amount: float,
        title: str,
        account_id: int,
        category_id: Optional[int] = None,
        to_account_id: Optional[int] = None,
        description: Optional[str] = None,
        date: Union[date, datetime, None] = None,
        status: TransactionStatus = TransactionStatus.SUCCESS,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Transaction:
        """
        Insert a transaction row.

        Args:
            type: Transaction type
            amount: Positive amount
            title: Short title
            account_id: Source account
            category_id: Category (absent for transfers and debt transactions)
            to_account_id: Destination account for transfers
            description: Optional note
            date: When the money moved (defaults to now)
            status: Success or failed

        Returns:
            The created Transaction with its ID
        """
        transaction = Transaction(
            id=None,
            type=TransactionType(type),
            amount=amount,
            title=title.strip(),
            account_id=account_id,
            date=as_datetime(date),
            category_id=category_id,
            to_account_id=to_account_id,
            description=description,
            status=TransactionStatus(status),
            created_at=datetime.now(timezone.utc),
        )

        with self._get_connection(conn) as c:
            cursor = c.execute(
                """
                INSERT INTO transactions (
                    type, amount, title, description, category_id, account_id,
                    to_account_id, date, created_at, status
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    transaction.type.value,
                    transaction.amount,
                    transaction.title,
                    transaction.description,
                    transaction.category_id,
                    transaction.account_id,
                    transaction.to_account_id,
                    transaction.date.isoformat(),
                    transaction.created_at.isoformat(),
                    transaction.status.value,
                ),
            )
            transaction.id = cursor.lastrowid

        logger.debug(
            f"Inserted {transaction.type.value} transaction {transaction.id} "
            f"of {transaction.amount} on account {account_id}"
        )
        return transaction

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get(
        self, transaction_id: int, conn: Optional[sqlite3.Connection] = None
    ) -> Optional[Transaction]:
        with self._get_connection(conn) as c:
            row = c.execute(
                SELECT_WITH_CATEGORY + " WHERE t.id = ?", (transaction_id,)
            ).fetchone()
            return Transaction.from_row(row) if row else None

    def list_transactions(
        self,
        limit: Optional[int] = None,
        account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        type: Optional[TransactionType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[TransactionStatus] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> list[Transaction]:
        """
        List transactions, newest first.

        Args:
            limit: Maximum number of rows
            account_id: Only transactions moving money out of or into this account
            category_id: Only transactions in this category
            type: Only transactions of this type
            start_date: Inclusive lower bound on the transaction date
            end_date: Inclusive upper bound on the transaction date
            status: Only transactions with this status

        Returns:
            Transactions ordered by date, then creation time, descending
        """
        if limit is not None and limit <= 0:
            raise ValueError(f"Invalid limit: {limit}")

        query = SELECT_WITH_CATEGORY + " WHERE 1 = 1"
        params: list = []

        if account_id is not None:
            query += " AND (t.account_id = ? OR t.to_account_id = ?)"
            params += [account_id, account_id]
        if category_id is not None:
            query += " AND t.category_id = ?"
            params.append(category_id)
        if type:
            query += " AND t.type = ?"
            params.append(TransactionType(type).value)
        if status:
            query += " AND t.status = ?"
            params.append(TransactionStatus(status).value)
        if start_date:
            query += " AND date(t.date) >= ?"
            params.append(start_date.isoformat())
        if end_date:
            query += " AND date(t.date) <= ?"
            params.append(end_date.isoformat())

        query += " ORDER BY t.date DESC, t.created_at DESC, t.id DESC"

        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self._get_connection(conn) as c:
            transactions = [Transaction.from_row(row) for row in c.execute(query, params)]
        logger.debug(f"Listed {len(transactions)} transactions")
        return transactions

    # =========================================================================
    # Delete Operations
    # =========================================================================

    def delete(
        self, transaction_id: int, conn: Optional[sqlite3.Connection] = None
    ) -> bool:
        """Delete a transaction row. Balances are not touched."""
        with self._get_connection(conn) as c:
            cursor = c.execute(
                "DELETE FROM transactions WHERE id = ?", (transaction_id,)
            )
            return cursor.rowcount > 0

    def clear(self, conn: Optional[sqlite3.Connection] = None) -> int:
        """Delete every transaction, unlinking debts that referenced one."""
        with self._get_connection(conn) as c:
            c.execute("UPDATE debts SET transaction_id = NULL")
            removed = c.execute("DELETE FROM transactions").rowcount
        logger.info(f"Cleared {removed} transactions")
        return removed
