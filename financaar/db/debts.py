"""
Debts repository module.

Stores person-to-person debts. Creating and settling a debt moves money and
is therefore orchestrated by the ledger engine; this module only persists rows.
"""

import logging
import sqlite3
from datetime import date, datetime, timezone
from typing import Optional, Union

from financaar.models import DebtDirection, DebtStatus

from .base import BaseRepository
from .models import Debt, DebtTotals
from .transactions import as_datetime

logger = logging.getLogger(__name__)


class DebtRepository(BaseRepository):
    """Repository for borrowed and lent money records."""

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    def insert(
        self,
        direction: DebtDirection,
        person_name: str,
        amount: float,
        account_id: Optional[int],
        transaction_id: Optional[int] = None,
        description: Optional[str] = None,
        date: Union[date, datetime, None] = None,
        due_date: Union[date, datetime, None] = None,
        status: DebtStatus = DebtStatus.ACTIVE,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Debt:
        """Insert a debt row and return it with its ID."""
        if not person_name or not person_name.strip():
            raise ValueError("Person name cannot be empty")

        now = datetime.now(timezone.utc)
        debt = Debt(
            id=None,
            direction=DebtDirection(direction),
            person_name=person_name.strip(),
            amount=amount,
            date=as_datetime(date),
            account_id=account_id,
            description=description,
            due_date=as_datetime(due_date) if due_date else None,
            status=DebtStatus(status),
            transaction_id=transaction_id,
            created_at=now,
            updated_at=now,
        )

        with self._get_connection(conn) as c:
            cursor = c.execute(
                """
                INSERT INTO debts (
                    type, person_name, amount, description, account_id, date,
                    due_date, status, transaction_id, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    debt.direction.value,
                    debt.person_name,
                    debt.amount,
                    debt.description,
                    debt.account_id,
                    debt.date.isoformat(),
                    debt.due_date.isoformat() if debt.due_date else None,
                    debt.status.value,
                    debt.transaction_id,
                    now.isoformat(),
                    now.isoformat(),
                ),
            )
            debt.id = cursor.lastrowid
        return debt

    def get(self, debt_id: int, conn: Optional[sqlite3.Connection] = None) -> Optional[Debt]:
        with self._get_connection(conn) as c:
            row = c.execute("SELECT * FROM debts WHERE id = ?", (debt_id,)).fetchone()
            return Debt.from_row(row) if row else None

    def list_debts(
        self,
        direction: Optional[DebtDirection] = None,
        status: Optional[DebtStatus] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> list[Debt]:
        """List debts, newest first, optionally filtered by direction and status."""
        query = "SELECT * FROM debts WHERE 1 = 1"
        params: list = []
        if direction:
            query += " AND type = ?"
            params.append(DebtDirection(direction).value)
        if status:
            query += " AND status = ?"
            params.append(DebtStatus(status).value)
        query += " ORDER BY date DESC, created_at DESC, id DESC"

        with self._get_connection(conn) as c:
            return [Debt.from_row(row) for row in c.execute(query, params)]

    def get_totals(self, conn: Optional[sqlite3.Connection] = None) -> DebtTotals:
        """Sum outstanding amounts of active debts in each direction."""
        with self._get_connection(conn) as c:
            row = c.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN type = 'got' THEN amount END), 0) AS owed_by_user,
                    COALESCE(SUM(CASE WHEN type = 'gave' THEN amount END), 0) AS owed_to_user
                FROM debts
                WHERE status = 'active'
                """
            ).fetchone()
        return DebtTotals(
            owed_by_user=row["owed_by_user"], owed_to_user=row["owed_to_user"]
        )

    def update_status(
        self,
        debt_id: int,
        status: DebtStatus,
        conn: Optional[sqlite3.Connection] = None,
    ) -> bool:
        with self._get_connection(conn) as c:
            cursor = c.execute(
                "UPDATE debts SET status = ?, updated_at = ? WHERE id = ?",
                (
                    DebtStatus(status).value,
                    datetime.now(timezone.utc).isoformat(),
                    debt_id,
                ),
            )
            return cursor.rowcount > 0

    def delete(self, debt_id: int, conn: Optional[sqlite3.Connection] = None) -> bool:
        with self._get_connection(conn) as c:
            cursor = c.execute("DELETE FROM debts WHERE id = ?", (debt_id,))
            return cursor.rowcount > 0

    def clear(self, conn: Optional[sqlite3.Connection] = None) -> int:
        """Delete every debt together with its linked transaction."""
        with self._get_connection(conn) as c:
            linked = [
                row[0]
                for row in c.execute(
                    "SELECT transaction_id FROM debts WHERE transaction_id IS NOT NULL"
                )
            ]
            removed = c.execute("DELETE FROM debts").rowcount
            c.executemany(
                "DELETE FROM transactions WHERE id = ?", [(tid,) for tid in linked]
            )
        logger.info(f"Cleared {removed} debts and {len(linked)} linked transactions")
        return removed
