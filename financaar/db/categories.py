"""
Categories repository module.

Handles category CRUD, first-run seeding of the default category set,
and per-category usage statistics.
"""

import logging
import sqlite3
from datetime import date, datetime, timezone
from typing import Optional

from financaar.models import DEFAULT_CATEGORIES, CategoryType

from .base import BaseRepository
from .models import Category

logger = logging.getLogger(__name__)


class CategoryRepository(BaseRepository):
    """Repository for income and expense categories."""

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    def create(
        self,
        name: str,
        type: CategoryType,
        icon: str,
        color: str,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Category:
        """
        Create a new category.

        Raises:
            ValueError: If the name is empty
        """
        if not name or not name.strip():
            raise ValueError("Category name cannot be empty")

        category = Category(
            id=None,
            name=name.strip(),
            type=CategoryType(type),
            icon=icon,
            color=color,
            created_at=datetime.now(timezone.utc),
        )
        with self._get_connection(conn) as c:
            cursor = c.execute(
                """
                INSERT INTO categories (name, type, icon, color, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    category.name,
                    category.type.value,
                    category.icon,
                    category.color,
                    category.created_at.isoformat(),
                ),
            )
            category.id = cursor.lastrowid

        logger.info(f"Created {category.type.value} category '{category.name}'")
        return category

    def get(
        self, category_id: int, conn: Optional[sqlite3.Connection] = None
    ) -> Optional[Category]:
        with self._get_connection(conn) as c:
            row = c.execute(
                "SELECT * FROM categories WHERE id = ?", (category_id,)
            ).fetchone()
            return Category.from_row(row) if row else None

    def list_categories(
        self,
        type: Optional[CategoryType] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> list[Category]:
        """List categories in creation order, optionally of one type."""
        query = "SELECT * FROM categories"
        params: list = []
        if type:
            query += " WHERE type = ?"
            params.append(CategoryType(type).value)
        query += " ORDER BY created_at ASC, id ASC"

        with self._get_connection(conn) as c:
            return [Category.from_row(row) for row in c.execute(query, params)]

    def update(
        self,
        category_id: int,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[Category]:
        """Rename or restyle a category. The type is fixed once created."""
        if name is not None and not name.strip():
            raise ValueError("Category name cannot be empty")

        with self._get_connection(conn) as c:
            existing = self.get(category_id, conn=c)
            if not existing:
                return None
            existing.name = name.strip() if name is not None else existing.name
            existing.icon = icon if icon is not None else existing.icon
            existing.color = color if color is not None else existing.color
            c.execute(
                "UPDATE categories SET name = ?, icon = ?, color = ? WHERE id = ?",
                (existing.name, existing.icon, existing.color, category_id),
            )
        logger.info(f"Updated category {category_id}")
        return existing

    def delete(self, category_id: int, conn: Optional[sqlite3.Connection] = None) -> bool:
        with self._get_connection(conn) as c:
            cursor = c.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted category {category_id}")
        return deleted

    # =========================================================================
    # Seeding
    # =========================================================================

    def seed_defaults(self, conn: Optional[sqlite3.Connection] = None) -> int:
        """
        Insert the default categories when the table is empty.

        Returns:
            Number of categories inserted (0 if any already existed)
        """
        with self._get_connection(conn) as c:
            count = c.execute("SELECT COUNT(*) FROM categories").fetchone()[0]
            if count:
                return 0
            now = datetime.now(timezone.utc).isoformat()
            c.executemany(
                """
                INSERT INTO categories (name, type, icon, color, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (name, type_.value, icon, color, now)
                    for name, type_, icon, color in DEFAULT_CATEGORIES
                ],
            )
        logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} default categories")
        return len(DEFAULT_CATEGORIES)

    def reset(self, conn: Optional[sqlite3.Connection] = None) -> int:
        """
        Replace all categories with the defaults.

        Transactions lose their category reference rather than being deleted.
        """
        with self._get_connection(conn) as c:
            c.execute("UPDATE transactions SET category_id = NULL")
            c.execute("DELETE FROM categories")
            return self.seed_defaults(conn=c)

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(
        self,
        category_id: int,
        since: date,
        conn: Optional[sqlite3.Connection] = None,
    ) -> dict[str, float]:
        """Count and total of successful transactions in a category since a date."""
        with self._get_connection(conn) as c:
            row = c.execute(
                """
                SELECT COUNT(*) AS transaction_count,
                       COALESCE(SUM(amount), 0) AS total_amount
                FROM transactions
                WHERE category_id = ?
                  AND status = 'success'
                  AND date(date) >= ?
                """,
                (category_id, since.isoformat()),
            ).fetchone()
        return {
            "transaction_count": row["transaction_count"],
            "total_amount": row["total_amount"],
        }
