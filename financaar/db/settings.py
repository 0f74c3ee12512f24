"""
Settings repository for preferences and one-time flags.

A flat key/value table; values are stored as text.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from financaar.config import SETUP_COMPLETED_KEY, USER_NAME_KEY

from .base import BaseRepository
from .models import Setting

logger = logging.getLogger(__name__)


class SettingsRepository(BaseRepository):
    """Repository for the app_settings key/value store."""

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    def get(
        self,
        key: str,
        default: Optional[str] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[str]:
        with self._get_connection(conn) as c:
            row = c.execute(
                "SELECT value FROM app_settings WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else default

    def set(self, key: str, value: str, conn: Optional[sqlite3.Connection] = None) -> Setting:
        """Create or replace a setting."""
        if not key:
            raise ValueError("Setting key cannot be empty")
        now = datetime.now(timezone.utc)
        with self._get_connection(conn) as c:
            c.execute(
                """
                INSERT INTO app_settings (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, str(value), now.isoformat()),
            )
        logger.debug(f"Saved setting {key}")
        return Setting(key=key, value=str(value), updated_at=now)

    def delete(self, key: str, conn: Optional[sqlite3.Connection] = None) -> bool:
        with self._get_connection(conn) as c:
            cursor = c.execute("DELETE FROM app_settings WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def all(self, conn: Optional[sqlite3.Connection] = None) -> list[Setting]:
        with self._get_connection(conn) as c:
            return [
                Setting.from_row(row)
                for row in c.execute("SELECT * FROM app_settings ORDER BY key")
            ]

    def clear(self, conn: Optional[sqlite3.Connection] = None) -> int:
        with self._get_connection(conn) as c:
            return c.execute("DELETE FROM app_settings").rowcount

    # =========================================================================
    # Flags
    # =========================================================================

    def set_setup_completed(self):
        self.set(SETUP_COMPLETED_KEY, "true")

    def is_setup_completed(self) -> bool:
        return self.get(SETUP_COMPLETED_KEY) == "true"

    def clear_setup_flag(self) -> bool:
        return self.delete(SETUP_COMPLETED_KEY)

    def get_user_name(self) -> Optional[str]:
        return self.get(USER_NAME_KEY)

    def set_user_name(self, name: str):
        if not name or not name.strip():
            raise ValueError("User name cannot be empty")
        self.set(USER_NAME_KEY, name.strip())
