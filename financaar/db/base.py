"""
Base repository module with connection management and schema initialization.

Provides the foundation for all database operations in the Financaar ledger:
a connection context manager, an atomic unit spanning several repository
calls, and schema upgrades applied once at startup.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from financaar.config import DB_TIMEOUT, DEFAULT_DB_PATH

from .migrations import apply_migrations

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the underlying SQLite store rejects an operation."""


class BaseRepository:
    """
    Base repository class with SQLite connection management.

    Every public repository method accepts an optional ``conn``. When given,
    the method joins the caller's unit of work and leaves commit/rollback to
    the caller; otherwise it opens and commits its own connection.
    """

    def __init__(self, db_path: Optional[Path] = None, init_schema: bool = True):
        """
        Initialize the base repository.

        Args:
            db_path: Path to the SQLite database file. Defaults to data/financaar.db
            init_schema: Whether to apply schema migrations on startup
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self._ensure_db_directory()
        if init_schema:
            self._init_schema()

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Database directory ensured: {self.db_path.parent}")
        except Exception as e:
            logger.error(f"Failed to create database directory: {e}", exc_info=True)
            raise

    def _connect(self, foreign_keys: bool = True) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=DB_TIMEOUT)
        conn.row_factory = sqlite3.Row
        conn.execute(f"PRAGMA foreign_keys = {'ON' if foreign_keys else 'OFF'}")
        return conn

    @contextmanager
    def _get_connection(self, conn: Optional[sqlite3.Connection] = None):
        """Context manager for database connections with proper error handling."""
        if conn is not None:
            # Joined unit of work: the owner commits or rolls back
            yield conn
            return

        conn = None
        try:
            conn = self._connect()
            yield conn
            conn.commit()
        except sqlite3.OperationalError as e:
            logger.error(f"Database locked or operational error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise StorageError(str(e)) from e
        except sqlite3.Error as e:
            logger.error(f"Database error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            if conn:
                conn.rollback()
            raise
        finally:
            if conn:
                conn.close()

    @contextmanager
    def atomic(self):
        """
        Open an atomic unit of work.

        All writes made through the yielded connection become visible together
        on exit, or none of them do if the block raises.
        """
        with self._get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            yield conn

    def _init_schema(self):
        """Bring the database schema up to the latest version."""
        conn = None
        try:
            # Table rebuilds need foreign keys off for the duration
            conn = self._connect(foreign_keys=False)
            applied = apply_migrations(conn)
            if applied:
                logger.info(f"Applied schema migrations {applied} to {self.db_path}")
            else:
                logger.debug(f"Schema already up to date: {self.db_path}")
        except sqlite3.Error as e:
            logger.error(f"Schema migration failed: {e}", exc_info=True)
            raise StorageError(str(e)) from e
        finally:
            if conn:
                conn.close()
