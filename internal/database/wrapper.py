"""
Database wrapper for the weather tracker.
This wrapper provides an abstraction layer that can be easily replaced
with other database backends in the future.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Dict, Optional

from .exceptions import StorageError

logger = logging.getLogger(__name__)


class DatabaseWrapper:
    """
    A wrapper around SQLite key-value ``settings`` table.

    Every thread gets its own connection. Any SQLite failure is raised as
    StorageError.
    """

    def __init__(self, dbPath: str, timeout: float = 30.0):
        """
        Initialize database wrapper

        Args:
            dbPath: SQLite file path, ``:memory:`` for a transient store
            timeout: Connection timeout in seconds (default: 30.0)

        Raises:
            StorageError: If the database cannot be opened or initialized
        """
        if not dbPath:
            raise ValueError("dbPath must be provided")

        self.dbPath = dbPath
        self.timeout = timeout
        self._local = threading.local()
        self._lock = threading.Lock()

        self._initDatabase()

    def _getConnection(self) -> sqlite3.Connection:
        """Get thread-local connection, creating it on first use"""
        if not hasattr(self._local, "connection"):
            with self._lock:
                logger.debug(f"Creating new connection (path={self.dbPath})")
                try:
                    connection = sqlite3.connect(self.dbPath, timeout=self.timeout, check_same_thread=False)
                except sqlite3.Error as e:
                    raise StorageError(f"Cannot open database {self.dbPath}: {e}") from e
                connection.row_factory = sqlite3.Row
                self._local.connection = connection

        return self._local.connection

    @contextmanager
    def getCursor(self):
        """
        Context manager for database operations

        Yields:
            sqlite3.Cursor: Database cursor with auto-commit/rollback

        Raises:
            StorageError: On any SQLite failure
        """
        conn = self._getConnection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database operation failed: {e}")
            raise StorageError(f"Database operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()

    def close(self):
        """Close connection of the current thread"""
        if hasattr(self._local, "connection"):
            try:
                self._local.connection.close()
                logger.debug(f"Closed connection to {self.dbPath}")
            except sqlite3.Error as e:
                logger.error(f"Error closing connection to {self.dbPath}: {e}")
            del self._local.connection

    def _initDatabase(self):
        """Initialize database schema"""
        with self.getCursor() as cursor:
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """
            )
        logger.info(f"Database initialized at {self.dbPath}")

    ###
    # Settings manipulation functions
    ###

    def setSetting(self, key: str, value: str) -> None:
        """
        Set a setting.

        Raises:
            StorageError: If the write failed
        """
        with self.getCursor() as cursor:
            cursor.execute(
                """
                INSERT INTO settings (key, value)
                VALUES (:key, :value)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
            """,
                {
                    "key": key,
                    "value": value,
                },
            )

    def getSetting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a setting.

        Args:
            key: Setting key to retrieve
            default: Default value if key not found

        Returns:
            Setting value or default if not found"""
        with self.getCursor() as cursor:
            cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row["value"] if row else default

    def getSettings(self) -> Dict[str, str]:
        """Get all settings."""
        with self.getCursor() as cursor:
            cursor.execute("SELECT key, value FROM settings")
            return {row["key"]: row["value"] for row in cursor.fetchall()}

    def unsetSetting(self, key: str) -> bool:
        """Remove a setting, returns True if it existed"""
        with self.getCursor() as cursor:
            cursor.execute("DELETE FROM settings WHERE key = ?", (key,))
            return cursor.rowcount > 0
