# hello_chatbot/sessions/local_storage.py
import sqlite3
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from ..storage.sqlite_base import get_sqlite_db_connection

logger = logging.getLogger(__name__)


class LocalStorageError(Exception):
    """The underlying storage could not read or write an item."""


class AbstractLocalStorage(ABC):
    """
    Client-durable string storage addressed by key, in the manner of a
    browser's localStorage.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent."""
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Store `value` under `key`, replacing any previous value."""
        pass


class SQLiteLocalStorage(AbstractLocalStorage):
    """Local storage kept in the `chatbot_local_storage` table."""

    def __init__(self, connection: Optional[sqlite3.Connection] = None):
        self._connection = connection

    async def _get_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self._connection = await get_sqlite_db_connection()
        return self._connection

    async def get_item(self, key: str) -> Optional[str]:
        conn = await self._get_connection()
        try:
            row = conn.execute(
                "SELECT storage_value FROM chatbot_local_storage WHERE storage_key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"SQLite error reading local storage key '{key}': {e}", exc_info=True)
            raise LocalStorageError(str(e)) from e
        return row["storage_value"] if row else None

    async def set_item(self, key: str, value: str) -> None:
        conn = await self._get_connection()
        try:
            conn.execute(
                '''
                INSERT INTO chatbot_local_storage (storage_key, storage_value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(storage_key) DO UPDATE SET
                    storage_value=excluded.storage_value,
                    updated_at=excluded.updated_at
                ''',
                (key, value, datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"SQLite error writing local storage key '{key}': {e}", exc_info=True)
            conn.rollback()
            raise LocalStorageError(str(e)) from e
