# hello_chatbot/options/sqlite_option_store.py
import sqlite3
import logging
import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .keys import SECRET_OPTIONS
from .storage_interfaces import AbstractOptionStore
from ..settings import settings
from ..storage.sqlite_base import get_sqlite_db_connection
from ..utils.security import FernetEncryptor

logger = logging.getLogger(__name__)

_MISSING = object()


class SQLiteOptionStore(AbstractOptionStore):
    """
    SQLite implementation of the option store.

    Each option is one row holding its JSON-encoded value. Secret options are
    Fernet-encrypted when the encryptor has a valid key.
    """

    def __init__(
        self,
        connection: Optional[sqlite3.Connection] = None,
        encryptor: Optional[FernetEncryptor] = None,
    ):
        """
        Args:
            connection: Connection to use; defaults to the application-wide one.
            encryptor: Encryptor for secret options; built from settings if omitted.
        """
        self._connection = connection
        self._encryptor = encryptor or FernetEncryptor(settings.hello_chatbot_encryption_key)

    async def initialize(self) -> None:
        await self._get_connection()
        logger.info("SQLiteOptionStore initialized (tables ensured by sqlite_base).")

    async def teardown(self) -> None:
        logger.info("SQLiteOptionStore teardown (connection managed by owner).")

    async def _get_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self._connection = await get_sqlite_db_connection()
        return self._connection

    async def _fetchall(self, query: str, params: tuple = ()) -> list:
        conn = await self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        except sqlite3.Error as e:
            logger.error(f"SQLite error during fetch for query '{query}': {e}", exc_info=True)
            raise

    async def _execute_many(self, query: str, rows: list) -> None:
        """Run `query` for every row inside a single transaction."""
        conn = await self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.executemany(query, rows)
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"SQLite error executing query '{query}': {e}", exc_info=True)
            conn.rollback()
            raise

    def _encode(self, name: str, value: Any) -> Tuple[str, int]:
        encoded = json.dumps(value)
        if name in SECRET_OPTIONS and self._encryptor.key_valid:
            encrypted = self._encryptor.encrypt(encoded)
            if encrypted is not None:
                return encrypted, 1
        if name in SECRET_OPTIONS and value:
            logger.warning(f"Storing secret option '{name}' unencrypted (no valid encryption key).")
        return encoded, 0

    def _decode(self, row: sqlite3.Row) -> Any:
        raw = row["option_value"]
        if row["is_encrypted"]:
            raw = self._encryptor.decrypt(raw)
            if raw is None:
                logger.error(f"Could not decrypt option '{row['option_name']}'. Treating it as absent.")
                return _MISSING
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Option '{row['option_name']}' holds invalid JSON. Treating it as absent.")
            return _MISSING

    async def get_option(self, name: str, default: Any = None) -> Any:
        rows = await self._fetchall(
            "SELECT option_name, option_value, is_encrypted FROM chatbot_options WHERE option_name = ?",
            (name,),
        )
        if not rows:
            return default
        value = self._decode(rows[0])
        return default if value is _MISSING else value

    async def get_options(self, names: Iterable[str]) -> Dict[str, Any]:
        names = list(names)
        if not names:
            return {}
        placeholders = ", ".join("?" for _ in names)
        rows = await self._fetchall(
            f"SELECT option_name, option_value, is_encrypted FROM chatbot_options "
            f"WHERE option_name IN ({placeholders})",
            tuple(names),
        )
        result: Dict[str, Any] = {}
        for row in rows:
            value = self._decode(row)
            if value is not _MISSING:
                result[row["option_name"]] = value
        return result

    async def update_option(self, name: str, value: Any) -> None:
        await self.update_options({name: value})

    async def update_options(self, values: Mapping[str, Any]) -> None:
        if not values:
            return
        now_iso = datetime.now(timezone.utc).isoformat()
        rows = []
        for name, value in values.items():
            encoded, is_encrypted = self._encode(name, value)
            rows.append((name, encoded, is_encrypted, now_iso))
        await self._execute_many(
            '''
            INSERT INTO chatbot_options (option_name, option_value, is_encrypted, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(option_name) DO UPDATE SET
                option_value=excluded.option_value,
                is_encrypted=excluded.is_encrypted,
                updated_at=excluded.updated_at
            ''',
            rows,
        )
        logger.debug(f"Updated options: {sorted(values.keys())}")

    async def delete_option(self, name: str) -> bool:
        conn = await self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute("DELETE FROM chatbot_options WHERE option_name = ?", (name,))
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"SQLite error deleting option '{name}': {e}", exc_info=True)
            conn.rollback()
            raise
        return cursor.rowcount > 0
