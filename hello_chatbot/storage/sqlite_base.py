# hello_chatbot/storage/sqlite_base.py
import sqlite3
import logging
from pathlib import Path
from typing import Optional

from ..settings import settings

logger = logging.getLogger(__name__)

# One connection per application lifecycle
_db_connection: Optional[sqlite3.Connection] = None


def open_sqlite_connection(db_path: str) -> sqlite3.Connection:
    """
    Open a SQLite connection with row access by column name.

    ":memory:" is passed through untouched; any other path has its
    parent directory created first.
    """
    if db_path != ":memory:":
        resolved = Path(db_path).expanduser().resolve()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        db_path = str(resolved)

    logger.info(f"Connecting to SQLite DB at: {db_path}")
    # check_same_thread=False so FastAPI's threadpool can share the connection
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


async def get_sqlite_db_connection() -> sqlite3.Connection:
    """
    Get or create the application's SQLite connection.

    The schema is initialized on first connection.

    Raises:
        sqlite3.Error: If database connection fails
    """
    global _db_connection
    if _db_connection is None:
        try:
            _db_connection = open_sqlite_connection(settings.sqlite_db_path)
            await init_sqlite_db(_db_connection)
        except sqlite3.Error as e:
            logger.error(
                f"Error connecting to SQLite database at {settings.sqlite_db_path}: {e}",
                exc_info=True
            )
            raise
    return _db_connection


async def init_sqlite_db(conn: Optional[sqlite3.Connection] = None):
    """
    Create the option and local-storage tables if they don't exist.

    Args:
        conn: Optional database connection. If None, uses the global connection.
    """
    db_conn = conn or await get_sqlite_db_connection()
    cursor = db_conn.cursor()

    # Host key-value configuration ("options"); values are JSON text
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS chatbot_options (
        option_name TEXT PRIMARY KEY,
        option_value TEXT NOT NULL,
        is_encrypted INTEGER NOT NULL DEFAULT 0,
        updated_at TEXT NOT NULL
    )
    ''')
    logger.debug("Ensured 'chatbot_options' table exists.")

    # Client-durable item storage, one row per storage key
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS chatbot_local_storage (
        storage_key TEXT PRIMARY KEY,
        storage_value TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    ''')
    logger.debug("Ensured 'chatbot_local_storage' table exists.")

    db_conn.commit()
    logger.info("SQLite database schema initialized/verified.")


async def close_sqlite_db_connection():
    """Close the global SQLite connection on application shutdown."""
    global _db_connection
    if _db_connection is not None:
        logger.info("Closing SQLite DB connection.")
        _db_connection.close()
        _db_connection = None
        logger.info("SQLite DB connection closed.")
