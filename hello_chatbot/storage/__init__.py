# hello_chatbot/storage/__init__.py

"""Storage module initialization.

Shared SQLite connection handling and schema setup for the option store
and the client-side local storage.
"""

from .sqlite_base import (
    open_sqlite_connection,
    get_sqlite_db_connection,
    init_sqlite_db,
    close_sqlite_db_connection
)

__all__ = [
    "open_sqlite_connection",
    "get_sqlite_db_connection",
    "init_sqlite_db",
    "close_sqlite_db_connection"
]
