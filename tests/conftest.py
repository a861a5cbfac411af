# tests/conftest.py
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to sys.path for local imports
project_root_path = Path(__file__).parent.parent.resolve()
if str(project_root_path) not in sys.path:
    sys.path.insert(0, str(project_root_path))

from hello_chatbot.options.sqlite_option_store import SQLiteOptionStore
from hello_chatbot.sessions.local_storage import SQLiteLocalStorage
from hello_chatbot.storage.sqlite_base import init_sqlite_db, open_sqlite_connection
from hello_chatbot.utils.security import FernetEncryptor, generate_fernet_key

START_UNIX = 1_700_000_000
START_DATETIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock returning a settable time; works with unix seconds or datetimes."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds: float) -> None:
        if isinstance(self.now, datetime):
            self.now = self.now + timedelta(seconds=seconds)
        else:
            self.now = self.now + seconds


@pytest_asyncio.fixture
async def db_conn():
    conn = open_sqlite_connection(":memory:")
    await init_sqlite_db(conn)
    yield conn
    conn.close()


@pytest.fixture
def encryptor():
    return FernetEncryptor(generate_fernet_key())


@pytest.fixture
def option_store(db_conn, encryptor):
    return SQLiteOptionStore(connection=db_conn, encryptor=encryptor)


@pytest.fixture
def local_storage(db_conn):
    return SQLiteLocalStorage(connection=db_conn)


@pytest.fixture
def clock():
    return FakeClock(START_UNIX)


@pytest.fixture
def session_clock():
    return FakeClock(START_DATETIME)
