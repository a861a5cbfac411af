# hello_chatbot/main.py
from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging
from dotenv import load_dotenv
load_dotenv()

from .settings import settings
from .storage.sqlite_base import close_sqlite_db_connection, get_sqlite_db_connection
from .options.sqlite_option_store import SQLiteOptionStore
from .options.endpoints import options_admin_router
from .credentials.credential_cache import CredentialCache
from .credentials.endpoints import oauth_admin_router
from .relay.kb_client import KnowledgeBaseClient
from .relay.endpoints import chat_router, relay_admin_router

if not logging.getLogger().hasHandlers():
    logging.basicConfig(
        level=settings.effective_log_level,
        format='%(asctime)s - %(name)s [%(levelname)s] - %(message)s'
    )

logger = logging.getLogger(__name__)
logger.setLevel(settings.effective_log_level)


@asynccontextmanager
async def hello_chatbot_lifespan(app_instance: FastAPI):
    """
    Opens the SQLite connection and wires the option store, credential cache
    and knowledge-base client onto `app.state`. Everything is torn down in
    reverse order on shutdown.
    """
    logger.info("Application startup initiated.")
    try:
        connection = await get_sqlite_db_connection()
    except Exception as e:
        logger.error(f"Error during storage backend initialization: {e}", exc_info=True)
        raise

    option_store = SQLiteOptionStore(connection=connection)
    await option_store.initialize()
    credential_cache = CredentialCache(option_store)

    app_instance.state.option_store = option_store
    app_instance.state.credential_cache = credential_cache
    app_instance.state.kb_client = KnowledgeBaseClient(option_store, credential_cache)
    logger.info("Option store, credential cache and knowledge-base client initialized.")

    yield

    logger.info("Application shutdown initiated.")
    try:
        await option_store.teardown()
        await close_sqlite_db_connection()
    except Exception as e_td:
        logger.error(f"Teardown error: {e_td}", exc_info=True)
    logger.info("All components torn down.")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug_mode,
        lifespan=hello_chatbot_lifespan,
    )
    app.include_router(chat_router)
    app.include_router(oauth_admin_router)
    app.include_router(options_admin_router)
    app.include_router(relay_admin_router)
    return app


app = create_app()
