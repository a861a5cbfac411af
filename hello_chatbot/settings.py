# hello_chatbot/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
import logging
from pathlib import Path

logger = logging.getLogger(__name__)
if not logging.getLogger().hasHandlers():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s [%(levelname)s] - %(message)s'
    )

# This file lives at <project>/hello_chatbot/settings.py
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
DOTENV_PATH = PROJECT_ROOT / ".env"

if not DOTENV_PATH.exists():
    logger.debug(
        f".env file not found at {DOTENV_PATH}. "
        "Relying on OS env vars or defaults."
    )


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    app_name: str = "Hello Chatbot"
    debug_mode: bool = False
    hello_chatbot_log_level: str = "INFO"

    # SQLite file holding the option store (server side)
    sqlite_db_path: str = "./hello_chatbot_data.sqlite3"

    admin_api_key: Optional[str] = Field(
        default=None,
        description="API Key for accessing admin routes."
    )
    hello_chatbot_encryption_key: Optional[str] = Field(
        default=None,
        description="Fernet key used to encrypt secret options (client secret, manual token, cached access token)."
    )

    # Outbound HTTP timeouts, in seconds
    oauth_request_timeout_seconds: float = 15.0
    kb_request_timeout_seconds: float = 30.0
    kb_test_timeout_seconds: float = 10.0

    # Conversation store bounds
    max_sessions: int = 50
    session_retention_days: int = 30

    # Local development server (run_dev.py); reload follows debug_mode unless set
    dev_server_host: str = "127.0.0.1"
    dev_server_port: int = 8000
    dev_server_reload: Optional[bool] = None

    model_config = SettingsConfigDict(
        env_file=DOTENV_PATH if DOTENV_PATH.exists() else None,
        extra="ignore",
        env_file_encoding='utf-8'
    )

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.hello_chatbot_log_level.upper()


settings = Settings()

logger.info(
    f"Settings loaded: storage='{settings.sqlite_db_path}', debug_mode={settings.debug_mode}, "
    f"admin_api_key={'********' if settings.admin_api_key else 'None'}, "
    f"encryption_key={'********' if settings.hello_chatbot_encryption_key else 'None'}"
)
