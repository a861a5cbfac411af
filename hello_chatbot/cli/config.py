# hello_chatbot/cli/config.py
import os
from dotenv import load_dotenv
from pathlib import Path

# This file is at <project>/hello_chatbot/cli/config.py
project_root = Path(__file__).parent.parent.parent.resolve()

# Load environment variables from .env file, overriding system environment variables
load_dotenv(dotenv_path=project_root / '.env', override=True)

# Base URL of the running Hello Chatbot service
HELLO_CHATBOT_CLI_API_BASE_URL = os.getenv("HELLO_CHATBOT_CLI_API_BASE_URL", "http://127.0.0.1:8000")

# Admin API key for authenticated operations
HELLO_CHATBOT_CLI_ADMIN_API_KEY = os.getenv("ADMIN_API_KEY")

# SQLite file holding this client's conversations
HELLO_CHATBOT_CLI_STORAGE_PATH = os.getenv(
    "HELLO_CHATBOT_CLI_STORAGE_PATH", str(Path.home() / ".hello_chatbot" / "client.sqlite3")
)

# Timeout for CLI HTTP calls, in seconds
HELLO_CHATBOT_CLI_REQUEST_TIMEOUT = float(os.getenv("HELLO_CHATBOT_CLI_REQUEST_TIMEOUT", "30"))
