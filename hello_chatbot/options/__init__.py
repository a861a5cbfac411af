# hello_chatbot/options/__init__.py
"""
Durable key-value configuration ("options") for the chatbot.

Holds the knowledge-base endpoint, the manual token, the OAuth2 client
settings and the persisted OAuth credential.
"""

from . import keys
from .models import ChatbotOptionsView, ChatbotOptionsUpdate, CustomResponse, CustomResponseReference
from .storage_interfaces import AbstractOptionStore
from .sqlite_option_store import SQLiteOptionStore
from .service import ChatbotOptionsService

__all__ = [
    "keys",
    "ChatbotOptionsView",
    "ChatbotOptionsUpdate",
    "CustomResponse",
    "CustomResponseReference",
    "AbstractOptionStore",
    "SQLiteOptionStore",
    "ChatbotOptionsService",
]
