# hello_chatbot/sessions/__init__.py
"""
Conversation sessions kept in client-durable storage.

Data models, the local storage abstraction, the bounded SessionStore and the
ChatConversation controller built on top of it.
"""

from .session_data import (
    DEFAULT_SESSION_TITLE,
    ChatMessage,
    ChatSession,
    MessageReference,
    SessionStoreState,
    derive_session_title,
)
from .local_storage import AbstractLocalStorage, SQLiteLocalStorage, LocalStorageError
from .session_store import SessionStore, SESSIONS_STORAGE_KEY
from .conversation import ChatConversation, DEFAULT_ERROR_MESSAGE

__all__ = [
    "DEFAULT_SESSION_TITLE",
    "ChatMessage",
    "ChatSession",
    "MessageReference",
    "SessionStoreState",
    "derive_session_title",
    "AbstractLocalStorage",
    "SQLiteLocalStorage",
    "LocalStorageError",
    "SessionStore",
    "SESSIONS_STORAGE_KEY",
    "ChatConversation",
    "DEFAULT_ERROR_MESSAGE",
]
