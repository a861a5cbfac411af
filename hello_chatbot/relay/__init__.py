# hello_chatbot/relay/__init__.py
"""Message relay between chat clients and the knowledge-base API."""

from .errors import KnowledgeBaseError, ChatbotNotConfiguredError, KnowledgeBaseRequestError
from .models import AskRequest, AskResponse, Reference, WidgetConfig, ConnectionTestResult
from .kb_client import KnowledgeBaseClient, build_ask_body, filter_references

__all__ = [
    "KnowledgeBaseError",
    "ChatbotNotConfiguredError",
    "KnowledgeBaseRequestError",
    "AskRequest",
    "AskResponse",
    "Reference",
    "WidgetConfig",
    "ConnectionTestResult",
    "KnowledgeBaseClient",
    "build_ask_body",
    "filter_references",
]
