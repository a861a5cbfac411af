# hello_chatbot/relay/errors.py


class KnowledgeBaseError(Exception):
    """Base class for message relay failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ChatbotNotConfiguredError(KnowledgeBaseError):
    """No knowledge-base endpoint is configured."""

    def __init__(self, message: str = "Chatbot is not configured"):
        super().__init__(message)


class KnowledgeBaseRequestError(KnowledgeBaseError):
    """The knowledge-base call failed: network error, bad status or unreadable body."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
