# hello_chatbot/sessions/conversation.py
import logging
from typing import Awaitable, Callable, List, Optional

from .session_data import ChatMessage, ChatSession, MessageReference, derive_session_title
from .session_store import SessionStore
from ..credentials.errors import CredentialError
from ..relay.errors import KnowledgeBaseError
from ..relay.models import AskResponse

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Sorry, I encountered an error. Please try again."

AskFunction = Callable[[str, str], Awaitable[AskResponse]]


class ChatConversation:
    """
    Drives one chat client on top of a SessionStore.

    Appends messages to the active session, names the session after its
    first user message and turns relay failures into an assistant message
    so the user always gets a reply.
    """

    def __init__(self, store: SessionStore, ask: AskFunction, error_message: str = DEFAULT_ERROR_MESSAGE):
        """
        Args:
            store: Conversation persistence.
            ask: Relays `(question, page_context)` to the knowledge base.
            error_message: Assistant reply shown when the relay fails.
        """
        self.store = store
        self.ask = ask
        self.error_message = error_message

    async def start(self) -> ChatSession:
        return await self.store.initialize()

    async def add_message(self, message: ChatMessage) -> ChatSession:
        """
        Append `message` to the active session.

        The first user message of a session that still has the default title
        also renames it.
        """
        session = await self.store.get_or_create_active_session()
        updates = {"messages": [*session.messages, message]}
        if message.role == "user" and session.has_default_title:
            updates["title"] = derive_session_title(message.content)
        updated = await self.store.update_session(session.id, updates)
        if updated is None:
            # Another writer removed the session, or storage is not persisting
            logger.warning(f"Active session '{session.id}' could not be updated; message not stored.")
            return session.model_copy(update=updates)
        return updated

    async def show_welcome_message(self, content: str, actions: Optional[List[str]] = None) -> Optional[ChatMessage]:
        """Add the welcome message to the active session if it has no messages yet."""
        session = await self.store.get_or_create_active_session()
        if session.messages:
            return None
        welcome = ChatMessage(role="assistant", content=content, actions=actions or None)
        await self.add_message(welcome)
        return welcome

    async def send_message(self, text: str, page_context: str = "") -> ChatMessage:
        """
        Send a user message and store the assistant's reply.

        Returns the assistant message, which carries `error_message` when the
        knowledge base could not be reached.
        """
        await self.add_message(ChatMessage(role="user", content=text))

        try:
            response = await self.ask(text, page_context)
        except (KnowledgeBaseError, CredentialError) as e:
            logger.error(f"Chat error: {e}")
            reply = ChatMessage(role="assistant", content=self.error_message)
        else:
            references = [
                MessageReference(title=ref.title, url=ref.url, description=ref.description)
                for ref in response.references
            ]
            reply = ChatMessage(role="assistant", content=response.answer, references=references or None)

        await self.add_message(reply)
        return reply

    async def new_chat(self) -> ChatSession:
        return await self.store.create_session()

    async def switch_to(self, session_id: str) -> Optional[ChatSession]:
        return await self.store.set_active_session(session_id)
