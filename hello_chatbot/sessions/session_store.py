# hello_chatbot/sessions/session_store.py
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, List, Mapping, Optional

from pydantic import ValidationError

from .local_storage import AbstractLocalStorage, LocalStorageError
from .session_data import ChatSession, SessionStoreState, utcnow
from ..settings import settings

logger = logging.getLogger(__name__)

SESSIONS_STORAGE_KEY = "helloChatbotSessions"

# Fields a caller may not overwrite through update_session
_IMMUTABLE_FIELDS = ("id", "created")


class SessionStore:
    """
    Durable, bounded collection of conversations with one active conversation.

    The whole `SessionStoreState` is kept as a single JSON blob in local
    storage. Every operation reads the blob, mutates it and writes the full
    snapshot back, so concurrent writers sharing the storage overwrite each
    other (last writer wins).

    Two orderings coexist on purpose:
      - `session_order` (creation order, newest first) decides eviction when
        more than `max_sessions` exist;
      - `get_all_sessions()` sorts by `updated` for display.
    A recently-created but idle session can therefore be kept while an older
    session that was just updated is evicted.
    """

    def __init__(
        self,
        storage: AbstractLocalStorage,
        *,
        storage_key: str = SESSIONS_STORAGE_KEY,
        max_sessions: Optional[int] = None,
        retention_days: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Args:
            storage: Client-durable storage holding the state blob.
            storage_key: Key of the blob inside `storage`.
            max_sessions: Capacity bound; defaults to settings.max_sessions (50).
            retention_days: Sessions not updated for longer are removed by
                cleanup; defaults to settings.session_retention_days (30).
            clock: Returns the current UTC datetime.
        """
        self.storage = storage
        self.storage_key = storage_key
        self.max_sessions = max_sessions if max_sessions is not None else settings.max_sessions
        self.retention = timedelta(
            days=retention_days if retention_days is not None else settings.session_retention_days
        )
        self._clock = clock

    async def load_state(self) -> SessionStoreState:
        """
        Read the persisted state.

        A missing, unreadable or corrupt blob yields the empty default state.
        """
        try:
            raw = await self.storage.get_item(self.storage_key)
        except LocalStorageError as e:
            logger.warning(f"Could not read sessions from storage: {e}. Using empty state.")
            return SessionStoreState()

        if not raw:
            return SessionStoreState()

        try:
            state = SessionStoreState.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Could not parse sessions data, replacing with empty state: {e}")
            return SessionStoreState()

        if state.repair():
            logger.warning("Sessions data was inconsistent and has been repaired.")
        return state

    async def save_state(self, state: SessionStoreState) -> None:
        try:
            await self.storage.set_item(self.storage_key, state.to_json())
        except LocalStorageError as e:
            logger.error(f"Could not save sessions: {e}")

    def _bump(self, session: ChatSession) -> datetime:
        # `updated` never moves backwards, even if the clock does
        now = self._clock()
        return now if now > session.updated else session.updated

    def _create_in_state(self, state: SessionStoreState) -> ChatSession:
        now = self._clock()
        session = ChatSession(created=now, updated=now)
        state.sessions[session.id] = session
        state.active_session_id = session.id
        state.session_order.insert(0, session.id)

        if len(state.session_order) > self.max_sessions:
            evicted_id = state.session_order.pop()
            state.sessions.pop(evicted_id, None)
            logger.info(f"Session limit {self.max_sessions} reached. Evicted oldest session '{evicted_id}'.")

        logger.debug(f"Created session '{session.id}'.")
        return session

    async def initialize(self) -> ChatSession:
        """Remove expired sessions, then make sure an active session exists."""
        await self.cleanup_old_sessions()
        return await self.get_or_create_active_session()

    async def create_session(self) -> ChatSession:
        """Create an empty session, make it active and persist."""
        state = await self.load_state()
        session = self._create_in_state(state)
        await self.save_state(state)
        return session

    async def get_or_create_active_session(self) -> ChatSession:
        """
        Return the active session, creating (and persisting) a new one when
        there is no active session or the pointer is dangling.

        Never returns None, but may write to storage.
        """
        state = await self.load_state()
        if state.active_session_id and state.active_session_id in state.sessions:
            return state.sessions[state.active_session_id]

        session = self._create_in_state(state)
        await self.save_state(state)
        return session

    async def get_session(self, session_id: str) -> Optional[ChatSession]:
        state = await self.load_state()
        return state.sessions.get(session_id)

    async def get_all_sessions(self) -> List[ChatSession]:
        """All sessions, most recently updated first."""
        state = await self.load_state()
        return sorted(state.sessions.values(), key=lambda s: s.updated, reverse=True)

    async def set_active_session(self, session_id: str) -> Optional[ChatSession]:
        """Make `session_id` active. Returns None if the id is unknown."""
        state = await self.load_state()
        session = state.sessions.get(session_id)
        if session is None:
            logger.debug(f"set_active_session: unknown session '{session_id}'.")
            return None
        state.active_session_id = session_id
        await self.save_state(state)
        return session

    async def update_session(self, session_id: str, updates: Mapping[str, Any]) -> Optional[ChatSession]:
        """
        Merge `updates` into a session and bump its `updated` timestamp.

        Messages are replaced as a whole: callers pass the full message list.
        `id` and `created` cannot be changed. Returns None if the id is unknown.
        """
        state = await self.load_state()
        session = state.sessions.get(session_id)
        if session is None:
            logger.debug(f"update_session: unknown session '{session_id}'.")
            return None

        fields = dict(updates)
        for name in _IMMUTABLE_FIELDS:
            if name in fields:
                logger.warning(f"update_session: ignoring attempt to change '{name}' of session '{session_id}'.")
                fields.pop(name)

        merged = {
            **session.model_dump(),
            **fields,
            "id": session.id,
            "created": session.created,
            "updated": self._bump(session),
        }
        updated_session = ChatSession.model_validate(merged)
        state.sessions[session_id] = updated_session
        await self.save_state(state)
        return updated_session

    async def rename_session(self, session_id: str, title: str) -> Optional[ChatSession]:
        return await self.update_session(session_id, {"title": title})

    async def delete_session(self, session_id: str) -> bool:
        """
        Delete a session. If it was active, the newest remaining session
        becomes active, or a fresh session is created when none remain.

        Returns False if the id is unknown.
        """
        state = await self.load_state()
        if session_id not in state.sessions:
            logger.debug(f"delete_session: unknown session '{session_id}'.")
            return False

        del state.sessions[session_id]
        if session_id in state.session_order:
            state.session_order.remove(session_id)

        if state.active_session_id == session_id:
            if state.session_order:
                state.active_session_id = state.session_order[0]
            else:
                state.active_session_id = None
                self._create_in_state(state)

        await self.save_state(state)
        logger.debug(f"Deleted session '{session_id}'.")
        return True

    async def cleanup_old_sessions(self) -> int:
        """
        Remove sessions not updated within the retention window.

        Storage is only written when something was removed. Returns the
        number of removed sessions.
        """
        state = await self.load_state()
        cutoff = self._clock() - self.retention

        expired_ids = [sid for sid, s in state.sessions.items() if s.updated < cutoff]
        if not expired_ids:
            return 0

        for session_id in expired_ids:
            del state.sessions[session_id]
            if session_id in state.session_order:
                state.session_order.remove(session_id)
        if state.active_session_id in expired_ids:
            state.active_session_id = None

        await self.save_state(state)
        logger.info(f"Removed {len(expired_ids)} session(s) older than {self.retention.days} days.")
        return len(expired_ids)
