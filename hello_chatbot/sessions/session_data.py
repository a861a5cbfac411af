# hello_chatbot/sessions/session_data.py
import time
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SESSION_TITLE = "New Chat"
TITLE_MAX_LENGTH = 30


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Timestamps without an offset are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def generate_session_id() -> str:
    """Timestamp plus random suffix, e.g. ``session-1718000000000-3f9a1c2b7``."""
    return f"session-{int(time.time() * 1000)}-{uuid4().hex[:9]}"


def generate_message_id() -> str:
    return f"msg-{uuid4().hex}"


def derive_session_title(content: str, max_length: int = TITLE_MAX_LENGTH) -> str:
    """Title from the first user message: the first 30 characters, plus "..." when cut."""
    if len(content) <= max_length:
        return content
    return content[:max_length] + "..."


class MessageReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    description: str = ""


class ChatMessage(BaseModel):
    """
    One message in a conversation.

    Frozen: a stored message is never edited, only followed by new ones.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_message_id)
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    references: Optional[List[MessageReference]] = None
    actions: Optional[List[str]] = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ChatSession(BaseModel):
    """A conversation: ordered messages plus title and timestamps."""

    id: str = Field(default_factory=generate_session_id)
    title: str = DEFAULT_SESSION_TITLE
    messages: List[ChatMessage] = Field(default_factory=list)
    created: datetime = Field(default_factory=utcnow)
    updated: datetime = Field(default_factory=utcnow)

    @field_validator("created", "updated")
    @classmethod
    def timestamps_as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def has_default_title(self) -> bool:
        return self.title == DEFAULT_SESSION_TITLE


class SessionStoreState(BaseModel):
    """
    The persisted aggregate of all conversations.

    Serialized with camelCase keys:
    ``{"sessions": {...}, "activeSessionId": ..., "sessionOrder": [...]}``.
    `session_order` lists ids most-recently-created first and is always a
    permutation of the keys of `sessions`.
    """

    model_config = ConfigDict(populate_by_name=True)

    sessions: Dict[str, ChatSession] = Field(default_factory=dict)
    active_session_id: Optional[str] = Field(default=None, alias="activeSessionId")
    session_order: List[str] = Field(default_factory=list, alias="sessionOrder")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def repair(self) -> bool:
        """
        Restore the order/active-pointer invariants after loading.

        Unknown ids are dropped from the order, sessions missing from it are
        appended oldest-created last, and a dangling active pointer is
        cleared. Returns True if anything changed.
        """
        changed = False
        seen = set()
        order: List[str] = []
        for session_id in self.session_order:
            if session_id in self.sessions and session_id not in seen:
                order.append(session_id)
                seen.add(session_id)
        missing = [(key, s) for key, s in self.sessions.items() if key not in seen]
        missing.sort(key=lambda item: item[1].created, reverse=True)
        order.extend(key for key, _ in missing)
        if order != self.session_order:
            self.session_order = order
            changed = True
        if self.active_session_id is not None and self.active_session_id not in self.sessions:
            self.active_session_id = None
            changed = True
        return changed
