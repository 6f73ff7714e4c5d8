"""
Session store for jos-chat.

CRUD over sessions and messages. Every public operation is one
load -> mutate -> save cycle against the storage backend, run through the
store's operation queue. The store keeps no session state between calls;
callers pass session ids explicitly.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable, Optional

from jos_chat.session.data_models import ChatMessage, ChatSession, generate_id, now_ms
from jos_chat.session.exceptions import SessionNotFoundError
from jos_chat.session.queue import OperationQueue, serialized
from jos_chat.session.storage import HistoryStorage

logger = logging.getLogger(__name__)

MAX_SESSIONS = 50
MAX_MESSAGES_PER_SESSION = 100

# Derived titles keep at most this many words / characters
TITLE_MAX_WORDS = 6
TITLE_MAX_CHARS = 50

# "Chat <date> <time>" in any locale's numeric layout, e.g. "Chat 1/7/2025 2:23:05 PM",
# "Chat 07.01.2025 14:23:05", "Chat 2025/1/7 14:23:05" or "Chat 07/01/2025, 14:23"
DEFAULT_TITLE_RE = re.compile(
    r"^Chat \d{1,4}[./-]\d{1,2}[./-]\d{1,4}\.?,? "
    r"\d{1,2}[:.]\d{2}(?:[:.]\d{2})?(?:\s?(?:[AaPp]\.?\s?[Mm]\.?))?$"
)


def default_title(timestamp_ms: int) -> str:
    """Timestamp label for a fresh session, e.g. ``Chat 1/7/2025 2:23:05 PM``."""
    dt = datetime.fromtimestamp(timestamp_ms / 1000)
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"Chat {dt.month}/{dt.day}/{dt.year} {hour}:{dt:%M:%S} {meridiem}"


def is_default_title(title: str) -> bool:
    return bool(DEFAULT_TITLE_RE.match(title))


def derive_title(text: str) -> str:
    """Build a session title from the first user message.

    Takes the first six words; anything longer than 50 characters is cut
    to 47 and ends in "...". Returns "" for blank text.
    """
    title = " ".join(text.split()[:TITLE_MAX_WORDS])
    if len(title) > TITLE_MAX_CHARS:
        title = title[: TITLE_MAX_CHARS - 3] + "..."
    return title


class SessionStore:
    """Manages chat sessions on top of a HistoryStorage."""

    def __init__(
        self,
        storage: HistoryStorage,
        max_sessions: int = MAX_SESSIONS,
        max_messages: int = MAX_MESSAGES_PER_SESSION,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = generate_id,
    ):
        """Initialize the session store.

        Args:
            storage: Backend holding the history document
            max_sessions: Retention cap on the number of sessions
            max_messages: Retention cap on messages per session
            clock: Returns the current time in epoch milliseconds
            id_factory: Returns a fresh opaque id
        """
        self.storage = storage
        self.max_sessions = max_sessions
        self.max_messages = max_messages
        self._clock = clock
        self._id_factory = id_factory
        self._queue = OperationQueue()

    # =========================================================================
    # Internals (callers must hold the queue)
    # =========================================================================

    def _load_sorted(self) -> list[ChatSession]:
        """Load sessions, most recently updated first (stable for ties)."""
        sessions = self.storage.load()
        return sorted(sessions, key=lambda s: s.last_updated_at, reverse=True)

    def _commit(self, sessions: list[ChatSession]) -> None:
        """Apply the session cap to an ordered list and persist it."""
        if len(sessions) > self.max_sessions:
            evicted = sessions[self.max_sessions:]
            logger.info(
                "Session limit %d reached, dropping %d oldest session(s)",
                self.max_sessions,
                len(evicted),
            )
            del sessions[self.max_sessions:]
        self.storage.save(sessions)

    def _trim_messages(self, session: ChatSession) -> None:
        overflow = len(session.messages) - self.max_messages
        if overflow > 0:
            del session.messages[:overflow]

    def _new_session_id(self, sessions: list[ChatSession]) -> str:
        taken = {s.id for s in sessions}
        session_id = self._id_factory()
        while session_id in taken:
            session_id = self._id_factory()
        return session_id

    @staticmethod
    def _find(sessions: list[ChatSession], session_id: str) -> Optional[ChatSession]:
        for session in sessions:
            if session.id == session_id:
                return session
        return None

    # =========================================================================
    # Queries
    # =========================================================================

    @serialized
    def list_sessions(self) -> list[ChatSession]:
        """All sessions, most recently active first."""
        return self._load_sorted()

    @serialized
    def get_session(self, session_id: str) -> Optional[ChatSession]:
        return self._find(self._load_sorted(), session_id)

    @serialized
    def recent_sessions(self, limit: int = 10) -> list[ChatSession]:
        """The ``limit`` most recently active sessions."""
        return self._load_sorted()[: max(limit, 0)]

    # =========================================================================
    # Mutations
    # =========================================================================

    @serialized
    def create_session(self, title: Optional[str] = None) -> ChatSession:
        """Create an empty session at the front of the history.

        Args:
            title: Session title; defaults to a timestamp label

        Returns:
            The created ChatSession
        """
        now = self._clock()
        sessions = self._load_sorted()
        session = ChatSession(
            id=self._new_session_id(sessions),
            title=title or default_title(now),
            created_at=now,
            last_updated_at=now,
        )
        sessions.insert(0, session)
        self._commit(sessions)
        logger.debug("Created session %s", session.id)
        return session

    @serialized
    def add_message(self, session_id: str, text: str, is_user: bool) -> ChatMessage:
        """Append a message to a session.

        The first user message replaces a still-default title with a title
        derived from its text. The oldest messages are dropped once the
        session exceeds its message cap.

        Args:
            session_id: Target session
            text: Message text (may be empty)
            is_user: True for the human, False for the assistant

        Returns:
            The created ChatMessage

        Raises:
            SessionNotFoundError: If the session does not exist
            StorageWriteError: If the history cannot be saved
        """
        sessions = self._load_sorted()
        session = self._find(sessions, session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        now = self._clock()
        if session.messages:
            now = max(now, session.messages[-1].timestamp)

        message = ChatMessage(
            id=self._id_factory(),
            text=text,
            is_user=is_user,
            timestamp=now,
            session_id=session.id,
        )
        session.messages.append(message)

        if is_user and session.user_message_count() == 1 and is_default_title(session.title):
            derived = derive_title(text)
            if derived:
                session.title = derived

        session.touch(now)
        self._trim_messages(session)
        self._commit(sessions)
        return message

    @serialized
    def update_session_title(self, session_id: str, title: str) -> None:
        """Rename a session. Unknown ids are ignored."""
        sessions = self._load_sorted()
        session = self._find(sessions, session_id)
        if session is None:
            logger.debug("Rename skipped, no session %s", session_id)
            return
        session.title = title
        session.touch(self._clock())
        self._commit(sessions)

    @serialized
    def delete_session(self, session_id: str) -> None:
        """Delete a session. Unknown ids are ignored."""
        sessions = self._load_sorted()
        remaining = [s for s in sessions if s.id != session_id]
        if len(remaining) == len(sessions):
            logger.debug("Delete skipped, no session %s", session_id)
            return
        self._commit(remaining)

    @serialized
    def clear_all(self) -> None:
        """Delete every session. Irreversible."""
        self.storage.save([])
        logger.info("Cleared all chat history")

    @serialized
    def replace_all(self, sessions: list[ChatSession]) -> list[ChatSession]:
        """Overwrite the whole history with ``sessions``.

        Retention caps apply to the new document.

        Returns:
            The sessions as stored, most recently active first
        """
        ordered = sorted(sessions, key=lambda s: s.last_updated_at, reverse=True)
        for session in ordered:
            self._trim_messages(session)
        self._commit(ordered)
        return ordered
