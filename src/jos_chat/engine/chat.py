"""
Chat service: the calling layer between the presentation and the store.

Stores the user's message, asks the response provider for a reply and
stores the reply, or a fixed fallback text when the provider fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from jos_chat.provider import MISSING_KEY_MESSAGE, ApiError, ResponseProvider
from jos_chat.session import ChatMessage, ChatSession, SessionStore

logger = logging.getLogger(__name__)

WELCOME_TITLE = "Welcome to Jos AI"
WELCOME_MESSAGES = (
    "Welcome! I'm Jos AI, your coding assistant.",
    "How can I help you with your code today?",
)


@dataclass
class ChatTurn:
    """Result of one user message and its reply."""

    session: ChatSession
    user_message: ChatMessage
    reply: ChatMessage
    created_session: bool = False
    error: Optional[ApiError] = None


class ChatService:
    """Runs chat turns against a SessionStore and a ResponseProvider."""

    def __init__(
        self,
        store: SessionStore,
        provider: Optional[ResponseProvider] = None,
        context_messages: int = 20,
    ):
        """Initialize the chat service.

        Args:
            store: Session store for history
            provider: Reply source; None means no API key is configured
            context_messages: How many earlier messages to send as context
        """
        self.store = store
        self.provider = provider
        self.context_messages = context_messages

    def resolve_session(self, session_id: Optional[str]) -> tuple[ChatSession, bool]:
        """Find the session to chat in, creating one if needed.

        Returns:
            Tuple of (session, True if it was just created)
        """
        if session_id:
            session = self.store.get_session(session_id)
            if session is not None:
                return session, False
            logger.info("Session %s not found, starting a new one", session_id)
        return self.store.create_session(), True

    def send(self, text: str, session_id: Optional[str] = None) -> ChatTurn:
        """Store a user message and its reply.

        Args:
            text: The user's message
            session_id: Session to continue; unknown or None starts a new one

        Returns:
            ChatTurn with the updated session

        Raises:
            StorageWriteError: If history cannot be saved
        """
        session, created = self.resolve_session(session_id)
        context = session.messages[-self.context_messages:] if self.context_messages else []

        user_message = self.store.add_message(session.id, text, True)

        error: Optional[ApiError] = None
        if self.provider is None:
            reply_text = MISSING_KEY_MESSAGE
        else:
            try:
                reply_text = self.provider.get_response(text, context)
            except ApiError as e:
                logger.warning("Model request failed (%s): %s", e.kind.value, e)
                reply_text = e.fallback_message
                error = e

        reply = self.store.add_message(session.id, reply_text, False)
        session = self.store.get_session(session.id) or session
        return ChatTurn(
            session=session,
            user_message=user_message,
            reply=reply,
            created_session=created,
            error=error,
        )

    def ensure_welcome_session(self) -> Optional[ChatSession]:
        """Seed an empty history with a welcome session.

        Returns:
            The welcome session, or None if history already had sessions
        """
        if self.store.recent_sessions(1):
            return None
        session = self.store.create_session(WELCOME_TITLE)
        for text in WELCOME_MESSAGES:
            self.store.add_message(session.id, text, False)
        return self.store.get_session(session.id)
