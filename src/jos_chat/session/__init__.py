"""
Session management module for jos-chat.

Provides chat history persistence, retention limits, search and
export/import.
"""

from jos_chat.session.data_models import ChatMessage, ChatSession, StorageStats
from jos_chat.session.exceptions import (
    HistoryError,
    ImportValidationError,
    SessionNotFoundError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from jos_chat.session.query import HistoryQuery
from jos_chat.session.storage import HistoryStorage, resolve_storage_path
from jos_chat.session.store import MAX_MESSAGES_PER_SESSION, MAX_SESSIONS, SessionStore

__all__ = [
    # Models
    "ChatMessage",
    "ChatSession",
    "StorageStats",
    # Storage
    "HistoryStorage",
    "resolve_storage_path",
    # Store
    "SessionStore",
    "HistoryQuery",
    "MAX_SESSIONS",
    "MAX_MESSAGES_PER_SESSION",
    # Exceptions
    "HistoryError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "SessionNotFoundError",
    "ImportValidationError",
]
