"""
jos_chat - Chat history for the Jos AI coding assistant

Durable storage of chat sessions in a single JSON document, with retention
limits, search and export/import, plus the calling layer that talks to the
Gemini API and stores its replies.

Example usage:
    from jos_chat import HistoryStorage, SessionStore, resolve_storage_path

    store = SessionStore(HistoryStorage(resolve_storage_path(workspace=".")))
    session = store.create_session()
    store.add_message(session.id, "Fix the null pointer bug in parser", True)
    print(store.list_sessions()[0].title)
"""

__version__ = "0.1.0"

from jos_chat.session import (
    MAX_MESSAGES_PER_SESSION,
    MAX_SESSIONS,
    ChatMessage,
    ChatSession,
    HistoryError,
    HistoryQuery,
    HistoryStorage,
    ImportValidationError,
    SessionNotFoundError,
    SessionStore,
    StorageStats,
    StorageWriteError,
    resolve_storage_path,
)


# Lazy import for the engine (pulls in httpx)
def __getattr__(name):
    if name in ("ChatService", "CommandRouter", "open_store"):
        from jos_chat import engine
        return getattr(engine, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",
    # Models
    "ChatMessage",
    "ChatSession",
    "StorageStats",
    # Storage and store
    "HistoryStorage",
    "SessionStore",
    "HistoryQuery",
    "resolve_storage_path",
    "MAX_SESSIONS",
    "MAX_MESSAGES_PER_SESSION",
    # Exceptions
    "HistoryError",
    "StorageWriteError",
    "SessionNotFoundError",
    "ImportValidationError",
    # Engine (lazy loaded)
    "ChatService",
    "CommandRouter",
    "open_store",
]
