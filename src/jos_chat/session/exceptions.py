"""
Exception classes for chat history persistence.
"""
from __future__ import annotations


class HistoryError(Exception):
    """Base exception for chat history errors."""


class StorageError(HistoryError):
    """Error reading or writing the history file."""


class StorageReadError(StorageError):
    """History file is corrupt or not a session document.

    Never escapes the storage backend; load() recovers from it.
    """


class StorageWriteError(StorageError):
    """History file could not be written (disk full, permission denied...)."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not save chat history to {path}: {reason}")


class SessionNotFoundError(HistoryError):
    """Session id does not resolve to a stored session."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class ImportValidationError(HistoryError):
    """Imported history payload is malformed."""
