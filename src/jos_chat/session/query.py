"""
Search, export, import and statistics over the session store.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import Field, TypeAdapter, ValidationError, field_validator

from jos_chat.session.data_models import ChatSession, StorageStats, dump_sessions
from jos_chat.session.exceptions import ImportValidationError, StorageWriteError
from jos_chat.session.store import SessionStore

logger = logging.getLogger(__name__)

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


class ImportedSession(ChatSession):
    """Schema an imported session must satisfy before it replaces history."""

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    created_at: int = Field(alias="createdAt")

    @field_validator("created_at", mode="before")
    @classmethod
    def _numeric_created_at(cls, value):
        # Whole-number floats pass; bools, strings and fractions do not
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("createdAt must be a number")
        return value


_import_adapter = TypeAdapter(list[ImportedSession])


def utf16_length(text: str) -> int:
    """Length of ``text`` in UTF-16 code units."""
    return len(text.encode("utf-16-le")) // 2


def format_bytes(num_bytes: int) -> str:
    """Human-readable 1024-based size, e.g. ``1.5 KB`` or ``0 Bytes``."""
    if num_bytes <= 0:
        return "0 Bytes"
    unit = 0
    while unit < len(SIZE_UNITS) - 1 and num_bytes >= 1024 ** (unit + 1):
        unit += 1
    value = f"{num_bytes / 1024 ** unit:.2f}".rstrip("0").rstrip(".")
    return f"{value} {SIZE_UNITS[unit]}"


def parse_history(raw: str) -> list[ChatSession]:
    """Validate an exported history document.

    Raises:
        ImportValidationError: If the payload is not a valid session array
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise ImportValidationError(f"Not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ImportValidationError("Expected a JSON array of sessions")

    try:
        imported = _import_adapter.validate_python(data)
    except ValidationError as e:
        raise ImportValidationError(f"Invalid session data: {e}") from e

    ids = [session.id for session in imported]
    if len(set(ids)) != len(ids):
        raise ImportValidationError("Duplicate session ids")

    return [ChatSession.model_validate(session.to_document()) for session in imported]


class HistoryQuery:
    """Read-mostly operations over a SessionStore."""

    def __init__(self, store: SessionStore):
        self.store = store

    def search_sessions(self, query: str) -> list[ChatSession]:
        """Sessions whose title or any message contains ``query``.

        Matching is case-insensitive. Results keep the recency order.
        """
        return [session for session in self.store.list_sessions() if session.matches(query)]

    def export_history(self) -> str:
        """All sessions as a pretty-printed JSON array."""
        return dump_sessions(self.store.list_sessions())

    def export_to_file(self, path: Path | str) -> Path:
        """Write the exported history to ``path``.

        Raises:
            StorageWriteError: If the file cannot be written
        """
        target = Path(path).expanduser()
        try:
            target.write_text(self.export_history(), encoding="utf-8")
        except OSError as e:
            raise StorageWriteError(target, e.strerror or str(e)) from e
        return target

    def import_history(self, raw: str) -> bool:
        """Replace the whole history with an exported document.

        Nothing changes unless every session validates.

        Returns:
            True if the history was replaced, False if ``raw`` was rejected
        """
        try:
            sessions = parse_history(raw)
        except ImportValidationError as e:
            logger.warning("Rejected chat history import: %s", e)
            return False

        self.store.replace_all(sessions)
        logger.info("Imported %d sessions", len(sessions))
        return True

    def import_from_file(self, path: Path | str) -> bool:
        """Import history from an exported file."""
        raw = Path(path).expanduser().read_text(encoding="utf-8")
        return self.import_history(raw)

    def storage_stats(self) -> StorageStats:
        """Counts and approximate size of the stored history.

        The size counts two bytes per UTF-16 code unit of the compact JSON.
        """
        file_exists = self.store.storage.exists
        sessions = self.store.list_sessions()
        byte_count = 2 * utf16_length(dump_sessions(sessions, indent=None))
        return StorageStats(
            session_count=len(sessions),
            total_messages=sum(len(s.messages) for s in sessions),
            byte_count=byte_count,
            approx_byte_size=format_bytes(byte_count),
            file_path=str(self.store.storage.path),
            file_exists=file_exists,
        )
