"""
Storage backend for jos-chat history.

Keeps every session in one JSON array on disk. Each store operation reads
and rewrites the whole document.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from jos_chat.session.data_models import ChatSession, dump_sessions, now_ms
from jos_chat.session.exceptions import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "jos-ai-chat-history.json"
APP_DIR = Path.home() / ".jos"
WORKSPACE_DIRNAME = ".jos"


def resolve_storage_path(
    workspace: Optional[Path | str] = None,
    override: Optional[Path | str] = None,
) -> Path:
    """Resolve where the history file lives.

    Args:
        workspace: Workspace root, if the host has one open
        override: Explicit file path (config ``history_path``)

    Returns:
        The history file path: the override, else a file inside the
        workspace, else the application-wide file under ~/.jos
    """
    if override:
        return Path(override).expanduser()
    if workspace:
        return Path(workspace).expanduser() / WORKSPACE_DIRNAME / HISTORY_FILENAME
    return APP_DIR / HISTORY_FILENAME


class HistoryStorage:
    """Reads and writes the full session document."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        # Set while the file holds data that was neither read nor backed up
        self._write_block: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def _ensure_dir(self) -> None:
        """Ensure the history directory exists."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read_document(self) -> list[ChatSession]:
        """Parse the history file.

        Raises:
            StorageReadError: If the file is not a valid session array
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise StorageReadError(f"{self.path} is not UTF-8 text: {e}") from e
        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageReadError(f"Invalid JSON in {self.path}: {e}") from e

        if not isinstance(data, list):
            raise StorageReadError(
                f"Expected a JSON array in {self.path}, got {type(data).__name__}"
            )

        try:
            return [ChatSession.model_validate(item) for item in data]
        except ValidationError as e:
            raise StorageReadError(f"Invalid session in {self.path}: {e}") from e

    @property
    def writable(self) -> bool:
        """False while an unreadable file could not be backed up."""
        return self._write_block is None

    def load(self) -> list[ChatSession]:
        """Load all sessions, in stored order.

        Never raises: a missing file is created empty, and a corrupt or
        unreadable file is backed up and reset before returning an empty
        list. If the backup fails the file is left alone and save() refuses
        to overwrite it until a later load() reads or backs it up.
        """
        if not self.path.exists():
            self._write_block = None
            try:
                self.save([])
            except StorageWriteError as e:
                logger.warning("Could not create history file: %s", e)
            return []

        try:
            sessions = self._read_document()
        except StorageReadError as e:
            logger.error("Chat history is corrupt, resetting: %s", e)
            self._recover()
            return []
        except OSError as e:
            logger.error("Could not read chat history %s: %s", self.path, e)
            self._recover()
            return []

        self._write_block = None
        return sessions

    def _recover(self) -> None:
        """Back up an unusable history file and reset it to an empty array."""
        try:
            backup_path = self.backup()
        except OSError as e:
            logger.error("Could not back up chat history, leaving it untouched: %s", e)
            self._write_block = f"{self.path.name} could not be read or backed up"
            return

        self._write_block = None
        logger.error("Chat history backed up to %s", backup_path)
        try:
            self.save([])
        except StorageWriteError as e:
            logger.warning("Could not reset chat history: %s", e)

    def backup(self) -> Path:
        """Copy the history file to ``<path>.backup.<epoch-ms>``.

        Returns:
            Path to the backup file
        """
        backup_path = self.path.with_name(f"{self.path.name}.backup.{now_ms()}")
        shutil.copy2(self.path, backup_path)
        return backup_path

    def save(self, sessions: list[ChatSession]) -> Path:
        """Overwrite the history file with the given sessions.

        Raises:
            StorageWriteError: If the directory or file cannot be written,
                or if it holds data that could not be read or backed up
        """
        if self._write_block is not None:
            raise StorageWriteError(self.path, f"{self._write_block}, refusing to overwrite it")
        try:
            self._ensure_dir()
            self.path.write_text(dump_sessions(sessions) + "\n", encoding="utf-8")
        except OSError as e:
            raise StorageWriteError(self.path, e.strerror or str(e)) from e
        logger.debug("Saved %d sessions to %s", len(sessions), self.path)
        return self.path
