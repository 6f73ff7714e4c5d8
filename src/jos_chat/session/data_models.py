"""
Session data models for jos-chat.

Pydantic models for the persisted chat history. Python attributes are
snake_case; the on-disk document uses the camelCase aliases.
"""

from __future__ import annotations

import json
import time
import uuid
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def generate_id() -> str:
    """Generate a fresh opaque id for a session or message."""
    return str(uuid.uuid4())


class ChatMessage(BaseModel):
    """A single turn in a session, written by the user or the assistant."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=generate_id)
    text: str
    is_user: bool = Field(alias="isUser")
    timestamp: int = Field(default_factory=now_ms)
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ChatSession(BaseModel):
    """One conversation thread with its metadata."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_id)
    title: str
    messages: list[ChatMessage] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms, alias="createdAt")
    last_updated_at: Optional[int] = Field(default=None, alias="lastUpdatedAt")

    @model_validator(mode="after")
    def _fill_last_updated(self) -> "ChatSession":
        # Older documents may lack lastUpdatedAt; it can never precede createdAt
        if self.last_updated_at is None or self.last_updated_at < self.created_at:
            self.last_updated_at = self.created_at
        return self

    def touch(self, timestamp: int) -> None:
        """Advance last_updated_at, never moving it backwards."""
        self.last_updated_at = max(timestamp, self.last_updated_at or 0, self.created_at)

    def user_message_count(self) -> int:
        return sum(1 for msg in self.messages if msg.is_user)

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on the title or any message text."""
        needle = query.lower()
        if needle in self.title.lower():
            return True
        return any(needle in msg.text.lower() for msg in self.messages)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the on-disk (camelCase) representation."""
        return self.model_dump(by_alias=True, exclude_none=True)


class StorageStats(BaseModel):
    """Summary of what is currently stored."""

    session_count: int
    total_messages: int
    byte_count: int
    approx_byte_size: str
    file_path: str
    file_exists: bool


def dump_sessions(sessions: list[ChatSession], indent: Optional[int] = 2) -> str:
    """Serialize sessions as a JSON array.

    indent=None produces the compact form used for size estimates.
    """
    documents = [session.to_document() for session in sessions]
    if indent is None:
        return json.dumps(documents, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(documents, ensure_ascii=False, indent=indent)
