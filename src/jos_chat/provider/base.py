"""Response provider interface and its error taxonomy."""
from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol, Sequence

from jos_chat.session.data_models import ChatMessage


class ApiErrorKind(str, Enum):
    """Why a model request failed."""

    INVALID_KEY = "invalid_key"
    RATE_LIMITED = "rate_limited"
    FORBIDDEN = "forbidden"
    NETWORK = "network"
    OTHER = "other"


# Stored as the assistant reply when a request fails
FALLBACK_MESSAGES = {
    ApiErrorKind.INVALID_KEY: "Invalid Gemini API key or request. Please check your API key.",
    ApiErrorKind.RATE_LIMITED: "Gemini API rate limit exceeded. Please try again later.",
    ApiErrorKind.FORBIDDEN: "Gemini API access denied. Please check your API key permissions.",
    ApiErrorKind.NETWORK: "An error occurred while processing your message. Please try again.",
    ApiErrorKind.OTHER: "Sorry, I couldn't process your request. Please try again.",
}

MISSING_KEY_MESSAGE = (
    "Please set up your Gemini API key first using "
    '"jos-history config set api_key <KEY>"'
)


class ApiError(Exception):
    """A model request failed."""

    def __init__(self, kind: ApiErrorKind, message: str, status_code: Optional[int] = None):
        self.kind = kind
        self.status_code = status_code
        super().__init__(message)

    @property
    def fallback_message(self) -> str:
        return FALLBACK_MESSAGES[self.kind]


class ResponseProvider(Protocol):
    """Anything that turns a prompt (plus prior turns) into reply text."""

    def get_response(
        self,
        prompt: str,
        context: Optional[Sequence[ChatMessage]] = None,
    ) -> str:
        ...
