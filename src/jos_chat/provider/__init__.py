"""Model-response providers for jos-chat."""

from jos_chat.provider.base import (
    FALLBACK_MESSAGES,
    MISSING_KEY_MESSAGE,
    ApiError,
    ApiErrorKind,
    ResponseProvider,
)
from jos_chat.provider.gemini import GeminiProvider

__all__ = [
    "ApiError",
    "ApiErrorKind",
    "FALLBACK_MESSAGES",
    "MISSING_KEY_MESSAGE",
    "ResponseProvider",
    "GeminiProvider",
]
