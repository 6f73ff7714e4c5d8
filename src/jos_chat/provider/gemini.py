"""
Gemini response provider.

Calls the Google Generative Language ``generateContent`` REST endpoint with
httpx. No retries; failures surface as ApiError.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx

from jos_chat.provider.base import ApiError, ApiErrorKind
from jos_chat.session.data_models import ChatMessage

logger = logging.getLogger(__name__)

API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_MODEL = "gemini-1.5-flash-latest"
DEFAULT_TIMEOUT = 30.0

CHAT_PROMPT_TEMPLATE = """You are a helpful AI assistant specializing in programming and code-related questions.

User question: {message}

Please provide a helpful, conversational response. If it's about code, explain it clearly. If it's a general question, answer it in a friendly, informative way."""

# HTTP status -> error kind; anything else is OTHER
_STATUS_KINDS = {
    400: ApiErrorKind.INVALID_KEY,
    401: ApiErrorKind.INVALID_KEY,
    403: ApiErrorKind.FORBIDDEN,
    429: ApiErrorKind.RATE_LIMITED,
}


class GeminiProvider:
    """Chat replies from a Gemini model."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the provider.

        Args:
            api_key: Gemini API key
            model: Model name (e.g. "gemini-1.5-flash-latest")
            temperature: Sampling temperature
            max_output_tokens: Reply length limit
            timeout: Request timeout in seconds
            client: Optional preconfigured httpx client (used by tests)
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))

    @property
    def endpoint(self) -> str:
        return f"{API_BASE_URL}/{self.model}:generateContent"

    def build_payload(
        self,
        prompt: str,
        context: Optional[Sequence[ChatMessage]] = None,
    ) -> dict[str, Any]:
        """Build the generateContent request body."""
        contents = [
            {"role": "user" if msg.is_user else "model", "parts": [{"text": msg.text}]}
            for msg in context or []
        ]
        contents.append({
            "role": "user",
            "parts": [{"text": CHAT_PROMPT_TEMPLATE.format(message=prompt)}],
        })
        return {
            "contents": contents,
            "generationConfig": {
                "temperature": self.temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

    def get_response(
        self,
        prompt: str,
        context: Optional[Sequence[ChatMessage]] = None,
    ) -> str:
        """Ask the model for a reply.

        Args:
            prompt: The user's message
            context: Earlier messages of the conversation, oldest first

        Returns:
            Reply text

        Raises:
            ApiError: On HTTP, transport or response-shape failures
        """
        try:
            response = self._client.post(
                self.endpoint,
                params={"key": self.api_key},
                json=self.build_payload(prompt, context),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            kind = _STATUS_KINDS.get(status, ApiErrorKind.OTHER)
            logger.warning("Gemini API returned HTTP %d", status)
            raise ApiError(kind, f"Gemini API error: HTTP {status}", status_code=status) from e
        except httpx.TransportError as e:
            logger.warning("Gemini API request failed: %s", e)
            raise ApiError(ApiErrorKind.NETWORK, f"Gemini API request failed: {e}") from e

        return self._extract_text(response)

    @staticmethod
    def _extract_text(response: httpx.Response) -> str:
        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ApiError(ApiErrorKind.OTHER, "Unexpected Gemini API response") from e
        if not text:
            raise ApiError(ApiErrorKind.OTHER, "Empty Gemini API response")
        return text

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "GeminiProvider":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
