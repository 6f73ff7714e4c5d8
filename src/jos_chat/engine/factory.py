"""Build stores and providers from configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from jos_chat.config import Config, get_config
from jos_chat.provider import GeminiProvider
from jos_chat.session import HistoryStorage, SessionStore, resolve_storage_path


def open_store(
    config: Optional[Config] = None,
    workspace: Optional[Path | str] = None,
    history_path: Optional[Path | str] = None,
) -> SessionStore:
    """Create a SessionStore for the configured history file.

    Explicit arguments win over the config's ``workspace``/``history_path``.
    """
    config = config or get_config()
    path = resolve_storage_path(
        workspace=workspace or config.get("workspace"),
        override=history_path or config.get("history_path"),
    )
    return SessionStore(
        HistoryStorage(path),
        max_sessions=config.get("max_sessions"),
        max_messages=config.get("max_messages_per_session"),
    )


def build_provider(config: Optional[Config] = None) -> Optional[GeminiProvider]:
    """Create the Gemini provider, or None when no API key is set."""
    config = config or get_config()
    api_key = config.get("api_key")
    if not api_key:
        return None
    return GeminiProvider(
        api_key=api_key,
        model=config.get("model"),
        temperature=config.get("temperature"),
        max_output_tokens=config.get("max_output_tokens"),
        timeout=config.get("timeout"),
    )
