"""
Configuration management for jos-chat.

Provides a configuration file at ~/.jos/config.json for default settings.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


# Default values - single source of truth
DEFAULTS = {
    "model": "gemini-1.5-flash-latest",
    "temperature": 0.7,
    "max_output_tokens": 1024,
    "timeout": 30.0,
    "max_sessions": 50,
    "max_messages_per_session": 100,
    "log_level": "WARNING",
}


class Config(BaseModel):
    """Configuration settings for jos-chat.

    All settings are optional. Use DEFAULTS for default values.
    """

    model_config = {"extra": "ignore"}  # Ignore unknown fields like _comment

    # Provider settings
    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key"
    )
    model: Optional[str] = Field(
        default=None,
        description="Gemini model name"
    )
    temperature: Optional[float] = Field(
        default=None,
        description="Sampling temperature for chat replies"
    )
    max_output_tokens: Optional[int] = Field(
        default=None,
        description="Maximum tokens in a chat reply"
    )
    timeout: Optional[float] = Field(
        default=None,
        description="Request timeout in seconds"
    )

    # History settings
    history_path: Optional[str] = Field(
        default=None,
        description="Explicit path of the chat history file"
    )
    workspace: Optional[str] = Field(
        default=None,
        description="Workspace root; history is kept in <workspace>/.jos/"
    )
    max_sessions: Optional[int] = Field(
        default=None,
        description="Maximum number of stored sessions"
    )
    max_messages_per_session: Optional[int] = Field(
        default=None,
        description="Maximum number of messages kept per session"
    )

    # Logging
    log_level: Optional[str] = Field(
        default=None,
        description="Log level (DEBUG, INFO, WARNING, ERROR)"
    )

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value with fallback to DEFAULTS, then to provided default."""
        value = getattr(self, key, None)
        if value is not None:
            return value
        return DEFAULTS.get(key, default)


class ConfigManager:
    """Reads and writes ~/.jos/config.json.

    The file is a flat JSON object keyed by Config field names. A missing
    file is written as a commented template holding the DEFAULTS; keys the
    Config model does not know (like ``_comment``) are preserved on save.
    """

    CONFIG_DIR = Path.home() / ".jos"
    CONFIG_FILE = CONFIG_DIR / "config.json"

    def __init__(self):
        self._config: Optional[Config] = None

    @property
    def config(self) -> Config:
        """Current config, read from disk on first access."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def _read_raw(self) -> dict[str, Any]:
        """The config file as a dict; {} when missing or not a JSON object."""
        try:
            data = json.loads(self.CONFIG_FILE.read_text())
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            logger.warning("Invalid config file %s (%s), using defaults", self.CONFIG_FILE, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_raw(self, data: dict[str, Any]) -> Path:
        self.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        self.CONFIG_FILE.write_text(json.dumps(data, indent=2) + "\n")
        return self.CONFIG_FILE

    def load(self, create_if_missing: bool = True) -> Config:
        """Read the config file.

        Args:
            create_if_missing: Write the DEFAULTS template when there is no file

        Returns:
            The stored settings; an empty Config if the file is missing or invalid
        """
        if not self.CONFIG_FILE.exists():
            if create_if_missing:
                template: dict[str, Any] = {"_comment": "jos-chat configuration file"}
                template.update({key: DEFAULTS.get(key) for key in Config.model_fields})
                self._write_raw(template)
            return Config()

        try:
            return Config.model_validate(self._read_raw())
        except ValidationError as e:
            logger.warning("Invalid config file %s (%s), using defaults", self.CONFIG_FILE, e)
            return Config()

    def save(self, config: Optional[Config] = None) -> Path:
        """Merge the non-None settings of ``config`` into the file."""
        if config is not None:
            self._config = config
        data = self._read_raw()
        data.update((self._config or Config()).model_dump(exclude_none=True))
        return self._write_raw(data)

    def _check_key(self, key: str) -> None:
        if key not in Config.model_fields:
            raise ValueError(f"Unknown config key: {key}")

    def set(self, key: str, value: Any) -> None:
        """Validate ``value`` (CLI strings are coerced) and persist it.

        Raises:
            ValueError: If the key is unknown or the value has the wrong type.
        """
        self._check_key(key)
        data = self.load().model_dump()
        data[key] = value
        try:
            self._config = Config.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {key}: {value!r}") from e
        self.save()

    def unset(self, key: str) -> None:
        """Drop a setting back to its default."""
        self._check_key(key)
        self._config = self.load().model_copy(update={key: None})
        data = self._read_raw()
        if key in data:
            data[key] = None
            self._write_raw(data)

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def list_settings(self) -> dict[str, Any]:
        """Settings that are set and differ from DEFAULTS."""
        return {
            key: value
            for key, value in self.config.model_dump(exclude_none=True).items()
            if value != DEFAULTS.get(key)
        }

    def reset(self) -> None:
        """Delete the config file; every setting falls back to DEFAULTS."""
        self._config = Config()
        self.CONFIG_FILE.unlink(missing_ok=True)


_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Process-wide ConfigManager."""
    global _manager
    if _manager is None:
        _manager = ConfigManager()
    return _manager


def get_config() -> Config:
    return get_config_manager().config
