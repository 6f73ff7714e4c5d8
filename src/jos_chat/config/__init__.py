"""Configuration management for jos-chat."""

from jos_chat.config.config import (
    DEFAULTS,
    Config,
    ConfigManager,
    get_config,
    get_config_manager,
)

__all__ = [
    "DEFAULTS",
    "Config",
    "ConfigManager",
    "get_config",
    "get_config_manager",
]
