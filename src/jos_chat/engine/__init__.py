"""
Engine module for jos-chat.

Calling layer between the presentation and the session store.
"""

from jos_chat.engine.chat import ChatService, ChatTurn
from jos_chat.engine.factory import build_provider, open_store
from jos_chat.engine.router import CommandRouter, route_registry

__all__ = [
    "ChatService",
    "ChatTurn",
    "CommandRouter",
    "route_registry",
    "build_provider",
    "open_store",
]
