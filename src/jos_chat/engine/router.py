"""
Command router for the presentation layer.

The presentation layer (editor panel, CLI) sends commands as dicts such as
``{"command": "chatMessage", "message": "...", "sessionId": "..."}`` and
re-renders from the returned payload dict. The router owns the "current
session" pointer; the store never does.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from jos_chat.engine.chat import ChatService
from jos_chat.session import ChatSession, HistoryQuery, SessionStore, StorageWriteError

logger = logging.getLogger(__name__)

Payload = dict[str, Any]
Handler = Callable[["CommandRouter", Payload], Payload]


@dataclass
class RouteEntry:
    """Entry for a registered presentation command."""

    name: str
    handler: Handler
    description: str
    aliases: list[str] = field(default_factory=list)


class RouteRegistry:
    """Registry of presentation commands."""

    def __init__(self):
        self._routes: dict[str, RouteEntry] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        name: str,
        description: str,
        aliases: list[str] | None = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator to register a command handler.

        Example:
            @route_registry.register("storageStats", "Report storage usage")
            def route_stats(router, message):
                ...
        """
        def decorator(func: Handler) -> Handler:
            entry = RouteEntry(
                name=name,
                handler=func,
                description=description,
                aliases=aliases or [],
            )
            self._routes[name] = entry
            for alias in entry.aliases:
                self._aliases[alias] = name
            return func
        return decorator

    def get(self, name: str) -> RouteEntry | None:
        """Get a route by name or alias."""
        if name in self._routes:
            return self._routes[name]
        if name in self._aliases:
            return self._routes[self._aliases[name]]
        return None

    def all_routes(self) -> list[RouteEntry]:
        return sorted(self._routes.values(), key=lambda e: e.name)


# Global route registry
route_registry = RouteRegistry()


def session_payload(sessions: list[ChatSession]) -> list[dict[str, Any]]:
    return [session.to_document() for session in sessions]


class CommandRouter:
    """Dispatches presentation commands to the store and chat service."""

    def __init__(
        self,
        store: SessionStore,
        chat: Optional[ChatService] = None,
        history_limit: int = 10,
    ):
        self.store = store
        self.query = HistoryQuery(store)
        self.chat = chat or ChatService(store)
        self.history_limit = history_limit
        self.current_session_id: Optional[str] = None

    def dispatch(self, message: Payload) -> Payload:
        """Handle one command and return the payload to render."""
        name = message.get("command")
        entry = route_registry.get(name) if isinstance(name, str) else None
        if entry is None:
            return {"command": "error", "message": f"Unknown command: {name}"}
        try:
            return entry.handler(self, message)
        except StorageWriteError as e:
            logger.error("Command %s failed: %s", name, e)
            return {
                "command": "error",
                "message": f"{e}. Check that the folder is writable and the disk is not full.",
            }

    def history_payload(self) -> Payload:
        return {
            "command": "chatHistory",
            "sessions": session_payload(self.store.recent_sessions(self.history_limit)),
        }


@route_registry.register("requestChatHistory", "Send recent sessions", aliases=["refreshHistory"])
def route_history(router: CommandRouter, message: Payload) -> Payload:
    return router.history_payload()


@route_registry.register("createSession", "Start a new session")
def route_create(router: CommandRouter, message: Payload) -> Payload:
    session = router.store.create_session(message.get("title"))
    router.current_session_id = session.id
    return {"command": "newSession", "sessionId": session.id, "createdSession": session.to_document()}


@route_registry.register("chatMessage", "Send a chat message")
def route_chat(router: CommandRouter, message: Payload) -> Payload:
    text = message.get("message", "")
    if not isinstance(text, str):
        return {"command": "error", "message": "chatMessage needs a text \"message\""}
    session_id = message.get("sessionId") or router.current_session_id
    turn = router.chat.send(text, session_id)
    router.current_session_id = turn.session.id
    payload: Payload = {
        "command": "chatResponse",
        "text": turn.reply.text,
        "sessionId": turn.session.id,
    }
    if turn.created_session:
        payload["createdSession"] = turn.session.to_document()
    return payload


@route_registry.register("loadSession", "Load a session's messages")
def route_load(router: CommandRouter, message: Payload) -> Payload:
    session_id = message.get("sessionId", "")
    session = router.store.get_session(session_id)
    if session is None:
        return {"command": "error", "message": f"Session not found: {session_id}"}
    router.current_session_id = session.id
    return {
        "command": "loadSessionMessages",
        "sessionId": session.id,
        "messages": [msg.model_dump(by_alias=True, exclude_none=True) for msg in session.messages],
    }


@route_registry.register("renameSession", "Rename a session")
def route_rename(router: CommandRouter, message: Payload) -> Payload:
    title = message.get("title")
    if not isinstance(title, str) or not title.strip():
        return {"command": "error", "message": "renameSession needs a non-empty \"title\""}
    router.store.update_session_title(message.get("sessionId", ""), title)
    return router.history_payload()


@route_registry.register("deleteSession", "Delete a session")
def route_delete(router: CommandRouter, message: Payload) -> Payload:
    session_id = message.get("sessionId", "")
    router.store.delete_session(session_id)
    if router.current_session_id == session_id:
        router.current_session_id = None
    return router.history_payload()


@route_registry.register("clearHistory", "Delete all sessions", aliases=["clearAllHistory"])
def route_clear(router: CommandRouter, message: Payload) -> Payload:
    router.store.clear_all()
    router.current_session_id = None
    return router.history_payload()


@route_registry.register("searchSessions", "Search sessions")
def route_search(router: CommandRouter, message: Payload) -> Payload:
    query = message.get("query") or ""
    sessions = router.query.search_sessions(query) if query else router.store.list_sessions()
    return {"command": "searchResults", "query": query, "sessions": session_payload(sessions)}


@route_registry.register("exportHistory", "Export all sessions as JSON")
def route_export(router: CommandRouter, message: Payload) -> Payload:
    return {"command": "exportedHistory", "data": router.query.export_history()}


@route_registry.register("importHistory", "Replace history with exported JSON")
def route_import(router: CommandRouter, message: Payload) -> Payload:
    success = router.query.import_history(message.get("data", ""))
    if success:
        router.current_session_id = None
    return {"command": "importResult", "success": success}


@route_registry.register("storageStats", "Report storage usage")
def route_stats(router: CommandRouter, message: Payload) -> Payload:
    stats = router.query.storage_stats()
    return {
        "command": "storageStats",
        "sessionCount": stats.session_count,
        "totalMessages": stats.total_messages,
        "approxByteSize": stats.approx_byte_size,
        "filePath": stats.file_path,
        "fileExists": stats.file_exists,
    }
