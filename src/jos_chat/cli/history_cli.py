#!/usr/bin/env python3
"""
CLI entry point for browsing and managing chat history (jos-history command).
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from jos_chat.config import get_config, get_config_manager
from jos_chat.engine import ChatService, build_provider, open_store
from jos_chat.logging import configure_logging
from jos_chat.session import HistoryError, HistoryQuery, SessionStore


def _store(args) -> SessionStore:
    return open_store(workspace=args.workspace, history_path=args.file)


def _print_sessions(sessions, as_json: bool, empty_message: str) -> None:
    if as_json:
        print(json.dumps([s.to_document() for s in sessions], indent=2, ensure_ascii=False))
        return
    if not sessions:
        print(empty_message)
        return
    for s in sessions:
        print(f"  {s.id[:8]}  {s.title[:50]:<50}  {len(s.messages)} messages")


def cmd_list(args):
    """List sessions, most recent first."""
    store = _store(args)
    sessions = store.recent_sessions(args.limit) if args.limit else store.list_sessions()
    _print_sessions(sessions, args.as_json, "No sessions found.")


def _find_session(store: SessionStore, session_id: str):
    """Resolve a full id or an unambiguous id prefix."""
    session = store.get_session(session_id)
    if session:
        return session
    matches = [s for s in store.list_sessions() if s.id.startswith(session_id)]
    if len(matches) == 1:
        return matches[0]
    if matches:
        raise HistoryError(f"Ambiguous session id: {session_id}")
    return None


def cmd_show(args):
    """Show all messages of a session."""
    store = _store(args)
    session = _find_session(store, args.session_id)
    if session is None:
        print(f"Error: Session not found: {args.session_id}", file=sys.stderr)
        sys.exit(1)

    if args.as_json:
        print(json.dumps(session.to_document(), indent=2, ensure_ascii=False))
        return

    print(f"\n{session.title}  ({session.id})")
    for msg in session.messages:
        speaker = "You" if msg.is_user else "Jos AI"
        print(f"\n[{speaker}]\n{msg.text}")
    print()


def cmd_new(args):
    """Create an empty session."""
    session = _store(args).create_session(args.title)
    print(f"Created session {session.id}: {session.title}")


def cmd_search(args):
    """Search session titles and messages."""
    sessions = HistoryQuery(_store(args)).search_sessions(args.query)
    _print_sessions(sessions, args.as_json, f"No sessions matching '{args.query}'")


def cmd_rename(args):
    """Rename a session."""
    store = _store(args)
    session = _find_session(store, args.session_id)
    if session is None:
        print(f"Error: Session not found: {args.session_id}", file=sys.stderr)
        sys.exit(1)
    store.update_session_title(session.id, args.title)
    print(f"Renamed session {session.id[:8]} to: {args.title}")


def cmd_delete(args):
    """Delete a session."""
    store = _store(args)
    session = _find_session(store, args.session_id)
    if session is None:
        print(f"No session {args.session_id}, nothing deleted.")
        return
    store.delete_session(session.id)
    print(f"Deleted session {session.id[:8]}: {session.title}")


def cmd_clear(args):
    """Delete all sessions."""
    if not args.yes:
        answer = input("Clear all chat history? This cannot be undone. [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Cancelled.")
            return
    _store(args).clear_all()
    print("Chat history cleared.")


def cmd_export(args):
    """Export history as JSON to a file or stdout."""
    query = HistoryQuery(_store(args))
    if args.output:
        path = query.export_to_file(args.output)
        print(f"Chat history exported to {path}")
    else:
        print(query.export_history())


def cmd_import(args):
    """Replace history with an exported JSON file."""
    query = HistoryQuery(_store(args))
    try:
        success = query.import_from_file(args.input)
    except OSError as e:
        print(f"Error: Could not read {args.input}: {e}", file=sys.stderr)
        sys.exit(1)
    if not success:
        print(f"Error: {args.input} is not a valid chat history export", file=sys.stderr)
        sys.exit(1)
    print(f"Chat history imported from {args.input}")


def cmd_stats(args):
    """Show storage statistics."""
    stats = HistoryQuery(_store(args)).storage_stats()
    if args.as_json:
        print(stats.model_dump_json(indent=2))
        return
    print(f"\nSessions:       {stats.session_count}")
    print(f"Messages:       {stats.total_messages}")
    print(f"Storage size:   {stats.approx_byte_size}")
    print(f"File:           {stats.file_path}")
    print(f"File exists:    {'yes' if stats.file_exists else 'no'}\n")


def cmd_chat(args):
    """Send one message and print the reply."""
    store = _store(args)
    provider = build_provider()
    try:
        turn = ChatService(store, provider).send(args.message, args.session)
    finally:
        if provider is not None:
            provider.close()
    print(turn.reply.text)
    print(f"\n(session {turn.session.id[:8]}: {turn.session.title})", file=sys.stderr)


def cmd_config(args):
    """Show or change settings in ~/.jos/config.json."""
    mgr = get_config_manager()
    if args.config_command == "list":
        settings = mgr.list_settings()
        if "api_key" in settings:
            settings["api_key"] = "***"
        print(json.dumps(settings, indent=2))
    elif args.config_command == "get":
        print(mgr.get(args.key))
    elif args.config_command == "set":
        mgr.set(args.key, args.value)
        print(f"Set {args.key}")
    elif args.config_command == "unset":
        mgr.unset(args.key)
        print(f"Unset {args.key}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Browse and manage Jos AI chat history",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    jos-history list                    List sessions
    jos-history search "null pointer"   Search titles and messages
    jos-history show 1a2b3c4d           Show a session's messages
    jos-history export backup.json      Export all history
    jos-history import backup.json      Replace history with an export
    jos-history chat "Explain list comprehensions"
        """,
    )
    parser.add_argument("--workspace", help="Workspace root (history in <workspace>/.jos/)")
    parser.add_argument("--file", help="Explicit history file path")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list command
    list_parser = subparsers.add_parser("list", help="List sessions")
    list_parser.add_argument("--limit", type=int, default=0, help="Show at most N sessions")
    list_parser.add_argument("--json", dest="as_json", action="store_true", help="Output as JSON")
    list_parser.set_defaults(func=cmd_list)

    # show command
    show_parser = subparsers.add_parser("show", help="Show a session")
    show_parser.add_argument("session_id", help="Session id or id prefix")
    show_parser.add_argument("--json", dest="as_json", action="store_true", help="Output as JSON")
    show_parser.set_defaults(func=cmd_show)

    # new command
    new_parser = subparsers.add_parser("new", help="Create an empty session")
    new_parser.add_argument("title", nargs="?", help="Session title")
    new_parser.set_defaults(func=cmd_new)

    # search command
    search_parser = subparsers.add_parser("search", help="Search sessions")
    search_parser.add_argument("query", help="Text to look for (case-insensitive)")
    search_parser.add_argument("--json", dest="as_json", action="store_true", help="Output as JSON")
    search_parser.set_defaults(func=cmd_search)

    # rename command
    rename_parser = subparsers.add_parser("rename", help="Rename a session")
    rename_parser.add_argument("session_id", help="Session id or id prefix")
    rename_parser.add_argument("title", help="New title")
    rename_parser.set_defaults(func=cmd_rename)

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a session")
    delete_parser.add_argument("session_id", help="Session id or id prefix")
    delete_parser.set_defaults(func=cmd_delete)

    # clear command
    clear_parser = subparsers.add_parser("clear", help="Delete all sessions")
    clear_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    clear_parser.set_defaults(func=cmd_clear)

    # export command
    export_parser = subparsers.add_parser("export", help="Export history as JSON")
    export_parser.add_argument("output", nargs="?", help="Output file (default: stdout)")
    export_parser.set_defaults(func=cmd_export)

    # import command
    import_parser = subparsers.add_parser("import", help="Replace history with an export")
    import_parser.add_argument("input", help="Exported JSON file")
    import_parser.set_defaults(func=cmd_import)

    # stats command
    stats_parser = subparsers.add_parser("stats", help="Show storage statistics")
    stats_parser.add_argument("--json", dest="as_json", action="store_true", help="Output as JSON")
    stats_parser.set_defaults(func=cmd_stats)

    # chat command
    chat_parser = subparsers.add_parser("chat", help="Send a message to Jos AI")
    chat_parser.add_argument("message", help="Message text")
    chat_parser.add_argument("--session", help="Session id to continue")
    chat_parser.set_defaults(func=cmd_chat)

    # config command
    config_parser = subparsers.add_parser("config", help="Show or change settings")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("list", help="List customized settings")
    get_parser = config_sub.add_parser("get", help="Get a setting")
    get_parser.add_argument("key")
    set_parser = config_sub.add_parser("set", help="Set a setting")
    set_parser.add_argument("key")
    set_parser.add_argument("value")
    unset_parser = config_sub.add_parser("unset", help="Reset a setting to default")
    unset_parser.add_argument("key")
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv=None):
    """Main entry point for the jos-history CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    level = logging.DEBUG if args.debug else get_config().get("log_level")
    configure_logging(level)

    try:
        args.func(args)
    except (HistoryError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
