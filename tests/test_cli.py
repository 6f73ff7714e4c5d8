#!/usr/bin/env python3
"""
Tests for the jos-history CLI.
"""

import json
from unittest.mock import patch

import pytest

import jos_chat.config.config as config_module
from jos_chat.cli.history_cli import build_parser, main
from jos_chat.config import ConfigManager
from jos_chat.logging import close_logging
from jos_chat.provider import MISSING_KEY_MESSAGE


@pytest.fixture(autouse=True)
def config_dir(tmp_path):
    """Point the config singleton at a temporary ~/.jos."""
    config_dir = tmp_path / ".jos"
    config_module._manager = None
    with patch.object(ConfigManager, 'CONFIG_DIR', config_dir):
        with patch.object(ConfigManager, 'CONFIG_FILE', config_dir / "config.json"):
            yield config_dir
    config_module._manager = None
    close_logging()


@pytest.fixture
def history_file(tmp_path):
    return tmp_path / "history.json"


@pytest.fixture
def run(history_file, capsys):
    """Run the CLI against the temporary history file and return stdout."""
    def _run(*argv):
        main(["--file", str(history_file), *argv])
        return capsys.readouterr().out
    return _run


def session_ids(history_file):
    return [s["id"] for s in json.loads(history_file.read_text())]


# ============================================================================
# Parser Tests
# ============================================================================

class TestParser:
    """Tests for argument parsing."""

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "jos-history" in capsys.readouterr().out

    def test_global_options(self):
        args = build_parser().parse_args(["--workspace", "/proj", "--debug", "list", "--limit", "5"])
        assert args.workspace == "/proj"
        assert args.debug is True
        assert args.limit == 5


# ============================================================================
# Session Command Tests
# ============================================================================

class TestSessionCommands:
    """Tests for list/show/new/rename/delete/clear."""

    def test_new_and_list(self, run):
        assert "Created session" in run("new", "Debugging")
        out = run("list")
        assert "Debugging" in out
        assert "0 messages" in out

    def test_list_empty(self, run):
        assert "No sessions found." in run("list")

    def test_list_json(self, run):
        run("new", "First")
        run("new", "Second")
        data = json.loads(run("list", "--json"))
        assert [s["title"] for s in data] == ["Second", "First"]

    def test_list_limit(self, run):
        for title in ("A", "B", "C"):
            run("new", title)
        data = json.loads(run("list", "--limit", "2", "--json"))
        assert len(data) == 2

    def test_show_by_prefix(self, run, history_file):
        run("new", "Prefixed")
        session_id = session_ids(history_file)[0]
        out = run("show", session_id[:8])
        assert "Prefixed" in out
        assert session_id in out

    def test_show_missing(self, run, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run("show", "nope")
        assert exc_info.value.code == 1
        assert "Session not found" in capsys.readouterr().err

    def test_ambiguous_prefix(self, run, capsys):
        run("new", "A")
        run("new", "B")
        with pytest.raises(SystemExit) as exc_info:
            run("show", "")
        assert exc_info.value.code == 1
        assert "Ambiguous" in capsys.readouterr().err

    def test_rename(self, run, history_file):
        run("new", "Old")
        session_id = session_ids(history_file)[0]
        run("rename", session_id, "New title")
        assert json.loads(history_file.read_text())[0]["title"] == "New title"

    def test_delete(self, run, history_file):
        run("new", "Doomed")
        session_id = session_ids(history_file)[0]
        assert "Deleted session" in run("delete", session_id)
        assert session_ids(history_file) == []

    def test_delete_missing_is_not_an_error(self, run):
        assert "nothing deleted" in run("delete", "nope")

    def test_clear_with_yes(self, run, history_file):
        run("new", "A")
        assert "cleared" in run("clear", "--yes")
        assert session_ids(history_file) == []

    def test_clear_cancelled(self, run, history_file):
        run("new", "A")
        with patch("builtins.input", return_value="n"):
            assert "Cancelled." in run("clear")
        assert len(session_ids(history_file)) == 1

    def test_search(self, run):
        run("new", "Python generators")
        run("new", "Rust lifetimes")
        out = run("search", "python")
        assert "Python generators" in out
        assert "Rust" not in out
        assert "No sessions matching" in run("search", "haskell")


# ============================================================================
# Export / Import / Stats Tests
# ============================================================================

class TestTransferCommands:
    """Tests for export, import and stats."""

    def test_export_to_stdout(self, run):
        run("new", "Exported")
        data = json.loads(run("export"))
        assert data[0]["title"] == "Exported"

    def test_export_import_file(self, run, tmp_path, history_file):
        run("new", "Keep me")
        backup = tmp_path / "backup.json"
        run("export", str(backup))
        run("clear", "--yes")

        assert "imported" in run("import", str(backup))
        assert json.loads(history_file.read_text())[0]["title"] == "Keep me"

    def test_import_invalid(self, run, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text('{"not": "a list"}')
        with pytest.raises(SystemExit) as exc_info:
            run("import", str(bad))
        assert exc_info.value.code == 1
        assert "not a valid chat history export" in capsys.readouterr().err

    def test_import_missing_file(self, run, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run("import", str(tmp_path / "missing.json"))
        assert exc_info.value.code == 1
        assert "Could not read" in capsys.readouterr().err

    def test_stats_json(self, run, history_file):
        run("new", "A")
        stats = json.loads(run("stats", "--json"))
        assert stats["session_count"] == 1
        assert stats["file_exists"] is True
        assert stats["file_path"] == str(history_file)

    def test_stats_text(self, run):
        out = run("stats")
        assert "Sessions:" in out
        assert "Storage size:" in out


# ============================================================================
# Chat / Config Command Tests
# ============================================================================

class TestChatAndConfig:
    """Tests for chat and config subcommands."""

    def test_chat_without_api_key(self, run, history_file):
        out = run("chat", "How do I reverse a list?")
        assert MISSING_KEY_MESSAGE in out
        data = json.loads(history_file.read_text())
        assert data[0]["title"] == "How do I reverse a list?"
        assert [m["isUser"] for m in data[0]["messages"]] == [True, False]

    def test_config_set_and_get(self, run, config_dir):
        run("config", "set", "max_sessions", "20")
        assert run("config", "get", "max_sessions").strip() == "20"
        saved = json.loads((config_dir / "config.json").read_text())
        assert saved["max_sessions"] == 20

    def test_config_list_masks_api_key(self, run):
        run("config", "set", "api_key", "AIza-secret")
        settings = json.loads(run("config", "list"))
        assert settings["api_key"] == "***"

    def test_config_unknown_key(self, run, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run("config", "set", "colour", "blue")
        assert exc_info.value.code == 1
        assert "Unknown config key" in capsys.readouterr().err


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
