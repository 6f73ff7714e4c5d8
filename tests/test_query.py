#!/usr/bin/env python3
"""
Tests for search, export, import and storage statistics.
"""

import json

import pytest

from jos_chat.session import HistoryQuery, HistoryStorage, SessionStore, StorageWriteError
from jos_chat.session.query import format_bytes, parse_history, utf16_length
from jos_chat.session.exceptions import ImportValidationError


class FakeClock:
    """Deterministic millisecond clock."""

    def __init__(self, start=1_700_000_000_000, step=1):
        self.now = start
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def store(tmp_path):
    return SessionStore(HistoryStorage(tmp_path / "history.json"), clock=FakeClock())


@pytest.fixture
def query(store):
    return HistoryQuery(store)


@pytest.fixture
def populated(store):
    """Sessions "Alpha" (with a gamma message) and "Beta"."""
    alpha = store.create_session("Alpha")
    store.add_message(alpha.id, "what is a gamma ray?", True)
    store.add_message(alpha.id, "High energy light.", False)
    beta = store.create_session("Beta")
    store.add_message(beta.id, "hello", True)
    return alpha, beta


def session_doc(**overrides):
    doc = {
        "id": "s1",
        "title": "Imported",
        "messages": [
            {"id": "m1", "text": "hi", "isUser": True, "timestamp": 1700000000000, "sessionId": "s1"}
        ],
        "createdAt": 1700000000000,
        "lastUpdatedAt": 1700000000500,
    }
    doc.update(overrides)
    return doc


# ============================================================================
# Helper Tests
# ============================================================================

class TestFormatBytes:
    """Tests for human-readable sizes."""

    def test_zero(self):
        assert format_bytes(0) == "0 Bytes"

    def test_bytes(self):
        assert format_bytes(512) == "512 Bytes"

    def test_kilobytes(self):
        assert format_bytes(1024) == "1 KB"
        assert format_bytes(1536) == "1.5 KB"

    def test_two_decimals(self):
        assert format_bytes(1234) == "1.21 KB"

    def test_megabytes_and_gigabytes(self):
        assert format_bytes(5 * 1024 ** 2) == "5 MB"
        assert format_bytes(3 * 1024 ** 3) == "3 GB"

    def test_caps_at_gigabytes(self):
        assert format_bytes(2048 * 1024 ** 3) == "2048 GB"


class TestUtf16Length:
    """Tests for UTF-16 code unit counting."""

    def test_ascii(self):
        assert utf16_length("abc") == 3

    def test_astral_characters_count_twice(self):
        assert utf16_length("🎉") == 2
        assert utf16_length("é") == 1


# ============================================================================
# Search Tests
# ============================================================================

class TestSearch:
    """Tests for search_sessions."""

    def test_matches_message_text(self, query, populated):
        alpha, _ = populated
        assert [s.id for s in query.search_sessions("gamma")] == [alpha.id]

    def test_case_insensitive_title(self, query, populated):
        alpha, _ = populated
        assert [s.id for s in query.search_sessions("ALPHA")] == [alpha.id]

    def test_no_match(self, query, populated):
        assert query.search_sessions("delta") == []

    def test_keeps_recency_order(self, store, query, populated):
        alpha, beta = populated
        assert [s.id for s in query.search_sessions("h")] == [beta.id, alpha.id]
        store.add_message(alpha.id, "more", True)
        assert [s.id for s in query.search_sessions("h")] == [alpha.id, beta.id]

    def test_empty_query_matches_everything(self, query, populated):
        assert len(query.search_sessions("")) == 2


# ============================================================================
# Export / Import Tests
# ============================================================================

class TestExportImport:
    """Tests for export_history and import_history."""

    def test_export_is_pretty_json_array(self, query, populated):
        exported = query.export_history()
        data = json.loads(exported)
        assert isinstance(data, list)
        assert [s["title"] for s in data] == ["Beta", "Alpha"]
        assert data[1]["messages"][0]["isUser"] is True
        assert "\n  " in exported

    def test_round_trip(self, store, query, populated):
        before = store.list_sessions()
        exported = query.export_history()

        assert query.import_history(exported) is True

        assert store.list_sessions() == before
        assert query.export_history() == exported

    def test_import_replaces_history(self, store, query, populated):
        raw = json.dumps([session_doc()])
        assert query.import_history(raw) is True
        sessions = store.list_sessions()
        assert [s.id for s in sessions] == ["s1"]
        assert sessions[0].messages[0].text == "hi"

    def test_import_without_last_updated(self, store, query):
        doc = session_doc()
        del doc["lastUpdatedAt"]
        assert query.import_history(json.dumps([doc])) is True
        assert store.get_session("s1").last_updated_at == doc["createdAt"]

    def test_import_whole_number_float_created_at(self, store, query):
        """Test that a numeric createdAt written as a float is accepted."""
        raw = json.dumps([session_doc(createdAt=1700000000000.0)])
        assert query.import_history(raw) is True
        created_at = store.get_session("s1").created_at
        assert created_at == 1700000000000
        assert isinstance(created_at, int)

    def test_import_without_session_id_round_trips(self, query):
        doc = session_doc()
        del doc["messages"][0]["sessionId"]
        raw = json.dumps([doc], indent=2)
        assert query.import_history(raw) is True
        assert query.export_history() == raw

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            '{"id": "s1"}',
            json.dumps([session_doc(id="")]),
            json.dumps([session_doc(title="")]),
            json.dumps([session_doc(messages="none")]),
            json.dumps([session_doc(createdAt="yesterday")]),
            json.dumps([session_doc(createdAt=True)]),
            json.dumps([session_doc(createdAt=1700000000000.5)]),
            json.dumps([{k: v for k, v in session_doc().items() if k != "title"}]),
            json.dumps([session_doc(), session_doc()]),
        ],
        ids=[
            "not-json",
            "object-root",
            "empty-id",
            "empty-title",
            "messages-not-array",
            "created-at-string",
            "created-at-bool",
            "created-at-fraction",
            "missing-title",
            "duplicate-ids",
        ],
    )
    def test_import_rejects_invalid(self, store, query, populated, raw):
        """Test that an invalid import returns False and changes nothing."""
        before = query.export_history()
        assert query.import_history(raw) is False
        assert query.export_history() == before

    def test_parse_history_raises(self):
        with pytest.raises(ImportValidationError):
            parse_history("[1, 2, 3]")

    def test_import_empty_array_clears(self, store, query, populated):
        assert query.import_history("[]") is True
        assert store.list_sessions() == []

    def test_export_and_import_files(self, tmp_path, store, query, populated):
        target = query.export_to_file(tmp_path / "backup.json")
        store.clear_all()
        assert query.import_from_file(target) is True
        assert [s.title for s in store.list_sessions()] == ["Beta", "Alpha"]

    def test_export_to_unwritable_path(self, tmp_path, query, populated):
        target = tmp_path / "dir"
        target.mkdir()
        with pytest.raises(StorageWriteError):
            query.export_to_file(target)


# ============================================================================
# Stats Tests
# ============================================================================

class TestStorageStats:
    """Tests for storage_stats."""

    def test_empty_store(self, tmp_path, query):
        stats = query.storage_stats()
        assert stats.session_count == 0
        assert stats.total_messages == 0
        assert stats.byte_count == 4  # "[]" at two bytes per character
        assert stats.approx_byte_size == "4 Bytes"
        assert stats.file_path == str(tmp_path / "history.json")
        assert stats.file_exists is False

    def test_counts(self, store, query, populated):
        stats = query.storage_stats()
        assert stats.session_count == 2
        assert stats.total_messages == 3
        assert stats.file_exists is True

    def test_size_is_twice_compact_length(self, store, query, populated):
        compact = json.dumps(
            [s.to_document() for s in store.list_sessions()],
            ensure_ascii=False,
            separators=(",", ":"),
        )
        stats = query.storage_stats()
        assert stats.byte_count == 2 * len(compact)
        assert stats.approx_byte_size == format_bytes(2 * len(compact))
