"""Tests for storage module."""

from __future__ import annotations

import json
import logging
import sys
from datetime import date
from pathlib import Path

import pytest

# Add tests directory to path for conftest imports
sys.path.insert(0, str(Path(__file__).parent))

from conftest import SESSIONS_PATH, STORAGE_DIR, MockFileSystem
from work_session_tracker.storage import StorageManager


class TestStorageManagerInit:
    """Test suite for StorageManager initialization behavior.

    Categories:
    1. Directory Creation - Storage directory (1 test)
    2. File Initialization - Empty sessions file (1 test)
    3. Data Preservation - Existing data not overwritten (1 test)
    4. Failure Tolerance - Init errors are logged (1 test)

    Total: 4 tests verifying correct initialization semantics.
    """

    def test_creates_storage_directory(self, mock_fs: MockFileSystem) -> None:
        StorageManager(storage_dir=STORAGE_DIR, filesystem=mock_fs)
        assert mock_fs.exists(STORAGE_DIR)

    def test_creates_empty_sessions_file(self, mock_fs: MockFileSystem) -> None:
        StorageManager(storage_dir=STORAGE_DIR, filesystem=mock_fs)
        assert json.loads(mock_fs.get_file(SESSIONS_PATH) or "") == []

    def test_preserves_existing_file(self, mock_fs: MockFileSystem) -> None:
        """Verifies initialization never overwrites stored sessions.

        Business context:
        The store is re-created on every request and CLI call; wiping the
        file on init would lose the user's history.
        """
        mock_fs.set_file(SESSIONS_PATH, '[{"id": "keep"}]')
        StorageManager(storage_dir=STORAGE_DIR, filesystem=mock_fs)
        assert mock_fs.get_file(SESSIONS_PATH) == '[{"id": "keep"}]'

    def test_init_failure_is_logged(
        self, mock_fs: MockFileSystem, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_fs.set_read_only(SESSIONS_PATH)
        with caplog.at_level(logging.ERROR):
            StorageManager(storage_dir=STORAGE_DIR, filesystem=mock_fs)
        assert "Error writing" in caplog.text


class TestLoadAll:
    """Test suite for load_all error tolerance."""

    def test_empty_store(self, storage: StorageManager) -> None:
        assert storage.load_all() == []

    def test_returns_stored_order(self, storage: StorageManager, make_session) -> None:
        first = make_session("First", date(2025, 3, 20))
        second = make_session("Second", date(2025, 3, 1))
        storage.upsert(first)
        storage.upsert(second)

        assert [s.title for s in storage.load_all()] == ["First", "Second"]

    def test_corrupt_json_returns_empty(
        self,
        storage: StorageManager,
        mock_fs: MockFileSystem,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        mock_fs.set_file(SESSIONS_PATH, "{not json")
        with caplog.at_level(logging.ERROR):
            assert storage.load_all() == []
        assert "Invalid JSON" in caplog.text

    def test_non_list_payload_returns_empty(
        self, storage: StorageManager, mock_fs: MockFileSystem
    ) -> None:
        mock_fs.set_file(SESSIONS_PATH, '{"sessions": []}')
        assert storage.load_all() == []

    def test_corrupt_record_is_skipped(
        self,
        storage: StorageManager,
        mock_fs: MockFileSystem,
        make_session,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Verifies one bad record does not hide the others.

        Arrangement:
        Store a valid record next to one missing its timestamps.

        Assertion Strategy:
        Only the valid session loads and a warning names the bad record.
        """
        good = make_session("Good")
        records = [good.to_dict(), {"id": "bad", "title": "Broken"}]
        mock_fs.set_file(SESSIONS_PATH, json.dumps(records))

        with caplog.at_level(logging.WARNING):
            sessions = storage.load_all()

        assert sessions == [good]
        assert "Skipping corrupt session record" in caplog.text

    def test_missing_file_returns_empty(self, mock_fs: MockFileSystem) -> None:
        storage = StorageManager(storage_dir=STORAGE_DIR, filesystem=mock_fs)
        mock_fs._files.pop(SESSIONS_PATH)
        assert storage.load_all() == []


class TestUpsert:
    """Test suite for upsert and upsert_many."""

    def test_upsert_appends_new(self, storage: StorageManager, make_session) -> None:
        session = make_session()
        assert storage.upsert(session) is True
        assert storage.load_all() == [session]

    def test_upsert_replaces_by_id_in_place(self, storage: StorageManager, make_session) -> None:
        """Verifies a re-saved session keeps its position."""
        first = make_session("First")
        second = make_session("Second")
        storage.upsert_many([first, second])

        first.title = "First (edited)"
        storage.upsert(first)

        assert [s.title for s in storage.load_all()] == ["First (edited)", "Second"]

    def test_upsert_many_single_write_order(self, storage: StorageManager, make_session) -> None:
        sessions = [make_session(f"S{i}") for i in range(3)]
        storage.upsert_many(sessions)
        assert [s.title for s in storage.load_all()] == ["S0", "S1", "S2"]

    def test_write_failure_returns_false(
        self, storage: StorageManager, mock_fs: MockFileSystem, make_session
    ) -> None:
        mock_fs.set_read_only(SESSIONS_PATH)
        assert storage.upsert(make_session()) is False

    def test_get_session(self, storage: StorageManager, make_session) -> None:
        session = make_session()
        storage.upsert(session)
        assert storage.get_session(session.id) == session
        assert storage.get_session("missing") is None


class TestDeleteAndClear:
    """Test suite for delete_by_id, replace_all and clear_all."""

    def test_delete_by_id(self, storage: StorageManager, make_session) -> None:
        keep = make_session("Keep")
        drop = make_session("Drop")
        storage.upsert_many([keep, drop])

        assert storage.delete_by_id(drop.id) is True
        assert storage.load_all() == [keep]

    def test_delete_unknown_returns_false(self, storage: StorageManager) -> None:
        assert storage.delete_by_id("missing") is False

    def test_clear_all(self, storage: StorageManager, make_session) -> None:
        storage.upsert_many([make_session(), make_session()])
        assert storage.clear_all() is True
        assert storage.load_all() == []

    def test_replace_all(self, storage: StorageManager, make_session) -> None:
        storage.upsert_many([make_session("Old"), make_session("Older")])
        fresh = [make_session("New")]
        assert storage.replace_all(fresh) is True
        assert storage.load_all() == fresh

    def test_replace_all_failure_keeps_contents(
        self, storage: StorageManager, mock_fs: MockFileSystem, make_session
    ) -> None:
        kept = make_session("Kept")
        storage.upsert(kept)
        mock_fs.set_read_only(SESSIONS_PATH)
        assert storage.replace_all([make_session("New")]) is False
        assert storage.load_all() == [kept]

    def test_file_is_indented_json(
        self, storage: StorageManager, mock_fs: MockFileSystem, make_session
    ) -> None:
        storage.upsert(make_session())
        content = mock_fs.get_file(SESSIONS_PATH) or ""
        assert content.startswith('[\n  {')
