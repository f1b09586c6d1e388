"""Tests for config module."""

from __future__ import annotations

import dataclasses
from datetime import date

import pytest

from work_session_tracker.config import Config


class TestConfigConstants:
    """Test suite for Config class-level constants.

    Categories:
    1. Storage - Directory and file names (2 tests)
    2. Defaults - Working hours and week starts (2 tests)
    3. CSV - Header row (1 test)
    4. Immutability - Frozen dataclass (1 test)

    Total: 6 tests.
    """

    def test_storage_dir_default(self) -> None:
        assert Config.STORAGE_DIR == ".work_sessions"

    def test_sessions_file_name(self) -> None:
        assert Config.SESSIONS_FILE == "sessions.json"

    def test_default_working_hours(self) -> None:
        """Verifies imported rows fall back to a 09:00-17:00 day.

        Business context:
        Spreadsheets often carry only a date and title. The import path
        fills in a standard working day so those rows still count hours.
        """
        assert Config.DEFAULT_START_HOUR == 9
        assert Config.DEFAULT_END_HOUR == 17

    def test_week_starts_use_weekday_numbering(self) -> None:
        """Verifies the grid starts on Sunday and reports on Monday."""
        assert date(2025, 3, 16).weekday() == Config.CALENDAR_WEEK_START
        assert date(2025, 3, 17).weekday() == Config.REPORT_WEEK_START

    def test_export_headers(self) -> None:
        assert Config.EXPORT_HEADERS == (
            "Date",
            "Title",
            "Description",
            "Start Time",
            "End Time",
            "Duration (Hours)",
            "Project",
            "Tags",
        )

    def test_config_is_frozen(self) -> None:
        """Verifies Config instances reject attribute assignment."""
        config = Config()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.PAGE_SIZE = 10  # type: ignore[misc]


class TestStorageDir:
    """Test suite for Config.get_storage_dir priority order."""

    def test_default_without_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("WORK_TRACKER_DIR", raising=False)
        assert Config.get_storage_dir() == ".work_sessions"

    def test_env_var_overrides_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WORK_TRACKER_DIR", "/home/me/.hours")
        assert Config.get_storage_dir() == "/home/me/.hours"

    def test_test_override_beats_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Verifies set_test_overrides takes priority over the environment.

        Arrangement:
        Set WORK_TRACKER_DIR and a test override to different values.

        Assertion Strategy:
        The override wins; after reset the environment value returns.
        """
        monkeypatch.setenv("WORK_TRACKER_DIR", "/from/env")
        Config.set_test_overrides(storage_dir="/from/test")
        assert Config.get_storage_dir() == "/from/test"

        Config.reset_test_overrides()
        assert Config.get_storage_dir() == "/from/env"


class TestExportFilename:
    """Test suite for Config.export_filename."""

    def test_stamps_given_day(self) -> None:
        assert Config.export_filename(date(2025, 3, 14)) == "time-tracking-2025-03-14.csv"

    def test_defaults_to_today(self) -> None:
        assert Config.export_filename() == f"time-tracking-{date.today().isoformat()}.csv"
