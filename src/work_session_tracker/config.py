"""
Configuration for Work Session Tracker.

PURPOSE: Centralized configuration constants and runtime settings.
AI CONTEXT: All configurable values live here - modify this file to change behavior.

CONFIGURATION CATEGORIES:
- Storage: File paths and directory structure
- Session Defaults: Fallback working hours for imported rows
- Calendar: Week start conventions for the grid and the reports
- CSV: Export header row and download filename

ENVIRONMENT VARIABLES:
- WORK_TRACKER_DIR: Directory holding sessions.json (default: .work_sessions)

USAGE:
    from work_session_tracker.config import Config
    storage_dir = Config.get_storage_dir()
    page_size = Config.PAGE_SIZE
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from typing import ClassVar


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration container for Work Session Tracker.

    DESIGN: Frozen dataclass ensures configuration immutability at runtime.
    All values are class-level constants - no instance creation needed.

    WEEKDAY NUMBERING:
    Week start values use datetime.weekday() numbering (Monday=0 ... Sunday=6).
    The month grid starts weeks on Sunday while reports group by
    Monday-anchored ISO weeks. Both conventions are intentional.

    STORAGE STRUCTURE:
        .work_sessions/
        └── sessions.json      # List of session records
    """

    # =========================================================================
    # STORAGE CONFIGURATION
    # =========================================================================
    STORAGE_DIR: ClassVar[str] = ".work_sessions"
    SESSIONS_FILE: ClassVar[str] = "sessions.json"

    # =========================================================================
    # SESSION DEFAULTS
    # =========================================================================
    DEFAULT_START_HOUR: ClassVar[int] = 9
    """Start hour applied to imported rows without a start time."""

    DEFAULT_END_HOUR: ClassVar[int] = 17
    """End hour applied to imported rows with neither end time nor duration."""

    # =========================================================================
    # CALENDAR CONFIGURATION
    # =========================================================================
    CALENDAR_WEEK_START: ClassVar[int] = 6
    REPORT_WEEK_START: ClassVar[int] = 0
    PAGE_SIZE: ClassVar[int] = 5

    # =========================================================================
    # CSV CONFIGURATION
    # =========================================================================
    EXPORT_HEADERS: ClassVar[tuple[str, ...]] = (
        "Date",
        "Title",
        "Description",
        "Start Time",
        "End Time",
        "Duration (Hours)",
        "Project",
        "Tags",
    )
    EXPORT_FILENAME_PREFIX: ClassVar[str] = "time-tracking"

    # =========================================================================
    # ENVIRONMENT-BASED SETTINGS (runtime configurable)
    # =========================================================================
    _storage_dir_override: ClassVar[str | None] = None

    @classmethod
    def get_storage_dir(cls) -> str:
        """
        Get the directory holding the session store.

        Uses a priority system: test overrides first, then the
        WORK_TRACKER_DIR environment variable, then STORAGE_DIR relative
        to the current directory.

        Returns:
            Directory path as a string.

        Example:
            >>> # With env var: WORK_TRACKER_DIR=/home/me/.hours
            >>> Config.get_storage_dir()
            '/home/me/.hours'
        """
        if cls._storage_dir_override is not None:
            return cls._storage_dir_override
        return os.environ.get("WORK_TRACKER_DIR", cls.STORAGE_DIR)

    @classmethod
    def export_filename(cls, today: date | None = None) -> str:
        """
        Build the CSV download filename for the given day.

        Args:
            today: Day stamped into the filename. Defaults to date.today().

        Returns:
            Filename like 'time-tracking-2025-03-14.csv'.

        Example:
            >>> Config.export_filename(date(2025, 3, 14))
            'time-tracking-2025-03-14.csv'
        """
        stamp = (today or date.today()).isoformat()
        return f"{cls.EXPORT_FILENAME_PREFIX}-{stamp}.csv"

    @classmethod
    def set_test_overrides(cls, storage_dir: str | None = None) -> None:
        """
        Set test overrides for environment-based settings.

        Must call reset_test_overrides() in test teardown to avoid
        affecting other tests.

        Args:
            storage_dir: Override for the storage directory. None to clear.
        """
        cls._storage_dir_override = storage_dir

    @classmethod
    def reset_test_overrides(cls) -> None:
        """Reset all test overrides to use environment variables."""
        cls._storage_dir_override = None
