"""
Pytest configuration and shared fixtures for Work Session Tracker tests.

This module contains:
- MockFileSystem: In-memory filesystem for testing without actual I/O
- Shared fixtures available to all test modules
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import date, datetime, timedelta

import pytest

from work_session_tracker.config import Config
from work_session_tracker.models import WorkSession
from work_session_tracker.storage import StorageManager

STORAGE_DIR = "/test/storage"
SESSIONS_PATH = f"{STORAGE_DIR}/sessions.json"


class MockFileSystem:
    """
    In-memory file system for testing.

    Simulates a file system using dictionaries:
    - _files: dict mapping path -> content (str)
    - _dirs: set of directory paths
    - _read_only: set of paths whose writes fail

    FEATURES:
    - No actual I/O operations
    - Fast test execution
    - Easy to inspect state
    - Supports write failure simulation
    """

    def __init__(self) -> None:
        """
        Initialize empty mock file system.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.list_files()
            []
        """
        self._files: dict[str, str] = {}
        self._dirs: set[str] = set()
        self._read_only: set[str] = set()

    def exists(self, path: str) -> bool:
        """
        Check if path exists in mock filesystem.

        Args:
            path: Absolute path to check.

        Returns:
            True if path is in _files dict or _dirs set.
        """
        return path in self._files or path in self._dirs

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create mock directory and parent directories.

        Args:
            path: Absolute path of directory to create.
            exist_ok: If True, don't raise if directory exists.

        Raises:
            OSError: If directory exists and exist_ok is False,
                or if path is an existing file.
        """
        if path in self._dirs:
            if not exist_ok:
                raise OSError(f"Directory exists: {path}")
            return

        if path in self._files:
            raise OSError(f"Path is a file, not directory: {path}")

        # Create all parent directories
        parts = path.rstrip("/").split("/")
        for i in range(1, len(parts) + 1):
            parent = "/".join(parts[:i])
            if parent:
                self._dirs.add(parent)

    def read_text(self, path: str, _encoding: str = "utf-8") -> str:
        """
        Read mock file contents.

        Raises:
            FileNotFoundError: If path not in _files.
        """
        if path not in self._files:
            raise FileNotFoundError(f"No such file: {path}")
        return self._files[path]

    def write_text(self, path: str, content: str, _encoding: str = "utf-8") -> None:
        """
        Write text to mock file.

        Automatically creates parent directories in _dirs set.

        Raises:
            PermissionError: If path is in _read_only set.
        """
        if path in self._read_only:
            raise PermissionError(f"Permission denied: {path}")

        # Auto-create parent directories
        parent = "/".join(path.rstrip("/").split("/")[:-1])
        if parent and parent not in self._dirs:
            self.makedirs(parent, exist_ok=True)

        self._files[path] = content

    # =========================================================================
    # TEST HELPERS
    # =========================================================================

    def get_file(self, path: str) -> str | None:
        """Return stored content, or None when the file does not exist."""
        return self._files.get(path)

    def set_file(self, path: str, content: str) -> None:
        """Store content directly, bypassing read-only checks."""
        self._files[path] = content

    def set_read_only(self, path: str) -> None:
        """Make subsequent writes to path raise PermissionError."""
        self._read_only.add(path)

    def list_files(self) -> list[str]:
        """All stored file paths, sorted."""
        return sorted(self._files)


@pytest.fixture
def mock_fs() -> MockFileSystem:
    """
    Provide a fresh MockFileSystem for each test.

    Example:
        >>> def test_storage(mock_fs):
        ...     storage = StorageManager(storage_dir="/test", filesystem=mock_fs)
    """
    return MockFileSystem()


@pytest.fixture
def storage(mock_fs: MockFileSystem) -> StorageManager:
    """StorageManager backed by mock_fs at /test/storage."""
    return StorageManager(storage_dir=STORAGE_DIR, filesystem=mock_fs)


@pytest.fixture(autouse=True)
def _reset_config_overrides() -> Iterator[None]:
    """Clear Config test overrides after every test."""
    yield
    Config.reset_test_overrides()


SessionFactory = Callable[..., WorkSession]


@pytest.fixture
def make_session() -> SessionFactory:
    """
    Factory for WorkSession instances with sensible defaults.

    Start defaults to 09:00 on the given day; duration defaults to 60
    minutes. Returns sessions built through WorkSession.create so ids and
    durations follow the production rules.

    Example:
        >>> s = make_session("Review", date(2025, 3, 14), minutes=90)
        >>> s.duration
        90
    """

    def _make(
        title: str = "Work",
        day: date = date(2025, 3, 14),
        start: tuple[int, int] = (9, 0),
        minutes: int = 60,
        **kwargs: object,
    ) -> WorkSession:
        start_time = datetime(day.year, day.month, day.day, *start)
        return WorkSession.create(
            title=title,
            day=day,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=minutes),
            **kwargs,  # type: ignore[arg-type]
        )

    return _make
