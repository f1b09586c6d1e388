"""
FileSystem abstraction for Work Session Tracker.

PURPOSE: Injectable file system interface for testability.
AI CONTEXT: Allows mocking file operations in unit tests without temp directories.

DESIGN:
- Protocol defines the interface
- RealFileSystem uses actual os operations
- MockFileSystem in tests/conftest.py stores data in memory for tests

USAGE:
    # Production
    fs = RealFileSystem()
    storage = StorageManager(filesystem=fs)

    # Tests (MockFileSystem from conftest.py)
    storage = StorageManager(filesystem=mock_fs)  # pytest fixture
"""

from __future__ import annotations

import os
from typing import Protocol

__all__ = ["FileSystem", "RealFileSystem"]


class FileSystem(Protocol):
    """
    Protocol for file system operations.

    Defines the interface used by the session store and the CLI import and
    export commands. All paths are strings. Implementations include
    RealFileSystem for production and MockFileSystem for testing.
    """

    def exists(self, path: str) -> bool:
        """
        Check if path exists (file or directory).

        Args:
            path: Path to check for existence.

        Returns:
            True if the path exists as either a file or directory,
            False otherwise. Never raises.
        """
        ...

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create directory and all parent directories.

        Args:
            path: Path of directory to create.
            exist_ok: If True, don't raise if directory exists.

        Raises:
            OSError: If directory exists and exist_ok is False.
        """
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """
        Read file contents as text.

        Args:
            path: Path to file to read.
            encoding: Text encoding (default utf-8).

        Returns:
            File contents as a string.

        Raises:
            FileNotFoundError: If file doesn't exist.
            UnicodeDecodeError: If content is not valid in the encoding.
        """
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """
        Write text to file, overwriting existing content.

        Args:
            path: Path to file to write.
            content: String content to write to file.
            encoding: Text encoding (default utf-8).

        Raises:
            PermissionError: If file is read-only.
        """
        ...


class RealFileSystem:
    """
    Real file system implementation using the os module.

    This is the production implementation that performs actual I/O.
    Each method delegates directly to the corresponding os or built-in
    function.
    """

    def exists(self, path: str) -> bool:  # pragma: no cover
        """Check if path exists on the real filesystem."""
        return os.path.exists(path)

    def makedirs(self, path: str, exist_ok: bool = False) -> None:  # pragma: no cover
        """Create directory tree on disk (like `mkdir -p`)."""
        os.makedirs(path, exist_ok=exist_ok)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:  # pragma: no cover
        """Read a text file from disk."""
        with open(path, encoding=encoding) as f:
            return f.read()

    def write_text(
        self, path: str, content: str, encoding: str = "utf-8"
    ) -> None:  # pragma: no cover
        """Write a text file to disk, creating parent directories."""
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding=encoding) as f:
            f.write(content)
