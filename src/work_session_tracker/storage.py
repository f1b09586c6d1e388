"""
Storage management for Work Session Tracker.

PURPOSE: The session store - JSON file I/O with error handling and data integrity.
AI CONTEXT: All persistence operations go through this module.

STORAGE STRUCTURE:
    .work_sessions/
    └── sessions.json      # List: session records in insertion order

STORE CONTRACT:
- load_all(): ordered list of WorkSession
- upsert(session): replace by matching id, else append
- delete_by_id(session_id)
- replace_all(sessions): whole-store replacement in one write
- clear_all()

ERROR HANDLING STRATEGY:
- File not found: Return empty list
- JSON corruption: Log error, return empty list
- Corrupt record: Log warning, skip that record
- Write failure: Log error, return False

USAGE:
    # Production
    storage = StorageManager()

    # Testing with MockFileSystem
    fs = MockFileSystem()
    storage = StorageManager(storage_dir="/test", filesystem=fs)
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from .config import Config
from .filesystem import RealFileSystem
from .models import WorkSession

if TYPE_CHECKING:
    from .filesystem import FileSystem

logger = logging.getLogger(__name__)


class StorageManager:
    """
    JSON file backed session store.

    DESIGN PRINCIPLES:
    1. Fail-safe: Never raise on I/O errors
    2. Predictable: Always return valid data structures
    3. Idempotent: Safe to initialize multiple times
    4. Logged: All errors recorded for debugging
    5. Testable: FileSystem can be injected for mocking

    CONSISTENCY:
    Every operation re-reads the file, so each read sees the immediately
    prior write. Single writer assumed; no locking.
    """

    def __init__(
        self,
        storage_dir: str | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        """
        Initialize storage with directory structure.

        Args:
            storage_dir: Custom storage path. Default: Config.get_storage_dir()
            filesystem: FileSystem implementation. Default: RealFileSystem
        """
        self.storage_dir = storage_dir or Config.get_storage_dir()
        self._fs: FileSystem = filesystem or RealFileSystem()
        self.sessions_file = os.path.join(self.storage_dir, Config.SESSIONS_FILE)

        self._initialize_storage()

    def _initialize_storage(self) -> None:
        """
        Create the storage directory and an empty sessions file.

        ERROR HANDLING:
        Logs errors but doesn't raise - allows degraded operation.
        """
        try:
            self._fs.makedirs(self.storage_dir, exist_ok=True)
            if not self._fs.exists(self.sessions_file):
                self._write_json(self.sessions_file, [])
            logger.info(f"Storage initialized: {self.storage_dir}")
        except OSError as e:
            logger.error(f"Failed to initialize storage: {e}")

    def _read_json(self, file_path: str, default: Any) -> Any:
        """
        Read JSON file with error handling.

        Args:
            file_path: Path to JSON file
            default: Value to return on any error

        Returns:
            Parsed JSON data or default value.
        """
        try:
            content = self._fs.read_text(file_path)
            return json.loads(content)
        except FileNotFoundError:
            return default
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {file_path}: {e}")
            return default
        except OSError as e:
            logger.error(f"Error reading {file_path}: {e}")
            return default

    def _write_json(self, file_path: str, data: Any) -> bool:
        """
        Write JSON file with error handling.

        Args:
            file_path: Path to JSON file
            data: Data to serialize

        Returns:
            True on success, False on failure.
        """
        try:
            content = json.dumps(data, indent=2, default=str)
            self._fs.write_text(file_path, content)
            return True
        except OSError as e:
            logger.error(f"Error writing {file_path}: {e}")
            return False

    def _load_records(self) -> list[dict[str, Any]]:
        records = self._read_json(self.sessions_file, [])
        if not isinstance(records, list):
            logger.error(f"Expected a list in {self.sessions_file}, found {type(records).__name__}")
            return []
        return records

    def _save_records(self, records: list[dict[str, Any]]) -> bool:
        return self._write_json(self.sessions_file, records)

    # =========================================================================
    # SESSION OPERATIONS
    # =========================================================================

    def load_all(self) -> list[WorkSession]:
        """
        Load all sessions in stored order.

        Records that cannot be deserialized are logged and skipped.

        Returns:
            List of WorkSession. Empty list if unavailable.
        """
        sessions: list[WorkSession] = []
        for record in self._load_records():
            try:
                sessions.append(WorkSession.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping corrupt session record {record!r}: {e}")
        return sessions

    def get_session(self, session_id: str) -> WorkSession | None:
        """
        Get single session by ID.

        Args:
            session_id: Session identifier

        Returns:
            WorkSession or None if not found.
        """
        for session in self.load_all():
            if session.id == session_id:
                return session
        return None

    def upsert(self, session: WorkSession) -> bool:
        """
        Save one session, replacing any stored session with the same id.

        Args:
            session: Session to store

        Returns:
            True on success.
        """
        return self.upsert_many([session])

    def upsert_many(self, sessions: Iterable[WorkSession]) -> bool:
        """
        Upsert several sessions with a single write.

        Sessions whose id is already stored replace that record in place;
        the rest are appended in the given order.

        Args:
            sessions: Sessions to store

        Returns:
            True on success.
        """
        records = self._load_records()
        positions = {record.get("id"): index for index, record in enumerate(records)}
        for session in sessions:
            data = session.to_dict()
            index = positions.get(session.id)
            if index is None:
                positions[session.id] = len(records)
                records.append(data)
            else:
                records[index] = data
        return self._save_records(records)

    def replace_all(self, sessions: Iterable[WorkSession]) -> bool:
        """
        Replace the whole store with sessions in one write.

        The previous contents are kept untouched when the write fails.

        Args:
            sessions: Complete new contents, in stored order

        Returns:
            True on success.
        """
        return self._save_records([session.to_dict() for session in sessions])

    def delete_by_id(self, session_id: str) -> bool:
        """
        Delete a session by id.

        Args:
            session_id: Session identifier

        Returns:
            True if a session was removed and the file written.
        """
        records = self._load_records()
        remaining = [r for r in records if r.get("id") != session_id]
        if len(remaining) == len(records):
            return False
        return self._save_records(remaining)

    # =========================================================================
    # MAINTENANCE OPERATIONS
    # =========================================================================

    def clear_all(self) -> bool:
        """
        Reset the session store to empty.

        WARNING: Destroys all data.

        Returns:
            True if the clear succeeded.
        """
        success = self._save_records([])
        if success:
            logger.info("All sessions cleared")
        return success
