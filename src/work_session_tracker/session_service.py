"""
Session Service - shared business logic for work session tracking.

PURPOSE: Form saves, deletes, listing, export and import behind one API.
AI CONTEXT: This is the shared service layer used by both web/routes.py and cli.py.

ARCHITECTURE:
    CLI commands ──┐
                   ├──► SessionService ◄── StorageManager
    Web routes ────┘         │
                             └──► csv_codec, GroupingEngine

USAGE:
    from .session_service import SessionService
    service = SessionService()
    result = service.save_session(title="Review", date_text="2025-03-14")
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any

from .config import Config
from .csv_codec import export_sessions, import_file
from .grouping import GroupingEngine
from .models import ImportResult, WorkSession
from .storage import StorageManager

__all__ = [
    "NO_SESSIONS_TO_EXPORT",
    "Page",
    "ServiceResult",
    "SessionService",
    "newest_first",
    "paginate",
]

logger = logging.getLogger(__name__)

NO_SESSIONS_TO_EXPORT = "No sessions to export"


@dataclass
class ServiceResult:
    """
    Result from a service operation.

    Provides a consistent return type for all service methods with
    success/failure status and optional data or error message.

    Attributes:
        success: Whether the operation completed successfully.
        message: Human-readable result message.
        data: Optional dict with operation-specific data.
        error: Optional error message if success is False.
    """

    success: bool
    message: str
    data: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert this ServiceResult to a JSON-serializable dictionary.

        Fields with None/empty values (data, error) are omitted to keep
        payloads compact.

        Example:
            >>> ServiceResult(success=True, message="Deleted").to_dict()
            {'success': True, 'message': 'Deleted'}
        """
        result: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
        }
        if self.data:
            result["data"] = self.data
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class Page:
    """One page of a sorted session list."""

    items: list[WorkSession]
    page: int
    total_pages: int
    total_items: int

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def newest_first(sessions: Iterable[WorkSession]) -> list[WorkSession]:
    """Sort sessions by date, newest first. Same-day order is input order."""
    return sorted(sessions, key=lambda s: s.date, reverse=True)


def paginate(items: list[WorkSession], page: int, page_size: int | None = None) -> Page:
    """
    Slice items into 1-based pages.

    Out-of-range page numbers are clamped to the first or last page. An
    empty list yields a single empty page.

    Example:
        >>> paginate(sessions_12, page=3, page_size=5).items  # last 2 sessions
    """
    size = page_size or Config.PAGE_SIZE
    total_pages = max(1, math.ceil(len(items) / size))
    page = min(max(1, page), total_pages)
    start = (page - 1) * size
    return Page(
        items=items[start : start + size],
        page=page,
        total_pages=total_pages,
        total_items=len(items),
    )


def _parse_form_time(text: str, day: date, default_hour: int) -> datetime:
    if not text:
        return datetime.combine(day, time(hour=default_hour))
    parsed = datetime.strptime(text.strip(), "%H:%M")
    return datetime.combine(day, parsed.time())


class SessionService:
    """
    Core session tracking service.

    Provides all session operations as pure business logic, separated from
    both HTTP handling and CLI argument parsing.

    OPERATIONS:
    - save_session: Create or edit a session from form fields
    - get_session: Look up one session for editing
    - delete_session / clear_sessions: Remove sessions
    - list_sessions: Newest-first pagination
    - export_csv: CSV text plus download filename
    - preview_import / confirm_import: Two-step CSV import

    Example:
        >>> service = SessionService()
        >>> result = service.save_session(
        ...     title="Client call",
        ...     date_text="2025-03-14",
        ...     start="09:00",
        ...     end="10:30",
        ... )
        >>> result.data["session"]["duration"]
        90
    """

    def __init__(
        self,
        storage: StorageManager | None = None,
        engine: GroupingEngine | None = None,
    ) -> None:
        """Initialize the session service with storage and grouping dependencies.

        Args:
            storage: Session store. Defaults to a new StorageManager() using
                Config paths. Pass a custom instance for testing.
            engine: GroupingEngine for reports. Defaults to GroupingEngine().

        Example:
            >>> service = SessionService()  # production defaults
            >>> service = SessionService(storage=StorageManager("/t", mock_fs))
        """
        self.storage = storage or StorageManager()
        self.engine = engine or GroupingEngine()

    # =========================================================================
    # FORM OPERATIONS
    # =========================================================================

    def save_session(
        self,
        title: str,
        date_text: str,
        start: str = "",
        end: str = "",
        description: str = "",
        project: str = "",
        tags: str | list[str] = "",
        session_id: str | None = None,
    ) -> ServiceResult:
        """
        Create a session, or replace an existing one when session_id is given.

        Times are HH:MM on the session date, defaulting to 09:00 and 17:00.
        Duration is always recomputed from the times. Tags may be a
        comma-separated string or a list.

        Args:
            title: Required, non-blank.
            date_text: Session day as YYYY-MM-DD.
            start: Start time HH:MM, optional.
            end: End time HH:MM, optional.
            description: Optional free text.
            project: Optional project label.
            tags: Comma-separated tags or list of tags.
            session_id: Id of the session being edited.

        Returns:
            ServiceResult with the stored session dict in data['session'].

        Example:
            >>> service.save_session(title="", date_text="2025-03-14").error
            'title is required'
        """
        title = (title or "").strip()
        if not title:
            return ServiceResult(
                success=False,
                message="Invalid session",
                error="title is required",
            )

        try:
            day = date.fromisoformat((date_text or "").strip())
        except ValueError:
            return ServiceResult(
                success=False,
                message="Invalid session",
                error=f"date must be YYYY-MM-DD, got {date_text!r}",
            )

        try:
            start_time = _parse_form_time(start, day, Config.DEFAULT_START_HOUR)
            end_time = _parse_form_time(end, day, Config.DEFAULT_END_HOUR)
        except ValueError:
            return ServiceResult(
                success=False,
                message="Invalid session",
                error="times must be HH:MM",
            )

        if isinstance(tags, str):
            tag_list = [t.strip() for t in tags.split(",")]
        else:
            tag_list = [t.strip() for t in tags]
        tag_list = [t for t in tag_list if t]

        if session_id and self.storage.get_session(session_id) is None:
            return ServiceResult(
                success=False,
                message="Session not found",
                error=f"No session with id {session_id}",
            )

        session = WorkSession.create(
            title=title,
            day=day,
            start_time=start_time,
            end_time=end_time,
            description=description.strip() if description else None,
            project=project.strip() if project else None,
            tags=tag_list,
            session_id=session_id,
        )

        if not self.storage.upsert(session):
            return ServiceResult(
                success=False,
                message="Failed to save session",
                error="storage write failed",
            )

        action = "Updated" if session_id else "Saved"
        logger.info(f"{action} session: {session.id}")
        return ServiceResult(
            success=True,
            message=f"{action} session: {session.title}",
            data={"session": session.to_dict()},
        )

    def delete_session(self, session_id: str) -> ServiceResult:
        """
        Delete one session by id.

        Returns:
            ServiceResult; unsuccessful when the id is unknown.
        """
        if not self.storage.delete_by_id(session_id):
            return ServiceResult(
                success=False,
                message="Session not found",
                error=f"No session with id {session_id}",
            )
        logger.info(f"Deleted session: {session_id}")
        return ServiceResult(success=True, message=f"Deleted session: {session_id}")

    def clear_sessions(self) -> ServiceResult:
        """Delete every stored session."""
        if not self.storage.clear_all():
            return ServiceResult(
                success=False,
                message="Failed to clear sessions",
                error="storage write failed",
            )
        return ServiceResult(success=True, message="All sessions cleared")

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_session(self, session_id: str) -> WorkSession | None:
        """One stored session by id, or None."""
        return self.storage.get_session(session_id)

    def sorted_sessions(self) -> list[WorkSession]:
        """All sessions, newest date first. Same-day order is stored order."""
        return newest_first(self.storage.load_all())

    def list_sessions(self, page: int = 1, page_size: int | None = None) -> Page:
        """
        One page of the newest-first session list.

        Args:
            page: 1-based page number, clamped into range.
            page_size: Items per page. Default: Config.PAGE_SIZE

        Returns:
            Page with items and pagination metadata.
        """
        return paginate(self.sorted_sessions(), page, page_size)

    def report(self, period: str) -> ServiceResult:
        """
        Bucket every session by week or month with totals.

        Args:
            period: 'week' or 'month'.

        Returns:
            ServiceResult whose data['buckets'] is a newest-first list of
            {key, start, end, total_hours, session_count, sessions}.
        """
        sessions = self.storage.load_all()
        try:
            buckets = self.engine.group_by_period(sessions, period)
        except ValueError as e:
            return ServiceResult(success=False, message="Invalid report period", error=str(e))

        rows: list[dict[str, Any]] = []
        for key in self.engine.ordered_keys(buckets):
            summary = self.engine.summarize(buckets[key])
            row: dict[str, Any] = {
                "key": key,
                "total_hours": summary.total_hours,
                "session_count": summary.session_count,
                "sessions": [s.to_dict() for s in buckets[key]],
            }
            if period == "week":
                row["start"] = key
                row["end"] = self.engine.week_end(key)
            rows.append(row)

        return ServiceResult(
            success=True,
            message=f"{len(rows)} {period} bucket(s)",
            data={
                "period": period,
                "total_hours": self.engine.total_hours(sessions),
                "buckets": rows,
            },
        )

    # =========================================================================
    # EXPORT / IMPORT
    # =========================================================================

    def export_csv(self, today: date | None = None) -> ServiceResult:
        """
        Encode every stored session as CSV.

        Returns:
            ServiceResult with data['filename'] and data['content'], or an
            unsuccessful result when there is nothing to export.
        """
        sessions = self.storage.load_all()
        if not sessions:
            return ServiceResult(
                success=False,
                message=NO_SESSIONS_TO_EXPORT,
                error=NO_SESSIONS_TO_EXPORT,
            )

        filename = Config.export_filename(today)
        logger.info(f"Exported {len(sessions)} session(s) to {filename}")
        return ServiceResult(
            success=True,
            message=f"Exported {len(sessions)} session(s)",
            data={
                "filename": filename,
                "content": export_sessions(sessions),
                "count": len(sessions),
            },
        )

    def preview_import(self, filename: str, read: Callable[[], str]) -> ImportResult:
        """
        Decode a file against the stored sessions without writing anything.

        Args:
            filename: Selected file name; must end in .csv.
            read: Callable returning the file text.

        Returns:
            ImportResult to show the user before confirming.
        """
        return import_file(filename, read, self.storage.load_all())

    def confirm_import(self, result: ImportResult) -> ServiceResult:
        """
        Commit a previewed import.

        The store is replaced by the previously stored sessions followed by
        the accepted sessions in a single write, so a failed write leaves
        the stored sessions as they were.

        Args:
            result: ImportResult returned by preview_import().

        Returns:
            ServiceResult with data['imported'] and data['skipped']; refused
            when the result was not successful.
        """
        if not result.success:
            return ServiceResult(
                success=False,
                message="Nothing to import",
                error="; ".join(result.errors) or "no sessions accepted",
            )

        existing = self.storage.load_all()
        if not self.storage.replace_all([*existing, *result.sessions]):
            return ServiceResult(
                success=False,
                message="Failed to import sessions",
                error="storage write failed",
            )

        logger.info(f"Imported {result.imported} session(s), skipped {result.skipped}")
        return ServiceResult(
            success=True,
            message=f"Imported {result.imported} session(s)",
            data={"imported": result.imported, "skipped": result.skipped},
        )
