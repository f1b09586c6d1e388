"""
Data models for Work Session Tracker.

PURPOSE: Type-safe dataclasses representing core domain entities.
AI CONTEXT: These models define the data schema for sessions and import results.

MODEL HIERARCHY:
- WorkSession: A single tracked interval of work, attributed to a calendar day
- CalendarDay: View-model cell of the month grid (not persisted)
- ImportResult: Transient outcome of decoding a CSV file

SERIALIZATION:
WorkSession has to_dict() for JSON persistence and from_dict() for loading.
Dates and timestamps use ISO 8601 strings in local wall time.

USAGE:
    session = WorkSession.create(
        title="Client call",
        day=date(2025, 3, 14),
        start_time=datetime(2025, 3, 14, 9, 0),
        end_time=datetime(2025, 3, 14, 10, 30),
    )
    session.duration  # 90
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

_ID_ALPHABET = string.digits + string.ascii_lowercase


def _generate_session_id() -> str:
    """
    Generate a unique session ID from the current timestamp and random characters.

    Combines the millisecond timestamp with nine random base-36 characters so
    sessions created in the same millisecond (bulk CSV import) never collide.

    Returns:
        ID string like '1742032800123k3j9x0q2a'.

    Example:
        >>> len(_generate_session_id()) >= 22
        True
    """
    millis = int(datetime.now().timestamp() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{millis}{suffix}"


def duration_between(start_time: datetime, end_time: datetime) -> int:
    """
    Whole minutes from start_time to end_time, clamped at zero.

    Args:
        start_time: Interval start.
        end_time: Interval end. May precede start_time.

    Returns:
        Non-negative integer minutes.

    Example:
        >>> duration_between(datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 17, 30))
        510
    """
    minutes = (end_time - start_time).total_seconds() / 60
    return max(0, round(minutes))


@dataclass
class WorkSession:
    """
    A single tracked interval of work.

    LIFECYCLE:
    1. Created by the session form or by CSV import (new id)
    2. Edited only by full replacement (re-save with the same id)
    3. Destroyed by explicit delete or bulk clear

    DATE VS TIMESTAMPS:
    `date` is the calendar day the session is attributed to and is the only
    key used for calendar and report bucketing. start_time and end_time
    carry their own date component which is not consulted for grouping.

    DURATION:
    Integer minutes. Recomputed from the timestamps whenever both are
    authoritative; supplied directly when only a duration is known.
    """

    id: str
    title: str
    date: date
    start_time: datetime
    end_time: datetime
    duration: int
    description: str | None = None
    project: str | None = None
    tags: list[str] | None = None

    @classmethod
    def create(
        cls,
        title: str,
        day: date,
        start_time: datetime,
        end_time: datetime,
        description: str | None = None,
        project: str | None = None,
        tags: list[str] | None = None,
        session_id: str | None = None,
    ) -> WorkSession:
        """
        Factory method to create a session with duration derived from its times.

        Business context: Both the form and the CSV import path know the
        start and end timestamps, so duration is computed here rather than
        trusted from the caller.

        Args:
            title: Short non-empty title.
            day: Calendar day the session belongs to.
            start_time: Session start timestamp.
            end_time: Session end timestamp.
            description: Optional free text.
            project: Optional project label.
            tags: Optional labels. An empty list is stored as None.
            session_id: Existing id when re-saving an edited session.
                A new id is generated when omitted.

        Returns:
            New WorkSession instance.

        Example:
            >>> s = WorkSession.create('Standup', date(2025, 1, 6),
            ...     datetime(2025, 1, 6, 9), datetime(2025, 1, 6, 9, 15))
            >>> s.duration
            15
        """
        return cls(
            id=session_id or _generate_session_id(),
            title=title,
            date=day,
            start_time=start_time,
            end_time=end_time,
            duration=duration_between(start_time, end_time),
            description=description or None,
            project=project or None,
            tags=list(tags) if tags else None,
        )

    @classmethod
    def from_duration(
        cls,
        title: str,
        day: date,
        start_time: datetime,
        duration: int,
        description: str | None = None,
        project: str | None = None,
        tags: list[str] | None = None,
    ) -> WorkSession:
        """
        Factory method for sessions known only by start and length.

        The end time is derived as start_time + duration minutes.

        Args:
            title: Short non-empty title.
            day: Calendar day the session belongs to.
            start_time: Session start timestamp.
            duration: Length in minutes. Negative values are clamped to 0.
            description: Optional free text.
            project: Optional project label.
            tags: Optional labels.

        Returns:
            New WorkSession instance with a generated id.
        """
        minutes = max(0, duration)
        return cls(
            id=_generate_session_id(),
            title=title,
            date=day,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=minutes),
            duration=minutes,
            description=description or None,
            project=project or None,
            tags=list(tags) if tags else None,
        )

    @property
    def hours(self) -> float:
        """Duration in hours (unrounded)."""
        return self.duration / 60

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize session to dictionary for JSON storage.

        Returns:
            Dict with ISO 8601 strings for date and timestamps. Unset
            optional fields are stored as None.

        Example:
            >>> data = session.to_dict()
            >>> data['date']
            '2025-01-06'
        """
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": self.date.isoformat(),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration": self.duration,
            "project": self.project,
            "tags": self.tags,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkSession:
        """
        Deserialize session from dictionary.

        Args:
            data: Dict as produced by to_dict().

        Returns:
            WorkSession instance.

        Raises:
            KeyError: If id, title, date, start_time or end_time is missing.
            ValueError: If a date or timestamp is not ISO 8601.
        """
        start_time = datetime.fromisoformat(data["start_time"])
        end_time = datetime.fromisoformat(data["end_time"])
        duration = data.get("duration")
        if duration is None:
            duration = duration_between(start_time, end_time)
        return cls(
            id=str(data["id"]),
            title=data["title"],
            date=date.fromisoformat(data["date"][:10]),
            start_time=start_time,
            end_time=end_time,
            duration=int(duration),
            description=data.get("description") or None,
            project=data.get("project") or None,
            tags=list(data["tags"]) if data.get("tags") else None,
        )


@dataclass
class CalendarDay:
    """One cell of the month grid."""

    date: date
    sessions: list[WorkSession] = field(default_factory=list)
    is_current_month: bool = True
    is_today: bool = False


@dataclass
class ImportResult:
    """
    Outcome of decoding a CSV file.

    Warnings and hard failures are not distinguished by type, only by
    message text. success is True when at least one session was accepted.
    """

    success: bool = False
    sessions: list[WorkSession] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    imported: int = 0
    skipped: int = 0

    @classmethod
    def failure(cls, message: str) -> ImportResult:
        """Build an unsuccessful result carrying a single error message."""
        return cls(success=False, errors=[message])

    def to_dict(self) -> dict[str, Any]:
        """Serialize the result for JSON API responses."""
        return {
            "success": self.success,
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": list(self.errors),
            "sessions": [s.to_dict() for s in self.sessions],
        }
