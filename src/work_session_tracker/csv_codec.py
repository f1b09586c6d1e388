"""
CSV codec for Work Session Tracker.

PURPOSE: Encode sessions to CSV text and decode CSV text into sessions.
AI CONTEXT: No storage access - existing sessions are passed in explicitly.

EXPORT:
- Fixed header row (Config.EXPORT_HEADERS), every field double-quoted
- Date YYYY-MM-DD, times HH:MM, duration as hours with 2 decimals
- Tags joined with "; ", missing optional fields as empty strings

IMPORT PIPELINE:
1. Split lines; header is the first line (structural failure if < 2 lines)
2. Map headers through the alias table (parsing.HEADER_ALIASES)
3. Require title and date columns (structural failure otherwise)
4. Per row: validate, parse date/times/duration, detect duplicates
5. success = imported > 0

ERROR POLICY:
Structural failures abort before any row is processed. Row failures drop
the row and append a message; processing continues. Duplicates are counted
as skipped, not reported. Nothing raises past import_sessions().

USAGE:
    text = export_sessions(storage.load_all())
    result = import_sessions(text, existing_sessions=storage.load_all())
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, time

from .config import Config
from .models import ImportResult, WorkSession
from .parsing import (
    canonical_field,
    clean_cell,
    parse_date,
    parse_duration,
    parse_time_of_day,
    split_tags,
)

__all__ = [
    "EMPTY_INPUT_ERROR",
    "MISSING_DATE_ERROR",
    "MISSING_TITLE_ERROR",
    "NOT_CSV_ERROR",
    "duplicate_key",
    "export_sessions",
    "import_file",
    "import_sessions",
]

logger = logging.getLogger(__name__)

EMPTY_INPUT_ERROR = "CSV file appears to be empty or has no data rows"
MISSING_TITLE_ERROR = (
    'Required column "Title" not found. Please ensure your CSV has a title/task column.'
)
MISSING_DATE_ERROR = (
    'Required column "Date" not found. Please ensure your CSV has a date column.'
)
NOT_CSV_ERROR = "Please select a CSV file"

DuplicateKey = tuple[date, str, time]


class RowError(ValueError):
    """A data row that cannot be imported. The message is user-facing."""


# =============================================================================
# EXPORT
# =============================================================================


def _session_row(session: WorkSession) -> list[str]:
    return [
        session.date.isoformat(),
        session.title,
        session.description or "",
        session.start_time.strftime("%H:%M"),
        session.end_time.strftime("%H:%M"),
        f"{session.duration / 60:.2f}",
        session.project or "",
        "; ".join(session.tags) if session.tags else "",
    ]


def export_sessions(sessions: Iterable[WorkSession]) -> str:
    """
    Encode sessions as CSV text.

    Produces the canonical header row followed by one row per session in
    the given order. Every field is wrapped in double quotes, embedded
    quotes are doubled, and rows are joined with newlines.

    Args:
        sessions: Sessions to encode.

    Returns:
        CSV text without a trailing newline.

    Example:
        >>> print(export_sessions([session]))
        "Date","Title","Description","Start Time","End Time","Duration (Hours)","Project","Tags"
        "2025-01-06","Standup","","09:00","09:15","0.25","Acme","meetings"
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(Config.EXPORT_HEADERS)
    writer.writerows(_session_row(session) for session in sessions)
    return buffer.getvalue().removesuffix("\n")


# =============================================================================
# IMPORT
# =============================================================================


def duplicate_key(day: date, title: str, start_time: datetime) -> DuplicateKey:
    """
    Composite key used to detect already-known sessions.

    Two sessions with the same day, title and start time-of-day are treated
    as the same session. This is a heuristic, not an identity.
    """
    return (day, title, start_time.time())


def _build_column_map(header_line: str) -> dict[str, int]:
    column_map: dict[str, int] = {}
    for index, header in enumerate(header_line.split(",")):
        field = canonical_field(header)
        if field:
            column_map[field] = index
    return column_map


def _optional_cell(row: Sequence[str], column_map: dict[str, int], field: str) -> str | None:
    index = column_map.get(field)
    if index is None:
        return None
    return row[index] or None


def _parse_row(
    row: Sequence[str],
    column_map: dict[str, int],
) -> WorkSession:
    """
    Build a session from one split, cleaned data row.

    Raises:
        RowError: For rows that must be dropped.
    """
    if len(row) < max(column_map.values()) + 1:
        raise RowError("Insufficient columns")

    title = row[column_map["title"]]
    date_text = row[column_map["date"]]
    if not title or not date_text:
        raise RowError("Missing required title or date")

    parsed_date = parse_date(date_text)
    if not parsed_date.success or parsed_date.value is None:
        raise RowError(f'Invalid date format "{date_text}"')
    day = parsed_date.value
    midnight = datetime.combine(day, time())

    start_text = _optional_cell(row, column_map, "startTime")
    if start_text:
        start_time = parse_time_of_day(start_text, day).value_or(midnight)
    else:
        start_time = midnight.replace(hour=Config.DEFAULT_START_HOUR)

    description = _optional_cell(row, column_map, "description")
    project = _optional_cell(row, column_map, "project")
    tags_text = _optional_cell(row, column_map, "tags")
    tags = split_tags(tags_text) if tags_text else None

    end_text = _optional_cell(row, column_map, "endTime")
    duration_text = _optional_cell(row, column_map, "duration")
    if end_text:
        end_time = parse_time_of_day(end_text, day).value_or(midnight)
    elif duration_text:
        minutes = parse_duration(duration_text).value_or(0)
        return WorkSession.from_duration(
            title=title,
            day=day,
            start_time=start_time,
            duration=minutes,
            description=description,
            project=project,
            tags=tags,
        )
    else:
        end_time = midnight.replace(hour=Config.DEFAULT_END_HOUR)

    return WorkSession.create(
        title=title,
        day=day,
        start_time=start_time,
        end_time=end_time,
        description=description,
        project=project,
        tags=tags,
    )


def import_sessions(
    csv_text: str,
    existing_sessions: Iterable[WorkSession] = (),
) -> ImportResult:
    """
    Decode CSV text into sessions staged for import.

    Header names are matched case-insensitively against an alias table, so
    exports from other tools ('Task', 'Client', 'Hours', ...) import without
    editing. Rows are split naively on commas; quoted commas are not
    supported.

    Business context: Users migrate history from spreadsheets and other
    trackers. The import must be forgiving about format and must not create
    copies of sessions that are already tracked, so repeated imports of the
    same file are harmless.

    Args:
        csv_text: Raw CSV file content.
        existing_sessions: Sessions already tracked. Used only to build the
            duplicate-detection key set; never modified.

    Returns:
        ImportResult with accepted sessions, error messages, and
        imported/skipped counts. Row numbers in messages count the header
        as row 1.

    Example:
        >>> result = import_sessions("Date,Task,Hours\\n2025-01-06,Review,1.5")
        >>> result.imported, result.sessions[0].duration
        (1, 90)
    """
    result = ImportResult()

    lines = csv_text.lstrip("\ufeff").strip().splitlines()
    if len(lines) < 2:
        result.errors.append(EMPTY_INPUT_ERROR)
        return result

    column_map = _build_column_map(lines[0])
    if "title" not in column_map:
        result.errors.append(MISSING_TITLE_ERROR)
        return result
    if "date" not in column_map:
        result.errors.append(MISSING_DATE_ERROR)
        return result

    seen: set[DuplicateKey] = {
        duplicate_key(s.date, s.title, s.start_time) for s in existing_sessions
    }

    for line_index, line in enumerate(lines[1:], start=1):
        row_number = line_index + 1
        if not line.strip():
            continue
        try:
            row = [clean_cell(cell) for cell in line.split(",")]
            session = _parse_row(row, column_map)
        except RowError as e:
            logger.debug(f"Dropping row {row_number}: {e}")
            result.errors.append(f"Row {row_number}: {e}")
            continue
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Unexpected failure importing row {row_number}: {e}")
            result.errors.append(f"Row {row_number}: {str(e) or type(e).__name__}")
            continue

        key = duplicate_key(session.date, session.title, session.start_time)
        if key in seen:
            result.skipped += 1
            continue

        seen.add(key)
        result.sessions.append(session)
        result.imported += 1

    result.success = result.imported > 0
    logger.info(
        f"CSV import decoded: {result.imported} imported, {result.skipped} skipped, "
        f"{len(result.errors)} errors"
    )
    return result


def import_file(
    filename: str,
    read: Callable[[], str],
    existing_sessions: Iterable[WorkSession] = (),
) -> ImportResult:
    """
    Import a user-selected file.

    Rejects non-CSV filenames before reading anything, and wraps read
    failures in a single error message.

    Args:
        filename: Name of the selected file; only the extension is checked.
        read: Callable returning the file's text content.
        existing_sessions: Passed through to import_sessions().

    Returns:
        ImportResult from import_sessions(), or a failure result.

    Example:
        >>> import_file('hours.xlsx', lambda: '').errors
        ['Please select a CSV file']
    """
    if not filename.lower().endswith(".csv"):
        return ImportResult.failure(NOT_CSV_ERROR)

    try:
        text = read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read {filename}: {e}")
        return ImportResult.failure(f"Failed to read file: {e}")

    return import_sessions(text, existing_sessions)
