"""
Parsing heuristics for CSV import.

PURPOSE: Pure functions that turn loosely formatted cell text into typed values.
AI CONTEXT: No I/O, no exceptions for bad input - every parser returns a ParseResult.

PARSERS:
- canonical_field: header text -> canonical field name via the alias table
- clean_cell: strip quotes and whitespace from a raw cell
- parse_date: general date parser over a fixed list of formats
- parse_time_of_day: "HH:MM"-like cell -> timestamp on a given day
- parse_duration: "1.5", "2h 15m", "45m", "2:15" -> minutes
- split_tags: "a; b, c|d" -> ["a", "b", "c", "d"]

USAGE:
    result = parse_duration("2h 15m")
    if result.success:
        minutes = result.value  # 135
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Generic, TypeVar

__all__ = [
    "HEADER_ALIASES",
    "ParseResult",
    "canonical_field",
    "clean_cell",
    "parse_date",
    "parse_duration",
    "parse_time_of_day",
    "split_tags",
]

T = TypeVar("T")

HEADER_ALIASES: dict[str, str] = {
    "date": "date",
    "title": "title",
    "task": "title",
    "work": "title",
    "description": "description",
    "desc": "description",
    "notes": "description",
    "start time": "startTime",
    "start": "startTime",
    "begin": "startTime",
    "end time": "endTime",
    "end": "endTime",
    "finish": "endTime",
    "duration": "duration",
    "duration (hours)": "duration",
    "hours": "duration",
    "time": "duration",
    "project": "project",
    "client": "project",
    "tags": "tags",
    "categories": "tags",
    "labels": "tags",
}
"""Normalized header text -> canonical field name."""

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%d.%m.%Y",
    "%b %d %Y",
    "%d %b %Y",
    "%B %d %Y",
    "%d %B %Y",
)

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
_HOURS_MINUTES_RE = re.compile(
    r"(?P<minutes_only>\d+)\s*m(?:in(?:utes?)?)?"
    r"|(?P<hours>\d+)\s*(?:h(?:ours?|rs?)?)?\s*(?:(?P<minutes>\d+)\s*(?:m(?:in(?:utes?)?)?)?)?",
    re.IGNORECASE,
)
_CLOCK_RE = re.compile(r"(?P<hours>\d+):(?P<minutes>\d{1,2})")
_TAG_SEPARATORS_RE = re.compile(r"[;,|]")


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """
    Tagged success/failure outcome of a parser.

    Attributes:
        success: Whether the input was understood.
        value: Parsed value when success is True, else None.
        error: Human-readable reason when success is False.
    """

    success: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, value: T) -> ParseResult[T]:
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str) -> ParseResult[T]:
        return cls(success=False, error=error)

    def value_or(self, default: T) -> T:
        """Return the parsed value, or default when parsing failed."""
        if self.success and self.value is not None:
            return self.value
        return default


def clean_cell(raw: str) -> str:
    """
    Strip double quotes and surrounding whitespace from a CSV cell.

    Example:
        >>> clean_cell(' "Client call" ')
        'Client call'
    """
    return raw.replace('"', "").strip()


def canonical_field(header: str) -> str | None:
    """
    Map a raw header cell to its canonical field name.

    The header is normalized (quotes stripped, trimmed, lower-cased) before
    lookup in HEADER_ALIASES.

    Args:
        header: Raw header cell text.

    Returns:
        Canonical field name, or None for an unrecognized header.

    Example:
        >>> canonical_field('"Client"')
        'project'
        >>> canonical_field('Billable') is None
        True
    """
    return HEADER_ALIASES.get(clean_cell(header).lower())


def parse_date(text: str) -> ParseResult[date]:
    """
    Parse a calendar date written in any of the common formats.

    Tries each pattern in DATE_FORMATS, then ISO 8601 datetimes
    (e.g. '2025-03-14T09:00:00'), whose date component is kept.
    Commas are treated as whitespace so 'Mar 14, 2025' parses.

    Args:
        text: Cleaned cell text.

    Returns:
        ParseResult with the date, or a failure naming the input.

    Example:
        >>> parse_date('03/14/2025').value
        datetime.date(2025, 3, 14)
    """
    candidate = " ".join(text.replace(",", " ").split())
    if not candidate:
        return ParseResult.fail("empty date")

    for fmt in DATE_FORMATS:
        try:
            return ParseResult.ok(datetime.strptime(candidate, fmt).date())
        except ValueError:
            continue

    try:
        return ParseResult.ok(datetime.fromisoformat(text.strip()).date())
    except ValueError:
        return ParseResult.fail(f'unrecognized date "{text}"')


def parse_time_of_day(text: str, day: date) -> ParseResult[datetime]:
    """
    Parse a clock time cell and place it on the given day.

    The cell must contain a colon. The first two colon-separated parts have
    every non-digit character removed ('9:30 AM' -> 9, 30) and are read as
    hours and minutes. Out-of-range values roll forward the way a clock
    does ('25:00' is 01:00 on the next day).

    Callers fall back to midnight of the day on failure; this is a
    best-effort default, not an error.

    Args:
        text: Cleaned cell text.
        day: Day the time belongs to.

    Returns:
        ParseResult with the timestamp, or a failure.

    Example:
        >>> parse_time_of_day('17:30', date(2025, 1, 6)).value
        datetime.datetime(2025, 1, 6, 17, 30)
    """
    if ":" not in text:
        return ParseResult.fail(f'no colon in time "{text}"')

    parts = text.split(":")
    digits = [re.sub(r"\D", "", part) for part in parts[:2]]
    if len(digits) < 2 or not all(digits):
        return ParseResult.fail(f'unreadable time "{text}"')

    hours, minutes = (int(d) for d in digits)
    midnight = datetime.combine(day, time())
    return ParseResult.ok(midnight + timedelta(hours=hours, minutes=minutes))


def parse_duration(text: str) -> ParseResult[int]:
    """
    Parse a duration cell into whole minutes.

    ACCEPTED FORMS (tried in order):
    1. Decimal hours for the whole cell: '1.5' -> 90, '8' -> 480
    2. Hours and/or minutes: '2h 15m' -> 135, '2h' -> 120, '45m' -> 45,
       '1 hour 30 min' -> 90. Unit letters are optional after hours and
       before minutes: '2h15', '2 15' and '2 15m' all read as 135
    3. Clock notation: '2:15' -> 135

    Negative values are clamped to 0.

    Args:
        text: Cleaned cell text.

    Returns:
        ParseResult with minutes, or a failure when no form matches.

    Example:
        >>> parse_duration('2h 15m').value
        135
    """
    candidate = text.strip()
    if _DECIMAL_RE.fullmatch(candidate):
        return ParseResult.ok(max(0, round(float(candidate) * 60)))

    match = _HOURS_MINUTES_RE.fullmatch(candidate)
    if match and match.group("minutes_only"):
        return ParseResult.ok(int(match.group("minutes_only")))
    if match:
        hours = int(match.group("hours"))
        minutes = int(match.group("minutes") or 0)
        return ParseResult.ok(hours * 60 + minutes)

    match = _CLOCK_RE.fullmatch(candidate)
    if match:
        return ParseResult.ok(int(match.group("hours")) * 60 + int(match.group("minutes")))

    return ParseResult.fail(f'unrecognized duration "{text}"')


def split_tags(text: str) -> list[str] | None:
    """
    Split a tags cell on ';', ',' or '|'.

    Pieces are trimmed and empties dropped. Order and duplicates are kept.

    Returns:
        List of tags, or None when nothing remains.

    Example:
        >>> split_tags('billing; client | ')
        ['billing', 'client']
    """
    tags = [piece.strip() for piece in _TAG_SEPARATORS_RE.split(text)]
    tags = [tag for tag in tags if tag]
    return tags or None
