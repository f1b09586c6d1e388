"""
Grouping engine for Work Session Tracker.

PURPOSE: Bucket sessions into calendar grid cells, weeks and months.
AI CONTEXT: Pure data processing - no visualization, no I/O.

GROUPINGS:
1. Month grid: whole weeks covering a month, Sunday-start by default
2. Week buckets: Monday-anchored weeks keyed 'dd/mm/yyyy'
3. Month buckets: keyed 'mm/yyyy'
4. Summaries: total hours and session count per bucket

KEY ORDERING:
Report keys are presented newest-first by lexicographic descending order of
the formatted key string, not by parsed date.

USAGE:
    engine = GroupingEngine()
    days = engine.generate_calendar_days(date(2025, 3, 1), sessions)
    weeks = engine.group_by_week(sessions)
    for key in engine.ordered_keys(weeks):
        summary = engine.summarize(weeks[key])
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .config import Config
from .models import CalendarDay, WorkSession

__all__ = [
    "BucketSummary",
    "GroupingEngine",
    "WEEK_KEY_FORMAT",
    "MONTH_KEY_FORMAT",
]

WEEK_KEY_FORMAT = "%d/%m/%Y"
MONTH_KEY_FORMAT = "%m/%Y"


@dataclass(frozen=True)
class BucketSummary:
    """Totals for one report bucket."""

    total_hours: float
    session_count: int

    @property
    def total_hours_display(self) -> str:
        """Total hours with two decimals, e.g. '7.50'."""
        return f"{self.total_hours:.2f}"


def _week_start(day: date, week_start: int) -> date:
    return day - timedelta(days=(day.weekday() - week_start) % 7)


def _week_end(day: date, week_start: int) -> date:
    return _week_start(day, week_start) + timedelta(days=6)


class GroupingEngine:
    """
    Calculator for calendar and report groupings.

    DESIGN:
    - Stateless: Each method operates on provided data
    - Pure: No side effects, only data transformation
    - Configurable: Week start conventions from Config or constructor

    WEEK START CONVENTIONS:
    - calendar_week_start: first column of the month grid (Sunday)
    - report_week_start: anchor of report week buckets (Monday)
    """

    def __init__(
        self,
        calendar_week_start: int | None = None,
        report_week_start: int | None = None,
    ) -> None:
        """
        Initialize grouping engine with week start conventions.

        Args:
            calendar_week_start: Weekday (Monday=0 ... Sunday=6) starting
                each month grid row. Default: Config.CALENDAR_WEEK_START
            report_week_start: Weekday anchoring report weeks.
                Default: Config.REPORT_WEEK_START

        Example:
            >>> GroupingEngine().calendar_week_start
            6
        """
        self.calendar_week_start = (
            Config.CALENDAR_WEEK_START if calendar_week_start is None else calendar_week_start
        )
        self.report_week_start = (
            Config.REPORT_WEEK_START if report_week_start is None else report_week_start
        )

    # =========================================================================
    # MONTH GRID
    # =========================================================================

    def generate_calendar_days(
        self,
        reference: date,
        sessions: Sequence[WorkSession],
        today: date | None = None,
    ) -> list[CalendarDay]:
        """
        Build the month grid for the month containing reference.

        The first and last day of the month are widened outward to whole
        weeks, so the grid includes trailing days of the previous month and
        leading days of the next one. Every day in the widened range appears
        once, in order.

        Business context: The calendar view renders a fixed 7-column grid.
        Each cell lists the sessions attributed to that day; sessions are
        matched on their `date` field only, never on their timestamps.

        Args:
            reference: Any day in the month to display.
            sessions: Sessions to distribute into cells.
            today: Day flagged as today. Defaults to date.today().

        Returns:
            List of CalendarDay whose length is a multiple of 7.

        Example:
            >>> days = GroupingEngine().generate_calendar_days(date(2025, 2, 10), [])
            >>> days[0].date, days[-1].date, len(days)
            (datetime.date(2025, 1, 26), datetime.date(2025, 3, 1), 35)
        """
        today = today or date.today()
        month_start = reference.replace(day=1)
        next_month = (month_start + timedelta(days=32)).replace(day=1)
        month_end = next_month - timedelta(days=1)

        grid_start = _week_start(month_start, self.calendar_week_start)
        grid_end = _week_end(month_end, self.calendar_week_start)

        by_day: dict[date, list[WorkSession]] = {}
        for session in sessions:
            by_day.setdefault(session.date, []).append(session)

        days: list[CalendarDay] = []
        current = grid_start
        while current <= grid_end:
            days.append(
                CalendarDay(
                    date=current,
                    sessions=by_day.get(current, []),
                    is_current_month=(
                        current.year == reference.year and current.month == reference.month
                    ),
                    is_today=current == today,
                )
            )
            current += timedelta(days=1)
        return days

    # =========================================================================
    # REPORT BUCKETS
    # =========================================================================

    def week_key(self, day: date) -> str:
        """Key of the report week containing day: its first day as dd/mm/yyyy."""
        return _week_start(day, self.report_week_start).strftime(WEEK_KEY_FORMAT)

    def month_key(self, day: date) -> str:
        """Key of the month containing day, as mm/yyyy."""
        return day.strftime(MONTH_KEY_FORMAT)

    def week_end(self, week_key: str) -> str:
        """
        Last day of the week identified by week_key.

        Args:
            week_key: Key produced by week_key().

        Returns:
            Closing day formatted dd/mm/yyyy.

        Raises:
            ValueError: If week_key is not dd/mm/yyyy.

        Example:
            >>> GroupingEngine().week_end('10/03/2025')
            '16/03/2025'
        """
        start = datetime.strptime(week_key, WEEK_KEY_FORMAT).date()
        return (start + timedelta(days=6)).strftime(WEEK_KEY_FORMAT)

    def group_by_week(self, sessions: Iterable[WorkSession]) -> dict[str, list[WorkSession]]:
        """
        Bucket sessions by the report week containing their date.

        Args:
            sessions: Sessions to bucket.

        Returns:
            Dict of week key -> sessions in input order. Every session lands
            in exactly one bucket.

        Example:
            >>> weeks = GroupingEngine().group_by_week(sessions)
            >>> list(weeks)
            ['10/03/2025', '03/03/2025']
        """
        weeks: dict[str, list[WorkSession]] = {}
        for session in sessions:
            weeks.setdefault(self.week_key(session.date), []).append(session)
        return weeks

    def group_by_month(self, sessions: Iterable[WorkSession]) -> dict[str, list[WorkSession]]:
        """
        Bucket sessions by the calendar month of their date.

        Args:
            sessions: Sessions to bucket.

        Returns:
            Dict of month key -> sessions in input order.
        """
        months: dict[str, list[WorkSession]] = {}
        for session in sessions:
            months.setdefault(self.month_key(session.date), []).append(session)
        return months

    def group_by_period(
        self, sessions: Iterable[WorkSession], period: str
    ) -> dict[str, list[WorkSession]]:
        """
        Dispatch to group_by_week or group_by_month.

        Args:
            sessions: Sessions to bucket.
            period: 'week' or 'month'.

        Raises:
            ValueError: For any other period name.
        """
        if period == "week":
            return self.group_by_week(sessions)
        if period == "month":
            return self.group_by_month(sessions)
        raise ValueError(f"Unknown report period: {period!r}")

    def ordered_keys(self, buckets: dict[str, list[WorkSession]]) -> list[str]:
        """
        Bucket keys, newest first.

        Ordering is lexicographic descending on the key text. For 'mm/yyyy'
        and 'dd/mm/yyyy' keys this compares the leading day/month digits
        before the year, so keys from different years interleave.

        Example:
            >>> GroupingEngine().ordered_keys({'01/2025': [], '12/2024': []})
            ['12/2024', '01/2025']
        """
        return sorted(buckets, reverse=True)

    # =========================================================================
    # SUMMARIES
    # =========================================================================

    def total_hours(self, sessions: Iterable[WorkSession]) -> float:
        """
        Sum of durations in hours, rounded to 2 decimals.

        Example:
            >>> GroupingEngine().total_hours([s_90_minutes, s_45_minutes])
            2.25
        """
        return round(sum(s.duration for s in sessions) / 60, 2)

    def summarize(self, bucket: Sequence[WorkSession]) -> BucketSummary:
        """
        Total hours and session count for one bucket.

        Args:
            bucket: Sessions sharing a period key.

        Returns:
            BucketSummary with total_hours rounded to 2 decimals.
        """
        return BucketSummary(total_hours=self.total_hours(bucket), session_count=len(bucket))
