"""
Presenters for Work Session Tracker views.

PURPOSE: Testable business logic layer between data and UI.
AI CONTEXT: Pure data transformation - no rendering, reads only from the store.

DESIGN PRINCIPLES:
1. Presenters receive data, return view models (dataclasses)
2. No dependencies on specific UI framework
3. Fully unit-testable with MockFileSystem-backed storage
4. Each presenter method focuses on one view

VIEWS:
- Calendar: month grid with per-day sessions and the overall total
- List: newest-first sessions, paginated
- Report: one week or month bucket at a time with its summary

USAGE:
    presenter = DashboardPresenter(storage, engine)
    calendar = presenter.get_calendar(date(2025, 3, 1))
    report = presenter.get_report("week", index=0)
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from .grouping import MONTH_KEY_FORMAT, BucketSummary
from .models import WorkSession
from .session_service import newest_first, paginate

if TYPE_CHECKING:
    from .grouping import GroupingEngine
    from .storage import StorageManager

__all__ = [
    "SessionViewModel",
    "CalendarDayViewModel",
    "CalendarViewModel",
    "ListViewModel",
    "ReportViewModel",
    "DashboardPresenter",
    "ChartPresenter",
    "REPORT_PERIODS",
    "parse_month",
]

REPORT_PERIODS: tuple[str, ...] = ("week", "month")

BAR_COLOR = "#3b82f6"


def _format_duration(minutes: int) -> str:
    """
    Format duration as hours and minutes.

    Args:
        minutes: Duration in whole minutes.

    Returns:
        String like "45m", "2h" or "2h 15m".
    """
    hours, mins = divmod(minutes, 60)
    if not hours:
        return f"{mins}m"
    if not mins:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def parse_month(text: str | None, today: date | None = None) -> date:
    """
    Parse a 'YYYY-MM' query value into the first day of that month.

    Falls back to the current month for missing or malformed input.

    Example:
        >>> parse_month("2025-03")
        datetime.date(2025, 3, 1)
    """
    today = today or date.today()
    if text:
        try:
            return datetime.strptime(text, "%Y-%m").date()
        except ValueError:
            pass
    return today.replace(day=1)


def _shift_month(first_of_month: date, months: int) -> date:
    index = first_of_month.year * 12 + first_of_month.month - 1 + months
    return date(index // 12, index % 12 + 1, 1)


@dataclass
class SessionViewModel:
    """View model for a single session row or calendar chip."""

    session_id: str
    title: str
    date: date
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    description: str | None = None
    project: str | None = None
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_session(cls, session: WorkSession) -> SessionViewModel:
        return cls(
            session_id=session.id,
            title=session.title,
            date=session.date,
            start_time=session.start_time,
            end_time=session.end_time,
            duration_minutes=session.duration,
            description=session.description,
            project=session.project,
            tags=list(session.tags or []),
        )

    @property
    def duration_display(self) -> str:
        """
        Format duration as human-readable string.

        Example:
            >>> SessionViewModel(..., duration_minutes=135, ...).duration_display
            '2h 15m'
        """
        return _format_duration(self.duration_minutes)

    @property
    def time_range_display(self) -> str:
        """Start and end as 'HH:MM - HH:MM'."""
        return f"{self.start_time:%H:%M} - {self.end_time:%H:%M}"

    @property
    def date_display(self) -> str:
        return self.date.strftime("%d/%m/%Y")

    @property
    def tags_display(self) -> str:
        return ", ".join(self.tags)


@dataclass
class CalendarDayViewModel:
    """One cell of the rendered month grid."""

    date: date
    sessions: list[SessionViewModel] = field(default_factory=list)
    is_current_month: bool = True
    is_today: bool = False

    @property
    def day_number(self) -> int:
        return self.date.day

    @property
    def total_minutes(self) -> int:
        return sum(s.duration_minutes for s in self.sessions)

    @property
    def css_class(self) -> str:
        """
        CSS classes for the cell.

        Returns:
            'day' plus 'other-month' and/or 'today' when applicable.
        """
        classes = ["day"]
        if not self.is_current_month:
            classes.append("other-month")
        if self.is_today:
            classes.append("today")
        return " ".join(classes)


@dataclass
class CalendarViewModel:
    """Complete view model for the calendar page."""

    month: date
    days: list[CalendarDayViewModel] = field(default_factory=list)
    total_hours: float = 0.0

    @property
    def month_label(self) -> str:
        """Heading like 'March 2025'."""
        return self.month.strftime("%B %Y")

    @property
    def prev_month(self) -> str:
        """Previous month as the 'YYYY-MM' query value."""
        return _shift_month(self.month, -1).strftime("%Y-%m")

    @property
    def next_month(self) -> str:
        """Next month as the 'YYYY-MM' query value."""
        return _shift_month(self.month, 1).strftime("%Y-%m")

    @property
    def weeks(self) -> list[list[CalendarDayViewModel]]:
        """Days chunked into rows of seven."""
        return [self.days[i : i + 7] for i in range(0, len(self.days), 7)]


@dataclass
class ListViewModel:
    """View model for one page of the flat session list."""

    sessions: list[SessionViewModel] = field(default_factory=list)
    page: int = 1
    total_pages: int = 1
    total_items: int = 0

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


@dataclass
class ReportViewModel:
    """
    View model for the report page.

    Shows one bucket (the key at `index` in newest-first key order) with its
    summary and one page of its sessions. `key` is None when there are no
    sessions at all.
    """

    period: str
    keys: list[str] = field(default_factory=list)
    index: int = 0
    range_label: str = ""
    summary: BucketSummary | None = None
    sessions: ListViewModel = field(default_factory=ListViewModel)

    @property
    def key(self) -> str | None:
        return self.keys[self.index] if self.keys else None

    @property
    def has_prev(self) -> bool:
        """Whether a newer bucket exists (lower index)."""
        return self.index > 0

    @property
    def has_next(self) -> bool:
        """Whether an older bucket exists (higher index)."""
        return self.index < len(self.keys) - 1


class DashboardPresenter:
    """
    Presenter for the dashboard views.

    Transforms storage data into view models ready for rendering.
    All methods are pure - no side effects.
    """

    def __init__(
        self,
        storage: StorageManager,
        engine: GroupingEngine,
    ) -> None:
        """
        Initialize dashboard presenter with data dependencies.

        Business context: Dependency injection enables testing with
        MockFileSystem-backed storage, so presenter logic can be verified
        without touching disk.

        Args:
            storage: StorageManager instance for loading sessions.
            engine: GroupingEngine instance for grid and bucket grouping.

        Example:
            >>> presenter = DashboardPresenter(StorageManager(), GroupingEngine())
            >>> presenter.get_calendar(date(2025, 3, 1)).month_label
            'March 2025'
        """
        self.storage = storage
        self.engine = engine

    def get_calendar(self, month: date, today: date | None = None) -> CalendarViewModel:
        """
        Build the month grid for the month containing `month`.

        Business context: The calendar is the landing view. The total shown
        under the grid covers every stored session, not only the visible
        month.

        Args:
            month: Any day in the month to show.
            today: Day highlighted as today. Defaults to date.today().

        Returns:
            CalendarViewModel with whole weeks of day cells.
        """
        sessions = self.storage.load_all()
        days = self.engine.generate_calendar_days(month, sessions, today=today)
        return CalendarViewModel(
            month=month.replace(day=1),
            days=[
                CalendarDayViewModel(
                    date=day.date,
                    sessions=[SessionViewModel.from_session(s) for s in day.sessions],
                    is_current_month=day.is_current_month,
                    is_today=day.is_today,
                )
                for day in days
            ],
            total_hours=self.engine.total_hours(sessions),
        )

    def get_session(self, session_id: str) -> SessionViewModel | None:
        """View model for one stored session, or None for an unknown id."""
        session = self.storage.get_session(session_id)
        return SessionViewModel.from_session(session) if session else None

    def get_session_list(self, page: int = 1, page_size: int | None = None) -> ListViewModel:
        """
        Retrieve one page of sessions, newest date first.

        Args:
            page: 1-based page, clamped into range.
            page_size: Items per page. Default: Config.PAGE_SIZE

        Returns:
            ListViewModel with pagination flags.
        """
        return self._build_list(newest_first(self.storage.load_all()), page, page_size)

    def get_report(
        self,
        period: str,
        index: int = 0,
        page: int = 1,
        page_size: int | None = None,
    ) -> ReportViewModel:
        """
        Build the report view for one bucket.

        Business context: Reports answer "how much did I work that week /
        month". Buckets are navigated one at a time, newest first, with the
        bucket's own sessions paginated underneath the summary.

        Args:
            period: 'week' or 'month'.
            index: Position in the ordered key list, clamped into range.
            page: 1-based page of the bucket's sessions.
            page_size: Items per page. Default: Config.PAGE_SIZE

        Returns:
            ReportViewModel. With no sessions, keys is empty and summary None.

        Raises:
            ValueError: If period is not 'week' or 'month'.
        """
        buckets = self.engine.group_by_period(self.storage.load_all(), period)
        keys = self.engine.ordered_keys(buckets)
        if not keys:
            return ReportViewModel(period=period)

        index = min(max(0, index), len(keys) - 1)
        key = keys[index]
        bucket = buckets[key]
        return ReportViewModel(
            period=period,
            keys=keys,
            index=index,
            range_label=self._range_label(period, key),
            summary=self.engine.summarize(bucket),
            sessions=self._build_list(bucket, page, page_size),
        )

    def _range_label(self, period: str, key: str) -> str:
        if period == "week":
            return f"{key} → {self.engine.week_end(key)}"
        return datetime.strptime(key, MONTH_KEY_FORMAT).strftime("%B %Y")

    def _build_list(
        self, sessions: list[WorkSession], page: int, page_size: int | None
    ) -> ListViewModel:
        paged = paginate(sessions, page, page_size)
        return ListViewModel(
            sessions=[SessionViewModel.from_session(s) for s in paged.items],
            page=paged.page,
            total_pages=paged.total_pages,
            total_items=paged.total_items,
        )


class ChartPresenter:
    """
    Presenter for generating chart images.

    Uses matplotlib for server-side chart rendering.
    Returns PNG images as bytes.
    """

    def __init__(
        self,
        storage: StorageManager,
        engine: GroupingEngine,
    ) -> None:
        """
        Initialize chart presenter with data dependencies.

        Args:
            storage: StorageManager instance for loading sessions.
            engine: GroupingEngine instance for bucketing.
        """
        self.storage = storage
        self.engine = engine

    def _render_empty_chart(self) -> Any:
        """
        Render placeholder chart when no sessions exist.

        Returns:
            Matplotlib figure and axes.
        """
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(8, 3))
        ax.text(0.5, 0.5, "No sessions yet", ha="center", va="center", fontsize=14)
        ax.set_xlim(0, 1)
        ax.set_ylim(0, 1)
        ax.axis("off")
        return fig, ax

    def render_hours_chart(self, period: str = "week") -> bytes:
        """
        Render hours per week or month as a vertical bar chart PNG.

        Bars follow the report key order reversed, so the newest bucket is
        on the right. Each bar carries its hour total as a label.

        Args:
            period: 'week' or 'month'.

        Returns:
            PNG image as bytes. Shows placeholder text if no sessions exist.

        Raises:
            ImportError: If matplotlib is not installed. Caller should
                catch this and provide fallback (e.g., placeholder SVG).
            ValueError: If period is not 'week' or 'month'.

        Example:
            >>> presenter = ChartPresenter(storage, engine)
            >>> png = presenter.render_hours_chart("month")
            >>> png[:4]
            b'\\x89PNG'
        """
        buckets = self.engine.group_by_period(self.storage.load_all(), period)

        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        if not buckets:
            fig, _ax = self._render_empty_chart()
        else:
            keys = list(reversed(self.engine.ordered_keys(buckets)))
            hours = [self.engine.summarize(buckets[k]).total_hours for k in keys]

            fig, ax = plt.subplots(figsize=(8, 3))
            bars = ax.bar(range(len(keys)), hours, color=BAR_COLOR)
            for bar, value in zip(bars, hours, strict=True):
                ax.text(
                    bar.get_x() + bar.get_width() / 2,
                    bar.get_height(),
                    f"{value:.2f}h",
                    ha="center",
                    va="bottom",
                    fontsize=9,
                )
            ax.set_xticks(range(len(keys)))
            ax.set_xticklabels(keys, rotation=45, ha="right")
            ax.set_ylabel("Hours")
            ax.set_title(f"Hours per {period}")
            ax.spines["top"].set_visible(False)
            ax.spines["right"].set_visible(False)

        buf = io.BytesIO()
        plt.tight_layout()
        plt.savefig(buf, format="png", dpi=100, bbox_inches="tight")
        plt.close(fig)
        buf.seek(0)
        return buf.read()
