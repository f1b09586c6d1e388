"""
FastAPI routes for Work Session Tracker dashboard.

PURPOSE: Thin route handlers that delegate to presenters and the service.
AI CONTEXT: Routes should be simple - business logic in presenters/service.

ROUTE STRUCTURE:
- / : Month calendar with the add/edit form (full HTML; ?date= prefills, ?edit= loads a session)
- /list : Paginated session list (full HTML)
- /report : Weekly or monthly report, one bucket at a time (full HTML)
- /export.csv : CSV download
- /charts/* : PNG chart images
- /api/* : JSON endpoints (sessions CRUD, import, reports)
"""

from __future__ import annotations

import html
import logging
from datetime import date as date_type
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel

from ..grouping import GroupingEngine
from ..presenters import REPORT_PERIODS, ChartPresenter, DashboardPresenter, parse_month
from ..session_service import ServiceResult, SessionService
from ..storage import StorageManager

if TYPE_CHECKING:
    from ..presenters import (
        CalendarViewModel,
        ListViewModel,
        ReportViewModel,
        SessionViewModel,
    )

__all__ = [
    "router",
    "get_storage",
    "get_engine",
    "get_session_service",
    "get_dashboard_presenter",
    "get_chart_presenter",
]

logger = logging.getLogger(__name__)

router = APIRouter()

# =============================================================================
# CSS Styles
# =============================================================================

_DASHBOARD_CSS = """
:root {
    --bg: #0f172a;
    --surface: #1e293b;
    --border: #334155;
    --text: #f1f5f9;
    --text-muted: #94a3b8;
    --primary: #3b82f6;
    --success: #22c55e;
    --danger: #ef4444;
}
* { box-sizing: border-box; margin: 0; padding: 0; }
body {
    font-family: system-ui, -apple-system, sans-serif;
    background: var(--bg);
    color: var(--text);
    line-height: 1.6;
    padding: 1rem;
}
a { color: var(--primary); text-decoration: none; }
.container { max-width: 1400px; margin: 0 auto; }
header {
    display: flex;
    justify-content: space-between;
    align-items: center;
    margin-bottom: 1.5rem;
    padding-bottom: 1rem;
    border-bottom: 1px solid var(--border);
}
h1 { font-size: 1.5rem; font-weight: 600; }
nav a { margin-left: 1rem; }
.panel {
    background: var(--surface);
    border: 1px solid var(--border);
    border-radius: 0.5rem;
    padding: 1rem;
    margin-bottom: 1rem;
}
.panel h2 {
    font-size: 1rem;
    font-weight: 500;
    color: var(--text-muted);
    margin-bottom: 0.75rem;
}
.pager {
    display: flex;
    justify-content: space-between;
    align-items: center;
    margin: 0.75rem 0;
}
.metric { font-size: 2rem; font-weight: 700; }
.metric-label { font-size: 0.875rem; color: var(--text-muted); }
table { width: 100%; border-collapse: collapse; }
th, td {
    text-align: left;
    padding: 0.75rem;
    border-bottom: 1px solid var(--border);
    vertical-align: top;
}
th { color: var(--text-muted); font-weight: 500; font-size: 0.875rem; }
.calendar td { width: 14.28%; height: 6rem; }
.day.other-month { opacity: 0.4; }
.day.today { outline: 2px solid var(--primary); }
.chip {
    display: block;
    margin-top: 0.25rem;
    padding: 0.125rem 0.375rem;
    border-radius: 0.25rem;
    background: var(--primary);
    font-size: 0.75rem;
    white-space: nowrap;
    overflow: hidden;
    text-overflow: ellipsis;
}
.tag {
    display: inline-block;
    padding: 0 0.5rem;
    border-radius: 9999px;
    background: var(--border);
    font-size: 0.75rem;
}
button.danger { background: var(--danger); color: white; border: 0; padding: 0.25rem 0.5rem; }
form.session-form input { margin: 0.25rem 0.5rem 0.25rem 0; padding: 0.25rem; }
.chart-container { display: flex; justify-content: center; padding: 1rem 0; }
.chart-container img { max-width: 100%; height: auto; border-radius: 0.25rem; }
.muted { color: var(--text-muted); }
footer {
    margin-top: 2rem;
    padding-top: 1rem;
    border-top: 1px solid var(--border);
    color: var(--text-muted);
    font-size: 0.875rem;
    text-align: center;
}
"""

_IMPORT_SCRIPT = """
async function importCsv(input, confirm) {
    const file = input.files[0];
    if (!file) { return; }
    const url = '/api/import?filename=' + encodeURIComponent(file.name)
        + '&confirm=' + confirm;
    const response = await fetch(url, {method: 'POST', body: file});
    const result = await response.json();
    const lines = [
        'Imported: ' + result.imported,
        'Skipped (duplicates): ' + result.skipped,
    ].concat(result.errors);
    document.getElementById('import-result').textContent = lines.join('\\n');
    if (confirm && result.committed) { location.reload(); }
}
"""


class SessionForm(BaseModel):
    """Fields posted by the session form."""

    title: str = ""
    date: str = ""
    start: str = ""
    end: str = ""
    description: str = ""
    project: str = ""
    tags: str | list[str] = ""
    id: str | None = None


# =============================================================================
# Dependency Factory Functions
# =============================================================================


def get_storage() -> StorageManager:
    """
    Create and return a StorageManager instance for data access.

    Creates a new StorageManager instance each time to ensure fresh file
    reads and avoid stale data issues.

    Returns:
        StorageManager using Config.get_storage_dir().
    """
    return StorageManager()


def get_engine() -> GroupingEngine:
    """Return a GroupingEngine with the configured week starts."""
    return GroupingEngine()


def get_session_service() -> SessionService:
    """
    Create and return a SessionService for mutations and exports.

    Example:
        >>> service = get_session_service()
        >>> service.export_csv().success
    """
    return SessionService(get_storage(), get_engine())


def get_dashboard_presenter() -> DashboardPresenter:
    """
    Create and return a DashboardPresenter with dependencies.

    Returns:
        DashboardPresenter with injected StorageManager and GroupingEngine.
    """
    return DashboardPresenter(get_storage(), get_engine())


def get_chart_presenter() -> ChartPresenter:
    """
    Create and return a ChartPresenter with dependencies.

    Returns:
        ChartPresenter with injected StorageManager and GroupingEngine.
    """
    return ChartPresenter(get_storage(), get_engine())


def _parse_day(text: str | None) -> date_type | None:
    if not text:
        return None
    try:
        return date_type.fromisoformat(text)
    except ValueError:
        return None


def _check_period(period: str) -> str:
    if period not in REPORT_PERIODS:
        raise HTTPException(
            status_code=400,
            detail=f"period must be one of: {', '.join(REPORT_PERIODS)}",
        )
    return period


def _raise_for_failure(result: ServiceResult, status_code: int = 400) -> None:
    if not result.success:
        raise HTTPException(status_code=status_code, detail=result.error or result.message)


def _result_data(result: ServiceResult, status_code: int = 400) -> dict[str, Any]:
    """Return the payload of a successful result, raising HTTPException otherwise."""
    _raise_for_failure(result, status_code=status_code)
    if result.data is None:
        raise HTTPException(status_code=500, detail=f"{result.message}: no data returned")
    return result.data


# ============================================================================
# Full Page Routes
# ============================================================================


@router.get("/", response_class=HTMLResponse)
async def calendar_page(
    presenter: Annotated[DashboardPresenter, Depends(get_dashboard_presenter)],
    month: str | None = None,
    date: str | None = None,
    edit: str | None = None,
) -> HTMLResponse:
    """
    Render the month calendar.

    Args:
        presenter: DashboardPresenter injected via FastAPI Depends.
        month: 'YYYY-MM' to display. Defaults to the current month;
            malformed values also fall back to it.
        date: 'YYYY-MM-DD' prefilled into the add form. Set by clicking a
            calendar day; malformed values are ignored.
        edit: Id of a session to load into the form for editing. Unknown
            ids fall back to the add form.

    Returns:
        HTMLResponse with the grid, month navigation, the session form and
        the overall total hours.
    """
    calendar = presenter.get_calendar(parse_month(month))
    editing = presenter.get_session(edit) if edit else None
    form = _render_session_form(editing, day=_parse_day(date))
    body = _render_calendar(calendar) + form + _render_import_panel()
    return _html_page("Calendar", body)


@router.get("/list", response_class=HTMLResponse)
async def list_page(
    presenter: Annotated[DashboardPresenter, Depends(get_dashboard_presenter)],
    page: int = 1,
) -> HTMLResponse:
    """Render one page of the newest-first session list."""
    view = presenter.get_session_list(page)
    body = f"""<div class="panel">
            <div class="pager">
                <h2>All Sessions ({view.total_items})</h2>
                {_render_clear_button() if view.total_items else ""}
            </div>
            {_render_sessions_table(view)}
            {_render_pager(view, "/list?")}
        </div>"""
    return _html_page("Sessions", body)


@router.get("/report", response_class=HTMLResponse)
async def report_page(
    presenter: Annotated[DashboardPresenter, Depends(get_dashboard_presenter)],
    period: str = "week",
    index: int = 0,
    page: int = 1,
) -> HTMLResponse:
    """
    Render the report for one week or month bucket.

    Args:
        presenter: DashboardPresenter injected via FastAPI Depends.
        period: 'week' or 'month'. Anything else is a 400.
        index: Bucket position, 0 = first in newest-first order.
        page: Page of the bucket's sessions.
    """
    report = presenter.get_report(_check_period(period), index=index, page=page)
    return _html_page(f"{period.title()}ly Report", _render_report(report))


# ============================================================================
# CSV Routes
# ============================================================================


@router.get("/export.csv")
async def export_csv(
    service: Annotated[SessionService, Depends(get_session_service)],
) -> Response:
    """
    Download every session as CSV.

    Returns:
        text/csv attachment named time-tracking-<today>.csv.

    Raises:
        HTTPException: 404 'No sessions to export' when the store is empty.
    """
    data = _result_data(service.export_csv(), status_code=404)
    return Response(
        content=data["content"],
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{data["filename"]}"'},
    )


@router.post("/api/import")
async def api_import(
    request: Request,
    service: Annotated[SessionService, Depends(get_session_service)],
    filename: Annotated[str, Query(min_length=1)],
    confirm: bool = False,
) -> dict[str, object]:
    """
    Preview, and optionally commit, a CSV import.

    The request body is the raw file content; the file name is passed as a
    query parameter so non-CSV selections can be rejected.

    Args:
        request: Incoming request; its body is the file content.
        service: SessionService injected via FastAPI Depends.
        filename: Name of the selected file.
        confirm: Commit the accepted sessions when the preview succeeded.

    Returns:
        The ImportResult as a dict plus 'committed'.
    """
    body = await request.body()
    result = service.preview_import(filename, lambda: body.decode("utf-8"))

    committed = False
    if confirm and result.success:
        outcome = service.confirm_import(result)
        _raise_for_failure(outcome, status_code=500)
        committed = True

    return {**result.to_dict(), "committed": committed}


# ============================================================================
# Chart Routes
# ============================================================================


@router.get("/charts/hours.png")
async def hours_chart(
    presenter: Annotated[ChartPresenter, Depends(get_chart_presenter)],
    period: str = "week",
) -> Response:
    """
    Serve the hours-per-bucket bar chart as PNG.

    Falls back to an SVG placeholder if matplotlib is not installed.
    """
    period = _check_period(period)
    try:
        png_bytes = presenter.render_hours_chart(period)
        return Response(content=png_bytes, media_type="image/png")
    except ImportError:
        return Response(
            content=_placeholder_chart_svg(f"Hours per {period}"),
            media_type="image/svg+xml",
        )


# ============================================================================
# JSON API Routes
# ============================================================================


@router.get("/api/sessions")
async def api_list_sessions(
    service: Annotated[SessionService, Depends(get_session_service)],
) -> list[dict[str, object]]:
    """All sessions, newest date first."""
    return [s.to_dict() for s in service.sorted_sessions()]


@router.post("/api/sessions")
async def api_save_session(
    form: SessionForm,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> dict[str, object]:
    """
    Create a session, or replace one when the form carries an id.

    Raises:
        HTTPException: 400 on validation failure, 404 for an unknown id.
    """
    result = service.save_session(
        title=form.title,
        date_text=form.date,
        start=form.start,
        end=form.end,
        description=form.description,
        project=form.project,
        tags=form.tags,
        session_id=form.id,
    )
    _raise_for_failure(result, status_code=404 if result.message == "Session not found" else 400)
    return result.to_dict()


@router.delete("/api/sessions/{session_id}")
async def api_delete_session(
    session_id: str,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> dict[str, object]:
    """Delete one session; 404 when the id is unknown."""
    result = service.delete_session(session_id)
    _raise_for_failure(result, status_code=404)
    return result.to_dict()


@router.delete("/api/sessions")
async def api_clear_sessions(
    service: Annotated[SessionService, Depends(get_session_service)],
) -> dict[str, object]:
    """Delete every session."""
    result = service.clear_sessions()
    _raise_for_failure(result, status_code=500)
    return result.to_dict()


@router.get("/api/reports/{period}")
async def api_report(
    period: str,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> dict[str, object]:
    """
    Get every week or month bucket with its totals as JSON.

    Example:
        >>> # GET /api/reports/month
        >>> {
        ...     "period": "month",
        ...     "total_hours": 12.5,
        ...     "buckets": [{"key": "03/2025", "total_hours": 12.5, ...}]
        ... }
    """
    return _result_data(service.report(_check_period(period)))


# ============================================================================
# Template Rendering Helpers
# ============================================================================


def _placeholder_chart_svg(title: str) -> bytes:
    """
    Generate a placeholder SVG when matplotlib is unavailable.

    Example:
        >>> b'Hours per week Chart' in _placeholder_chart_svg('Hours per week')
        True
    """
    svg = f"""<svg xmlns="http://www.w3.org/2000/svg" width="400" height="200">
        <rect width="100%" height="100%" fill="#f1f5f9"/>
        <text x="50%" y="50%" text-anchor="middle" fill="#64748b" font-size="16">
            {html.escape(title)} Chart (install matplotlib)
        </text>
    </svg>"""
    return svg.encode("utf-8")


def _html_page(title: str, body: str) -> HTMLResponse:
    """Wrap body content in the shared page layout."""
    page = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Work Session Tracker - {html.escape(title)}</title>
    <script src="https://unpkg.com/htmx.org@1.9.10"></script>
    <script src="https://unpkg.com/htmx.org@1.9.10/dist/ext/json-enc.js"></script>
    <style>
        {_DASHBOARD_CSS}
    </style>
</head>
<body>
    <div class="container">
        <header>
            <h1>Work Session Tracker</h1>
            <nav>
                <a href="/">Calendar</a>
                <a href="/list">List</a>
                <a href="/report?period=week">Weekly</a>
                <a href="/report?period=month">Monthly</a>
                <a href="/export.csv">Export CSV</a>
            </nav>
        </header>
        {body}
        <footer>
            Work Session Tracker &bull; Powered by FastAPI + htmx
        </footer>
    </div>
</body>
</html>"""
    return HTMLResponse(content=page, media_type="text/html; charset=utf-8")


def _render_chip(session: SessionViewModel) -> str:
    title = html.escape(session.title)
    return (
        f'<span class="chip" title="{title} ({session.time_range_display})">'
        f"{title} &middot; {session.duration_display}</span>"
    )


def _render_calendar(calendar: CalendarViewModel) -> str:
    """
    Render the month grid as a seven-column table.

    Weekday headings are taken from the first row of days, so they follow
    whichever weekday the grid starts on.
    """
    weeks = calendar.weeks
    headings = "".join(f"<th>{d.date:%a}</th>" for d in weeks[0]) if weeks else ""

    month = calendar.month.strftime("%Y-%m")
    rows = ""
    for week in weeks:
        cells = ""
        for day in week:
            chips = "".join(_render_chip(s) for s in day.sessions)
            add_link = (
                f'<a href="/?month={month}&date={day.date.isoformat()}#session-form" '
                f'title="Add a session on {day.date.isoformat()}">'
                f"<strong>{day.day_number}</strong></a>"
            )
            cells += f'<td class="{day.css_class}">{add_link}{chips}</td>'
        rows += f"<tr>{cells}</tr>"

    return f"""<div class="panel">
            <div class="pager">
                <a href="/?month={calendar.prev_month}">&larr; Previous</a>
                <h2>{calendar.month_label}</h2>
                <a href="/?month={calendar.next_month}">Next &rarr;</a>
            </div>
            <table class="calendar">
                <thead><tr>{headings}</tr></thead>
                <tbody>{rows}</tbody>
            </table>
            <div class="metric">{calendar.total_hours:.2f}</div>
            <div class="metric-label">Total hours tracked</div>
        </div>"""


def _render_sessions_table(view: ListViewModel) -> str:
    """
    Render one page of sessions as an HTML table with edit and delete controls.

    Shows placeholder text when there are no sessions.
    """
    rows = ""
    for s in view.sessions:
        tags = "".join(f'<span class="tag">{html.escape(t)}</span> ' for t in s.tags)
        rows += f"""<tr>
            <td>{s.date_display}</td>
            <td>{html.escape(s.title)}<div class="muted">{html.escape(s.description or "")}</div></td>
            <td>{s.time_range_display}</td>
            <td>{s.duration_display}</td>
            <td>{html.escape(s.project or "")}</td>
            <td>{tags}</td>
            <td><a href="/?month={s.date:%Y-%m}&edit={html.escape(s.session_id)}#session-form">Edit</a>
                <button class="danger"
                        hx-delete="/api/sessions/{html.escape(s.session_id)}"
                        hx-confirm="Delete this session?"
                        hx-on::after-request="location.reload()">Delete</button></td>
        </tr>"""

    if not rows:
        rows = (
            '<tr><td colspan="7" style="text-align: center; '
            'color: var(--text-muted);">No sessions yet</td></tr>'
        )

    return f"""<table>
        <thead>
            <tr>
                <th>Date</th>
                <th>Title</th>
                <th>Time</th>
                <th>Duration</th>
                <th>Project</th>
                <th>Tags</th>
                <th></th>
            </tr>
        </thead>
        <tbody>
            {rows}
        </tbody>
    </table>"""


def _render_pager(view: ListViewModel, base_url: str) -> str:
    prev_link = f'<a href="{base_url}page={view.page - 1}">&larr; Newer</a>' if view.has_prev else ""
    next_link = f'<a href="{base_url}page={view.page + 1}">Older &rarr;</a>' if view.has_next else ""
    return f"""<div class="pager">
            <span>{prev_link}</span>
            <span class="muted">Page {view.page} of {view.total_pages}</span>
            <span>{next_link}</span>
        </div>"""


def _render_report(report: ReportViewModel) -> str:
    """
    Render one report bucket with its summary, sessions and chart.

    Previous/next links move between buckets in newest-first key order.
    """
    chart = f"""<div class="panel">
            <h2>Hours per {report.period}</h2>
            <div class="chart-container">
                <img src="/charts/hours.png?period={report.period}" alt="Hours chart">
            </div>
        </div>"""

    if report.summary is None:
        return '<div class="panel"><p class="muted">No sessions yet</p></div>' + chart

    base = f"/report?period={report.period}&"
    newer = f'<a href="{base}index={report.index - 1}">&larr; Newer</a>' if report.has_prev else ""
    older = f'<a href="{base}index={report.index + 1}">Older &rarr;</a>' if report.has_next else ""

    return f"""<div class="panel">
            <div class="pager">
                <span>{newer}</span>
                <h2>{html.escape(report.range_label)}</h2>
                <span>{older}</span>
            </div>
            <div class="metric">{report.summary.total_hours_display}</div>
            <div class="metric-label">Total hours &bull; {report.summary.session_count} session(s)</div>
            {_render_sessions_table(report.sessions)}
            {_render_pager(report.sessions, f"{base}index={report.index}&")}
        </div>""" + chart


def _render_session_form(
    session: SessionViewModel | None = None,
    day: date_type | None = None,
) -> str:
    """
    Render the add/edit session form.

    With a session, every field is prefilled and a hidden id input makes
    the save replace that session. Otherwise an add form is rendered, with
    the date prefilled when a day is given.
    """
    if session is None:
        heading = "Add Session"
        id_input = ""
        after_save = "location.reload()"
        values = {
            "title": "",
            "date": day.isoformat() if day else "",
            "start": "09:00",
            "end": "17:00",
            "project": "",
            "tags": "",
            "description": "",
        }
    else:
        heading = "Edit Session"
        id_input = f'<input type="hidden" name="id" value="{html.escape(session.session_id)}">'
        after_save = f"location.assign('/?month={session.date:%Y-%m}')"
        values = {
            "title": session.title,
            "date": session.date.isoformat(),
            "start": f"{session.start_time:%H:%M}",
            "end": f"{session.end_time:%H:%M}",
            "project": session.project or "",
            "tags": session.tags_display,
            "description": session.description or "",
        }
    v = {name: html.escape(value) for name, value in values.items()}
    cancel = '<a href="/">Cancel</a>' if session else ""

    return f"""<div class="panel" id="session-form">
            <h2>{heading}</h2>
            <form class="session-form"
                  hx-post="/api/sessions"
                  hx-ext="json-enc"
                  hx-on::after-request="if (event.detail.successful) {after_save}">
                {id_input}
                <input name="title" placeholder="Title" value="{v['title']}" required>
                <input name="date" type="date" value="{v['date']}" required>
                <input name="start" type="time" value="{v['start']}">
                <input name="end" type="time" value="{v['end']}">
                <input name="project" placeholder="Project" value="{v['project']}">
                <input name="tags" placeholder="Tags (comma separated)" value="{v['tags']}">
                <input name="description" placeholder="Description" value="{v['description']}">
                <button type="submit">Save</button>
                {cancel}
            </form>
        </div>"""


def _render_clear_button() -> str:
    return """<button class="danger"
                    hx-delete="/api/sessions"
                    hx-confirm="Delete ALL sessions? This cannot be undone."
                    hx-on::after-request="if (event.detail.successful) location.reload()">Clear all</button>"""


def _render_import_panel() -> str:
    return f"""<div class="panel">
            <h2>Import CSV</h2>
            <input type="file" id="import-file" accept=".csv">
            <button onclick="importCsv(document.getElementById('import-file'), false)">Preview</button>
            <button onclick="importCsv(document.getElementById('import-file'), true)">Import</button>
            <pre id="import-result" class="muted"></pre>
            <script>{_IMPORT_SCRIPT}</script>
        </div>"""
