"""
CLI entry point for Work Session Tracker.

PURPOSE: Command-line interface for the dashboard and session management.
AI CONTEXT: Main entry points for package execution.

USAGE:
    # Run web dashboard (default)
    python -m work_session_tracker

    # Or via CLI command (after install)
    work-tracker

    # Run with subcommands
    work-tracker dashboard --port 8080
    work-tracker add --title "Review" --date 2025-03-14 --start 09:00 --end 10:30
    work-tracker edit 1742032800123k3j9x0q2a --end 11:00
    work-tracker list --page 2
    work-tracker report --period month
    work-tracker export --output hours.csv
    work-tracker import hours.csv --yes
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable, Sequence
from functools import lru_cache
from typing import TYPE_CHECKING

from .filesystem import RealFileSystem

if TYPE_CHECKING:
    from .filesystem import FileSystem
    from .session_service import SessionService

# Constants
PROG_NAME = "work-tracker"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
STDOUT_MARKER = "-"


@lru_cache(maxsize=1)
def _get_logger() -> logging.Logger:
    """Get module logger (cached for thread safety)."""
    logging.basicConfig(level=logging.INFO)
    return logging.getLogger(__name__)


def _log(message: str, *, emoji: str = "") -> None:
    """Log message with optional emoji prefix for CLI output.

    Args:
        message: The message to log.
        emoji: Optional emoji prefix for visual CLI feedback.
    """
    prefix = f"{emoji} " if emoji else ""
    _get_logger().info(f"{prefix}{message}")


def _default_service() -> SessionService:
    from .session_service import SessionService as Service

    return Service()


def run_dashboard(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> int:
    """
    Launch the web dashboard.

    Args:
        host: Network interface to bind to. Default '127.0.0.1' for
            local-only access. Use '0.0.0.0' for network access.
        port: TCP port for the HTTP server. Default 8000.

    Returns:
        0 once the server stops.

    Example:
        >>> # work-tracker dashboard --port 3000
        >>> run_dashboard(port=3000)
        🚀 Starting dashboard at http://127.0.0.1:3000
    """
    from .web import run_dashboard as start_web

    _log(f"Starting dashboard at http://{host}:{port}", emoji="🚀")
    _log("Press Ctrl+C to stop")
    start_web(host=host, port=port)
    return 0


def run_add(
    title: str,
    date_text: str,
    start: str = "",
    end: str = "",
    description: str = "",
    project: str = "",
    tags: Sequence[str] = (),
    session_id: str | None = None,
    service: SessionService | None = None,
) -> int:
    """
    Record one session from command-line fields.

    With session_id, the stored session with that id is replaced instead.

    Returns:
        0 on success, 1 when validation or storage fails.
    """
    service = service or _default_service()
    result = service.save_session(
        title=title,
        date_text=date_text,
        start=start,
        end=end,
        description=description,
        project=project,
        tags=list(tags),
        session_id=session_id,
    )
    if not result.success or result.data is None:
        _log(f"{result.message}: {result.error}", emoji="❌")
        return 1

    session = result.data["session"]
    _log(f"{result.message} ({session['duration']} min, id {session['id']})", emoji="✅")
    return 0


def run_edit(
    session_id: str,
    title: str | None = None,
    date_text: str | None = None,
    start: str | None = None,
    end: str | None = None,
    description: str | None = None,
    project: str | None = None,
    tags: Sequence[str] | None = None,
    service: SessionService | None = None,
) -> int:
    """
    Change fields of an existing session.

    Options left as None keep the stored value; the duration is recomputed
    from the resulting times.

    Returns:
        0 on success, 1 for an unknown id or a failed save.

    Example:
        >>> run_edit("1742032800123k3j9x0q2a", end="18:00")
    """
    service = service or _default_service()
    current = service.get_session(session_id)
    if current is None:
        _log(f"Session not found: {session_id}", emoji="❌")
        return 1

    return run_add(
        title=current.title if title is None else title,
        date_text=current.date.isoformat() if date_text is None else date_text,
        start=f"{current.start_time:%H:%M}" if start is None else start,
        end=f"{current.end_time:%H:%M}" if end is None else end,
        description=(current.description or "") if description is None else description,
        project=(current.project or "") if project is None else project,
        tags=(current.tags or []) if tags is None else tags,
        session_id=session_id,
        service=service,
    )


def run_list(page: int = 1, service: SessionService | None = None) -> int:
    """
    Print one page of sessions, newest date first.

    Output columns: id, date, time range, duration, title, project.
    """
    service = service or _default_service()
    listing = service.list_sessions(page)

    if not listing.total_items:
        print("No sessions yet")
        return 0

    for s in listing.items:
        project = f" [{s.project}]" if s.project else ""
        print(
            f"{s.id}  {s.date.isoformat()}  "
            f"{s.start_time:%H:%M}-{s.end_time:%H:%M}  "
            f"{s.duration:>4}m  {s.title}{project}"
        )
    print(f"Page {listing.page} of {listing.total_pages} ({listing.total_items} sessions)")
    return 0


def run_delete(session_id: str, service: SessionService | None = None) -> int:
    """Delete one session by id. Returns 1 when the id is unknown."""
    service = service or _default_service()
    result = service.delete_session(session_id)
    if not result.success:
        _log(f"{result.message}: {session_id}", emoji="❌")
        return 1
    _log(result.message, emoji="🗑️")
    return 0


def run_clear(
    yes: bool = False,
    service: SessionService | None = None,
    prompt: Callable[[str], str] = input,
) -> int:
    """
    Delete every session after confirmation.

    Args:
        yes: Skip the interactive confirmation.
        service: Optional SessionService for testability.
        prompt: Input function used for confirmation.

    Returns:
        0 when cleared or cancelled, 1 when the clear fails.
    """
    if not yes:
        answer = prompt("Delete ALL sessions? This cannot be undone [y/N]: ")
        if answer.strip().lower() not in ("y", "yes"):
            _log("Cancelled")
            return 0

    service = service or _default_service()
    result = service.clear_sessions()
    if not result.success:
        _log(f"{result.message}: {result.error}", emoji="❌")
        return 1
    _log(result.message, emoji="🗑️")
    return 0


def run_report(period: str = "week", service: SessionService | None = None) -> int:
    """
    Print every week or month bucket with its totals to stdout.

    Business context: Quick terminal answer to "how many hours did I log
    each week", suitable for piping into other tools.

    Example:
        >>> # work-tracker report --period week
        Week 10/03/2025 -> 16/03/2025: 12.50 h (6 sessions)
        Week 03/03/2025 -> 09/03/2025: 31.25 h (14 sessions)
        Total: 43.75 h
    """
    service = service or _default_service()
    result = service.report(period)
    if not result.success or result.data is None:
        _log(f"{result.message}: {result.error}", emoji="❌")
        return 1

    buckets = result.data["buckets"]
    if not buckets:
        print("No sessions yet")
        return 0

    for bucket in buckets:
        if period == "week":
            label = f"Week {bucket['start']} -> {bucket['end']}"
        else:
            label = f"Month {bucket['key']}"
        print(f"{label}: {bucket['total_hours']:.2f} h ({bucket['session_count']} sessions)")
    print(f"Total: {result.data['total_hours']:.2f} h")
    return 0


def run_export(
    output: str | None = None,
    service: SessionService | None = None,
    filesystem: FileSystem | None = None,
) -> int:
    """
    Write every session as CSV.

    Args:
        output: Destination path, '-' for stdout. Defaults to
            time-tracking-<today>.csv in the current directory.
        service: Optional SessionService for testability.
        filesystem: Optional FileSystem for testability.

    Returns:
        0 on success, 1 when there is nothing to export or the write fails.
    """
    service = service or _default_service()
    result = service.export_csv()
    if not result.success or result.data is None:
        _log(result.message, emoji="⚠️")
        return 1

    content = result.data["content"]
    if output == STDOUT_MARKER:
        print(content)
        return 0

    fs = filesystem or RealFileSystem()
    path = output or result.data["filename"]
    try:
        fs.write_text(path, content + "\n")
    except OSError as e:
        _log(f"Failed to write {path}: {e}", emoji="❌")
        return 1

    _log(f"Exported {result.data['count']} session(s) to {path}", emoji="📄")
    return 0


def run_import(
    path: str,
    yes: bool = False,
    service: SessionService | None = None,
    filesystem: FileSystem | None = None,
) -> int:
    """
    Preview a CSV import and commit it with --yes.

    Prints the imported/skipped counts and every error message. Without
    --yes nothing is written.

    Returns:
        0 when the preview succeeded (and was committed with --yes),
        1 when nothing could be imported or the commit failed.
    """
    service = service or _default_service()
    fs = filesystem or RealFileSystem()
    result = service.preview_import(os.path.basename(path), lambda: fs.read_text(path))

    print(f"Imported: {result.imported}")
    print(f"Skipped (duplicates): {result.skipped}")
    for error in result.errors:
        print(f"  - {error}")

    if not result.success:
        _log("No sessions to import", emoji="⚠️")
        return 1

    if not yes:
        _log("Preview only; re-run with --yes to import", emoji="ℹ️")
        return 0

    outcome = service.confirm_import(result)
    if not outcome.success:
        _log(f"{outcome.message}: {outcome.error}", emoji="❌")
        return 1
    _log(outcome.message, emoji="✅")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    from .__version__ import __version__

    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="Work Session Tracker - log work sessions, view reports, import/export CSV",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Dashboard command
    dashboard_parser = subparsers.add_parser(
        "dashboard",
        help="Launch web dashboard (default)",
    )
    dashboard_parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Bind address (default: {DEFAULT_HOST})",
    )
    dashboard_parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port number (default: {DEFAULT_PORT})",
    )

    # Add command
    add_parser = subparsers.add_parser("add", help="Record a session")
    add_parser.add_argument("--title", required=True)
    add_parser.add_argument("--date", required=True, help="YYYY-MM-DD")
    add_parser.add_argument("--start", default="", help="HH:MM (default: 09:00)")
    add_parser.add_argument("--end", default="", help="HH:MM (default: 17:00)")
    add_parser.add_argument("--description", default="")
    add_parser.add_argument("--project", default="")
    add_parser.add_argument(
        "--tag",
        action="append",
        default=[],
        dest="tags",
        help="Tag to attach (repeatable)",
    )

    # Edit command
    edit_parser = subparsers.add_parser("edit", help="Change fields of a session by id")
    edit_parser.add_argument("session_id")
    edit_parser.add_argument("--title")
    edit_parser.add_argument("--date", help="YYYY-MM-DD")
    edit_parser.add_argument("--start", help="HH:MM")
    edit_parser.add_argument("--end", help="HH:MM")
    edit_parser.add_argument("--description")
    edit_parser.add_argument("--project")
    edit_parser.add_argument(
        "--tag",
        action="append",
        default=None,
        dest="tags",
        help="Replacement tag (repeatable); omit to keep the current tags",
    )

    # List command
    list_parser = subparsers.add_parser("list", help="List sessions, newest first")
    list_parser.add_argument("--page", type=int, default=1)

    # Delete / clear commands
    delete_parser = subparsers.add_parser("delete", help="Delete a session by id")
    delete_parser.add_argument("session_id")

    clear_parser = subparsers.add_parser("clear", help="Delete all sessions")
    clear_parser.add_argument("--yes", action="store_true", help="Skip confirmation")

    # Report command
    report_parser = subparsers.add_parser("report", help="Print weekly or monthly totals")
    report_parser.add_argument("--period", choices=("week", "month"), default="week")

    # Export / import commands
    export_parser = subparsers.add_parser("export", help="Export sessions to CSV")
    export_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output path, or '-' for stdout (default: time-tracking-<today>.csv)",
    )

    import_parser = subparsers.add_parser("import", help="Import sessions from CSV")
    import_parser.add_argument("file")
    import_parser.add_argument("--yes", action="store_true", help="Commit the import")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main CLI entry point for Work Session Tracker.

    Parses command-line arguments and dispatches to the appropriate
    subcommand handler. If no subcommand is specified, defaults to running
    the web dashboard.

    Business context: This is the entry point installed as the
    'work-tracker' console script.

    Args:
        argv: Argument list; defaults to sys.argv[1:].

    Returns:
        Exit code 0 for success, 1 for a failed operation.

    Raises:
        SystemExit: On --help, --version or argument parsing errors.

    Example:
        >>> sys.exit(main(["report", "--period", "month"]))
    """
    args = _build_parser().parse_args(argv)

    if args.command == "add":
        return run_add(
            title=args.title,
            date_text=args.date,
            start=args.start,
            end=args.end,
            description=args.description,
            project=args.project,
            tags=args.tags,
        )
    if args.command == "edit":
        return run_edit(
            args.session_id,
            title=args.title,
            date_text=args.date,
            start=args.start,
            end=args.end,
            description=args.description,
            project=args.project,
            tags=args.tags,
        )
    if args.command == "list":
        return run_list(page=args.page)
    if args.command == "delete":
        return run_delete(args.session_id)
    if args.command == "clear":
        return run_clear(yes=args.yes)
    if args.command == "report":
        return run_report(period=args.period)
    if args.command == "export":
        return run_export(output=args.output)
    if args.command == "import":
        return run_import(args.file, yes=args.yes)
    if args.command == "dashboard":
        return run_dashboard(host=args.host, port=args.port)
    # Default: run dashboard
    return run_dashboard()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
