"""
Work Session Tracker.

PURPOSE: Record work sessions against calendar days and report on them.
AI CONTEXT: Local, single-user time tracking with CSV import/export.

PACKAGE STRUCTURE:
- models.py: Data models (WorkSession, CalendarDay, ImportResult)
- storage.py: JSON file persistence (the session store)
- parsing.py: Header, date, time and duration heuristics
- csv_codec.py: CSV export and import pipeline
- grouping.py: Month grid, week and month buckets
- session_service.py: Shared operations used by CLI and web
- presenters.py: View models and charts
- web/: FastAPI dashboard
- config.py: Configuration constants

QUICK START:
    # Launch dashboard
    python -m work_session_tracker dashboard

    # Import a CSV file
    python -m work_session_tracker import hours.csv --yes

    # Print weekly report
    python -m work_session_tracker report --period week
"""

from work_session_tracker.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __url__,
    __version__,
    __version_date__,
)

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__url__",
    "__author__",
    "__license__",
    "__copyright__",
]
