"""
Web dashboard module for Work Session Tracker.

PURPOSE: FastAPI-based web UI with htmx for form posts and deletes.

FEATURES:
- Month calendar, paginated session list, weekly/monthly reports
- Server-side chart rendering (matplotlib)
- CSV download and upload
- JSON API endpoints for scripting

USAGE:
    # Via CLI
    work-tracker dashboard

    # Programmatically
    from work_session_tracker.web import create_app
    app = create_app()
    # Run with uvicorn
"""

from .app import create_app, run_dashboard

__all__ = ["create_app", "run_dashboard"]
