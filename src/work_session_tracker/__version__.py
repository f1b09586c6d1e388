"""Version information for work-session-tracker."""

__version__ = "1.0.0"
__version_date__ = "2026-10-19"

__title__ = "work_session_tracker"
__description__ = "Personal work session tracker with calendar, reports and CSV import/export"
__url__ = "https://github.com/mgrandau/work-session-tracker"

__author__ = "Mark Grandau"

__license__ = "MIT"
__copyright__ = "Copyright 2025 Mark Grandau"

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
