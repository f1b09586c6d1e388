"""
Package entry point for python -m execution.

USAGE:
    python -m work_session_tracker           # Launch dashboard
    python -m work_session_tracker dashboard # Launch dashboard
    python -m work_session_tracker report    # Print report
    python -m work_session_tracker import x.csv --yes
"""

import sys

from work_session_tracker.cli import main

if __name__ == "__main__":
    sys.exit(main())
