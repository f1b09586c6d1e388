"""
FastAPI application for Work Session Tracker dashboard.

PURPOSE: Main application factory and server runner.
AI CONTEXT: Creates app with all routes registered.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from ..__version__ import __version__
from ..config import Config
from .routes import router

__all__ = ["create_app", "run_dashboard"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:  # noqa: ARG001
    """
    Manage application lifecycle with startup/shutdown hooks.

    Args:
        app: The FastAPI application instance (provided by FastAPI).

    Yields:
        None. Control returns to FastAPI to handle requests.
    """
    logger.info(
        "Work Session Tracker dashboard starting (v%s, storage %s)",
        __version__,
        Config.get_storage_dir(),
    )
    yield
    logger.info("Work Session Tracker dashboard shutting down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI dashboard application.

    Factory function that creates a new FastAPI instance with all routes
    registered. Uses the application factory pattern for testability.

    Returns:
        Configured FastAPI application instance with:
        - HTML views (/, /list, /report)
        - JSON API (/api/*), CSV download (/export.csv), charts (/charts/*)
        - OpenAPI documentation available at /docs

    Example:
        >>> from fastapi.testclient import TestClient
        >>> client = TestClient(create_app())
        >>> client.get('/').status_code
        200
    """
    app = FastAPI(
        title="Work Session Tracker",
        description="Calendar, reports and CSV import/export for tracked work sessions",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(router)

    return app


def run_dashboard(
    host: str = "127.0.0.1",
    port: int = 8000,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """
    Launch the Work Session Tracker web dashboard server.

    Starts a uvicorn ASGI server hosting the FastAPI dashboard application.

    Args:
        host: Network interface to bind the server to. Use '127.0.0.1'
            for local-only access (default) or '0.0.0.0' for network access.
        port: TCP port number for the HTTP server. Default 8000.
        reload: Enable auto-reload on code changes for development.
        log_level: Uvicorn logging verbosity. One of 'critical', 'error',
            'warning', 'info' (default), 'debug', or 'trace'.

    Returns:
        None. This function blocks until the server is stopped (Ctrl+C).

    Raises:
        OSError: If the port is already in use or host is invalid.

    Example:
        >>> run_dashboard(host='127.0.0.1', port=8000, reload=True)
        # Server runs at http://127.0.0.1:8000
    """
    uvicorn.run(
        "work_session_tracker.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    run_dashboard()
