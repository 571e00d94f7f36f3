"""
FastAPI application for Rice Blast Detector dashboard.

PURPOSE: Main application factory and server runner.
AI CONTEXT: Creates app with all routes registered and one shared workflow.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from ..__version__ import __version__
from ..workflow import AnalysisWorkflow
from .routes import router

__all__ = ["create_app", "run_dashboard"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """
    Manage application lifecycle with startup/shutdown hooks.

    Logs startup and closes the workflow's backend client on shutdown.

    Args:
        app: The FastAPI application instance (provided by FastAPI).

    Yields:
        None. Control returns to FastAPI to handle requests.
    """
    logger.info("Rice Blast Detector dashboard starting (v%s)", __version__)
    yield
    await app.state.workflow.aclose()
    logger.info("Rice Blast Detector dashboard shutting down")


def create_app(workflow: AnalysisWorkflow | None = None) -> FastAPI:
    """
    Create and configure the FastAPI dashboard application.

    The app holds a single AnalysisWorkflow for its lifetime, which
    makes it one "session": one statistics store and at most one
    analysis in flight.

    Args:
        workflow: Workflow to serve. Default: AnalysisWorkflow.create()

    Returns:
        Configured FastAPI application instance with the dashboard,
        partial, chart and JSON API routes registered.

    Example:
        >>> from fastapi.testclient import TestClient
        >>> client = TestClient(create_app())
        >>> client.get('/api/statistics').status_code
        200
    """
    app = FastAPI(
        title="Rice Blast Detector",
        description="Leaf image analysis with running detection statistics",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.workflow = workflow or AnalysisWorkflow.create()
    app.include_router(router)
    return app


def run_dashboard(
    host: str = "127.0.0.1",
    port: int = 8000,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """
    Launch the Rice Blast Detector web dashboard server.

    Args:
        host: Network interface to bind the server to.
        port: TCP port number for the HTTP server. Default 8000.
        reload: Enable auto-reload on code changes for development.
        log_level: Uvicorn logging verbosity.

    Returns:
        None. This function blocks until the server is stopped (Ctrl+C).

    Raises:
        OSError: If the port is already in use or host is invalid.
    """
    uvicorn.run(
        "rice_blast_detector.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


# For direct execution
if __name__ == "__main__":
    run_dashboard()
