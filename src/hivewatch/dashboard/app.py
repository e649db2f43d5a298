"""FastAPI dashboard application factory."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from hivewatch.dashboard.routes import api, hafbe


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI dashboard application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to build the services and store them on
                  ``app.state``.

    Returns:
        Configured FastAPI application with the JSON API routes.
    """
    app = FastAPI(
        title="Hive Witness Dashboard",
        lifespan=lifespan,
    )

    # Wired by the lifespan in main.py
    app.state.nodes = None
    app.state.witnesses = None
    app.state.accounts = None
    app.state.voters = None
    app.state.activity = None
    app.state.schedule = None
    app.state.analytics = None
    app.state.hafbe = None

    app.include_router(api.router, prefix="/api")
    app.include_router(hafbe.router, prefix="/api/hafbe")

    return app
