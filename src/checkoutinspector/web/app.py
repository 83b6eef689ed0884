"""FastAPI application factory for the read-only result API."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI

from checkoutinspector import __version__
from checkoutinspector.config import InspectorConfig
from checkoutinspector.storage.db import get_db


async def create_app(
    config: InspectorConfig | None = None,
    db_path: str | Path | None = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    config = config or InspectorConfig.load()

    app = FastAPI(
        title="Checkout Inspector",
        version=__version__,
        docs_url="/api/docs",
    )

    app.state.config = config
    app.state.db = await get_db(db_path or config.db_path)

    from checkoutinspector.web.api.checks import router as checks_router
    from checkoutinspector.web.api.results import router as results_router

    app.include_router(results_router, prefix="/api")
    app.include_router(checks_router, prefix="/api")

    @app.on_event("shutdown")
    async def shutdown() -> None:
        if hasattr(app.state, "db"):
            await app.state.db.close()

    return app
