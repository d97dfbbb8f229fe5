"""FastAPI application factory and main app.

This module creates the FastAPI application with all routers and
dependency injection configured.

Web routes are thin proxies to the build pipeline.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from jlink_online import __version__
from jlink_online.builds.service import JlinkPipeline
from jlink_online.config import get_settings
from web.routers import config, health, runtimes


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager.

    Creates the shared pipeline on startup and closes its HTTP clients
    on shutdown.
    """
    settings = get_settings()
    settings.cache_dir.mkdir(parents=True, exist_ok=True)
    if settings.tmp_dir is not None:
        settings.tmp_dir.mkdir(parents=True, exist_ok=True)

    app.state.pipeline = JlinkPipeline(settings)
    try:
        yield
    finally:
        app.state.pipeline.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application.
    """
    application = FastAPI(
        title="jlink online",
        description="HTTP API for building minimal Java runtimes on demand",
        version=__version__,
        lifespan=lifespan,
    )

    # Include routers
    application.include_router(health.router, tags=["health"])
    application.include_router(config.router, prefix="/config", tags=["config"])
    application.include_router(runtimes.router, tags=["runtimes"])

    return application


# Create the default application instance
app = create_app()
