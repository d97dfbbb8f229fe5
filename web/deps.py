"""Pipeline dependency for FastAPI.

Provides the shared build pipeline to route handlers via FastAPI
dependency injection. The pipeline is created once per application in
the lifespan handler and stored on ``app.state``.
"""

from __future__ import annotations

from fastapi import Request

from jlink_online.builds.service import JlinkPipeline


def get_pipeline(request: Request) -> JlinkPipeline:
    """Get the build pipeline from app state.

    Args:
        request: FastAPI request object.

    Returns:
        The application's JlinkPipeline.
    """
    pipeline: JlinkPipeline = request.app.state.pipeline
    return pipeline


async def read_body(request: Request) -> bytes:
    """Read the raw request body."""
    return await request.body()
