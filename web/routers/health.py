"""Health check endpoints."""

from fastapi import APIRouter, Depends
from fastapi import status as http_status
from fastapi.responses import RedirectResponse

from jlink_online import __version__
from jlink_online.builds.service import JlinkPipeline
from web.deps import get_pipeline

router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Health status with version.
    """
    return {"status": "ok", "version": __version__}


@router.get("/", include_in_schema=False)
def root(pipeline: JlinkPipeline = Depends(get_pipeline)) -> RedirectResponse:
    """Redirect index requests to the project page."""
    return RedirectResponse(
        pipeline.settings.index_redirect_url,
        status_code=http_status.HTTP_301_MOVED_PERMANENTLY,
    )
