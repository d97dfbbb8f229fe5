"""Configuration endpoints."""

from typing import Any

from fastapi import APIRouter, Depends

from jlink_online.builds.service import JlinkPipeline
from web.deps import get_pipeline

router = APIRouter()


@router.get("")
def get_config(pipeline: JlinkPipeline = Depends(get_pipeline)) -> dict[str, Any]:
    """Get effective configuration.

    Returns:
        Current configuration as JSON.
    """
    settings = pipeline.settings
    return {
        "cache_dir": str(settings.cache_dir),
        "tmp_dir": str(settings.tmp_dir) if settings.tmp_dir else None,
        "local_platform": settings.local_platform,
        "local_arch": settings.local_arch,
        "maven_central": settings.maven_central,
        "lts_version": settings.lts_version,
        "ga_version": settings.ga_version,
        "ea_version": settings.ea_version,
        "jlink_compress": settings.jlink_compress,
        "strip_debug": settings.strip_debug,
        "log_level": settings.log_level,
        "metadata_timeout": settings.metadata_timeout,
        "download_timeout": settings.download_timeout,
        "maven_timeout": settings.maven_timeout,
        "build_timeout": settings.build_timeout,
    }
