"""Runtime building: jlink invocation, packaging and the request pipeline."""

from jlink_online.builds.schema import RuntimeRequest
from jlink_online.builds.service import BuildOutput, JlinkPipeline

__all__ = ["BuildOutput", "JlinkPipeline", "RuntimeRequest"]
