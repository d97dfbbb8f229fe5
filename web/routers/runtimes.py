"""Runtime build endpoints.

- GET /{arch}/{os}/{version} - Build from query parameters
- POST / - Build from a JSON request body
- POST /{arch}/{os}/{version} - Build from a module-info.java body

Successful builds return the archive as an attachment. Every failure is
a 400 with a ``{"code", "message"}`` detail; internal details are only
logged.
"""

import json
import logging
from typing import Any, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi import status as http_status
from pydantic import ValidationError

from jlink_online.builds.module_info import parse_module_info
from jlink_online.builds.schema import RuntimeRequest, split_list
from jlink_online.builds.service import BuildOutput, JlinkPipeline
from jlink_online.errors import (
    ArchiveError,
    ExtractionError,
    FetchError,
    JlinkError,
    LinkError,
)
from web.deps import get_pipeline, read_body

logger = logging.getLogger(__name__)

router = APIRouter()

# Messages for failures whose own message may expose host details
_PUBLIC_MESSAGES: dict[type[JlinkError], str] = {
    FetchError: "Failed to download required files",
    ExtractionError: "Failed to unpack runtime",
    LinkError: "Failed to generate runtime",
    ArchiveError: "Failed to package runtime",
}


def _bad_request(code: str, message: str) -> NoReturn:
    raise HTTPException(
        status_code=http_status.HTTP_400_BAD_REQUEST,
        detail={"code": code, "message": message},
    )


def _make_request(**fields: Any) -> RuntimeRequest:
    """Validate request fields, mapping failures to HTTP 400."""
    try:
        return RuntimeRequest.model_validate(fields)
    except ValidationError as e:
        messages = "; ".join(err["msg"].removeprefix("Value error, ") for err in e.errors())
        _bad_request("invalid_request", messages)


def _build(pipeline: JlinkPipeline, request: RuntimeRequest) -> Response:
    try:
        result = pipeline.build(request)
    except JlinkError as e:
        logger.error("Build failed (%s): %s", e.code, e.message)
        message = next(
            (m for cls, m in _PUBLIC_MESSAGES.items() if isinstance(e, cls)),
            e.message,
        )
        _bad_request(e.code, message)
    except TimeoutError as e:
        logger.error("Build failed: %s", e)
        _bad_request("store_busy", "Runtime store is busy, try again later")

    return _archive_response(result)


def _archive_response(result: BuildOutput) -> Response:
    return Response(
        content=result.content,
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": f'attachment; filename="{result.file_name}"',
            "Accept-Ranges": "bytes",
        },
    )


@router.get("/{arch}/{os}/{version}")
def build_from_query(
    arch: str,
    os: str,
    version: str,
    modules: str = Query("java.base", description="Comma-separated module names"),
    endian: str | None = Query(None, description="Target byte order"),
    implementation: str = Query("hotspot", description="JVM implementation"),
    artifacts: str | None = Query(None, description="Comma-separated G:A:V coordinates"),
    pipeline: JlinkPipeline = Depends(get_pipeline),
) -> Response:
    """Build a runtime described by path and query parameters."""
    request = _make_request(
        arch=arch,
        os=os,
        version=version,
        implementation=implementation,
        endian=endian,
        modules=modules.split(","),
        artifacts=split_list(artifacts),
    )
    return _build(pipeline, request)


@router.post("/")
def build_from_json(
    source: bytes = Depends(read_body),
    pipeline: JlinkPipeline = Depends(get_pipeline),
) -> Response:
    """Build a runtime described by a JSON object body."""
    try:
        body = json.loads(source)
    except ValueError:
        _bad_request("invalid_request", "The request body must be valid JSON")
    if not isinstance(body, dict):
        _bad_request("invalid_request", "The request body must be a JSON object")

    return _build(pipeline, _make_request(**body))


@router.post("/{arch}/{os}/{version}")
def build_from_module_info(
    arch: str,
    os: str,
    version: str,
    endian: str | None = Query(None, description="Target byte order"),
    implementation: str = Query("hotspot", description="JVM implementation"),
    artifacts: str | None = Query(None, description="Comma-separated G:A:V coordinates"),
    source: bytes = Depends(read_body),
    pipeline: JlinkPipeline = Depends(get_pipeline),
) -> Response:
    """Build a runtime containing the modules a module-info.java requires."""
    try:
        text = source.decode("utf-8")
    except UnicodeDecodeError:
        _bad_request(
            "invalid_module_info",
            "The request body must be a valid module-info.java file",
        )

    request = _make_request(
        arch=arch,
        os=os,
        version=version,
        implementation=implementation,
        endian=endian,
        modules=parse_module_info(text),
        artifacts=split_list(artifacts),
    )
    return _build(pipeline, request)
