"""HTTP fetch and archive helpers.

This module handles:
- Fetching small documents (release metadata, POMs) into memory
- Streaming large archives to disk
- Extracting runtime archives (.tar.gz and .zip) safely
"""

from __future__ import annotations

import hashlib
import logging
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path

import httpx

from jlink_online.errors import ExtractionError, FetchError

logger = logging.getLogger(__name__)

# Chunk size for downloads (bytes)
DOWNLOAD_CHUNK_SIZE = 64 * 1024  # 64 KB

ARCHIVE_EXTENSIONS = (".tar.gz", ".tgz", ".tar", ".zip")


@dataclass
class DownloadResult:
    """Result of a file download."""

    path: Path
    checksum: str
    size_bytes: int


def _fetch_error(url: str, e: httpx.HTTPError) -> FetchError:
    if isinstance(e, httpx.HTTPStatusError):
        return FetchError(
            f"HTTP error fetching {url}: {e.response.status_code} {e.response.reason_phrase}",
            code="http_error",
            status_code=e.response.status_code,
        )
    if isinstance(e, httpx.TimeoutException):
        return FetchError(f"Timeout fetching {url}", code="timeout")
    return FetchError(f"Network error fetching {url}: {e}", code="network_error")


def fetch_bytes(
    client: httpx.Client,
    url: str,
    params: dict[str, str | int] | None = None,
    timeout: float | None = None,
) -> bytes:
    """Fetch a document into memory.

    Args:
        client: HTTPX client instance.
        url: URL to fetch.
        params: Optional query parameters.
        timeout: Request timeout in seconds (client default if None).

    Returns:
        Response body.

    Raises:
        FetchError: On any non-success status or transport failure.
    """
    logger.debug("Fetching %s %s", url, params or "")

    try:
        if timeout is None:
            response = client.get(url, params=params)
        else:
            response = client.get(url, params=params, timeout=timeout)
        response.raise_for_status()
        return response.content
    except httpx.HTTPError as e:
        raise _fetch_error(url, e) from e


def download_file(
    client: httpx.Client,
    url: str,
    dest_path: Path,
    timeout: float | None = None,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
) -> DownloadResult:
    """Stream a file to disk.

    The destination is removed again if the download does not complete.

    Args:
        client: HTTPX client instance.
        url: URL to download from.
        dest_path: Destination path for the downloaded file.
        timeout: Download timeout in seconds (client default if None).
        chunk_size: Size of chunks to download.

    Returns:
        DownloadResult with path, checksum, and size.

    Raises:
        FetchError: If the download fails.
    """
    logger.info("Downloading %s to %s", url, dest_path)

    kwargs: dict[str, float] = {} if timeout is None else {"timeout": timeout}
    try:
        with client.stream("GET", url, **kwargs) as response:
            response.raise_for_status()

            total_bytes = 0
            sha256 = hashlib.sha256()

            dest_path.parent.mkdir(parents=True, exist_ok=True)

            with dest_path.open("wb") as f:
                for chunk in response.iter_bytes(chunk_size):
                    f.write(chunk)
                    sha256.update(chunk)
                    total_bytes += len(chunk)

    except httpx.HTTPError as e:
        dest_path.unlink(missing_ok=True)
        raise _fetch_error(url, e) from e
    except OSError as e:
        dest_path.unlink(missing_ok=True)
        raise FetchError(f"Failed to write {dest_path}: {e}", code="io_error") from e

    checksum = sha256.hexdigest()
    logger.info(
        "Downloaded %s (%d bytes, checksum: %s)",
        dest_path.name,
        total_bytes,
        checksum[:16] + "...",
    )
    return DownloadResult(path=dest_path, checksum=checksum, size_bytes=total_bytes)


def strip_archive_extension(file_name: str) -> str:
    """Remove a known archive extension from a file name."""
    lowered = file_name.lower()
    for ext in ARCHIVE_EXTENSIONS:
        if lowered.endswith(ext):
            return file_name[: -len(ext)]
    return file_name


def _check_member_path(name: str) -> None:
    member_path = Path(name)
    if member_path.is_absolute() or ".." in member_path.parts:
        raise ExtractionError(
            f"Refusing to extract {name}: path traversal detected",
            code="path_traversal",
        )


def _extract_zip(archive_path: Path, dest_dir: Path) -> None:
    with zipfile.ZipFile(archive_path) as zf:
        members = zf.infolist()
        for member in members:
            _check_member_path(member.filename)

        for member in members:
            extracted = Path(zf.extract(member, dest_dir))
            # Unix permission bits live in the high word of external_attr
            mode = (member.external_attr >> 16) & 0o777
            if mode and not member.is_dir():
                extracted.chmod(mode)


def _extract_tar(archive_path: Path, dest_dir: Path) -> None:
    with tarfile.open(archive_path, "r:*") as tar:
        members = tar.getmembers()
        if not members:
            raise ExtractionError(
                f"Archive {archive_path} is empty",
                code="empty_archive",
            )
        for member in members:
            _check_member_path(member.name)

        tar.extractall(dest_dir, filter="data")


def extract_archive(archive_path: Path, dest_dir: Path) -> Path:
    """Extract a runtime archive into a directory.

    Args:
        archive_path: Path to a .tar.gz, .tgz, .tar or .zip archive.
        dest_dir: Destination directory for extraction.

    Returns:
        The destination directory.

    Raises:
        ExtractionError: If extraction fails.
    """
    logger.info("Extracting %s to %s", archive_path.name, dest_dir)

    dest_dir.mkdir(parents=True, exist_ok=True)
    name = archive_path.name.lower()

    try:
        if name.endswith(".zip"):
            _extract_zip(archive_path, dest_dir)
        elif name.endswith((".tar.gz", ".tgz", ".tar")):
            _extract_tar(archive_path, dest_dir)
        else:
            raise ExtractionError(
                f"Unsupported archive format: {archive_path.name}",
                code="unsupported_format",
            )
    except (tarfile.TarError, zipfile.BadZipFile) as e:
        raise ExtractionError(
            f"Failed to extract {archive_path}: {e}",
            code="extraction_failed",
        ) from e
    except OSError as e:
        raise ExtractionError(
            f"OS error extracting {archive_path}: {e}",
            code="os_error",
        ) from e

    return dest_dir


__all__ = [
    "ARCHIVE_EXTENSIONS",
    "DOWNLOAD_CHUNK_SIZE",
    "DownloadResult",
    "download_file",
    "extract_archive",
    "fetch_bytes",
    "strip_archive_extension",
]
