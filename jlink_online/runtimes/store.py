"""Runtime store for downloaded base runtimes.

This module provides:
- materialize(): Ensure a release is downloaded and extracted exactly once
- store_lock(): The store-wide lock serializing all cache population
- prune()/cache_size(): Cache maintenance helpers

One lock covers the whole store rather than one lock per release. This
serializes unrelated downloads but guarantees no two extractions ever
interleave in the cache directory.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from jlink_online.errors import ExtractionError
from jlink_online.fetch import download_file, extract_archive, strip_archive_extension
from jlink_online.types import LocalRuntimeHandle, ReleaseDescriptor

if TYPE_CHECKING:
    from jlink_online.config import Settings

logger = logging.getLogger(__name__)

# Suffix of the directory an archive is extracted into before it goes live
STAGING_SUFFIX = ".partial"


@contextmanager
def store_lock(lock: threading.Lock, timeout: float | None = None) -> Iterator[None]:
    """Acquire the runtime store lock.

    Args:
        lock: The store-wide lock.
        timeout: Lock acquisition timeout in seconds (None = blocking).

    Yields:
        None when lock is acquired.

    Raises:
        TimeoutError: If lock cannot be acquired within timeout.
    """
    logger.debug("Acquiring runtime store lock")

    if not lock.acquire(timeout=-1 if timeout is None else timeout):
        raise TimeoutError("Timeout waiting for runtime store lock")
    try:
        logger.debug("Runtime store lock acquired")
        yield
    finally:
        lock.release()
        logger.debug("Runtime store lock released")


def find_runtime_root(runtime_dir: Path, version: str) -> Path:
    """Locate the runtime root inside an extracted archive.

    Archives conventionally contain a single 'jdk-<version>' directory.
    Falls back to the only top-level directory, then to runtime_dir itself.
    """
    conventional = runtime_dir / f"jdk-{version}"
    if conventional.is_dir():
        return conventional

    subdirs = [d for d in runtime_dir.iterdir() if d.is_dir()]
    if len(subdirs) == 1:
        return subdirs[0]
    if len(subdirs) > 1:
        logger.warning(
            "Multiple directories found in %s: %s",
            runtime_dir,
            [d.name for d in subdirs],
        )
    return runtime_dir


class RuntimeStore:
    """Disk-backed cache of extracted runtimes shared by all requests."""

    def __init__(
        self,
        client: httpx.Client,
        cache_dir: Path,
        tmp_dir: Path | None = None,
        download_timeout: float | None = None,
        lock_timeout: float | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            client: HTTPX client used for archive downloads.
            cache_dir: Directory holding extracted runtimes.
            tmp_dir: Directory for in-flight downloads (system default if None).
            download_timeout: Per-download timeout in seconds.
            lock_timeout: Store lock acquisition timeout (None = blocking).
        """
        self._client = client
        self.cache_dir = cache_dir
        self._tmp_dir = tmp_dir
        self._download_timeout = download_timeout
        self._lock_timeout = lock_timeout
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.Client) -> RuntimeStore:
        """Create a store configured from application settings."""
        return cls(
            client,
            settings.cache_dir,
            tmp_dir=settings.tmp_dir,
            download_timeout=settings.download_timeout,
            lock_timeout=settings.lock_timeout,
        )

    def runtime_dir(self, descriptor: ReleaseDescriptor) -> Path:
        """Return the cache directory for a release."""
        return self.cache_dir / strip_archive_extension(descriptor.file_name)

    def is_cached(self, descriptor: ReleaseDescriptor) -> bool:
        """Check whether a release is already extracted."""
        return self.runtime_dir(descriptor).is_dir()

    def materialize(self, descriptor: ReleaseDescriptor) -> LocalRuntimeHandle:
        """Ensure a release is present on disk and return its runtime root.

        Args:
            descriptor: Release to materialize.

        Returns:
            Handle to the extracted runtime.

        Raises:
            FetchError: If the archive download fails.
            ExtractionError: If the archive cannot be extracted.
            TimeoutError: If the store lock cannot be acquired in time.
        """
        with store_lock(self._lock, self._lock_timeout):
            runtime_dir = self.runtime_dir(descriptor)

            if runtime_dir.is_dir():
                logger.info("Using cached runtime: %s", runtime_dir.name)
            else:
                self._populate(descriptor, runtime_dir)

            root = find_runtime_root(runtime_dir, descriptor.version)
            return LocalRuntimeHandle(path=root, descriptor=descriptor)

    def _populate(self, descriptor: ReleaseDescriptor, runtime_dir: Path) -> None:
        """Download and extract a release; caller must hold the store lock."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        staging_dir = runtime_dir.with_name(runtime_dir.name + STAGING_SUFFIX)
        shutil.rmtree(staging_dir, ignore_errors=True)

        if self._tmp_dir is not None:
            self._tmp_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(dir=self._tmp_dir, prefix="runtime-") as tmp:
            archive_path = Path(tmp) / descriptor.file_name
            download_file(
                self._client,
                descriptor.link,
                archive_path,
                timeout=self._download_timeout,
            )

            try:
                extract_archive(archive_path, staging_dir)
                os.replace(staging_dir, runtime_dir)
            except (ExtractionError, OSError) as e:
                shutil.rmtree(staging_dir, ignore_errors=True)
                shutil.rmtree(runtime_dir, ignore_errors=True)
                logger.error("Failed to extract %s: %s", descriptor.file_name, e)
                if isinstance(e, ExtractionError):
                    raise
                raise ExtractionError(
                    f"Failed to move {staging_dir} into place: {e}",
                    code="os_error",
                ) from e

        logger.info("Runtime ready: %s", runtime_dir)

    def prune(self, descriptor: ReleaseDescriptor) -> bool:
        """Remove a release from the cache.

        Returns:
            True if removed, False if it was not cached.
        """
        with store_lock(self._lock, self._lock_timeout):
            runtime_dir = self.runtime_dir(descriptor)
            if not runtime_dir.exists():
                return False
            logger.info("Pruning runtime at %s", runtime_dir)
            shutil.rmtree(runtime_dir)
            return True

    def cache_size(self) -> int:
        """Calculate the total size of the runtime cache in bytes."""
        total = 0
        if self.cache_dir.exists():
            for path in self.cache_dir.rglob("*"):
                if path.is_file() and not path.is_symlink():
                    total += path.stat().st_size
        return total


__all__ = [
    "STAGING_SUFFIX",
    "RuntimeStore",
    "find_runtime_root",
    "store_lock",
]
