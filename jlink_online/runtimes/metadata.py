"""Release metadata lookup and caching.

This module handles:
- Querying the Adoptium release index for runtime binaries
- Matching a requested version against the releases returned
- Memoizing results in memory and in a JSON file under the cache directory
- Rebuilding the whole cache from the release index

Release metadata never changes once published, so entries are only ever
replaced by a newer build of the same version.
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from jlink_online.errors import FetchError, ReleaseNotFoundError
from jlink_online.fetch import fetch_bytes
from jlink_online.types import (
    ReleaseCacheKey,
    ReleaseDescriptor,
    ReleaseType,
    VersionQuery,
)
from jlink_online.versions import compare_release, get_major_version, split_build

if TYPE_CHECKING:
    from jlink_online.config import Settings

logger = logging.getLogger(__name__)

# File name of the on-disk metadata cache
CACHE_FILE_NAME = "releases.json"

# 'jdk-11.0.8+10', 'jdk-11.0.8+10_openj9-0.21.0', 'jdk-24+20-ea-beta'
RELEASE_NAME_PATTERN = re.compile(
    r"^jdk-?(?P<version>[0-9]+(?:\.[0-9]+)*(?:\+[0-9]+(?:\.[0-9]+)*)?)"
)


class AdoptiumPackage(BaseModel):
    """Archive of a binary in the release index."""

    model_config = ConfigDict(extra="ignore")

    name: str
    link: str


class AdoptiumBinary(BaseModel):
    """One platform/architecture build of a release."""

    model_config = ConfigDict(extra="ignore")

    architecture: str
    os: str
    jvm_impl: str
    image_type: str = "jdk"
    package: AdoptiumPackage | None = None


class AdoptiumRelease(BaseModel):
    """A release and all of its binaries."""

    model_config = ConfigDict(extra="ignore")

    release_name: str
    binaries: list[AdoptiumBinary] = []

    @property
    def version(self) -> str | None:
        """Version encoded in the release name, e.g. '11.0.8+10'."""
        match = RELEASE_NAME_PATTERN.match(self.release_name)
        return match.group("version") if match else None


_RELEASES = TypeAdapter(list[AdoptiumRelease])


def version_matches(requested: str, candidate: str) -> bool:
    """Check whether a release version satisfies a requested version.

    A request with a build part ('11.0.8+10') must match exactly; one
    without ('11.0.8') matches any build of that version.
    """
    if "+" in requested:
        return candidate == requested
    return split_build(candidate)[0] == requested


def _to_descriptor(
    release: AdoptiumRelease, binary: AdoptiumBinary
) -> ReleaseDescriptor | None:
    version = release.version
    if version is None or binary.package is None:
        return None
    return ReleaseDescriptor(
        architecture=binary.architecture,
        platform=binary.os,
        implementation=binary.jvm_impl,
        version=version,
        file_name=binary.package.name,
        link=binary.package.link,
    )


class ReleaseMetadataCache:
    """Memoizing client for the release index.

    All reads and writes of the in-memory map happen under one lock that
    is private to this cache. Network queries run outside of it.
    """

    def __init__(
        self,
        client: httpx.Client,
        api_url: str,
        cache_file: Path | None = None,
        page_size: int = 20,
        max_pages: int = 10,
        timeout: float | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            client: HTTPX client used for release index queries.
            api_url: Base URL of the release index API.
            cache_file: JSON file to persist the cache in (memory only if None).
            page_size: Releases requested per page.
            max_pages: Maximum pages scanned for one lookup.
            timeout: Per-request timeout in seconds (client default if None).
        """
        self._client = client
        self._api_url = api_url.rstrip("/")
        self._cache_file = cache_file
        self._page_size = page_size
        self._max_pages = max_pages
        self._timeout = timeout
        self._lock = threading.Lock()
        self._releases: dict[ReleaseCacheKey, ReleaseDescriptor] = {}
        self._load()

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.Client
    ) -> ReleaseMetadataCache:
        """Create a cache configured from application settings."""
        return cls(
            client,
            settings.adoptium_api_url,
            cache_file=settings.cache_dir / CACHE_FILE_NAME,
            page_size=settings.release_page_size,
            max_pages=settings.release_max_pages,
            timeout=settings.metadata_timeout,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._releases)

    def get(self, key: ReleaseCacheKey) -> ReleaseDescriptor | None:
        """Return the cached release for a key, if any."""
        with self._lock:
            return self._releases.get(key)

    def insert(
        self, release: ReleaseDescriptor, key: ReleaseCacheKey | None = None
    ) -> ReleaseDescriptor:
        """Insert a release, keeping whichever build is newer.

        Args:
            release: Release to cache.
            key: Cache key (defaults to the release's own key).

        Returns:
            The release now cached under the key.
        """
        key = key or release.cache_key
        with self._lock:
            stored = self._reconcile(self._releases, key, release)
            if stored is release:
                self._save()
            return stored

    def lookup(
        self,
        arch: str,
        platform: str,
        implementation: str,
        version: str,
        release_type: ReleaseType = ReleaseType.GA,
    ) -> ReleaseDescriptor:
        """Find the release matching a concrete version.

        Args:
            arch: Architecture (e.g., 'x64').
            platform: Platform (e.g., 'linux').
            implementation: JVM implementation (e.g., 'hotspot').
            version: Version such as '11.0.8+10' or '11.0.8'.
            release_type: Release channel listing the version.

        Returns:
            The matching ReleaseDescriptor.

        Raises:
            ReleaseNotFoundError: If no release matches.
            FetchError: If the release index cannot be queried.
        """
        key = ReleaseCacheKey(arch, platform, implementation, version)
        cached = self.get(key)
        if cached is not None:
            logger.debug("Release metadata cache hit: %s", key)
            return cached

        logger.info("Release metadata cache miss: %s", key)
        major = get_major_version(version)

        for releases in self._iter_pages(
            major, release_type, arch, platform, implementation
        ):
            best: ReleaseDescriptor | None = None
            for release in releases:
                if release.version is None or not version_matches(
                    version, release.version
                ):
                    continue
                for binary in release.binaries:
                    if (
                        binary.os != platform
                        or binary.architecture != arch
                        or binary.jvm_impl != implementation
                    ):
                        continue
                    candidate = _to_descriptor(release, binary)
                    if candidate is None:
                        continue
                    if best is None or compare_release(
                        candidate.version, best.version
                    ) > 0:
                        best = candidate
            if best is not None:
                return self.insert(best, key)

        raise ReleaseNotFoundError(arch, platform, implementation, version)

    def lookup_latest(
        self,
        arch: str,
        platform: str,
        implementation: str,
        major: int,
        release_type: ReleaseType = ReleaseType.GA,
    ) -> ReleaseDescriptor:
        """Find the newest release of a feature line.

        The answer changes as new builds ship, so it is not memoized under
        the alias; the concrete release is cached under its own version.

        Raises:
            ReleaseNotFoundError: If the feature line has no matching binary.
            FetchError: If the release index cannot be queried.
        """
        for releases in self._iter_pages(
            major, release_type, arch, platform, implementation
        ):
            for release in releases:
                for binary in release.binaries:
                    if (
                        binary.os == platform
                        and binary.architecture == arch
                        and binary.jvm_impl == implementation
                    ):
                        descriptor = _to_descriptor(release, binary)
                        if descriptor is not None:
                            logger.info(
                                "Latest %s release of Java %d: %s",
                                release_type.value,
                                major,
                                descriptor.version,
                            )
                            return self.insert(descriptor)

        raise ReleaseNotFoundError(
            arch, platform, implementation, f"{major} ({release_type.value})"
        )

    def resolve(
        self, query: VersionQuery, arch: str, platform: str, implementation: str
    ) -> ReleaseDescriptor:
        """Look up the release a VersionQuery refers to."""
        if query.version is None:
            return self.lookup_latest(
                arch, platform, implementation, query.major, query.release_type
            )
        return self.lookup(
            arch, platform, implementation, query.version, query.release_type
        )

    def refresh(self, majors: list[int]) -> int:
        """Rebuild the whole cache from the release index.

        Every binary of every release of the given feature lines is cached
        under its full version and under its base version, where the newest
        build wins.

        Args:
            majors: Feature releases to fetch (e.g., [11, 17, 21]).

        Returns:
            Number of cache entries after the rebuild.
        """
        releases: dict[ReleaseCacheKey, ReleaseDescriptor] = {}

        for major in majors:
            logger.info("Refreshing release metadata for Java %d", major)
            for page in self._iter_pages(major, ReleaseType.GA):
                for release in page:
                    for binary in release.binaries:
                        if binary.image_type != "jdk" or binary.jvm_impl == "testimage":
                            continue
                        descriptor = _to_descriptor(release, binary)
                        if descriptor is None:
                            continue
                        base = split_build(descriptor.version)[0]
                        self._reconcile(releases, descriptor.cache_key, descriptor)
                        self._reconcile(
                            releases,
                            descriptor.cache_key._replace(version=base),
                            descriptor,
                        )

        with self._lock:
            self._releases = releases
            self._save()
            logger.info("Release metadata cache rebuilt: %d entries", len(releases))
            return len(releases)

    @staticmethod
    def _reconcile(
        releases: dict[ReleaseCacheKey, ReleaseDescriptor],
        key: ReleaseCacheKey,
        release: ReleaseDescriptor,
    ) -> ReleaseDescriptor:
        existing = releases.get(key)
        if existing is not None and compare_release(release.version, existing.version) <= 0:
            return existing
        releases[key] = release
        return release

    def _iter_pages(
        self,
        major: int,
        release_type: ReleaseType,
        arch: str | None = None,
        platform: str | None = None,
        implementation: str | None = None,
    ) -> Iterator[list[AdoptiumRelease]]:
        url = f"{self._api_url}/v3/assets/feature_releases/{major}/{release_type.value}"
        params: dict[str, str | int] = {
            "image_type": "jdk",
            "page_size": self._page_size,
            "sort_order": "DESC",
        }
        if arch is not None:
            params["architecture"] = arch
        if platform is not None:
            params["os"] = platform
        if implementation is not None:
            params["jvm_impl"] = implementation

        for page in range(self._max_pages):
            params["page"] = page
            logger.info("Metadata query: %s page %d", url, page)
            try:
                content = fetch_bytes(
                    self._client, url, params=params, timeout=self._timeout
                )
            except FetchError as e:
                # The index answers 404 once paging runs past the last release
                if e.status_code == 404:
                    return
                raise

            try:
                releases = _RELEASES.validate_json(content)
            except ValidationError as e:
                raise FetchError(
                    f"Unexpected release index response from {url}: {e}",
                    code="invalid_response",
                ) from e

            if not releases:
                return
            yield releases
            if len(releases) < self._page_size:
                return

    def _load(self) -> None:
        if self._cache_file is None or not self._cache_file.exists():
            return
        try:
            data = json.loads(self._cache_file.read_text(encoding="utf-8"))
            releases = {
                ReleaseCacheKey(*entry["key"]): ReleaseDescriptor.from_dict(
                    entry["release"]
                )
                for entry in data.get("releases", [])
            }
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(
                "Ignoring unreadable metadata cache %s: %s", self._cache_file, e
            )
            return
        self._releases = releases
        logger.info(
            "Loaded %d cached releases from %s", len(releases), self._cache_file
        )

    def _save(self) -> None:
        """Persist the map; caller must hold the lock."""
        if self._cache_file is None:
            return
        data = {
            "releases": [
                {"key": list(key), "release": release.to_dict()}
                for key, release in sorted(self._releases.items())
            ]
        }
        self._cache_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self._cache_file.with_suffix(".json.tmp")
        try:
            tmp_file.write_text(json.dumps(data, indent=1), encoding="utf-8")
            os.replace(tmp_file, self._cache_file)
        except OSError as e:
            logger.error("Failed to write metadata cache %s: %s", self._cache_file, e)
            tmp_file.unlink(missing_ok=True)


__all__ = [
    "AdoptiumBinary",
    "AdoptiumPackage",
    "AdoptiumRelease",
    "CACHE_FILE_NAME",
    "RELEASE_NAME_PATTERN",
    "ReleaseMetadataCache",
    "version_matches",
]
