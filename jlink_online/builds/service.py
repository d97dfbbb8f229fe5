"""Runtime build service.

This module provides the high-level build API:
- JlinkPipeline.build(): resolve, materialize, link and archive a runtime
- Request-scoped workspaces that are removed on every exit path
- Ownership of the HTTP clients and caches shared between requests
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from jlink_online import __version__
from jlink_online.builds.archive import archive_image
from jlink_online.builds.runner import (
    compose_jlink_command,
    compose_module_path,
    locate_jlink,
    run_jlink,
)
from jlink_online.config import get_settings
from jlink_online.errors import JlinkError
from jlink_online.maven import DependencyResolver
from jlink_online.runtimes.metadata import ReleaseMetadataCache
from jlink_online.runtimes.store import RuntimeStore
from jlink_online.types import ReleaseDescriptor
from jlink_online.versions import resolve_version

if TYPE_CHECKING:
    from jlink_online.builds.schema import RuntimeRequest
    from jlink_online.config import Settings

logger = logging.getLogger(__name__)

USER_AGENT = f"jlink-online/{__version__}"


@dataclass(frozen=True)
class BuildWorkspace:
    """Request-scoped directory tree.

    Attributes:
        root: Temporary directory owned by one request.
        artifacts_dir: Resolved Maven artifacts.
        output_dir: jlink output (created by jlink itself).
        archive_path: Where the packaged runtime is written.
    """

    root: Path
    artifacts_dir: Path
    output_dir: Path
    archive_path: Path


@contextmanager
def build_workspace(
    file_name: str, tmp_dir: Path | None = None
) -> Iterator[BuildWorkspace]:
    """Create a workspace that is removed when the block exits.

    Args:
        file_name: Archive file name of the target release.
        tmp_dir: Parent directory (system default if None).

    Yields:
        The workspace.
    """
    if tmp_dir is not None:
        tmp_dir.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory(dir=tmp_dir, prefix="jlink-") as tmp:
        root = Path(tmp)
        workspace = BuildWorkspace(
            root=root,
            artifacts_dir=root / "maven",
            output_dir=root / "output" / "jdk",
            archive_path=root / "archive" / file_name,
        )
        workspace.artifacts_dir.mkdir()
        workspace.output_dir.parent.mkdir()
        logger.debug("Created build workspace %s", root)
        yield workspace
    logger.debug("Removed build workspace %s", root)


@dataclass
class BuildOutput:
    """Result of a successful build.

    Attributes:
        file_name: Download file name (the target release's archive name).
        content: Archive bytes.
        target: Release whose modules were linked.
        local: Release whose jlink ran.
    """

    file_name: str
    content: bytes
    target: ReleaseDescriptor
    local: ReleaseDescriptor


class JlinkPipeline:
    """Builds custom runtimes from release index runtimes.

    One pipeline is shared by all requests; its caches carry their own
    synchronization.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        metadata: ReleaseMetadataCache | None = None,
        store: RuntimeStore | None = None,
        resolver: DependencyResolver | None = None,
    ) -> None:
        """Initialize the pipeline.

        Components not passed in are created from settings, along with
        the HTTP clients they use.

        Args:
            settings: Application settings (loaded from env if None).
            metadata: Release metadata cache.
            store: Runtime store.
            resolver: Maven dependency resolver.
        """
        self.settings = settings or get_settings()
        self._clients: list[httpx.Client] = []

        if metadata is None:
            metadata = ReleaseMetadataCache.from_settings(
                self.settings, self._client(self.settings.metadata_timeout)
            )
        if store is None:
            store = RuntimeStore.from_settings(
                self.settings, self._client(self.settings.download_timeout)
            )
        if resolver is None:
            resolver = DependencyResolver.from_settings(
                self.settings, self._client(self.settings.maven_timeout)
            )

        self.metadata = metadata
        self.store = store
        self.resolver = resolver

    def _client(self, timeout: float) -> httpx.Client:
        client = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )
        self._clients.append(client)
        return client

    def close(self) -> None:
        """Close the HTTP clients owned by the pipeline."""
        for client in self._clients:
            client.close()
        self._clients.clear()

    def __enter__(self) -> JlinkPipeline:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def resolve_releases(
        self, request: RuntimeRequest
    ) -> tuple[ReleaseDescriptor, ReleaseDescriptor]:
        """Look up the target release and a local release that can run jlink.

        The local release is looked up with the target's concrete version,
        so both come from the same build even when an alias was requested.

        Returns:
            (target, local) descriptors.

        Raises:
            InvalidVersionError: If the version token is invalid.
            ReleaseNotFoundError: If either release is missing.
            FetchError: If the release index cannot be queried.
        """
        query = resolve_version(request.version, self.settings)

        target = self.metadata.resolve(
            query, request.arch, request.platform, request.implementation
        )
        local = self.metadata.lookup(
            self.settings.local_arch,
            self.settings.local_platform,
            request.implementation,
            target.version,
            release_type=query.release_type,
        )
        logger.info("Target runtime: %s, local runtime: %s", target.file_name, local.file_name)
        return target, local

    def build(self, request: RuntimeRequest) -> BuildOutput:
        """Build a custom runtime.

        Args:
            request: Validated build request.

        Returns:
            BuildOutput holding the archive.

        Raises:
            JlinkError: Any pipeline failure; ``code`` identifies the step.
            TimeoutError: If the runtime store lock is not acquired in time.
        """
        if request.artifacts and not self.settings.maven_central:
            raise JlinkError(
                "Maven Central integration is disabled",
                code="maven_central_disabled",
            )

        target, local = self.resolve_releases(request)

        local_runtime = self.store.materialize(local)
        target_runtime = self.store.materialize(target)

        with build_workspace(target.file_name, self.settings.tmp_dir) as workspace:
            if request.artifacts:
                self.resolver.resolve_all(workspace.artifacts_dir, request.artifacts)

            module_path = compose_module_path(
                target_runtime.path, target.platform, workspace.artifacts_dir
            )
            jlink = locate_jlink(local_runtime.path, local.platform)
            cmd = compose_jlink_command(
                jlink,
                module_path,
                request.modules,
                workspace.output_dir,
                endian=request.endian or "little",
                compress=self.settings.jlink_compress,
                strip_debug=self.settings.strip_debug,
            )
            result = run_jlink(
                cmd, workspace.output_dir, timeout=self.settings.build_timeout
            )
            content = archive_image(result.output_dir, workspace.archive_path)

        logger.info(
            "Built %s with modules %s (%d bytes)",
            target.file_name,
            ",".join(request.modules),
            len(content),
        )
        return BuildOutput(
            file_name=target.file_name,
            content=content,
            target=target,
            local=local,
        )


__all__ = [
    "BuildOutput",
    "BuildWorkspace",
    "JlinkPipeline",
    "build_workspace",
]
