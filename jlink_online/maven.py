"""Maven Central dependency resolution.

This module handles:
- Mapping group:artifact:version coordinates to repository URLs
- Downloading artifact jars and their POMs
- Walking non-test dependencies transitively, once per coordinate
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING
from xml.etree.ElementTree import Element, ParseError

import httpx
from defusedxml import DefusedXmlException
from defusedxml.ElementTree import fromstring

from jlink_online.errors import (
    CyclicDependencyError,
    FetchError,
    InvalidCoordinateError,
)
from jlink_online.fetch import download_file, fetch_bytes
from jlink_online.types import ArtifactCoordinate

if TYPE_CHECKING:
    from jlink_online.config import Settings

logger = logging.getLogger(__name__)

MAVEN_CENTRAL_BASE = "https://repo1.maven.org/maven2"

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass
class PomDependency:
    """A dependency declared in a POM."""

    group: str
    artifact: str
    version: str | None
    scope: str | None = None

    def coordinate(self) -> ArtifactCoordinate:
        """Return the dependency as a coordinate.

        Raises:
            InvalidCoordinateError: If the dependency has no usable version.
        """
        if not self.version:
            raise InvalidCoordinateError(
                f"Dependency {self.group}:{self.artifact} declares no version"
            )
        return ArtifactCoordinate.parse(f"{self.group}:{self.artifact}:{self.version}")


def _local_name(element: Element) -> str:
    # POMs are usually namespaced: '{http://maven.apache.org/POM/4.0.0}artifactId'
    return element.tag.rsplit("}", 1)[-1]


def _child(element: Element | None, name: str) -> Element | None:
    if element is None:
        return None
    for child in element:
        if _local_name(child) == name:
            return child
    return None


def _child_text(element: Element | None, name: str) -> str | None:
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def parse_pom(content: bytes) -> list[PomDependency]:
    """Parse the direct dependency list of a POM.

    Only ``project/dependencies/dependency`` entries are read; managed
    dependencies and plugins are ignored. ``${...}`` placeholders are
    substituted from the project coordinates and ``<properties>``.

    Args:
        content: Raw POM document.

    Returns:
        Declared dependencies in document order.

    Raises:
        FetchError: If the document is not a well-formed POM.
    """
    try:
        project = fromstring(content)
    except (ParseError, DefusedXmlException) as e:
        raise FetchError(f"Invalid POM: {e}", code="invalid_response") from e

    parent = _child(project, "parent")
    properties: dict[str, str] = {}
    version = _child_text(project, "version") or _child_text(parent, "version")
    group = _child_text(project, "groupId") or _child_text(parent, "groupId")
    if version:
        properties.update({"project.version": version, "pom.version": version})
    if group:
        properties.update({"project.groupId": group, "pom.groupId": group})

    props = _child(project, "properties")
    if props is not None:
        for prop in props:
            if prop.text is not None:
                properties[_local_name(prop)] = prop.text.strip()

    def substitute(value: str | None) -> str | None:
        if value is None:
            return None
        return PLACEHOLDER_PATTERN.sub(
            lambda m: properties.get(m.group(1), m.group(0)), value
        )

    dependencies: list[PomDependency] = []
    declared = _child(project, "dependencies")
    if declared is None:
        return dependencies

    for dep in declared:
        if _local_name(dep) != "dependency":
            continue
        dependencies.append(
            PomDependency(
                group=substitute(_child_text(dep, "groupId")) or "",
                artifact=substitute(_child_text(dep, "artifactId")) or "",
                version=substitute(_child_text(dep, "version")),
                scope=_child_text(dep, "scope"),
            )
        )
    return dependencies


class DependencyResolver:
    """Fetch artifacts and their transitive dependencies into a directory."""

    def __init__(
        self,
        client: httpx.Client,
        base_url: str = MAVEN_CENTRAL_BASE,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.Client
    ) -> DependencyResolver:
        """Create a resolver configured from application settings."""
        return cls(
            client,
            base_url=settings.maven_central_url,
            timeout=settings.maven_timeout,
        )

    def artifact_url(self, coordinate: ArtifactCoordinate, file_name: str) -> str:
        """Return the repository URL of a file belonging to a coordinate."""
        return f"{self._base_url}/{coordinate.base_path}/{file_name}"

    def resolve_all(
        self,
        output_dir: Path,
        coordinates: Iterable[str | ArtifactCoordinate],
    ) -> list[ArtifactCoordinate]:
        """Download artifacts and their non-test dependencies.

        Artifacts whose jar already exists in output_dir are skipped, so
        calling this again with the same arguments fetches nothing.

        Args:
            output_dir: Directory receiving the jars.
            coordinates: Coordinates as 'g:a:v' strings or parsed objects.

        Returns:
            Coordinates downloaded by this call, in download order.

        Raises:
            InvalidCoordinateError: If a coordinate is malformed.
            CyclicDependencyError: If an artifact depends on itself.
            FetchError: If a jar or POM cannot be fetched.
        """
        parsed = [
            c if isinstance(c, ArtifactCoordinate) else ArtifactCoordinate.parse(c)
            for c in coordinates
        ]
        output_dir.mkdir(parents=True, exist_ok=True)

        resolved: set[ArtifactCoordinate] = set()
        fetched: list[ArtifactCoordinate] = []
        for coordinate in parsed:
            self._resolve(output_dir, coordinate, (), resolved, fetched)

        if fetched:
            logger.info("Fetched %d Maven artifact(s) into %s", len(fetched), output_dir)
        return fetched

    def _resolve(
        self,
        output_dir: Path,
        coordinate: ArtifactCoordinate,
        ancestors: tuple[ArtifactCoordinate, ...],
        resolved: set[ArtifactCoordinate],
        fetched: list[ArtifactCoordinate],
    ) -> None:
        if coordinate in ancestors:
            raise CyclicDependencyError([str(c) for c in (*ancestors, coordinate)])
        if coordinate in resolved:
            return
        resolved.add(coordinate)

        jar_path = output_dir / coordinate.jar_name
        if jar_path.exists():
            logger.debug("Artifact already present: %s", coordinate)
            return

        logger.info("Downloading Maven Central artifact: %s", coordinate)
        part_path = jar_path.with_name(jar_path.name + ".part")
        download_file(
            self._client,
            self.artifact_url(coordinate, coordinate.jar_name),
            part_path,
            timeout=self._timeout,
        )
        fetched.append(coordinate)

        # The jar only takes its final name once its dependencies are in place
        try:
            pom = fetch_bytes(
                self._client,
                self.artifact_url(coordinate, coordinate.pom_name),
                timeout=self._timeout,
            )
            for dependency in parse_pom(pom):
                if dependency.scope == "test":
                    continue
                self._resolve(
                    output_dir,
                    dependency.coordinate(),
                    (*ancestors, coordinate),
                    resolved,
                    fetched,
                )
        except Exception:
            part_path.unlink(missing_ok=True)
            raise

        os.replace(part_path, jar_path)


__all__ = [
    "DependencyResolver",
    "MAVEN_CENTRAL_BASE",
    "PomDependency",
    "parse_pom",
]
