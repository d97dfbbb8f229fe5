"""Shared type definitions for jlink_online.

This module contains enums, dataclasses and type aliases shared across
subpackages to avoid circular imports.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from jlink_online.errors import InvalidCoordinateError

COORDINATE_PATTERN = re.compile(r"^[\w.\-]+:[\w.\-]+:[\w.\-]+$")


class Platform(str, Enum):
    """Operating systems a runtime can be built for."""

    LINUX = "linux"
    WINDOWS = "windows"
    MAC = "mac"
    SOLARIS = "solaris"
    AIX = "aix"


class Architecture(str, Enum):
    """CPU architectures a runtime can be built for."""

    X64 = "x64"
    X32 = "x32"
    PPC64 = "ppc64"
    S390X = "s390x"
    PPC64LE = "ppc64le"
    AARCH64 = "aarch64"
    ARM = "arm"


class Implementation(str, Enum):
    """JVM implementation variants."""

    HOTSPOT = "hotspot"
    OPENJ9 = "openj9"


class Endian(str, Enum):
    """Byte order of the linked image."""

    LITTLE = "little"
    BIG = "big"


class ReleaseType(str, Enum):
    """Release channel queried from the release index."""

    GA = "ga"
    EA = "ea"


class ReleaseCacheKey(NamedTuple):
    """Identity of a release in the metadata cache."""

    architecture: str
    platform: str
    implementation: str
    version: str

    def __str__(self) -> str:
        return "_".join(self)


@dataclass(frozen=True)
class ReleaseDescriptor:
    """One distributable runtime build.

    Attributes:
        architecture: Release index architecture name (e.g., 'x64').
        platform: Release index platform name (e.g., 'linux').
        implementation: JVM implementation ('hotspot' or 'openj9').
        version: Dotted version with build (e.g., '11.0.8+10').
        file_name: Archive file name, also the canonical output name.
        link: Download URL of the archive.
    """

    architecture: str
    platform: str
    implementation: str
    version: str
    file_name: str = field(compare=False)
    link: str = field(compare=False)

    @property
    def cache_key(self) -> ReleaseCacheKey:
        """Return the metadata cache key for this release."""
        return ReleaseCacheKey(
            self.architecture, self.platform, self.implementation, self.version
        )

    def to_dict(self) -> dict[str, str]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> ReleaseDescriptor:
        """Create a descriptor from :meth:`to_dict` output."""
        return cls(
            architecture=data["architecture"],
            platform=data["platform"],
            implementation=data["implementation"],
            version=data["version"],
            file_name=data["file_name"],
            link=data["link"],
        )


@dataclass(frozen=True, order=True)
class ArtifactCoordinate:
    """A Maven group:artifact:version coordinate."""

    group: str
    artifact: str
    version: str

    @classmethod
    def parse(cls, value: str) -> ArtifactCoordinate:
        """Parse a 'group:artifact:version' string.

        Args:
            value: Coordinate in G:A:V form.

        Returns:
            Parsed coordinate.

        Raises:
            InvalidCoordinateError: If the value is not a G:A:V triple.
        """
        if not COORDINATE_PATTERN.match(value):
            raise InvalidCoordinateError(f"Invalid maven coordinates: {value}")
        group, artifact, version = value.split(":")
        return cls(group, artifact, version)

    @property
    def base_path(self) -> str:
        """Repository path of the directory holding this artifact."""
        return f"{self.group.replace('.', '/')}/{self.artifact}/{self.version}"

    @property
    def jar_name(self) -> str:
        return f"{self.artifact}-{self.version}.jar"

    @property
    def pom_name(self) -> str:
        return f"{self.artifact}-{self.version}.pom"

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}:{self.version}"


@dataclass(frozen=True)
class LocalRuntimeHandle:
    """An extracted, ready-to-use runtime on local disk."""

    path: Path
    descriptor: ReleaseDescriptor


@dataclass(frozen=True)
class VersionQuery:
    """A resolved version token.

    Attributes:
        token: The token as supplied by the caller.
        major: Feature release number.
        version: Concrete version, or None for "latest of ``major``".
        release_type: Release channel to query.
    """

    token: str
    major: int
    version: str | None = None
    release_type: ReleaseType = ReleaseType.GA

    @property
    def is_latest(self) -> bool:
        return self.version is None


__all__ = [
    "Architecture",
    "ArtifactCoordinate",
    "COORDINATE_PATTERN",
    "Endian",
    "Implementation",
    "LocalRuntimeHandle",
    "Platform",
    "ReleaseCacheKey",
    "ReleaseDescriptor",
    "ReleaseType",
    "VersionQuery",
]
