"""Version token resolution and release ordering.

This module handles:
- Validating version strings such as '11', '13.0.1' or '11.0.8+10'
- Mapping the 'lts', 'ga' and 'ea' aliases to configured feature releases
- Ordering builds of the same version
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from jlink_online.errors import InvalidVersionError
from jlink_online.types import ReleaseType, VersionQuery

if TYPE_CHECKING:
    from jlink_online.config import Settings

# jlink ships with Java 9 and later
MINIMUM_MAJOR_VERSION = 9

VERSION_PATTERN = re.compile(
    r"^[1-9][0-9]*((\.0)*\.[1-9][0-9]*)*(\+[1-9][0-9]*((\.0)*\.[1-9][0-9]*)*)?$"
)

VERSION_ALIASES = ("lts", "ga", "ea")


def get_major_version(version: str) -> int:
    """Return the feature release number of a version string.

    Args:
        version: Version such as '11.0.8+10'.

    Returns:
        The major version (11 for the example above).

    Raises:
        InvalidVersionError: If the major component is not a number.
    """
    major = re.split(r"[.+]", version, maxsplit=1)[0]
    try:
        return int(major)
    except ValueError:
        raise InvalidVersionError(f"Invalid Java version: {version}") from None


def split_build(version: str) -> tuple[str, str]:
    """Split a version into its base and build parts.

    Args:
        version: Version such as '11.0.8+10'.

    Returns:
        Tuple of (base, build); build is '' when absent.
    """
    base, _, build = version.partition("+")
    return base, build


def _build_numbers(version: str) -> list[int]:
    build = version.split("+")[-1]
    numbers: list[int] = []
    for part in build.split("."):
        try:
            numbers.append(int(part))
        except ValueError:
            numbers.append(0)
    return numbers


def compare_release(version1: str, version2: str) -> int:
    """Compare the build numbers of two releases of the same version.

    The part after '+' is compared as a dot-separated sequence of integers,
    left to right, with the shorter sequence padded with zeros. Versions
    without a build part compare on their whole value.

    Args:
        version1: First version (e.g., '11.0.8+10.1').
        version2: Second version (e.g., '11.0.8+10').

    Returns:
        1 if version1 is newer, -1 if older, 0 if identical.
    """
    x1 = _build_numbers(version1)
    x2 = _build_numbers(version2)

    width = max(len(x1), len(x2))
    x1 += [0] * (width - len(x1))
    x2 += [0] * (width - len(x2))

    for y1, y2 in zip(x1, x2):
        if y1 > y2:
            return 1
        if y1 < y2:
            return -1
    return 0


def is_valid_version(version: str) -> bool:
    """Check a concrete version string against the version grammar."""
    return VERSION_PATTERN.match(version) is not None


def resolve_version(token: str, settings: Settings) -> VersionQuery:
    """Turn a version token into a release query.

    Args:
        token: A concrete version or one of 'lts', 'ga', 'ea'.
        settings: Settings holding the alias major versions.

    Returns:
        VersionQuery describing what to look up.

    Raises:
        InvalidVersionError: If the token is malformed or older than Java 9.
    """
    alias = token.strip().lower()
    if alias in VERSION_ALIASES:
        major = {
            "lts": settings.lts_version,
            "ga": settings.ga_version,
            "ea": settings.ea_version,
        }[alias]
        release_type = ReleaseType.EA if alias == "ea" else ReleaseType.GA
        query = VersionQuery(token=token, major=major, release_type=release_type)
    elif is_valid_version(token):
        major = get_major_version(token)
        # Builds of the ea feature line are only listed as early access
        release_type = (
            ReleaseType.EA
            if major == settings.ea_version and major > settings.ga_version
            else ReleaseType.GA
        )
        query = VersionQuery(
            token=token, major=major, version=token, release_type=release_type
        )
    else:
        raise InvalidVersionError(f"Invalid Java version: {token}")

    if query.major < MINIMUM_MAJOR_VERSION:
        raise InvalidVersionError(
            f"Java {query.major} is not supported, jlink requires Java "
            f"{MINIMUM_MAJOR_VERSION} or later"
        )
    return query


__all__ = [
    "MINIMUM_MAJOR_VERSION",
    "VERSION_ALIASES",
    "VERSION_PATTERN",
    "compare_release",
    "get_major_version",
    "is_valid_version",
    "resolve_version",
    "split_build",
]
