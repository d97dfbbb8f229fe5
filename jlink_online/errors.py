"""Error types for jlink_online.

Every error carries a stable ``code`` that frontends surface to clients
as a machine-checkable reason. Messages are for humans and logs.
"""

from __future__ import annotations


class JlinkError(Exception):
    """Base class for all pipeline errors."""

    default_code = "jlink_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        """Initialize JlinkError.

        Args:
            message: Error description.
            code: Error code for structured error handling.
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class InvalidVersionError(JlinkError):
    """Raised when a version token is malformed or too old."""

    default_code = "invalid_version"


class InvalidCoordinateError(JlinkError):
    """Raised for malformed group:artifact:version coordinates."""

    default_code = "invalid_coordinate"


class ReleaseNotFoundError(JlinkError):
    """Raised when the release index has no matching runtime."""

    default_code = "release_not_found"

    def __init__(
        self,
        arch: str,
        platform: str,
        implementation: str,
        version: str,
        code: str | None = None,
    ) -> None:
        super().__init__(
            f"No release found: {version} {implementation} {platform}/{arch}",
            code,
        )
        self.arch = arch
        self.platform = platform
        self.implementation = implementation
        self.version = version


class FetchError(JlinkError):
    """Raised when a download or upstream query fails."""

    default_code = "fetch_failed"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, code)
        self.status_code = status_code


class ExtractionError(JlinkError):
    """Raised when a runtime archive cannot be extracted."""

    default_code = "extraction_failed"


class LinkError(JlinkError):
    """Raised when jlink cannot be launched or exits non-zero."""

    default_code = "link_failed"

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        output: str = "",
        code: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.exit_code = exit_code
        self.output = output


class ArchiveError(JlinkError):
    """Raised when the linked runtime cannot be packaged."""

    default_code = "archive_failed"


class CyclicDependencyError(JlinkError):
    """Raised when a Maven artifact depends on itself transitively."""

    default_code = "cyclic_dependency"

    def __init__(self, chain: list[str], code: str | None = None) -> None:
        super().__init__(f"Cyclic dependency: {' -> '.join(chain)}", code)
        self.chain = chain


__all__ = [
    "ArchiveError",
    "CyclicDependencyError",
    "ExtractionError",
    "FetchError",
    "InvalidCoordinateError",
    "InvalidVersionError",
    "JlinkError",
    "LinkError",
    "ReleaseNotFoundError",
]
