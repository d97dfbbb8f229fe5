"""Configuration settings for jlink_online.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

import platform
import sys
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# sys.platform prefixes mapped to the platform names used by release indexes
_PLATFORM_ALIASES = {
    "darwin": "mac",
    "win32": "windows",
    "cygwin": "windows",
    "linux": "linux",
    "aix": "aix",
    "sunos": "solaris",
}

# platform.machine() values mapped to release index architecture names
_ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "i386": "x32",
    "i686": "x32",
    "x86": "x32",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "armv7l": "arm",
    "ppc64": "ppc64",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


def detect_local_platform() -> str:
    """Return the release index platform name of the running host."""
    for prefix, name in _PLATFORM_ALIASES.items():
        if sys.platform.startswith(prefix):
            return name
    return sys.platform


def detect_local_arch() -> str:
    """Return the release index architecture name of the running host."""
    return _ARCH_ALIASES.get(platform.machine().lower(), "x64")


def _default_cache_dir() -> Path:
    """Return the default runtime cache directory."""
    return Path.home() / ".cache" / "jlink-online" / "runtimes"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the JLINK_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="JLINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    cache_dir: Path = Field(
        default_factory=_default_cache_dir,
        description="Root directory for extracted base runtimes",
    )
    tmp_dir: Path | None = Field(
        default=None,
        description="Directory for request workspaces (uses system default if not set)",
    )

    # Upstreams
    adoptium_api_url: str = Field(
        default="https://api.adoptium.net",
        description="Base URL of the release index API",
    )
    maven_central_url: str = Field(
        default="https://repo1.maven.org/maven2",
        description="Base URL of the Maven repository",
    )
    maven_central: bool = Field(
        default=False,
        description="Allow requests to pull Maven Central artifacts",
    )

    # Host runtime used to execute jlink
    local_platform: str = Field(
        default_factory=detect_local_platform,
        description="Platform of the runtime that executes jlink",
    )
    local_arch: str = Field(
        default_factory=detect_local_arch,
        description="Architecture of the runtime that executes jlink",
    )

    # Version aliases
    lts_version: int = Field(default=21, ge=9, description="Major version for 'lts'")
    ga_version: int = Field(default=23, ge=9, description="Major version for 'ga'")
    ea_version: int = Field(default=24, ge=9, description="Major version for 'ea'")

    # jlink options
    jlink_compress: int = Field(
        default=0,
        ge=0,
        le=2,
        description="jlink --compress level",
    )
    strip_debug: bool = Field(
        default=True,
        description="Pass --strip-debug to jlink",
    )

    # Release index paging
    release_page_size: int = Field(default=20, ge=1, le=50)
    release_max_pages: int = Field(default=10, ge=1)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Timeouts (in seconds)
    metadata_timeout: int = Field(
        default=30,
        ge=1,
        description="Timeout for release index queries",
    )
    download_timeout: int = Field(
        default=3600,
        ge=60,
        description="Timeout for runtime archive downloads",
    )
    maven_timeout: int = Field(
        default=60,
        ge=1,
        description="Timeout for Maven Central downloads",
    )
    build_timeout: int = Field(
        default=600,
        ge=10,
        description="Timeout for a jlink invocation",
    )
    lock_timeout: float | None = Field(
        default=None,
        description="Timeout waiting for the runtime store lock (None = block)",
    )

    # HTTP service
    host: str = Field(default="0.0.0.0", description="Listen address")
    port: int = Field(default=80, ge=1, le=65535, description="Listen port")
    index_redirect_url: str = Field(
        default="https://github.com/AdoptOpenJDK/jlink.online",
        description="Where GET / redirects to",
    )


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = [
    "Settings",
    "detect_local_arch",
    "detect_local_platform",
    "get_settings",
    "print_settings_json",
]
