"""Base runtime management module.

This module handles:
- Looking up release metadata for (architecture, platform, implementation, version)
- Caching release metadata in memory and on disk
- Downloading and extracting runtime archives into a shared cache
- Locking so that no two extractions ever interleave
"""

from jlink_online.runtimes.metadata import (
    AdoptiumBinary,
    AdoptiumPackage,
    AdoptiumRelease,
    ReleaseMetadataCache,
    version_matches,
)
from jlink_online.runtimes.store import RuntimeStore, find_runtime_root, store_lock

__all__ = [
    # Metadata module
    "AdoptiumBinary",
    "AdoptiumPackage",
    "AdoptiumRelease",
    "ReleaseMetadataCache",
    "version_matches",
    # Store module
    "RuntimeStore",
    "find_runtime_root",
    "store_lock",
]
