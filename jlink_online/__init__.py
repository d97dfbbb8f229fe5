"""jlink online - custom Java runtime images on demand.

This package resolves vendor runtime releases, caches their archives,
fetches Maven Central dependencies and drives jlink to produce trimmed
runtime images for any supported platform and architecture.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
