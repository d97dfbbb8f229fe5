"""FastAPI web application for jlink online.

This module provides the HTTP API in front of the build pipeline.

All business logic is delegated to core modules in jlink_online/.
"""

from web.app import app, create_app

__all__ = ["app", "create_app"]
