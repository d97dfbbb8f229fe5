"""Router modules for FastAPI web API."""

from web.routers import config, health, runtimes

__all__ = ["config", "health", "runtimes"]
