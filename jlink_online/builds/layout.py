"""Directory layouts of runtimes per platform.

A runtime's module directory and the jlink executable live in different
places depending on the platform the runtime was built for. The target
runtime's layout decides the module path; the local runtime's layout
decides which executable runs.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class PlatformLayout(Enum):
    """Closed set of runtime layouts.

    Each value is (home, executable suffix), where home is the directory
    holding 'bin' and 'jmods' relative to the runtime root.
    """

    MAC = ("Contents/Home", "")
    WINDOWS = ("", ".exe")
    DEFAULT = ("", "")

    def __init__(self, home: str, exe_suffix: str) -> None:
        self.home = home
        self.exe_suffix = exe_suffix

    @classmethod
    def for_platform(cls, platform: str) -> PlatformLayout:
        """Select the layout for a release index platform name."""
        if platform == "mac":
            return cls.MAC
        if platform == "windows":
            return cls.WINDOWS
        return cls.DEFAULT

    def home_dir(self, runtime_root: Path) -> Path:
        return runtime_root / self.home if self.home else runtime_root

    def jmods_dir(self, runtime_root: Path) -> Path:
        """Return the directory holding the runtime's .jmod files."""
        return self.home_dir(runtime_root) / "jmods"

    def executable(self, runtime_root: Path, name: str) -> Path:
        """Return the path of a tool in the runtime's bin directory."""
        return self.home_dir(runtime_root) / "bin" / f"{name}{self.exe_suffix}"


__all__ = ["PlatformLayout"]
