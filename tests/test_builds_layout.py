"""Tests for platform runtime layouts."""

from pathlib import Path

from jlink_online.builds.layout import PlatformLayout


class TestPlatformLayout:
    """Tests for PlatformLayout."""

    def test_for_platform(self):
        assert PlatformLayout.for_platform("mac") is PlatformLayout.MAC
        assert PlatformLayout.for_platform("windows") is PlatformLayout.WINDOWS
        assert PlatformLayout.for_platform("linux") is PlatformLayout.DEFAULT
        assert PlatformLayout.for_platform("aix") is PlatformLayout.DEFAULT

    def test_mac_paths(self):
        root = Path("/rt")
        layout = PlatformLayout.MAC

        assert layout.jmods_dir(root) == Path("/rt/Contents/Home/jmods")
        assert layout.executable(root, "jlink") == Path("/rt/Contents/Home/bin/jlink")

    def test_windows_paths(self):
        root = Path("/rt")
        layout = PlatformLayout.WINDOWS

        assert layout.jmods_dir(root) == Path("/rt/jmods")
        assert layout.executable(root, "jlink") == Path("/rt/bin/jlink.exe")

    def test_default_paths(self):
        root = Path("/rt")
        layout = PlatformLayout.DEFAULT

        assert layout.home_dir(root) == root
        assert layout.executable(root, "java") == Path("/rt/bin/java")
