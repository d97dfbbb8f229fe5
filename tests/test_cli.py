"""Smoke tests for the CLI.

These tests verify CLI commands with the pipeline mocked, so no
network access or jlink binary is required.
"""

import json
import os
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from jlink_online import __version__
from jlink_online.builds.service import BuildOutput
from jlink_online.cli import app
from jlink_online.errors import ReleaseNotFoundError
from jlink_online.types import ReleaseDescriptor

runner = CliRunner()

TARGET = ReleaseDescriptor(
    architecture="x64",
    platform="linux",
    implementation="hotspot",
    version="11.0.8+10",
    file_name="OpenJDK11U-jdk_x64_linux_hotspot_11.0.8_10.tar.gz",
    link="https://example.com/linux.tar.gz",
)


def mock_pipeline_class():
    """Patch JlinkPipeline so the context manager yields a mock."""
    pipeline = MagicMock()
    pipeline_class = MagicMock()
    pipeline_class.return_value.__enter__.return_value = pipeline
    return pipeline_class, pipeline


class TestCLIHelp:
    """Test CLI help and version commands."""

    def test_help_returns_zero(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "jlink online" in result.stdout

    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "Usage:" in result.stdout


class TestCLIConfig:
    """Test CLI config command."""

    def test_config_command(self) -> None:
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "Runtime cache" in result.stdout
        assert "Version aliases" in result.stdout

    def test_config_json(self) -> None:
        result = runner.invoke(app, ["config", "--json"])
        assert result.exit_code == 0
        assert '"adoptium_api_url"' in result.stdout


class TestCLIVersion:
    """Test CLI version command."""

    def test_concrete_version(self) -> None:
        result = runner.invoke(app, ["version", "11.0.8+10", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["major"] == 11
        assert data["version"] == "11.0.8+10"

    def test_alias(self) -> None:
        with patch.dict(os.environ, {"JLINK_LTS_VERSION": "17"}):
            result = runner.invoke(app, ["version", "lts", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["major"] == 17
        assert data["version"] is None

    def test_invalid_version(self) -> None:
        result = runner.invoke(app, ["version", "9a.1"])
        assert result.exit_code == 1
        assert "Invalid Java version" in result.stdout


class TestCLIReleases:
    """Test CLI releases commands."""

    def test_lookup(self) -> None:
        pipeline_class, pipeline = mock_pipeline_class()
        pipeline.metadata.resolve.return_value = TARGET

        with patch("jlink_online.builds.service.JlinkPipeline", pipeline_class):
            result = runner.invoke(app, ["releases", "lookup", "x64", "linux", "11.0.8+10", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["file_name"] == TARGET.file_name

    def test_lookup_not_found(self) -> None:
        pipeline_class, pipeline = mock_pipeline_class()
        pipeline.metadata.resolve.side_effect = ReleaseNotFoundError("x64", "linux", "hotspot", "99")

        with patch("jlink_online.builds.service.JlinkPipeline", pipeline_class):
            result = runner.invoke(app, ["releases", "lookup", "x64", "linux", "99"])

        assert result.exit_code == 1
        assert "No release found" in result.stdout

    def test_refresh(self) -> None:
        pipeline_class, pipeline = mock_pipeline_class()
        pipeline.metadata.refresh.return_value = 42

        with patch("jlink_online.builds.service.JlinkPipeline", pipeline_class):
            result = runner.invoke(app, ["releases", "refresh", "-m", "11", "-m", "17"])

        assert result.exit_code == 0
        pipeline.metadata.refresh.assert_called_once_with([11, 17])
        assert "42" in result.stdout


class TestCLIRuntimes:
    """Test CLI runtimes commands."""

    def test_info(self, tmp_path) -> None:
        (tmp_path / "OpenJDK11U-jdk_x64_linux_hotspot_11.0.8_10").mkdir()

        with patch.dict(os.environ, {"JLINK_CACHE_DIR": str(tmp_path)}):
            result = runner.invoke(app, ["runtimes", "info", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["runtimes"] == ["OpenJDK11U-jdk_x64_linux_hotspot_11.0.8_10"]

    def test_prune(self) -> None:
        pipeline_class, pipeline = mock_pipeline_class()
        pipeline.metadata.resolve.return_value = TARGET
        pipeline.store.prune.return_value = True

        with patch("jlink_online.builds.service.JlinkPipeline", pipeline_class):
            result = runner.invoke(app, ["runtimes", "prune", "x64", "linux", "11.0.8+10"])

        assert result.exit_code == 0
        pipeline.store.prune.assert_called_once_with(TARGET)


class TestCLIBuild:
    """Test CLI build command."""

    def test_build_writes_archive(self, tmp_path) -> None:
        pipeline_class, pipeline = mock_pipeline_class()
        pipeline.build.return_value = BuildOutput(
            file_name=TARGET.file_name, content=b"archive", target=TARGET, local=TARGET
        )
        output = tmp_path / "runtime.tar.gz"

        with patch("jlink_online.builds.service.JlinkPipeline", pipeline_class):
            result = runner.invoke(
                app,
                ["build", "x64", "linux", "11", "-m", "java.sql", "-o", str(output)],
            )

        assert result.exit_code == 0
        assert output.read_bytes() == b"archive"
        request = pipeline.build.call_args.args[0]
        assert request.modules == ["java.sql"]

    def test_build_invalid_arch(self) -> None:
        result = runner.invoke(app, ["build", "sparc", "linux", "11"])
        assert result.exit_code == 1
        assert "Valid architectures" in result.stdout


class TestCLIServe:
    """Test CLI serve command."""

    def test_serve_runs_uvicorn(self) -> None:
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["serve", "--host", "127.0.0.1", "--port", "8080"])

        assert result.exit_code == 0
        _, kwargs = mock_run.call_args
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 8080
