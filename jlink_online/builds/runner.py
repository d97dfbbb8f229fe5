"""Build runner for executing jlink.

This module handles:
- Composing jlink command lines from build options
- Locating jlink inside the local runtime
- Executing jlink with subprocess and capturing its output
- Enforcing build timeouts
"""

from __future__ import annotations

import logging
import os
import shlex
import stat
import subprocess
from dataclasses import dataclass
from pathlib import Path

from jlink_online.builds.layout import PlatformLayout
from jlink_online.errors import LinkError

logger = logging.getLogger(__name__)

BASE_MODULE = "java.base"


@dataclass
class LinkResult:
    """Result of a jlink execution.

    Attributes:
        exit_code: Process exit code.
        output: Combined stdout and stderr.
        command: The command that was executed.
        output_dir: Directory holding the linked image.
    """

    exit_code: int
    output: str
    command: str
    output_dir: Path


def ensure_base_module(modules: list[str]) -> list[str]:
    """Return the module list with java.base appended if missing."""
    if BASE_MODULE in modules:
        return list(modules)
    return [*modules, BASE_MODULE]


def compose_module_path(
    target_root: Path, target_platform: str, artifacts_dir: Path
) -> str:
    """Compose the --module-path value for a target runtime.

    Args:
        target_root: Root of the extracted target runtime.
        target_platform: Platform the target runtime was built for.
        artifacts_dir: Directory holding resolved Maven artifacts.

    Returns:
        The target's jmods directory and artifacts_dir joined with the
        host's path list separator.

    Raises:
        LinkError: If the target runtime has no jmods directory.
    """
    jmods = PlatformLayout.for_platform(target_platform).jmods_dir(target_root)
    if not jmods.is_dir():
        raise LinkError(
            f"Target runtime has no module directory: {jmods}",
            code="missing_jmods",
        )
    return os.pathsep.join([str(jmods), str(artifacts_dir)])


def locate_jlink(local_root: Path, local_platform: str) -> Path:
    """Find jlink in the local runtime and make sure it is executable.

    Args:
        local_root: Root of the extracted local runtime.
        local_platform: Platform of the host running jlink.

    Returns:
        Path to the jlink executable.

    Raises:
        LinkError: If jlink is missing or cannot be made executable.
    """
    jlink = PlatformLayout.for_platform(local_platform).executable(local_root, "jlink")
    try:
        mode = jlink.stat().st_mode
        jlink.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as e:
        raise LinkError(
            f"jlink not usable at {jlink}: {e}",
            code="execution_error",
        ) from e
    return jlink


def compose_jlink_command(
    jlink: Path,
    module_path: str,
    modules: list[str],
    output_dir: Path,
    endian: str = "little",
    compress: int = 0,
    strip_debug: bool = True,
) -> list[str]:
    """Compose the jlink command.

    Args:
        jlink: Path to the jlink executable.
        module_path: Value for --module-path.
        modules: Modules to add (java.base is added if missing).
        output_dir: Directory for the linked image (must not exist yet).
        endian: Byte order of the target ('little' or 'big').
        compress: Compression level.
        strip_debug: Whether to strip debug information.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    cmd = [
        str(jlink),
        f"--compress={compress}",
        "--no-header-files",
        "--no-man-pages",
    ]
    if strip_debug:
        cmd.append("--strip-debug")

    cmd.extend(
        [
            "--endian",
            endian,
            "--module-path",
            module_path,
            "--add-modules",
            ",".join(ensure_base_module(modules)),
            "--output",
            str(output_dir),
        ]
    )
    return cmd


def run_jlink(
    cmd: list[str],
    output_dir: Path,
    timeout: int | None = None,
    env_override: dict[str, str] | None = None,
) -> LinkResult:
    """Execute jlink.

    Args:
        cmd: Command from compose_jlink_command().
        output_dir: Directory the command writes the image to.
        timeout: Timeout in seconds (None = no timeout).
        env_override: Optional environment variable overrides.

    Returns:
        LinkResult of a successful run.

    Raises:
        LinkError: If jlink cannot be started, times out or exits non-zero.
    """
    cmd_str = shlex.join(cmd)
    logger.info("Executing jlink: %s", cmd_str)

    env: dict[str, str] | None = None
    if env_override:
        env = dict(os.environ)
        env.update(env_override)

    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
            env=env,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        error_message = f"jlink timed out after {timeout} seconds"
        logger.error(error_message)
        output = e.output if isinstance(e.output, str) else ""
        raise LinkError(error_message, exit_code=-1, output=output, code="link_timeout") from e
    except OSError as e:
        error_message = f"Failed to execute jlink: {e}"
        logger.error(error_message)
        raise LinkError(error_message, code="execution_error") from e

    if result.returncode != 0:
        error_message = f"jlink failed with exit code {result.returncode}"
        logger.error("%s:\n%s", error_message, result.stdout)
        raise LinkError(
            error_message,
            exit_code=result.returncode,
            output=result.stdout,
        )

    return LinkResult(
        exit_code=result.returncode,
        output=result.stdout,
        command=cmd_str,
        output_dir=output_dir,
    )


__all__ = [
    "BASE_MODULE",
    "LinkResult",
    "compose_jlink_command",
    "compose_module_path",
    "ensure_base_module",
    "locate_jlink",
    "run_jlink",
]
