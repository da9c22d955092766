"""Runner for the package manager's install and build commands.

This module handles:
- Composing install/build commands from settings
- Checking that the package manager is on PATH
- Executing commands with subprocess, blocking until they exit
- Optionally capturing stdout/stderr to a log file
- Enforcing command timeouts
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from uistage.errors import (
    COMMAND_FAILED,
    COMMAND_TIMEOUT,
    EXECUTION_ERROR,
    LOG_FILE_ERROR,
    TOOL_NOT_FOUND,
    BuildError,
    EnvironmentError,
    FilesystemError,
)
from uistage.types import CommandResult

if TYPE_CHECKING:
    from uistage.config import Settings

logger = logging.getLogger(__name__)


def compose_install_command(settings: Settings) -> list[str]:
    """Compose the dependency install command.

    Args:
        settings: Effective settings.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    return [settings.package_manager, *settings.install_args]


def compose_build_command(settings: Settings) -> list[str]:
    """Compose the build command."""
    return [settings.package_manager, *settings.build_args]


def ensure_tool_available(name: str) -> str:
    """Check that an executable is available on PATH.

    Args:
        name: Executable name.

    Returns:
        Full path of the executable.

    Raises:
        EnvironmentError: If the executable cannot be found.
    """
    path = shutil.which(name)
    if path is None:
        raise EnvironmentError(
            f"Executable not found on PATH: {name}",
            code=TOOL_NOT_FOUND,
        )
    return path


def _write_log_header(
    log_path: Path, cmd_str: str, cwd: Path, started_at: datetime
) -> None:
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a") as log_file:
            log_file.write(f"# Command: {cmd_str}\n")
            log_file.write(f"# Started: {started_at.isoformat()}\n")
            log_file.write(f"# CWD: {cwd}\n")
            log_file.write("# " + "=" * 70 + "\n\n")
    except OSError as e:
        message = f"Failed to open log file {log_path}: {e}"
        logger.error(message)
        raise FilesystemError(message, code=LOG_FILE_ERROR) from e


def run_command(
    cmd: list[str],
    cwd: Path,
    timeout: int | None = None,
    log_path: Path | None = None,
    env_override: dict[str, str] | None = None,
) -> CommandResult:
    """Execute an external command and wait for it to finish.

    Output goes to the inherited stdout/stderr unless log_path is given,
    in which case it is appended to that file.

    Args:
        cmd: Command and arguments.
        cwd: Working directory for the command.
        timeout: Timeout in seconds (None = no timeout).
        log_path: Optional file to capture output to.
        env_override: Optional environment variable overrides.

    Returns:
        CommandResult for a zero exit.

    Raises:
        BuildError: If the command exits non-zero or times out.
        EnvironmentError: If the command cannot be started.
        FilesystemError: If the log file cannot be created.
    """
    cmd_str = shlex.join(cmd)
    logger.info("Executing: %s", cmd_str)
    logger.debug("Working directory: %s", cwd)

    env: dict[str, str] | None = None
    if env_override:
        env = dict(os.environ)
        env.update(env_override)

    started_at = datetime.now(timezone.utc)

    if log_path is not None:
        _write_log_header(log_path, cmd_str, cwd, started_at)

    try:
        if log_path is not None:
            with log_path.open("a") as log_file:
                result = subprocess.run(
                    cmd,
                    cwd=cwd,
                    stdout=log_file,
                    stderr=subprocess.STDOUT,
                    timeout=timeout,
                    env=env,
                    check=False,
                )
        else:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                timeout=timeout,
                env=env,
                check=False,
            )

    except subprocess.TimeoutExpired as e:
        message = f"Command timed out after {timeout} seconds: {cmd_str}"
        logger.error(message)
        if log_path is not None:
            with log_path.open("a") as log_file:
                log_file.write(f"\n# TIMEOUT after {timeout} seconds\n")
        raise BuildError(message, exit_code=-1, code=COMMAND_TIMEOUT) from e

    except OSError as e:
        message = f"Failed to execute {cmd_str}: {e}"
        logger.error(message)
        raise EnvironmentError(message, code=EXECUTION_ERROR) from e

    finished_at = datetime.now(timezone.utc)
    exit_code = result.returncode

    if log_path is not None:
        with log_path.open("a") as log_file:
            log_file.write(f"\n# Finished: {finished_at.isoformat()}\n")
            log_file.write(f"# Exit code: {exit_code}\n")
            duration = (finished_at - started_at).total_seconds()
            log_file.write(f"# Duration: {duration:.1f}s\n\n")

    if exit_code != 0:
        message = f"Command failed with exit code {exit_code}: {cmd_str}"
        if log_path is not None:
            message += f". See log: {log_path}"
        logger.error(message)
        raise BuildError(message, exit_code=exit_code, code=COMMAND_FAILED)

    return CommandResult(
        command=cmd_str,
        exit_code=exit_code,
        started_at=started_at,
        finished_at=finished_at,
        log_path=str(log_path) if log_path is not None else None,
    )


__all__ = [
    "compose_build_command",
    "compose_install_command",
    "ensure_tool_available",
    "run_command",
]
