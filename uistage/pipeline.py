"""Build-and-stage pipeline.

This module provides the high-level API:
- run_pipeline(): install, build, prune, prepare target, stage
- result_to_dict(): JSON-ready view of a PipelineResult

Steps run strictly in sequence; the first failure stops the run and is
recorded on the result. Nothing is retried or rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from uistage.errors import (
    PROJECT_NOT_FOUND,
    TARGET_OVERLAPS_SOURCE,
    EnvironmentError,
    FilesystemError,
    PipelineError,
)
from uistage.fs import FileSystem, LocalFileSystem
from uistage.overlay import apply_overlay
from uistage.prune import prune_build_output
from uistage.runner import (
    compose_build_command,
    compose_install_command,
    ensure_tool_available,
    run_command,
)
from uistage.staging import describe_staged, prepare_target, stage_artifacts
from uistage.types import CommandResult, PipelineResult, PipelineStatus, StepName

if TYPE_CHECKING:
    from uistage.config import Settings

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., CommandResult]


def check_environment(settings: Settings, project_dir: Path, fs: FileSystem) -> None:
    """Ensure the project directory and the package manager exist.

    Raises:
        EnvironmentError: If either is missing.
    """
    if not fs.is_dir(project_dir):
        raise EnvironmentError(
            f"Project directory not found: {project_dir}",
            code=PROJECT_NOT_FOUND,
        )
    ensure_tool_available(settings.package_manager)


def check_target_placement(
    target_dir: Path, project_dir: Path, build_dir: Path
) -> None:
    """Refuse a target that would take the project or build output with it.

    Preparing the target removes it recursively, so it must not be the
    project directory, the build output directory, or an ancestor of either.

    Raises:
        FilesystemError: If the target overlaps the project or build output.
    """
    for protected in (project_dir, build_dir):
        if target_dir == protected or target_dir in protected.parents:
            raise FilesystemError(
                f"Target directory {target_dir} would remove {protected}",
                code=TARGET_OVERLAPS_SOURCE,
            )


def run_pipeline(
    settings: Settings,
    fs: FileSystem | None = None,
    runner: CommandRunner | None = None,
    base_dir: Path | None = None,
    skip_install: bool = False,
) -> PipelineResult:
    """Build the front-end project and stage its artifacts.

    Args:
        settings: Effective settings.
        fs: Filesystem to operate on (defaults to the local disk).
        runner: Command runner (defaults to run_command).
        base_dir: Directory relative paths are resolved against
            (defaults to the current directory).
        skip_install: Do not run the install command.

    Returns:
        PipelineResult; ``status`` is FAILED if any step failed, with the
        error code, message and external exit code recorded.
    """
    if fs is None:
        fs = LocalFileSystem()
    if runner is None:
        runner = run_command
    if base_dir is None:
        base_dir = Path.cwd()

    project_dir = settings.resolved_project_dir(base_dir)
    build_dir = settings.resolved_build_dir(base_dir)
    target_dir = settings.resolved_target_dir(base_dir)
    log_path = base_dir / settings.log_file if settings.log_file else None

    result = PipelineResult(
        status=PipelineStatus.SUCCEEDED,
        target_dir=str(target_dir),
    )

    try:
        logger.info("Checking environment in %s", project_dir)
        check_environment(settings, project_dir, fs)
        check_target_placement(target_dir, project_dir, build_dir)
        result.completed_steps.append(StepName.ENVIRONMENT)

        if settings.overlay_dir is not None:
            logger.info("Applying overlay from %s", settings.overlay_dir)
            apply_overlay(base_dir / settings.overlay_dir, project_dir, fs)
            result.completed_steps.append(StepName.OVERLAY)

        if not skip_install:
            logger.info("Installing dependencies")
            result.commands.append(
                runner(
                    compose_install_command(settings),
                    project_dir,
                    timeout=settings.install_timeout,
                    log_path=log_path,
                )
            )
            result.completed_steps.append(StepName.INSTALL)

        logger.info("Building")
        result.commands.append(
            runner(
                compose_build_command(settings),
                project_dir,
                timeout=settings.build_timeout,
                log_path=log_path,
            )
        )
        result.completed_steps.append(StepName.BUILD)

        logger.info("Pruning %s", build_dir)
        result.pruned_files = prune_build_output(
            build_dir, settings.prune_patterns, fs
        )
        result.completed_steps.append(StepName.PRUNE)

        logger.info("Preparing %s", target_dir)
        prepare_target(target_dir, fs, settings.legacy_clear_check)
        result.completed_steps.append(StepName.PREPARE_TARGET)

        stage_artifacts(build_dir, target_dir, settings.staged_entries, fs)
        result.completed_steps.append(StepName.STAGE)

        result.staged_files = describe_staged(target_dir, fs)

    except PipelineError as e:
        logger.error("Pipeline failed (%s): %s", e.code, e)
        result.status = PipelineStatus.FAILED
        result.error_code = e.code
        result.error_message = str(e)
        result.exit_code = e.exit_code
        return result

    logger.info("Staged %d file(s) into %s", len(result.staged_files), target_dir)
    return result


def result_to_dict(result: PipelineResult) -> dict[str, Any]:
    """Convert a PipelineResult into a JSON-serializable dictionary."""

    def _convert(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, dict):
            return {k: _convert(v) for k, v in value.items()}
        if isinstance(value, list):
            return [_convert(v) for v in value]
        if isinstance(value, (PipelineStatus, StepName)):
            return value.value
        return value

    data = _convert(asdict(result))
    data["success"] = result.success
    return data


__all__ = [
    "CommandRunner",
    "check_environment",
    "check_target_placement",
    "result_to_dict",
    "run_pipeline",
]
