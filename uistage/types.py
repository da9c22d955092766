"""Shared type definitions for uistage.

This module contains the dataclasses and enums shared across modules to
avoid circular imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class PipelineStatus(str, Enum):
    """Status of a pipeline run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class StepName(str, Enum):
    """Steps of the build-and-stage pipeline, in execution order."""

    ENVIRONMENT = "environment"
    OVERLAY = "overlay"
    INSTALL = "install"
    BUILD = "build"
    PRUNE = "prune"
    PREPARE_TARGET = "prepare_target"
    STAGE = "stage"


@dataclass
class CommandResult:
    """Result of an external command.

    Attributes:
        command: The command that was executed, shell-quoted.
        exit_code: Process exit code.
        started_at: Start time.
        finished_at: Finish time.
        log_path: Log file the output was captured to, if any.
    """

    command: str
    exit_code: int
    started_at: datetime
    finished_at: datetime
    log_path: str | None = None

    @property
    def duration(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()


@dataclass
class StagedFile:
    """A file present in the target staging directory."""

    relative_path: str
    size_bytes: int
    sha256: str


@dataclass
class VerificationReport:
    """Differences between the build output and the target directory.

    Attributes:
        missing: Build files with no counterpart in the target.
        mismatched: Files present in both whose bytes differ.
        unexpected: Target files not produced by any staged entry.
    """

    missing: list[str] = field(default_factory=list)
    mismatched: list[str] = field(default_factory=list)
    unexpected: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.missing or self.mismatched or self.unexpected)


@dataclass
class PipelineResult:
    """Outcome of a pipeline run."""

    status: PipelineStatus
    target_dir: str
    completed_steps: list[StepName] = field(default_factory=list)
    commands: list[CommandResult] = field(default_factory=list)
    pruned_files: list[str] = field(default_factory=list)
    staged_files: list[StagedFile] = field(default_factory=list)
    error_code: str | None = None
    error_message: str | None = None
    exit_code: int | None = None

    @property
    def success(self) -> bool:
        return self.status == PipelineStatus.SUCCEEDED


__all__ = [
    "CommandResult",
    "PipelineResult",
    "PipelineStatus",
    "StagedFile",
    "StepName",
    "VerificationReport",
]
