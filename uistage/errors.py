"""Error definitions for the build-and-stage pipeline.

Every failure surfaced by the pipeline is a PipelineError subclass carrying
a stable code for programmatic handling and, for external commands, the
exit code of the failing process.
"""

from __future__ import annotations

# Error code constants
PROJECT_NOT_FOUND = "project_not_found"
TOOL_NOT_FOUND = "tool_not_found"
EXECUTION_ERROR = "execution_error"
COMMAND_FAILED = "command_failed"
COMMAND_TIMEOUT = "command_timeout"
BUILD_OUTPUT_MISSING = "build_output_missing"
SOURCE_NOT_FOUND = "source_not_found"
SYMLINK_ESCAPE = "symlink_escape"
TARGET_OVERLAPS_SOURCE = "target_overlaps_source"
LOG_FILE_ERROR = "log_file_error"
FILESYSTEM_ERROR = "filesystem_error"


class PipelineError(Exception):
    """Base error for pipeline operations."""

    def __init__(
        self,
        message: str,
        code: str = "pipeline_error",
        exit_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.exit_code = exit_code


class EnvironmentError(PipelineError):  # noqa: A001
    """Raised when the project directory or an external tool is missing."""

    def __init__(self, message: str, code: str = PROJECT_NOT_FOUND) -> None:
        super().__init__(message, code=code)


class BuildError(PipelineError):
    """Raised when the install or build command exits non-zero."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = COMMAND_FAILED,
    ) -> None:
        super().__init__(message, code=code, exit_code=exit_code)


class FilesystemError(PipelineError):
    """Raised when a copy, delete or mkdir operation fails."""

    def __init__(self, message: str, code: str = FILESYSTEM_ERROR) -> None:
        super().__init__(message, code=code)


__all__ = [
    "BUILD_OUTPUT_MISSING",
    "COMMAND_FAILED",
    "COMMAND_TIMEOUT",
    "EXECUTION_ERROR",
    "FILESYSTEM_ERROR",
    "LOG_FILE_ERROR",
    "PROJECT_NOT_FOUND",
    "SOURCE_NOT_FOUND",
    "SYMLINK_ESCAPE",
    "TARGET_OVERLAPS_SOURCE",
    "TOOL_NOT_FOUND",
    "BuildError",
    "EnvironmentError",
    "FilesystemError",
    "PipelineError",
]
