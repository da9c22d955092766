"""Pruning of generated files from the build output.

Files are matched by name only (never by content) against shell-style
globs, e.g. ``*runtime*.js`` and ``*.map``.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from uistage.errors import BUILD_OUTPUT_MISSING, FilesystemError
from uistage.fs import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)

DEFAULT_PRUNE_PATTERNS = ("*runtime*.js", "*.map")


def matches_prune_pattern(filename: str, patterns: Iterable[str]) -> bool:
    """Check whether a filename matches any prune pattern.

    Matching is case-sensitive, as the find(1) -name test is.

    Args:
        filename: Base name of the file.
        patterns: Shell-style globs.

    Returns:
        True if the file should be pruned.
    """
    return any(fnmatch.fnmatchcase(filename, p) for p in patterns)


def iter_prunable_files(
    build_dir: Path,
    patterns: Iterable[str],
    fs: FileSystem,
) -> Iterator[Path]:
    """Yield files under build_dir whose names match a prune pattern."""
    patterns = tuple(patterns)
    for path in fs.list_files(build_dir):
        if matches_prune_pattern(path.name, patterns):
            yield path


def prune_build_output(
    build_dir: Path,
    patterns: Iterable[str] = DEFAULT_PRUNE_PATTERNS,
    fs: FileSystem | None = None,
    dry_run: bool = False,
) -> list[str]:
    """Delete files matching the prune patterns from the build output.

    Args:
        build_dir: Build output directory.
        patterns: Shell-style filename globs.
        fs: Filesystem to operate on (defaults to the local disk).
        dry_run: Only report what would be deleted.

    Returns:
        Sorted paths of pruned files, relative to build_dir.

    Raises:
        FilesystemError: If build_dir is missing or a deletion fails.
    """
    if fs is None:
        fs = LocalFileSystem()

    if not fs.is_dir(build_dir):
        raise FilesystemError(
            f"Build output directory not found: {build_dir}",
            code=BUILD_OUTPUT_MISSING,
        )

    pruned: list[str] = []
    for path in iter_prunable_files(build_dir, patterns, fs):
        rel_path = path.relative_to(build_dir).as_posix()
        if not dry_run:
            fs.remove(path)
        logger.debug("Pruned %s", rel_path)
        pruned.append(rel_path)

    logger.info(
        "%s %d file(s) in %s",
        "Would prune" if dry_run else "Pruned",
        len(pruned),
        build_dir,
    )
    return sorted(pruned)


__all__ = [
    "DEFAULT_PRUNE_PATTERNS",
    "iter_prunable_files",
    "matches_prune_pattern",
    "prune_build_output",
]
