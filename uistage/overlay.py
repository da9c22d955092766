"""Overlay of locally modified packages onto the front-end project.

Before installing, the contents of an overlay directory can be copied over
``<project>/packages/`` so patched packages are built instead of the
upstream ones. Existing files are overwritten.
"""

from __future__ import annotations

import logging
from pathlib import Path

from uistage.errors import SOURCE_NOT_FOUND, SYMLINK_ESCAPE, FilesystemError
from uistage.fs import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)

PACKAGES_DIR = "packages"


def check_symlinks(source_dir: Path) -> None:
    """Ensure no symlink under source_dir points outside of it.

    Raises:
        FilesystemError: If a symlink escapes the source tree.
    """
    source_dir_resolved = source_dir.resolve()
    for item in source_dir.rglob("*"):
        if not item.is_symlink():
            continue
        target = item.resolve()
        try:
            target.relative_to(source_dir_resolved)
        except ValueError:
            raise FilesystemError(
                f"Symlink {item} points outside overlay tree: {target}",
                code=SYMLINK_ESCAPE,
            ) from None


def apply_overlay(
    overlay_dir: Path,
    project_dir: Path,
    fs: FileSystem | None = None,
) -> list[str]:
    """Copy every entry of overlay_dir into the project's packages directory.

    Symlinks are only checked on the local disk; an injected filesystem
    is trusted to hold no links.

    Args:
        overlay_dir: Directory holding modified packages.
        project_dir: Front-end project directory.
        fs: Filesystem to operate on (defaults to the local disk).

    Returns:
        Names of the overlaid entries.

    Raises:
        FilesystemError: If the overlay is missing, escapes via a symlink,
            or a copy fails.
    """
    if fs is None:
        fs = LocalFileSystem()

    if not fs.is_dir(overlay_dir):
        raise FilesystemError(
            f"Overlay directory not found: {overlay_dir}",
            code=SOURCE_NOT_FOUND,
        )

    if isinstance(fs, LocalFileSystem):
        check_symlinks(overlay_dir)

    packages_dir = project_dir / PACKAGES_DIR
    fs.mkdir_all(packages_dir)

    applied: list[str] = []
    for item in fs.list_dir(overlay_dir):
        dest = packages_dir / item.name
        if fs.is_dir(item):
            fs.copy_tree(item, dest)
        else:
            fs.copy(item, dest)
        applied.append(item.name)

    logger.info("Overlaid %d entries onto %s", len(applied), packages_dir)
    return applied


__all__ = ["PACKAGES_DIR", "apply_overlay", "check_symlinks"]
