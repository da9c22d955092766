"""Filesystem access for the pipeline.

The pipeline never touches the disk directly; it goes through a FileSystem
so tests can substitute an in-memory implementation. LocalFileSystem wraps
pathlib/shutil and converts every OSError into a FilesystemError.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from uistage.errors import FilesystemError


class FileSystem(Protocol):
    """Operations the pipeline needs from a filesystem."""

    def exists(self, path: Path) -> bool: ...

    def is_dir(self, path: Path) -> bool: ...

    def list_files(self, root: Path) -> Iterator[Path]: ...

    def list_dir(self, path: Path) -> list[Path]: ...

    def remove(self, path: Path) -> None: ...

    def remove_tree(self, path: Path) -> None: ...

    def copy(self, source: Path, dest: Path) -> None: ...

    def copy_tree(self, source: Path, dest: Path) -> None: ...

    def mkdir_all(self, path: Path) -> None: ...

    def read_bytes(self, path: Path) -> bytes: ...

    def size(self, path: Path) -> int: ...


class LocalFileSystem:
    """FileSystem backed by the local disk."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def list_files(self, root: Path) -> Iterator[Path]:
        """Yield regular files under root, recursively.

        Files are produced lazily so callers may delete entries while
        iterating over already-visited directories.
        """
        for path in root.rglob("*"):
            if path.is_file() and not path.is_symlink():
                yield path

    def list_dir(self, path: Path) -> list[Path]:
        try:
            return sorted(path.iterdir())
        except OSError as e:
            raise FilesystemError(f"Failed to list {path}: {e}") from e

    def remove(self, path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            raise FilesystemError(f"Failed to remove {path}: {e}") from e

    def remove_tree(self, path: Path) -> None:
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            raise FilesystemError(f"Failed to remove {path}: {e}") from e

    def copy(self, source: Path, dest: Path) -> None:
        """Copy a single file, overwriting dest.

        If dest is an existing directory the file is copied into it.
        """
        try:
            if dest.is_dir():
                dest = dest / source.name
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, dest)
        except OSError as e:
            raise FilesystemError(f"Failed to copy {source} -> {dest}: {e}") from e

    def copy_tree(self, source: Path, dest: Path) -> None:
        """Copy a directory tree, merging into dest and overwriting files."""
        try:
            shutil.copytree(source, dest, dirs_exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Failed to copy {source} -> {dest}: {e}") from e

    def mkdir_all(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Failed to create {path}: {e}") from e

    def read_bytes(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise FilesystemError(f"Failed to read {path}: {e}") from e

    def size(self, path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError as e:
            raise FilesystemError(f"Failed to stat {path}: {e}") from e


__all__ = ["FileSystem", "LocalFileSystem"]
