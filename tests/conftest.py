"""Shared fixtures for uistage tests."""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from uistage.errors import FilesystemError


class MemoryFileSystem:
    """In-memory FileSystem used to test pipeline logic without a disk."""

    def __init__(self) -> None:
        self.files: dict[Path, bytes] = {}
        self.dirs: set[Path] = set()
        self.readonly: set[Path] = set()
        self.removed: list[Path] = []

    def add_file(self, path: Path, content: bytes = b"") -> None:
        self.mkdir_all(path.parent)
        self.files[path] = content

    def exists(self, path: Path) -> bool:
        return path in self.files or path in self.dirs

    def is_dir(self, path: Path) -> bool:
        return path in self.dirs

    def list_files(self, root: Path) -> Iterator[Path]:
        for path in sorted(self.files):
            if root in path.parents:
                yield path

    def list_dir(self, path: Path) -> list[Path]:
        children = {p for p in self.files if p.parent == path}
        children |= {d for d in self.dirs if d.parent == path and d != path}
        return sorted(children)

    def remove(self, path: Path) -> None:
        if path in self.readonly:
            raise FilesystemError(f"Failed to remove {path}: Permission denied")
        if path not in self.files:
            raise FilesystemError(f"Failed to remove {path}: No such file")
        del self.files[path]
        self.removed.append(path)

    def remove_tree(self, path: Path) -> None:
        for p in [p for p in self.files if p == path or path in p.parents]:
            self.remove(p)
        self.dirs = {d for d in self.dirs if d != path and path not in d.parents}

    def copy(self, source: Path, dest: Path) -> None:
        if source not in self.files:
            raise FilesystemError(f"Failed to copy {source} -> {dest}")
        if dest in self.dirs:
            dest = dest / source.name
        self.add_file(dest, self.files[source])

    def copy_tree(self, source: Path, dest: Path) -> None:
        self.mkdir_all(dest)
        for d in list(self.dirs):
            if source in d.parents:
                self.mkdir_all(dest / d.relative_to(source))
        for p in list(self.files):
            if source in p.parents:
                self.add_file(dest / p.relative_to(source), self.files[p])

    def mkdir_all(self, path: Path) -> None:
        self.dirs.add(path)
        for parent in path.parents:
            if parent != Path(parent.anchor):
                self.dirs.add(parent)

    def read_bytes(self, path: Path) -> bytes:
        if path not in self.files:
            raise FilesystemError(f"Failed to read {path}")
        return self.files[path]

    def size(self, path: Path) -> int:
        return len(self.read_bytes(path))


@pytest.fixture
def memfs() -> MemoryFileSystem:
    """Create an empty in-memory filesystem."""
    return MemoryFileSystem()


@pytest.fixture
def yarn_on_path() -> Iterator[None]:
    """Pretend the package manager is installed."""
    with patch("uistage.runner.shutil.which", return_value="/usr/bin/yarn"):
        yield


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep UISTAGE_* variables and config files from leaking into tests."""
    for name in list(os.environ):
        if name.startswith("UISTAGE_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def write_build_output(build_dir: Path) -> None:
    """Populate a build output directory the way the front-end build does."""
    (build_dir / "static" / "js").mkdir(parents=True, exist_ok=True)
    (build_dir / "static" / "css").mkdir(parents=True, exist_ok=True)
    (build_dir / "index.html").write_text("<html>duo</html>")
    (build_dir / "asset-manifest.json").write_text("{}")
    (build_dir / "static" / "js" / "main.abc123.js").write_text("main()")
    (build_dir / "static" / "js" / "main.abc123.js.map").write_text("{}")
    (build_dir / "static" / "js" / "runtime-main.def456.js").write_text("rt()")
    (build_dir / "static" / "css" / "main.css").write_text("body{}")
    (build_dir / "static" / "css" / "main.css.map").write_text("{}")


@pytest.fixture
def build_output_writer():
    """Return the helper that populates a build output directory."""
    return write_build_output
