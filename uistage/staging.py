"""Staging of build artifacts into the target directory.

This module handles:
- Preparing (clearing or creating) the target directory
- Copying the configured build output entries into it
- Describing and verifying the staged files by SHA-256
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from pathlib import Path

from uistage.errors import SOURCE_NOT_FOUND, FilesystemError
from uistage.fs import FileSystem, LocalFileSystem
from uistage.types import StagedFile, VerificationReport

logger = logging.getLogger(__name__)

DEFAULT_STAGED_ENTRIES = ("index.html", "static")

# Literal name the legacy clear check looks for
LEGACY_WILDCARD = "*"

# Size of chunks read when hashing staged files
HASH_CHUNK_SIZE = 64 * 1024


def prepare_target(
    target_dir: Path,
    fs: FileSystem | None = None,
    legacy_clear_check: bool = False,
) -> None:
    """Prepare an empty target directory.

    By default an existing target is removed recursively and recreated, so
    no file from a previous run survives.

    With legacy_clear_check the old check is reproduced: the contents are
    removed only if a directory literally named ``*`` exists inside the
    target; otherwise the target is just created (existing contents kept).

    Args:
        target_dir: Target staging directory.
        fs: Filesystem to operate on (defaults to the local disk).
        legacy_clear_check: Reproduce the literal-wildcard check.

    Raises:
        FilesystemError: On permission or I/O failure.
    """
    if fs is None:
        fs = LocalFileSystem()

    if legacy_clear_check:
        if fs.is_dir(target_dir / LEGACY_WILDCARD):
            logger.info("Clearing contents of %s", target_dir)
            for child in fs.list_dir(target_dir):
                fs.remove_tree(child)
        else:
            fs.mkdir_all(target_dir)
        return

    if fs.exists(target_dir):
        logger.info("Removing existing target %s", target_dir)
        fs.remove_tree(target_dir)
    fs.mkdir_all(target_dir)


def stage_entry(
    build_dir: Path,
    target_dir: Path,
    entry: str,
    fs: FileSystem | None = None,
) -> None:
    """Copy one build output entry (file or directory) into the target.

    Raises:
        FilesystemError: If the entry is missing or the copy fails.
    """
    if fs is None:
        fs = LocalFileSystem()

    source = build_dir / entry
    dest = target_dir / entry

    if not fs.exists(source):
        raise FilesystemError(
            f"Build output entry not found: {source}",
            code=SOURCE_NOT_FOUND,
        )

    if fs.is_dir(source):
        logger.debug("Copying tree %s -> %s", source, dest)
        fs.copy_tree(source, dest)
    else:
        logger.debug("Copying %s -> %s", source, dest)
        fs.copy(source, dest)


def stage_artifacts(
    build_dir: Path,
    target_dir: Path,
    entries: Iterable[str] = DEFAULT_STAGED_ENTRIES,
    fs: FileSystem | None = None,
) -> list[str]:
    """Copy the configured entries from the build output into the target.

    Args:
        build_dir: Build output directory.
        target_dir: Prepared target directory.
        entries: Entry names relative to build_dir, copied in order.
        fs: Filesystem to operate on (defaults to the local disk).

    Returns:
        The staged entry names.

    Raises:
        FilesystemError: If an entry is missing or a copy fails.
    """
    staged: list[str] = []
    for entry in entries:
        stage_entry(build_dir, target_dir, entry, fs)
        staged.append(entry)
    logger.info("Staged %s into %s", ", ".join(staged), target_dir)
    return staged


def compute_file_hash(
    path: Path,
    fs: FileSystem | None = None,
    chunk_size: int = HASH_CHUNK_SIZE,
) -> str:
    """Compute the SHA-256 hex digest of a file.

    Files on the local disk are streamed in chunks of chunk_size bytes.
    Other filesystems are read whole through ``fs.read_bytes``.

    Raises:
        FilesystemError: If the file cannot be read.
    """
    if fs is not None and not isinstance(fs, LocalFileSystem):
        return hashlib.sha256(fs.read_bytes(path)).hexdigest()

    sha256 = hashlib.sha256()
    try:
        with path.open("rb") as f:
            while chunk := f.read(chunk_size):
                sha256.update(chunk)
    except OSError as e:
        raise FilesystemError(f"Failed to read {path}: {e}") from e
    return sha256.hexdigest()


def describe_staged(
    target_dir: Path,
    fs: FileSystem | None = None,
) -> list[StagedFile]:
    """List every file in the target directory with its size and hash.

    Args:
        target_dir: Target staging directory.
        fs: Filesystem to operate on (defaults to the local disk).

    Returns:
        StagedFile entries sorted by relative path.
    """
    if fs is None:
        fs = LocalFileSystem()

    staged: list[StagedFile] = []
    if not fs.is_dir(target_dir):
        return staged

    for path in fs.list_files(target_dir):
        staged.append(
            StagedFile(
                relative_path=path.relative_to(target_dir).as_posix(),
                size_bytes=fs.size(path),
                sha256=compute_file_hash(path, fs),
            )
        )
    return sorted(staged, key=lambda f: f.relative_path)


def _entry_files(root: Path, entry: str, fs: FileSystem) -> list[str]:
    path = root / entry
    if not fs.exists(path):
        return []
    if fs.is_dir(path):
        return [p.relative_to(root).as_posix() for p in fs.list_files(path)]
    return [entry]


def verify_staged(
    build_dir: Path,
    target_dir: Path,
    entries: Iterable[str] = DEFAULT_STAGED_ENTRIES,
    fs: FileSystem | None = None,
) -> VerificationReport:
    """Compare the target directory against the build output.

    Args:
        build_dir: Build output directory.
        target_dir: Target staging directory.
        entries: Entry names that were staged.
        fs: Filesystem to operate on (defaults to the local disk).

    Returns:
        VerificationReport; ``report.ok`` is True when the target holds a
        byte-identical copy of every staged file and nothing else.
    """
    if fs is None:
        fs = LocalFileSystem()

    expected: set[str] = set()
    for entry in entries:
        expected.update(_entry_files(build_dir, entry, fs))

    present: set[str] = set()
    if fs.is_dir(target_dir):
        present = {
            p.relative_to(target_dir).as_posix() for p in fs.list_files(target_dir)
        }

    report = VerificationReport(
        missing=sorted(expected - present),
        unexpected=sorted(present - expected),
    )
    for rel_path in sorted(expected & present):
        source_hash = compute_file_hash(build_dir / rel_path, fs)
        target_hash = compute_file_hash(target_dir / rel_path, fs)
        if source_hash != target_hash:
            report.mismatched.append(rel_path)

    if not report.ok:
        logger.warning(
            "Target %s differs from build output: %d missing, %d mismatched, "
            "%d unexpected",
            target_dir,
            len(report.missing),
            len(report.mismatched),
            len(report.unexpected),
        )
    return report


__all__ = [
    "DEFAULT_STAGED_ENTRIES",
    "HASH_CHUNK_SIZE",
    "LEGACY_WILDCARD",
    "compute_file_hash",
    "describe_staged",
    "prepare_target",
    "stage_artifacts",
    "stage_entry",
    "verify_staged",
]
