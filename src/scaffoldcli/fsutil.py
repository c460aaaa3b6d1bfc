"""Filesystem helpers: subdirectory listing, filtered recursive copy, recursive delete.

The blocking helpers have ``*_async`` twins that run in a worker thread via
asyncio.to_thread() so copies and deletes overlap with other pending tasks.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

from .errors import AlreadyExistsError, SourceNotFoundError

logger = logging.getLogger(__name__)

# Names skipped by both subdirectory enumeration and recursive copy
IGNORE_NAMES = frozenset({".git", ".DS_Store", "node_modules"})


def list_subdirs(path: Path) -> list[Path]:
    """Return immediate, non-hidden subdirectories of path, sorted by name.

    Raises:
        FileNotFoundError: path does not exist.
    """
    return sorted(
        p
        for p in path.iterdir()
        if p.is_dir() and not p.name.startswith(".") and p.name not in IGNORE_NAMES
    )


def _copy_dir(source: Path, target: Path) -> None:
    target.mkdir()
    for entry in source.iterdir():
        if entry.name in IGNORE_NAMES:
            continue
        dest = target / entry.name
        if entry.is_dir():
            _copy_dir(entry, dest)
        elif entry.is_file():
            shutil.copy2(entry, dest)


def copy_tree(source: Path, target: Path) -> None:
    """Recursively copy directories and regular files, skipping IGNORE_NAMES.

    Raises:
        SourceNotFoundError: source does not exist.
        AlreadyExistsError: target already exists.
    """
    if not source.is_dir():
        raise SourceNotFoundError(str(source))
    if target.exists():
        raise AlreadyExistsError(str(target))
    target.parent.mkdir(parents=True, exist_ok=True)
    _copy_dir(source, target)
    logger.debug("Copied %s -> %s", source, target)


def rmrf(path: Path) -> None:
    """Delete path recursively. A missing path is not an error."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


async def copy_tree_async(source: Path, target: Path) -> None:
    await asyncio.to_thread(copy_tree, source, target)


async def rmrf_async(path: Path) -> None:
    await asyncio.to_thread(rmrf, path)
