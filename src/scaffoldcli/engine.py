"""Sync engine — registers projects and materializes them into workspaces.

Orchestrates the registry store, the remote resolver/fetcher and the
filesystem helpers for every command:
  - add: register local directories and remote repositories, one project per
    input (depth 0) or one per immediate subdirectory (depth 1). Locals run as
    one concurrent batch, remotes as a second; each input settles on its own
    and failures are collected rather than raised.
  - create: copy a registered project into a target directory, refreshing a
    remote-backed cache first when the remote HEAD has moved.
  - remove / list_projects: plain registry maintenance.

Key classes: SyncEngine, AddReport, Outcome, CreateResult.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .errors import (
    InvalidRemoteError,
    NetworkError,
    NotDirectoryError,
    PathNotFoundError,
    ProjectNotFoundError,
    SameSourceAndTargetError,
)
from .fsutil import copy_tree_async, list_subdirs, rmrf_async
from .registry.store import NameCounter, RegistryStore
from .registry.types import Change, Project
from .remote.fetcher import fetch_archive
from .remote.resolver import fetch_head_hash, is_url, parse_remote
from .settings import ScaffoldConfig

logger = logging.getLogger(__name__)

STALE_CACHE_WARNING = "Could not find commit hash of HEAD, local cache will be used."


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class Outcome:
    """Settled result of registering one add input."""

    source: str
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        err = self.error
        if err is None:
            return ""
        if isinstance(err, FileNotFoundError) and err.filename:
            return f"Can't find directory '{err.filename}'."
        return str(err) or type(err).__name__


@dataclass
class AddReport:
    outcomes: list[Outcome] = field(default_factory=list)
    changes: list[Change] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failures(self) -> list[str]:
        return [o.message for o in self.outcomes if not o.ok]


@dataclass
class CreateResult:
    name: str
    source: Path
    target: Path
    refreshed: bool = False
    warning: str | None = None


def _check_overlap(source: Path, target: Path) -> None:
    src = source.resolve()
    dst = target.resolve()
    if dst == src:
        raise SameSourceAndTargetError(str(target))
    if src in dst.parents:
        raise SameSourceAndTargetError(
            str(target), f"Target path '{target}' is inside source path '{source}'."
        )
    if dst in src.parents:
        raise SameSourceAndTargetError(
            str(target), f"Target path '{target}' contains source path '{source}'."
        )


# ---------------------------------------------------------------------------
# SyncEngine
# ---------------------------------------------------------------------------


class SyncEngine:
    """Runs registry commands against one loaded RegistryStore."""

    def __init__(
        self,
        config: ScaffoldConfig,
        store: RegistryStore,
        cwd: Path | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.cwd = cwd or Path.cwd()
        self._on_status = on_status
        self._names = NameCounter()
        # One lock per cache directory name; two remotes sharing a repo name
        # must not unpack into the same folder at once.
        self._cache_locks: dict[str, asyncio.Lock] = {}

    def _status(self, msg: str) -> None:
        if self._on_status is not None:
            self._on_status(msg)

    def _cache_lock(self, name: str) -> asyncio.Lock:
        lock = self._cache_locks.get(name)
        if lock is None:
            lock = self._cache_locks[name] = asyncio.Lock()
        return lock

    def _abspath(self, src: str) -> Path:
        path = Path(os.path.expanduser(src))
        if not path.is_absolute():
            path = self.cwd / path
        return Path(os.path.normpath(path))

    async def _head_hash(self, remote: str) -> str:
        return await fetch_head_hash(
            remote, timeout=self.config.timeout, git=self.config.git_command
        )

    async def _fetch(self, remote: str, commit: str) -> Path:
        ref = parse_remote(remote)
        if ref is None:
            raise InvalidRemoteError(remote)
        for other_name, other in self.store.items():
            if other.remote and other.remote != remote:
                other_ref = parse_remote(other.remote)
                if other_ref is not None and other_ref.name == ref.name:
                    logger.warning(
                        "%s shares cache/%s with %s (project '%s'); "
                        "the later download replaces its content",
                        remote, ref.name, other.remote, other_name,
                    )
        async with self._cache_lock(ref.name):
            return await fetch_archive(
                self.config.cache_dir,
                ref,
                commit,
                proxy=self.config.proxy,
                timeout=self.config.timeout,
                max_redirects=self.config.max_redirects,
            )

    def _register_children(self, parent: Path, remote: str | None, commit: str | None) -> None:
        for child in list_subdirs(parent):
            self.store.add_entry(
                child.name,
                Project(path=str(child), remote=remote, hash=commit),
                self._names,
            )

    # --- add ---

    async def _add_local(self, src: str, depth: int) -> None:
        abs_path = self._abspath(src)
        if not abs_path.exists():
            raise PathNotFoundError(str(abs_path))
        if not abs_path.is_dir():
            raise NotDirectoryError(str(abs_path))
        if depth == 0:
            self.store.add_entry(abs_path.name, Project(path=str(abs_path)), self._names)
        else:
            self._register_children(abs_path, None, None)

    async def _add_remote(self, src: str, depth: int) -> None:
        ref = parse_remote(src)
        if ref is None:
            raise InvalidRemoteError(src)
        commit = await self._head_hash(src)
        unpacked = await self._fetch(src, commit)
        if depth == 0:
            self.store.add_entry(
                ref.name, Project(path=str(unpacked), remote=src, hash=commit), self._names
            )
        else:
            self._register_children(unpacked, src, commit)
        logger.info("Cached %s at %s (%s)", src, unpacked, commit)

    async def _settle(self, sources: list[str], fn, depth: int) -> list[Outcome]:
        results = await asyncio.gather(
            *(fn(src, depth) for src in sources), return_exceptions=True
        )
        outcomes = []
        for src, res in zip(sources, results):
            if isinstance(res, BaseException):
                logger.debug("add %s failed: %s", src, res)
                outcomes.append(Outcome(src, res))
            else:
                outcomes.append(Outcome(src))
        return outcomes

    async def add(self, sources: list[str], depth: int = 0) -> AddReport:
        """Register every source; failures are reported, never raised.

        Args:
            sources: Local paths and/or remote URLs.
            depth: 0 registers each source itself, 1 each of its subdirectories.
        """
        if depth not in (0, 1):
            raise ValueError(f"depth must be 0 or 1, got {depth!r}")

        unique = list(dict.fromkeys(sources))
        locals_ = [s for s in unique if not is_url(s)]
        remotes = [s for s in unique if is_url(s)]

        report = AddReport()
        report.outcomes.extend(await self._settle(locals_, self._add_local, depth))
        if remotes:
            self._status("Downloading...")
            report.outcomes.extend(await self._settle(remotes, self._add_remote, depth))

        self.store.save()
        report.changes = self.store.changes
        logger.info(
            "add: %d success, %d fail", report.succeeded, len(report.failures)
        )
        return report

    # --- create ---

    async def _refresh(self, name: str, project: Project) -> tuple[Project, bool, str | None]:
        """Re-fetch a remote-backed project whose HEAD moved.

        Returns (project, refreshed, warning).
        """
        try:
            commit = await self._head_hash(project.remote)
        except NetworkError as e:
            logger.warning("HEAD lookup for %s failed, using cache: %s", project.remote, e)
            return project, False, STALE_CACHE_WARNING
        if commit == project.hash:
            return project, False, None

        self._status("The cache needs to be updated, downloading...")
        logger.info("Refreshing %s: %s -> %s", name, project.hash, commit)
        await self._fetch(project.remote, commit)

        # Depth-1 siblings share the same unpacked tree, so they move together.
        old_hash = project.hash
        for other_name, other in self.store.items():
            if other.remote == project.remote and other.hash == old_hash:
                self.store.update_entry(
                    other_name, Project(path=other.path, remote=other.remote, hash=commit)
                )
        # Persisted before the copy: the cache on disk already holds commit.
        self.store.save()
        return self.store.get(name) or project, True, None

    async def create(
        self, name: str, directory: str | None = None, overwrite: bool = False
    ) -> CreateResult:
        """Copy project name into directory (default: ./<name>).

        Raises:
            ProjectNotFoundError: name is not registered.
            SameSourceAndTargetError: target is the source, lies inside it,
                or contains it.
            AlreadyExistsError: target exists and overwrite is False.
            SourceNotFoundError: the project's content is gone from disk.
        """
        project = self.store.get(name)
        if project is None:
            raise ProjectNotFoundError(name)

        # Refresh never moves project.path, so the target is checked first.
        source = Path(project.path)
        target = self._abspath(directory or name)
        _check_overlap(source, target)

        refreshed = False
        warning = None
        if project.is_remote:
            project, refreshed, warning = await self._refresh(name, project)

        if overwrite:
            await rmrf_async(target)
        await copy_tree_async(source, target)
        logger.info("Created %s in %s", name, target)
        return CreateResult(name, source, target, refreshed, warning)

    # --- remove / list ---

    async def remove(self, names: list[str]) -> list[Change]:
        """Remove projects; nothing is removed if any name is unknown."""
        for name in names:
            if name not in self.store:
                raise ProjectNotFoundError(name)
        for name in dict.fromkeys(names):
            self.store.remove_entry(name)
        self.store.save()
        return self.store.changes

    async def list_projects(self, prune: bool = False) -> list[tuple[str, Project]]:
        if prune:
            removed = self.store.prune()
            self.store.save()
            if removed:
                logger.info("Pruned %d missing projects", len(removed))
        return self.store.items()
