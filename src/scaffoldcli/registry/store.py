"""JSON persistence for the project registry.

The registry is a single ``store.json`` mapping project name → Project record,
next to a ``cache/`` directory that holds unpacked remote archives. It is read
once at startup, mutated in memory, and written back after every mutating
command. Writes go to a temporary sibling first and are renamed over the old
file so a crash never leaves a truncated registry.

No locking: concurrent invocations race on the final write (last one wins).
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from pathlib import Path

from ..errors import ProjectNotFoundError, RegistryIOError
from .types import Change, Project

logger = logging.getLogger(__name__)


class NameCounter:
    """Per-base-name suffix counter used to disambiguate colliding names.

    Lives for one invocation only; nothing is persisted.
    """

    def __init__(self) -> None:
        self._next: dict[str, int] = {}

    def next(self, base: str) -> int:
        value = self._next.get(base, 1)
        self._next[base] = value + 1
        return value


class RegistryStore:
    """In-memory registry backed by ``store.json``."""

    def __init__(self, store_file: Path, cache_dir: Path) -> None:
        self.store_file = store_file
        self.config_dir = store_file.parent
        self.cache_dir = cache_dir
        self._projects: dict[str, Project] = {}
        self._changes: list[Change] = []

    # --- I/O boundary ---

    def load(self) -> dict[str, Project]:
        """Load the registry, initializing the config layout on first run.

        Raises:
            RegistryIOError: store.json is unreadable or not a JSON object.
        """
        if not self.config_dir.is_dir():
            self.config_dir.mkdir(parents=True, exist_ok=True)
            self.cache_dir.mkdir(exist_ok=True)
            self._projects = {}
            self.save()
            logger.info("Initialized registry at %s", self.store_file)
            return self._projects

        self.cache_dir.mkdir(exist_ok=True)
        if not self.store_file.is_file():
            logger.warning("%s missing, starting with an empty registry", self.store_file)
            self._projects = {}
            self.save()
            return self._projects

        try:
            data = json.loads(self.store_file.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            raise RegistryIOError(f"Failed to read {self.store_file}: {e}") from e
        if not isinstance(data, dict):
            raise RegistryIOError(f"{self.store_file} does not hold a JSON object.")

        try:
            self._projects = {
                name: Project.from_dict(raw) for name, raw in data.items()
            }
        except (KeyError, TypeError, ValueError) as e:
            raise RegistryIOError(f"Malformed entry in {self.store_file}: {e}") from e
        logger.debug("Loaded %d projects from %s", len(self._projects), self.store_file)
        return self._projects

    def save(self) -> None:
        """Write the registry (sorted keys, indented) replacing the old file."""
        payload = {name: p.to_dict() for name, p in self._projects.items()}
        text = json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n"
        tmp_path = self.store_file.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, self.store_file)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise RegistryIOError(f"Failed to write {self.store_file}: {e}") from e

    # --- Queries ---

    def get(self, name: str) -> Project | None:
        return self._projects.get(name)

    def items(self) -> list[tuple[str, Project]]:
        return sorted(self._projects.items())

    def __contains__(self, name: object) -> bool:
        return name in self._projects

    def __len__(self) -> int:
        return len(self._projects)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._projects))

    @property
    def changes(self) -> list[Change]:
        return list(self._changes)

    # --- Mutations ---

    def add_entry(self, name: str, project: Project, counter: NameCounter) -> str:
        """Store project under name, or name-<n> if name is taken.

        Returns:
            The name the project was stored under.
        """
        real_name = name
        while real_name in self._projects:
            real_name = f"{name}-{counter.next(name)}"
        self._projects[real_name] = project
        self._changes.append(Change("+", real_name, project))
        logger.debug("Registered %s -> %s", real_name, project.path)
        return real_name

    def update_entry(self, name: str, project: Project) -> None:
        if name not in self._projects:
            raise ProjectNotFoundError(name)
        self._projects[name] = project
        self._changes.append(Change("~", name, project))

    def remove_entry(self, name: str) -> Project:
        project = self._projects.pop(name, None)
        if project is None:
            raise ProjectNotFoundError(name)
        self._changes.append(Change("-", name, project))
        return project

    def prune(self) -> list[str]:
        """Drop entries whose path no longer exists. Returns removed names."""
        removed = [
            name for name, p in sorted(self._projects.items()) if not Path(p.path).exists()
        ]
        for name in removed:
            self.remove_entry(name)
        return removed
