"""Shared helpers for scaffoldcli tests."""

import zipfile
from pathlib import Path

import pytest

from scaffoldcli.registry.store import RegistryStore
from scaffoldcli.settings import ScaffoldConfig


def make_archive(archive: Path, root: str, files: dict[str, str]) -> Path:
    """Write a zip whose entries live under root/ (like a GitHub archive)."""
    archive.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr(f"{root}/", "")
        for rel, content in files.items():
            zf.writestr(f"{root}/{rel}", content)
    return archive


def make_tree(base: Path, files: dict[str, str]) -> Path:
    """Create files (relative path -> content) below base."""
    for rel, content in files.items():
        path = base / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return base


@pytest.fixture
def config(tmp_path: Path) -> ScaffoldConfig:
    return ScaffoldConfig(config_dir=tmp_path / "config", timeout=5.0)


@pytest.fixture
def store(config: ScaffoldConfig) -> RegistryStore:
    s = RegistryStore(config.store_file, config.cache_dir)
    s.load()
    return s
