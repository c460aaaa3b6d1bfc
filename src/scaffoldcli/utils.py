"""Shared path helpers."""

import os
from pathlib import Path

_DEFAULT_DIR_NAME = ".scaffold-cli"


def scaffold_dir() -> Path:
    """Return the config directory: $SCAFFOLD_CLI_DIR or ~/.scaffold-cli."""
    override = os.environ.get("SCAFFOLD_CLI_DIR", "").strip()
    if override:
        return Path(os.path.expanduser(override))
    return Path.home() / _DEFAULT_DIR_NAME
