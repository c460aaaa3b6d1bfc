"""Runtime settings — reads .env + settings.toml + environment into ScaffoldConfig.

Resolution order for every key: environment variable > settings.toml >
built-in default. ``.env`` files are loaded into the environment first
(working directory, then the config directory), so they behave like
environment variables.

Key entities:
  - ScaffoldConfig: frozen dataclass with all resolved settings.
  - load_settings(): parse .env + settings.toml → ScaffoldConfig.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .utils import scaffold_dir

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ScaffoldConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScaffoldConfig:
    """Resolved configuration for one invocation.

    All path attributes are pre-resolved; no further env lookups needed.
    """

    config_dir: Path = field(default_factory=lambda: scaffold_dir())

    # Network
    proxy: str | None = None
    timeout: float = 60.0  # seconds, applies to downloads and git ls-remote
    max_redirects: int = 10

    # External tools
    git_command: str = "git"

    # Logging (name of a logging level, e.g. "DEBUG")
    log_level: str = ""

    @property
    def store_file(self) -> Path:
        return self.config_dir / "store.json"

    @property
    def cache_dir(self) -> Path:
        return self.config_dir / "cache"


# ---------------------------------------------------------------------------
# load_settings
# ---------------------------------------------------------------------------

# settings.toml key -> environment variable that overrides it
_ENV_KEYS = {
    "timeout": "SCAFFOLD_TIMEOUT",
    "max_redirects": "SCAFFOLD_MAX_REDIRECTS",
    "git_command": "SCAFFOLD_GIT",
    "log_level": "SCAFFOLD_LOG_LEVEL",
}


def _read_toml(config_dir: Path) -> dict:
    toml_path = config_dir / "settings.toml"
    if not toml_path.is_file():
        return {}
    with open(toml_path, "rb") as f:
        raw = tomllib.load(f)
    logger.debug("Loaded settings from %s", toml_path)
    return raw


def _proxy_from_env() -> str | None:
    for var in ("https_proxy", "HTTPS_PROXY"):
        value = os.environ.get(var, "").strip()
        if value:
            return value
    return None


def load_settings(config_dir: Path | None = None) -> ScaffoldConfig:
    """Read .env + settings.toml + environment and return a ScaffoldConfig.

    Args:
        config_dir: Override for the base config directory.
                    Defaults to ``scaffold_dir()``.

    Raises:
        ValueError: a numeric setting could not be parsed.
    """
    if config_dir is None:
        config_dir = scaffold_dir()

    local_env = Path(".env")
    global_env = config_dir / ".env"
    if local_env.is_file():
        load_dotenv(local_env)
    if global_env.is_file():
        load_dotenv(global_env)

    raw = _read_toml(config_dir)

    def _get(key: str, default):
        """Environment > settings.toml > default."""
        env_value = os.environ.get(_ENV_KEYS[key], "").strip()
        if env_value:
            return env_value
        return raw.get(key, default)

    try:
        timeout = float(_get("timeout", 60.0))
        max_redirects = int(_get("max_redirects", 10))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid numeric setting: {e}") from e
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")
    if max_redirects < 0:
        raise ValueError(f"max_redirects must not be negative, got {max_redirects}")

    log_level = str(_get("log_level", "")).upper()
    if log_level and not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Unknown log level: {log_level!r}")

    return ScaffoldConfig(
        config_dir=config_dir,
        proxy=_proxy_from_env() or raw.get("proxy") or None,
        timeout=timeout,
        max_redirects=max_redirects,
        git_command=str(_get("git_command", "git")),
        log_level=log_level,
    )
