"""Data models for the project registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class Project:
    """A registered project: where its content lives and, if remote, its origin."""

    path: str
    remote: str | None = None
    hash: str | None = None  # commit observed at last fetch

    def __post_init__(self) -> None:
        if (self.remote is None) != (self.hash is None):
            raise ValueError("remote and hash must be set together")

    @property
    def is_remote(self) -> bool:
        return self.remote is not None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"path": self.path}
        if self.remote is not None:
            d["remote"] = self.remote
            d["hash"] = self.hash
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        return cls(
            path=data["path"],
            remote=data.get("remote"),
            hash=data.get("hash"),
        )


@dataclass(frozen=True)
class Change:
    """One mutation of the registry, kept for display."""

    kind: str  # "+" added | "-" removed | "~" refreshed
    name: str
    project: Project
