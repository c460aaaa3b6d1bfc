"""Exception hierarchy for registry, fetch and copy failures.

Every error the tool reports to the user derives from ScaffoldError, so the
CLI can render them uniformly while letting programming errors propagate.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for all user-facing scaffold errors."""


class NotDirectoryError(ScaffoldError):
    def __init__(self, path: str) -> None:
        super().__init__(f"'{path}' is not a directory.")
        self.path = path


class NotFoundError(ScaffoldError):
    """A project or a path could not be found."""


class ProjectNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Can't find project '{name}'.")
        self.name = name


class PathNotFoundError(NotFoundError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Can't find directory '{path}'.")
        self.path = path


class SourceNotFoundError(PathNotFoundError):
    """The cached or local source of a project vanished from disk."""


class AlreadyExistsError(ScaffoldError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Directory '{path}' already exists.")
        self.path = path


class SameSourceAndTargetError(ScaffoldError):
    def __init__(self, path: str, message: str | None = None) -> None:
        super().__init__(message or "Source path and target paths cannot be the same.")
        self.path = path


class NetworkError(ScaffoldError):
    """Download or HEAD hash lookup failure."""


class HttpError(NetworkError):
    def __init__(self, status_code: int, reason: str) -> None:
        super().__init__(f"{status_code}: {reason}.")
        self.status_code = status_code
        self.reason = reason


class InvalidRemoteError(ScaffoldError):
    def __init__(self, src: str) -> None:
        super().__init__(f"Invalid remote url '{src}'.")
        self.src = src


class ArchiveError(ScaffoldError):
    """A downloaded archive could not be unpacked."""


class RegistryIOError(ScaffoldError):
    """Reading or writing the registry file failed."""
