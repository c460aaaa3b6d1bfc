"""Remote repository references — URL parsing, HEAD lookup, archive URLs.

A remote reference has the strict shape ``https://<host>/<owner>/<repo>.git``.
The current commit is read with ``git ls-remote`` (no clone needed), and the
archive for that exact commit is downloaded from
``https://<host>/<owner>/<repo>/archive/<hash>.zip``.

Key entities:
  - RemoteRef: parsed (host, owner, name) triple.
  - parse_remote(): str → RemoteRef | None.
  - fetch_head_hash(): async git ls-remote → commit hash.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from ..errors import NetworkError

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"^https?://\S+$")
_REMOTE_RE = re.compile(
    r"^https://(?P<host>[^/\s]+)/(?P<owner>[^/\s]+)/(?P<name>[^/\s]+)\.git$"
)
_HASH_RE = re.compile(r"^[0-9a-f]{7,64}$")


@dataclass(frozen=True)
class RemoteRef:
    """Parsed remote repository identifier."""

    host: str
    owner: str
    name: str


def is_url(arg: str) -> bool:
    """True if arg looks like an http(s) URL rather than a local path."""
    return bool(_URL_RE.match(arg))


def parse_remote(src: str) -> RemoteRef | None:
    """Parse ``https://<host>/<owner>/<repo>.git``; None if src does not match."""
    match = _REMOTE_RE.match(src)
    if not match:
        return None
    return RemoteRef(
        host=match.group("host"),
        owner=match.group("owner"),
        name=match.group("name"),
    )


def build_archive_url(ref: RemoteRef, commit: str) -> str:
    return f"https://{ref.host}/{ref.owner}/{ref.name}/archive/{commit}.zip"


def archive_filename(ref: RemoteRef, commit: str) -> str:
    """Cache file name of the archive; the part after the last '-' is the hash."""
    return f"{ref.name}-{commit}.zip"


def parse_ls_remote(stdout: str) -> str | None:
    """Extract the hash from the first whitespace-delimited field of the first line."""
    lines = stdout.strip().splitlines()
    if not lines:
        return None
    fields = lines[0].split()
    if not fields or not _HASH_RE.match(fields[0]):
        return None
    return fields[0]


async def fetch_head_hash(
    remote: str,
    *,
    timeout: float | None = None,
    git: str = "git",
) -> str:
    """Return the commit hash HEAD points to on the remote.

    Raises:
        NetworkError: git is missing, exits non-zero, times out, or its
            output holds no commit hash.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            git,
            "ls-remote",
            remote,
            "HEAD",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise NetworkError(f"Could not run '{git}': {e}") from e

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            proc.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        proc.kill()
        await proc.communicate()
        raise NetworkError(
            f"Timed out after {timeout}s querying HEAD of {remote}."
        ) from None

    if proc.returncode != 0:
        detail = stderr_bytes.decode("utf-8", errors="replace").strip()
        raise NetworkError(
            f"git ls-remote {remote} failed (exit {proc.returncode}): {detail}"
        )

    commit = parse_ls_remote(stdout_bytes.decode("utf-8", errors="replace"))
    if commit is None:
        raise NetworkError(f"Could not find commit hash of HEAD from {remote}.")
    logger.debug("HEAD of %s is %s", remote, commit)
    return commit
