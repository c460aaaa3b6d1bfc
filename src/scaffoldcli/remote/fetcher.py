"""Archive fetcher — downloads a repository zip and unpacks it into the cache.

download() streams an HTTP GET to disk through httpx, following redirects by
hand so the number of hops is bounded. unpack_archive() extracts in place and
renames the ``<repo>-<hash>`` root folder to ``<repo>``, replacing whatever a
previous fetch left there, so the cache holds exactly one tree per repo.
"""

from __future__ import annotations

import asyncio
import logging
import zipfile
from pathlib import Path

import httpx

from ..errors import ArchiveError, HttpError, NetworkError
from ..fsutil import rmrf
from .resolver import RemoteRef, archive_filename, build_archive_url

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 65536


async def download(
    url: str,
    dest: Path,
    *,
    proxy: str | None = None,
    timeout: float | None = 60.0,
    max_redirects: int = 10,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Download url to dest.

    Args:
        url: Resource to fetch.
        dest: File the response body is streamed into.
        proxy: Optional proxy URL; the environment is not consulted here.
        timeout: Per-request timeout in seconds (None disables it).
        max_redirects: Maximum number of 3xx hops to follow.
        transport: Custom httpx transport (used by tests).

    Raises:
        HttpError: the final response is neither 2xx nor a followable 3xx.
        NetworkError: transport failure or too many redirects.
    """
    client_kwargs: dict = {
        "timeout": timeout,
        "follow_redirects": False,
        "trust_env": False,
    }
    if transport is not None:
        client_kwargs["transport"] = transport
    elif proxy:
        client_kwargs["proxy"] = proxy

    current = url
    try:
        async with httpx.AsyncClient(**client_kwargs) as client:
            for hop in range(max_redirects + 1):
                async with client.stream("GET", current) as resp:
                    status = resp.status_code
                    if 200 <= status < 300:
                        with open(dest, "wb") as out:
                            async for chunk in resp.aiter_bytes(_CHUNK_SIZE):
                                out.write(chunk)
                        logger.debug("Downloaded %s -> %s", current, dest)
                        return
                    location = resp.headers.get("location")
                    if 300 <= status < 400 and location:
                        current = str(resp.url.join(location))
                        logger.debug("Redirect %d: %s", hop + 1, current)
                        continue
                    raise HttpError(status, resp.reason_phrase)
    except httpx.HTTPError as e:
        dest.unlink(missing_ok=True)
        raise NetworkError(f"Download of {current} failed: {e}") from e
    except (HttpError, OSError):
        dest.unlink(missing_ok=True)
        raise

    raise NetworkError(f"Too many redirects (>{max_redirects}) fetching {url}.")


def _extract(archive: Path, dest_dir: Path) -> None:
    root = dest_dir.resolve()
    try:
        with zipfile.ZipFile(archive) as zf:
            for member in zf.namelist():
                target = (root / member).resolve()
                if target != root and root not in target.parents:
                    raise ArchiveError(
                        f"Archive member '{member}' escapes {dest_dir}, refusing to extract"
                    )
            zf.extractall(root)
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"'{archive}' is not a valid zip archive: {e}") from e


def _unpack(archive: Path) -> Path:
    parent = archive.parent
    stem = archive.stem
    try:
        _extract(archive, parent)
    finally:
        archive.unlink(missing_ok=True)

    extracted = parent / stem
    index = stem.rfind("-")
    if index == -1:
        return extracted
    normalized = parent / stem[:index]
    if not extracted.is_dir():
        raise ArchiveError(f"Archive '{archive.name}' has no '{stem}' root folder.")
    rmrf(normalized)
    extracted.rename(normalized)
    return normalized


async def unpack_archive(archive: Path) -> Path:
    """Extract archive next to itself, delete it, and strip the ``-<hash>`` suffix.

    Returns:
        Full path of the normalized directory.
    """
    return await asyncio.to_thread(_unpack, archive)


async def fetch_archive(
    cache_dir: Path,
    ref: RemoteRef,
    commit: str,
    *,
    proxy: str | None = None,
    timeout: float | None = 60.0,
    max_redirects: int = 10,
) -> Path:
    """Download and unpack the archive of ref at commit into cache_dir."""
    cache_dir.mkdir(parents=True, exist_ok=True)
    url = build_archive_url(ref, commit)
    archive = cache_dir / archive_filename(ref, commit)
    logger.info("Fetching %s", url)
    await download(
        url, archive, proxy=proxy, timeout=timeout, max_redirects=max_redirects
    )
    return await unpack_archive(archive)
