"""Bare clones of GitHub repositories kept under the user cache directory.

A query for a repository with no local working tree can still be answered
from git data when a cached clone exists. Cloning and refreshing both need the
network, so they only happen when fetching is allowed; otherwise an existing
clone is read as it is.

Layout: ``<cache root>/<owner>/<name>`` holds one bare repository.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from wtg.core.result import Err, Ok, Result
from wtg.git.repository import GitError, GitRepo
from wtg.model import RepoCoords

__all__ = [
    "CACHE_ENV_VAR",
    "CachedClone",
    "cached_clone_path",
    "default_cache_dir",
    "open_cached_clone",
]

CACHE_ENV_VAR = "XDG_CACHE_HOME"


@dataclass(frozen=True, slots=True)
class CachedClone:
    """An opened cached clone.

    Attributes:
        repo: The bare repository
        stale: Why refreshing it failed, when it did; the old data is still usable
    """

    repo: GitRepo
    stale: GitError | None = None


def default_cache_dir(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    base = env.get(CACHE_ENV_VAR)
    root = Path(base).expanduser() if base else Path.home() / ".cache"
    return root / "wtg" / "repos"


def cached_clone_path(root: Path, coords: RepoCoords) -> Path:
    # GitHub names are case-insensitive; one directory per repository.
    return root / coords.owner.lower() / coords.name.lower()


def open_cached_clone(
    root: Path, coords: RepoCoords, url: str, *, fetch: bool
) -> Result[CachedClone | None, GitError]:
    """Open, refresh or create the cached clone of ``coords``.

    Args:
        root: Cache root directory
        coords: Repository to open
        url: Clone URL, used only when the clone does not exist yet
        fetch: Whether network access is allowed

    Returns:
        Ok(CachedClone), Ok(None) when there is no clone and fetching is not
        allowed, or Err(GitError) when cloning failed.
    """
    path = cached_clone_path(root, coords)
    if (path / "HEAD").is_file():
        repo = GitRepo(path)
        if not fetch:
            return Ok(CachedClone(repo))
        refreshed = repo.fetch_refs()
        stale = refreshed.error if isinstance(refreshed, Err) else None
        return Ok(CachedClone(repo, stale=stale))

    if not fetch:
        return Ok(None)
    cloned = GitRepo.clone_bare(url, path)
    if isinstance(cloned, Err):
        return cloned
    return Ok(CachedClone(cloned.value))
