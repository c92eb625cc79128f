"""Backend selection for one invocation.

Decision tree:
- explicit repository (URL input or ``--repo``):
  - the working directory is a clone of it: combined backend
  - a cached bare clone exists, or fetching is allowed and cloning works:
    combined backend over the cached clone
  - otherwise: GitHub-only backend (``HostedOnlyMode`` notice)
- no explicit repository:
  - not inside a git repository: ``not_in_repo`` error
  - a GitHub remote is configured: combined backend
  - otherwise: local-only backend (``LocalOnlyMode`` notice)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from wtg.backend.base import Backend
from wtg.backend.combined import CombinedBackend
from wtg.backend.hosted import GitHubBackend
from wtg.backend.local import GitBackend
from wtg.core.config import WtgConfig
from wtg.core.errors import WtgError
from wtg.core.notices import (
    CacheUpdateFailed,
    HostedOnlyMode,
    LocalOnlyMode,
    Notice,
    Notices,
)
from wtg.core.result import Err, Ok, Result
from wtg.git.cache import default_cache_dir, open_cached_clone
from wtg.git.repository import GitRepo
from wtg.hosted.client import HostedClient
from wtg.model import RepoCoords

__all__ = ["ResolvedBackend", "resolve_backend"]


@dataclass(frozen=True, slots=True)
class ResolvedBackend:
    """The selected backend plus notices produced while selecting it."""

    backend: Backend
    notices: tuple[Notice, ...] = ()


def resolve_backend(
    repo: RepoCoords | None,
    config: WtgConfig,
    notices: Notices,
    cwd: Path,
    *,
    client: HostedClient | None = None,
) -> Result[ResolvedBackend, WtgError]:
    """Pick the backend for a query.

    Args:
        repo: Explicit repository, if the input named one
        config: Runtime configuration
        notices: Accumulator handed to the backends
        cwd: Directory to look for a local clone in
        client: Prebuilt API client (tests); built from ``config`` otherwise
    """
    hosted_client = client if client is not None else HostedClient.from_config(config, notices)
    local = GitRepo.discover(cwd)

    if repo is not None:
        if isinstance(local, Ok):
            remote = local.value.hosted_remote()
            if remote is not None and remote.same_repo(repo):
                combined = _combined(
                    local.value, remote, config, hosted_client, allow_fetch=config.allow_fetch
                )
                return Ok(ResolvedBackend(combined))
        return Ok(_from_cache(repo, config, hosted_client, cwd))

    if isinstance(local, Err):
        return Err(
            WtgError(
                kind="not_in_repo",
                message="not inside a git repository",
                hint=f"looked in {cwd}",
            )
        )

    remote = local.value.hosted_remote()
    if remote is not None:
        combined = _combined(
            local.value, remote, config, hosted_client, allow_fetch=config.allow_fetch
        )
        return Ok(ResolvedBackend(combined))

    git = GitBackend(
        local.value, notices, web_url=config.web_url, allow_fetch=config.allow_fetch
    )
    return Ok(ResolvedBackend(git, (LocalOnlyMode(reason="no GitHub remote configured"),)))


def _from_cache(
    repo: RepoCoords, config: WtgConfig, client: HostedClient, cwd: Path
) -> ResolvedBackend:
    root = config.cache_dir if config.cache_dir is not None else default_cache_dir()
    url = f"{config.web_url}/{repo.slug}.git"
    opened = open_cached_clone(root, repo, url, fetch=config.allow_fetch)
    if isinstance(opened, Err):
        reason = f"could not clone {repo}: {opened.error.message}"
    elif opened.value is None:
        reason = f"no local clone of {repo} in {cwd}; --fetch caches one"
    else:
        cached = opened.value
        combined = _combined(cached.repo, repo, config, client, allow_fetch=False)
        if cached.stale is None:
            return ResolvedBackend(combined)
        stale = CacheUpdateFailed(repo=repo.slug, reason=cached.stale.message)
        return ResolvedBackend(combined, (stale,))
    return ResolvedBackend(GitHubBackend(client, repo), (HostedOnlyMode(reason=reason),))


def _combined(
    repo: GitRepo,
    remote: RepoCoords,
    config: WtgConfig,
    client: HostedClient,
    *,
    allow_fetch: bool,
) -> CombinedBackend:
    local = GitBackend(
        repo,
        client.notices,
        remote=remote,
        web_url=config.web_url,
        allow_fetch=allow_fetch,
    )
    return CombinedBackend(local, GitHubBackend(client, remote))
