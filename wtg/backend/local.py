"""Local git backend.

Answers from the repository's object database only, for a working tree or a
cached bare clone alike. Tags are listed once per backend and commits are
memoized by hash, so repeated lookups during a resolution do not spawn new
git processes. A bare clone has no CHANGELOG.md on disk, so its changelog
lookups come back not_found. The network is touched only when the caller
grants ``allow_fetch``: one ``git fetch --tags`` then runs in the constructor,
before any read.
"""

from __future__ import annotations

from dataclasses import replace

from wtg.backend.base import DEFAULT_HISTORY_LIMIT, Backend
from wtg.backend.tags import pick_release_tag, semver_predecessor, timestamp_predecessor
from wtg.changelog import read_changelog
from wtg.core.config import DEFAULT_WEB_URL
from wtg.core.errors import WtgError
from wtg.core.notices import Notices
from wtg.core.result import Err, Ok, Result
from wtg.git.repository import GitError, GitRepo
from wtg.hosted import urls
from wtg.model import CommitInfo, FileInfo, RepoCoords, TagInfo

__all__ = ["GitBackend", "git_failure"]


def git_failure(e: GitError) -> WtgError:
    if e.timed_out:
        return WtgError(kind="timeout", message=f"git {e.command} timed out", hint=e.message)
    return WtgError(kind="not_in_repo", message=f"git {e.command} failed", hint=e.message)


class GitBackend(Backend):
    """Backend over a local clone.

    Args:
        repo: The working tree or bare clone
        notices: Caller-owned accumulator
        remote: GitHub coordinates of the clone, used for URLs
        web_url: Web root for canonical URLs
        allow_fetch: Run one ``git fetch --tags`` before reading
    """

    def __init__(
        self,
        repo: GitRepo,
        notices: Notices,
        *,
        remote: RepoCoords | None = None,
        web_url: str = DEFAULT_WEB_URL,
        allow_fetch: bool = False,
    ) -> None:
        self.git = repo
        self.notices = notices
        self._remote = remote
        self._web_url = web_url
        self._tags: list[TagInfo] | None = None
        self._commits: dict[str, CommitInfo] = {}
        self.fetched = False
        if allow_fetch:
            # Reads continue on the cached state when the fetch fails.
            self.fetched = isinstance(repo.fetch_tags(), Ok)

    def repo(self) -> RepoCoords | None:
        return self._remote

    def for_repo(self, coords: RepoCoords) -> Result[Backend, WtgError]:
        if self._remote is not None and self._remote.same_repo(coords):
            return Ok(
                GitBackend(self.git, self.notices, remote=self._remote, web_url=self._web_url)
            )
        return Err(WtgError.unsupported(f"local access to {coords}"))

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def tags(self) -> Result[list[TagInfo], WtgError]:
        """All local tags, listed on first use."""
        if self._tags is None:
            result = self.git.list_tags()
            if isinstance(result, Err):
                return Err(git_failure(result.error))
            self._tags = result.value
        return Ok(self._tags)

    def _with_url(self, commit: CommitInfo) -> CommitInfo:
        if commit.url is not None or self._remote is None:
            return commit
        return replace(commit, url=urls.commit_url(self._web_url, self._remote, commit.hash))

    def _remember(self, commit: CommitInfo) -> CommitInfo:
        commit = self._with_url(commit)
        self._commits[commit.hash] = commit
        return commit

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def find_commit(self, rev: str) -> Result[CommitInfo, WtgError]:
        cached = self._commits.get(rev)
        if cached is not None:
            return Ok(cached)

        result = self.git.resolve_commit(rev)
        match result:
            case Err(e):
                return Err(git_failure(e))
            case Ok(None):
                return Err(WtgError.not_found(f"commit {rev}"))
            case Ok(commit):
                return Ok(self._remember(commit))

    def find_file(
        self, path: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> Result[FileInfo, WtgError]:
        result = self.git.file_history(path, limit)
        if isinstance(result, Err):
            return Err(git_failure(result.error))
        if not result.value:
            return Err(WtgError.not_found(f"file {path}"))
        history = tuple(self._remember(c) for c in result.value)
        return Ok(FileInfo(path=path, last_commit=history[0], history=history))

    def find_tag(self, name: str) -> Result[TagInfo, WtgError]:
        tags = self.tags()
        if isinstance(tags, Err):
            return tags
        for tag in tags.value:
            if tag.name == name:
                return Ok(tag)
        return Err(WtgError.not_found(f"tag {name}"))

    def find_release_for_commit(self, commit: CommitInfo) -> Result[TagInfo, WtgError]:
        tags = self.tags()
        if isinstance(tags, Err):
            return tags
        containing = self.git.tags_containing(commit.hash)
        if isinstance(containing, Err):
            return Err(git_failure(containing.error))

        names = set(containing.value)
        best = pick_release_tag(t for t in tags.value if t.name in names)
        if best is None:
            return Err(WtgError.not_found(f"release containing {commit.short_hash}"))
        return Ok(best)

    def find_previous_tag(self, tag: TagInfo) -> Result[TagInfo, WtgError]:
        tags = self.tags()
        if isinstance(tags, Err):
            return tags

        if tag.is_semver:
            name = semver_predecessor(tag.name, (t.name for t in tags.value))
            previous = next((t for t in tags.value if t.name == name), None)
        else:
            previous = timestamp_predecessor(tag, tags.value)
        if previous is None:
            return Err(WtgError.not_found(f"tag before {tag.name}"))
        return Ok(previous)

    def commits_between_tags(
        self, older: str, newer: str, limit: int
    ) -> Result[list[CommitInfo], WtgError]:
        tags = self.tags()
        if isinstance(tags, Err):
            return tags
        known = {t.name for t in tags.value}
        if older not in known or newer not in known:
            return Ok([])

        result = self.git.log_range(f"refs/tags/{older}", f"refs/tags/{newer}", limit)
        if isinstance(result, Err):
            return Err(git_failure(result.error))
        return Ok([self._remember(c) for c in result.value])

    def changelog_text(self) -> Result[str, WtgError]:
        return read_changelog(self.git.path)

    # -------------------------------------------------------------------------
    # URLs
    # -------------------------------------------------------------------------

    def commit_url(self, hash_: str) -> str | None:
        if self._remote is None:
            return None
        return urls.commit_url(self._web_url, self._remote, hash_)

    def tag_url(self, name: str) -> str | None:
        if self._remote is None:
            return None
        return urls.tag_url(self._web_url, self._remote, name)

    def issue_url(self, number: int) -> str | None:
        if self._remote is None:
            return None
        return urls.issue_url(self._web_url, self._remote, number)

    def author_url(self, email: str) -> str | None:
        return urls.author_url_from_email(self._web_url, email)
