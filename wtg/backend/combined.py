"""Local-first backend with GitHub fallback.

Each lookup is tried on the local clone first. Only ``not_found`` and
``unsupported`` fall through to the API; any other local failure is returned
as is. When both sides fail, the hosted error wins unless it is generic
(``unsupported``, ``hosted_error``) and the local one is not.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace

from wtg.backend.base import DEFAULT_HISTORY_LIMIT, Backend
from wtg.backend.hosted import GitHubBackend
from wtg.backend.local import GitBackend
from wtg.core.errors import WtgError
from wtg.core.result import Err, Ok, Result
from wtg.model import CommitInfo, FileInfo, IssueOrPr, ReleaseInfo, RepoCoords, TagInfo

__all__ = ["CombinedBackend", "prefer_error"]


def prefer_error(local: WtgError, hosted: WtgError) -> WtgError:
    """The more informative of two failures for the same lookup."""
    if hosted.is_generic and not local.is_generic:
        return local
    return hosted


class CombinedBackend(Backend):
    """A local clone and the GitHub repository it was cloned from."""

    def __init__(self, local: GitBackend, hosted: GitHubBackend) -> None:
        self.local = local
        self.hosted = hosted
        self.notices = hosted.notices

    def _either[T](
        self,
        local: Callable[[], Result[T, WtgError]],
        hosted: Callable[[], Result[T, WtgError]],
    ) -> Result[T, WtgError]:
        first = local()
        if isinstance(first, Ok) or not first.error.is_recoverable:
            return first
        second = hosted()
        if isinstance(second, Ok):
            return second
        return Err(prefer_error(first.error, second.error))

    def repo(self) -> RepoCoords | None:
        return self.hosted.coords

    def for_repo(self, coords: RepoCoords) -> Result[Backend, WtgError]:
        if self.hosted.coords.same_repo(coords):
            return Ok(CombinedBackend(self.local, self.hosted))
        # No clone of the other repository is available.
        return self.hosted.for_repo(coords)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def find_commit(self, rev: str) -> Result[CommitInfo, WtgError]:
        return self._either(
            lambda: self.local.find_commit(rev), lambda: self.hosted.find_commit(rev)
        )

    def find_issue_or_pr(self, number: int) -> Result[IssueOrPr, WtgError]:
        return self._either(
            lambda: self.local.find_issue_or_pr(number),
            lambda: self.hosted.find_issue_or_pr(number),
        )

    def find_file(
        self, path: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> Result[FileInfo, WtgError]:
        return self._either(
            lambda: self.local.find_file(path, limit),
            lambda: self.hosted.find_file(path, limit),
        )

    def find_tag(self, name: str) -> Result[TagInfo, WtgError]:
        result = self._either(
            lambda: self.local.find_tag(name), lambda: self.hosted.find_tag(name)
        )
        if isinstance(result, Err) or result.value.is_release:
            return result
        return Ok(self._mark_release(result.value))

    def find_release_for_commit(self, commit: CommitInfo) -> Result[TagInfo, WtgError]:
        result = self._either(
            lambda: self.local.find_release_for_commit(commit),
            lambda: self.hosted.find_release_for_commit(commit),
        )
        if isinstance(result, Err) or result.value.is_release:
            return result
        return Ok(self._mark_release(result.value))

    def _mark_release(self, tag: TagInfo) -> TagInfo:
        release = self.hosted.find_release(tag.name)
        if isinstance(release, Err):
            return tag
        return replace(tag, is_release=True, release_url=release.value.url)

    def find_previous_tag(self, tag: TagInfo) -> Result[TagInfo, WtgError]:
        return self._either(
            lambda: self.local.find_previous_tag(tag),
            lambda: self.hosted.find_previous_tag(tag),
        )

    def commits_between_tags(
        self, older: str, newer: str, limit: int
    ) -> Result[list[CommitInfo], WtgError]:
        local = self.local.commits_between_tags(older, newer, limit)
        if isinstance(local, Ok) and local.value:
            return local
        if isinstance(local, Err) and not local.error.is_recoverable:
            return local

        hosted = self.hosted.commits_between_tags(older, newer, limit)
        if isinstance(hosted, Ok):
            return hosted
        if isinstance(local, Ok):
            # The local answer (empty) stands when the API cannot do better.
            return local
        return Err(prefer_error(local.error, hosted.error))

    def find_release(self, tag_name: str) -> Result[ReleaseInfo, WtgError]:
        return self._either(
            lambda: self.local.find_release(tag_name),
            lambda: self.hosted.find_release(tag_name),
        )

    def changelog_text(self) -> Result[str, WtgError]:
        return self._either(self.local.changelog_text, self.hosted.changelog_text)

    # -------------------------------------------------------------------------
    # URLs
    # -------------------------------------------------------------------------

    def commit_url(self, hash_: str) -> str | None:
        return self.hosted.commit_url(hash_)

    def tag_url(self, name: str) -> str | None:
        return self.hosted.tag_url(name)

    def issue_url(self, number: int) -> str | None:
        return self.hosted.issue_url(number)

    def author_url(self, email: str) -> str | None:
        return self.hosted.author_url(email)
