"""GitHub API backend.

Every call goes through ``HostedClient``, which handles the anonymous retry
and notices. Issue timelines (closing pull requests) need a token; without
one issues are returned without a closing PR.
"""

from __future__ import annotations

from dataclasses import replace

from wtg.backend.base import DEFAULT_HISTORY_LIMIT, Backend
from wtg.backend.tags import semver_predecessor, timestamp_predecessor
from wtg.changelog import find_changelog_name
from wtg.core.errors import WtgError
from wtg.core.result import Err, Ok, Result
from wtg.hosted import api, urls
from wtg.hosted.client import HostedClient
from wtg.model import (
    CommitInfo,
    FileInfo,
    IssueInfo,
    IssueOrPr,
    PullRequestInfo,
    ReleaseInfo,
    RepoCoords,
    TagInfo,
)
from wtg.semver import parse_semver

__all__ = ["GitHubBackend"]

_CONTAINS = ("ahead", "identical")


class GitHubBackend(Backend):
    """Backend over the GitHub REST API for one repository."""

    def __init__(self, client: HostedClient, coords: RepoCoords) -> None:
        self.client = client
        self.notices = client.notices
        self.coords = coords

    def repo(self) -> RepoCoords | None:
        return self.coords

    def for_repo(self, coords: RepoCoords) -> Result[Backend, WtgError]:
        return Ok(GitHubBackend(self.client, coords))

    @property
    def _api(self) -> str:
        return self.client.api_url

    # -------------------------------------------------------------------------
    # Commits and files
    # -------------------------------------------------------------------------

    def find_commit(self, rev: str) -> Result[CommitInfo, WtgError]:
        return self.client.call(
            f"commit {rev}", lambda h: api.get_commit(h, self._api, self.coords, rev)
        )

    def find_file(
        self, path: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> Result[FileInfo, WtgError]:
        result = self.client.call(
            f"history of {path}",
            lambda h: api.list_commits_for_path(h, self._api, self.coords, path, limit),
        )
        if isinstance(result, Err):
            return result
        if not result.value:
            return Err(WtgError.not_found(f"file {path}"))
        history = tuple(result.value)
        return Ok(FileInfo(path=path, last_commit=history[0], history=history))

    def commits_between_tags(
        self, older: str, newer: str, limit: int
    ) -> Result[list[CommitInfo], WtgError]:
        result = self.client.call(
            f"compare {older}...{newer}",
            lambda h: api.compare(h, self._api, self.coords, older, newer),
        )
        if isinstance(result, Err):
            return result
        return Ok(list(reversed(result.value.commits))[:limit])

    # -------------------------------------------------------------------------
    # Issues and pull requests
    # -------------------------------------------------------------------------

    def find_issue_or_pr(self, number: int) -> Result[IssueOrPr, WtgError]:
        result = self.client.call(
            f"#{number}", lambda h: api.get_issue_or_pull(h, self._api, self.coords, number)
        )
        if isinstance(result, Err):
            return result

        item = result.value
        if isinstance(item, IssueInfo) and item.state == "closed":
            closing = self._closing_pr(number)
            if closing is not None:
                return Ok(replace(item, closing_pr=closing))
        return Ok(item)

    def _closing_pr(self, number: int) -> PullRequestInfo | None:
        """First merged PR referencing the issue, else the first one found."""
        refs = self.client.call_authenticated(
            f"timeline of #{number}",
            lambda h: api.closing_pull_refs(h, self._api, self.coords, number),
        )
        if isinstance(refs, Err):
            return None

        first: PullRequestInfo | None = None
        for ref in refs.value:
            pr = self.client.call(
                f"{ref.repo}#{ref.number}",
                lambda h, ref=ref: api.get_pull(h, self._api, ref.repo, ref.number),
            )
            if isinstance(pr, Err):
                continue
            if pr.value.merged:
                return pr.value
            first = first or pr.value
        return first

    # -------------------------------------------------------------------------
    # Tags and releases
    # -------------------------------------------------------------------------

    def find_release(self, tag_name: str) -> Result[ReleaseInfo, WtgError]:
        return self.client.call(
            f"release {tag_name}",
            lambda h: api.get_release_by_tag(h, self._api, self.coords, tag_name),
        )

    def find_tag(self, name: str) -> Result[TagInfo, WtgError]:
        sha = self.client.call(
            f"tag {name}", lambda h: api.resolve_tag_commit(h, self._api, self.coords, name)
        )
        if isinstance(sha, Err):
            return sha
        commit = self.find_commit(sha.value)
        if isinstance(commit, Err):
            return commit

        release = self.find_release(name)
        return Ok(
            TagInfo(
                name=name,
                commit_hash=commit.value.hash,
                timestamp=commit.value.timestamp,
                semver=parse_semver(name),
                is_release=isinstance(release, Ok),
                release_url=release.value.url if isinstance(release, Ok) else None,
            )
        )

    def find_release_for_commit(self, commit: CommitInfo) -> Result[TagInfo, WtgError]:
        releases = self.client.call(
            "list releases",
            lambda h: api.list_releases(h, self._api, self.coords, since=commit.timestamp),
        )
        if isinstance(releases, Err):
            return releases

        # Semver releases first, then oldest first: the first one containing
        # the commit is the best candidate.
        ordered = sorted(
            releases.value,
            key=lambda r: (
                parse_semver(r.tag_name) is None,
                r.created_at or r.published_at or commit.timestamp,
                r.tag_name,
            ),
        )
        for release in ordered:
            comparison = self.client.call(
                f"compare {commit.short_hash}...{release.tag_name}",
                lambda h, tag=release.tag_name: api.compare(
                    h, self._api, self.coords, commit.hash, tag
                ),
            )
            if isinstance(comparison, Err):
                if comparison.error.is_recoverable:
                    continue
                return comparison
            if comparison.value.status in _CONTAINS:
                return self._release_tag(release)
        return Err(WtgError.not_found(f"release containing {commit.short_hash}"))

    def _release_tag(self, release: ReleaseInfo) -> Result[TagInfo, WtgError]:
        tag = self.find_tag(release.tag_name)
        if isinstance(tag, Err):
            return tag
        return Ok(replace(tag.value, is_release=True, release_url=release.url))

    def find_previous_tag(self, tag: TagInfo) -> Result[TagInfo, WtgError]:
        names = self.client.call(
            "list tags", lambda h: api.list_tag_names(h, self._api, self.coords)
        )
        if isinstance(names, Err):
            return names

        if tag.is_semver:
            previous = semver_predecessor(tag.name, (n for n, _ in names.value))
            if previous is None:
                return Err(WtgError.not_found(f"tag before {tag.name}"))
            return self.find_tag(previous)

        releases = self.client.call(
            "list releases", lambda h: api.list_releases(h, self._api, self.coords)
        )
        if isinstance(releases, Err):
            return releases

        # Non-semver ordering uses release timestamps; tags without a release
        # have no usable date.
        shas = dict(names.value)
        released: list[TagInfo] = []
        for release in releases.value:
            sha = shas.get(release.tag_name)
            ts = release.created_at or release.published_at
            if sha is None or ts is None:
                continue
            released.append(
                TagInfo(
                    name=release.tag_name,
                    commit_hash=sha,
                    timestamp=ts,
                    semver=parse_semver(release.tag_name),
                    is_release=True,
                    release_url=release.url,
                )
            )

        current = next((t for t in released if t.name == tag.name), tag)
        previous_tag = timestamp_predecessor(current, released)
        if previous_tag is None:
            return Err(WtgError.not_found(f"tag before {tag.name}"))
        return Ok(previous_tag)

    def changelog_text(self) -> Result[str, WtgError]:
        names = self.client.call(
            "list repository root", lambda h: api.list_root_names(h, self._api, self.coords)
        )
        if isinstance(names, Err):
            return names
        name = find_changelog_name(names.value)
        if name is None:
            return Err(WtgError.not_found(f"changelog in {self.coords}"))
        return self.client.call(
            name, lambda h: api.get_file_text(h, self._api, self.coords, name)
        )

    # -------------------------------------------------------------------------
    # URLs
    # -------------------------------------------------------------------------

    def commit_url(self, hash_: str) -> str | None:
        return urls.commit_url(self.client.web_url, self.coords, hash_)

    def tag_url(self, name: str) -> str | None:
        return urls.tag_url(self.client.web_url, self.coords, name)

    def issue_url(self, number: int) -> str | None:
        return urls.issue_url(self.client.web_url, self.coords, number)

    def author_url(self, email: str) -> str | None:
        return urls.author_url_from_email(self.client.web_url, email)
