"""GitHub REST API functions.

Pure functions over an ``HttpClient``: each builds a URL, fetches it and
narrows the JSON into model objects. Malformed responses become
``HttpError(malformed=True)``. No fallback or notice logic lives here.

All functions take the API root (``WtgConfig.api_url``) so tests and GitHub
Enterprise-style roots work alike.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from urllib.parse import quote

from wtg.core.result import Err, Ok, Result
from wtg.core.structured import (
    StrDict,
    as_obj_list,
    as_str_dict,
    get_bool,
    get_int,
    get_raw_str,
    get_str,
    get_table,
)
from wtg.hosted.http import HttpError
from wtg.model import CommitInfo, IssueInfo, IssueOrPr, PullRequestInfo, ReleaseInfo, RepoCoords
from wtg.query import parse_repo_url

if TYPE_CHECKING:
    from wtg.hosted.http import HttpClient

__all__ = [
    "Comparison",
    "PullRef",
    "closing_pull_refs",
    "compare",
    "get_commit",
    "get_file_text",
    "get_issue_or_pull",
    "get_pull",
    "get_release_by_tag",
    "list_commits_for_path",
    "list_releases",
    "list_root_names",
    "list_tag_names",
    "parse_time",
    "resolve_tag_commit",
]

PER_PAGE = 100
MAX_PAGES = 10


@dataclass(frozen=True, slots=True)
class Comparison:
    """Result of ``compare/{base}...{head}``.

    ``status`` is ``ahead``, ``behind``, ``identical`` or ``diverged``;
    ``commits`` are oldest first, as the API returns them.
    """

    status: str
    commits: tuple[CommitInfo, ...] = ()


@dataclass(frozen=True, slots=True)
class PullRef:
    repo: RepoCoords
    number: int


def _repo_url(api: str, repo: RepoCoords) -> str:
    return f"{api}/repos/{quote(repo.owner)}/{quote(repo.name)}"


def _malformed(url: str, what: str) -> HttpError:
    return HttpError(url=url, status=0, message=f"unexpected response: {what}", malformed=True)


def parse_time(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 API timestamp (``2024-01-15T10:00:00Z``)."""
    if not raw:
        return None
    try:
        ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=UTC)


def _fetch_dict(http: HttpClient, url: str) -> Result[StrDict, HttpError]:
    result = http.get_json(url)
    if isinstance(result, Err):
        return result
    data = as_str_dict(result.value)
    if data is None:
        return Err(_malformed(url, "expected JSON object"))
    return Ok(data)


def _fetch_list(http: HttpClient, url: str) -> Result[list[StrDict], HttpError]:
    result = http.get_json(url)
    if isinstance(result, Err):
        return result
    items = as_obj_list(result.value)
    if items is None:
        return Err(_malformed(url, "expected JSON array"))
    return Ok([d for d in (as_str_dict(i) for i in items) if d is not None])


def _login(data: StrDict, key: str) -> str | None:
    user = get_table(data, key)
    return get_str(user, "login") if user is not None else None


def _commit_from_json(data: StrDict) -> CommitInfo | None:
    sha = get_str(data, "sha")
    commit = get_table(data, "commit")
    if sha is None or commit is None:
        return None
    author = get_table(commit, "author") or {}
    committer = get_table(commit, "committer") or {}
    ts = parse_time(get_str(committer, "date")) or parse_time(get_str(author, "date"))
    if ts is None:
        return None

    message = (get_raw_str(commit, "message") or "").strip()
    lines = message.splitlines()
    parents = tuple(
        p for p in (get_str(d, "sha") for d in _dicts(data.get("parents"))) if p is not None
    )
    return CommitInfo(
        hash=sha,
        short_hash=sha[:7],
        author_name=get_str(author, "name") or "",
        author_email=get_str(author, "email") or "",
        timestamp=ts,
        message=lines[0] if lines else "",
        message_lines=max(len(lines), 1),
        parents=parents,
        url=get_str(data, "html_url"),
        author_login=_login(data, "author"),
    )


def _dicts(obj: object) -> list[StrDict]:
    items = as_obj_list(obj) or []
    return [d for d in (as_str_dict(i) for i in items) if d is not None]


def _release_from_json(data: StrDict) -> ReleaseInfo | None:
    tag = get_str(data, "tag_name")
    url = get_str(data, "html_url")
    if tag is None or url is None:
        return None
    return ReleaseInfo(
        tag_name=tag,
        url=url,
        created_at=parse_time(get_str(data, "created_at")),
        published_at=parse_time(get_str(data, "published_at")),
        title=get_str(data, "name"),
        body=get_raw_str(data, "body"),
        prerelease=get_bool(data, "prerelease") or False,
    )


# =============================================================================
# Commits
# =============================================================================


def get_commit(
    http: HttpClient, api: str, repo: RepoCoords, sha: str
) -> Result[CommitInfo, HttpError]:
    """Fetch one commit by hash (or any ref the API accepts)."""
    url = f"{_repo_url(api, repo)}/commits/{quote(sha, safe='')}"
    result = _fetch_dict(http, url)
    if isinstance(result, Err):
        if result.error.status == 422:
            # GitHub answers "No commit found for SHA" for unknown refs.
            return Err(replace(result.error, status=404))
        return result
    commit = _commit_from_json(result.value)
    if commit is None:
        return Err(_malformed(url, "commit"))
    return Ok(commit)


def list_commits_for_path(
    http: HttpClient, api: str, repo: RepoCoords, path: str, limit: int
) -> Result[list[CommitInfo], HttpError]:
    """Commits touching ``path`` on the default branch, most recent first."""
    url = f"{_repo_url(api, repo)}/commits?path={quote(path)}&per_page={min(limit, PER_PAGE)}"
    result = _fetch_list(http, url)
    if isinstance(result, Err):
        return result
    commits = [c for c in (_commit_from_json(d) for d in result.value) if c is not None]
    return Ok(commits[:limit])


def compare(
    http: HttpClient, api: str, repo: RepoCoords, base: str, head: str
) -> Result[Comparison, HttpError]:
    url = f"{_repo_url(api, repo)}/compare/{quote(base, safe='')}...{quote(head, safe='')}"
    result = _fetch_dict(http, url)
    if isinstance(result, Err):
        return result
    status = get_str(result.value, "status")
    if status is None:
        return Err(_malformed(url, "comparison without status"))
    commits = [c for c in (_commit_from_json(d) for d in _dicts(result.value.get("commits"))) if c]
    return Ok(Comparison(status=status, commits=tuple(commits)))


# =============================================================================
# Issues and pull requests
# =============================================================================


def _pull_repo(data: StrDict, fallback: RepoCoords) -> RepoCoords:
    base = get_table(data, "base")
    base_repo = get_table(base, "repo") if base is not None else None
    full_name = get_str(base_repo, "full_name") if base_repo is not None else None
    parsed = parse_repo_url(full_name) if full_name else None
    return parsed or fallback


def get_pull(
    http: HttpClient, api: str, repo: RepoCoords, number: int
) -> Result[PullRequestInfo, HttpError]:
    url = f"{_repo_url(api, repo)}/pulls/{number}"
    result = _fetch_dict(http, url)
    if isinstance(result, Err):
        return result
    data = result.value
    title = get_raw_str(data, "title")
    html_url = get_str(data, "html_url")
    if title is None or html_url is None:
        return Err(_malformed(url, "pull request"))
    return Ok(
        PullRequestInfo(
            number=get_int(data, "number") or number,
            title=title,
            state=get_str(data, "state") or "unknown",
            url=html_url,
            repo=_pull_repo(data, repo),
            merged=get_bool(data, "merged") or False,
            merge_commit_sha=get_str(data, "merge_commit_sha"),
            author=_login(data, "user"),
        )
    )


def get_issue_or_pull(
    http: HttpClient, api: str, repo: RepoCoords, number: int
) -> Result[IssueOrPr, HttpError]:
    """Fetch ``number`` through the issues endpoint, which also answers for PRs.

    An issue is returned without ``closing_pr``; see ``closing_pull_refs``.
    """
    url = f"{_repo_url(api, repo)}/issues/{number}"
    result = _fetch_dict(http, url)
    if isinstance(result, Err):
        return result
    data = result.value
    if data.get("pull_request") is not None:
        return get_pull(http, api, repo, number)

    title = get_raw_str(data, "title")
    html_url = get_str(data, "html_url")
    if title is None or html_url is None:
        return Err(_malformed(url, "issue"))
    return Ok(
        IssueInfo(
            number=get_int(data, "number") or number,
            title=title,
            state=get_str(data, "state") or "unknown",
            url=html_url,
            repo=repo,
            author=_login(data, "user"),
        )
    )


def closing_pull_refs(
    http: HttpClient, api: str, repo: RepoCoords, number: int
) -> Result[list[PullRef], HttpError]:
    """PRs that reference an issue, from its timeline, in timeline order.

    Cross-referencing PRs may live in other repositories; their coordinates
    come from the event's ``repository_url``. Duplicates are dropped.
    """
    refs: list[PullRef] = []
    for page in range(1, MAX_PAGES + 1):
        url = f"{_repo_url(api, repo)}/issues/{number}/timeline?per_page={PER_PAGE}&page={page}"
        result = _fetch_list(http, url)
        if isinstance(result, Err):
            return result

        for event in result.value:
            if get_str(event, "event") not in ("cross-referenced", "referenced"):
                continue
            source = get_table(event, "source")
            issue = get_table(source, "issue") if source is not None else None
            if issue is None or issue.get("pull_request") is None:
                continue
            pr_number = get_int(issue, "number")
            repository_url = get_str(issue, "repository_url")
            pr_repo = parse_repo_url(repository_url) if repository_url else None
            if pr_number is None or pr_repo is None:
                continue
            ref = PullRef(repo=pr_repo, number=pr_number)
            if not any(r.number == ref.number and r.repo.same_repo(ref.repo) for r in refs):
                refs.append(ref)

        if len(result.value) < PER_PAGE:
            break
    return Ok(refs)


# =============================================================================
# Tags and releases
# =============================================================================


def get_release_by_tag(
    http: HttpClient, api: str, repo: RepoCoords, tag: str
) -> Result[ReleaseInfo, HttpError]:
    url = f"{_repo_url(api, repo)}/releases/tags/{quote(tag, safe='')}"
    result = _fetch_dict(http, url)
    if isinstance(result, Err):
        return result
    release = _release_from_json(result.value)
    if release is None:
        return Err(_malformed(url, "release"))
    return Ok(release)


def list_releases(
    http: HttpClient, api: str, repo: RepoCoords, *, since: datetime | None = None
) -> Result[list[ReleaseInfo], HttpError]:
    """Releases, newest first.

    With ``since``, paging stops at the first release created before it and
    such releases are left out.
    """
    releases: list[ReleaseInfo] = []
    for page in range(1, MAX_PAGES + 1):
        url = f"{_repo_url(api, repo)}/releases?per_page={PER_PAGE}&page={page}"
        result = _fetch_list(http, url)
        if isinstance(result, Err):
            return result

        reached_since = False
        for data in result.value:
            release = _release_from_json(data)
            if release is None:
                continue
            created = release.created_at or release.published_at
            if since is not None and created is not None and created < since:
                reached_since = True
                break
            releases.append(release)

        if reached_since or len(result.value) < PER_PAGE:
            break
    return Ok(releases)


def list_tag_names(
    http: HttpClient, api: str, repo: RepoCoords
) -> Result[list[tuple[str, str]], HttpError]:
    """``(name, commit sha)`` for every tag."""
    tags: list[tuple[str, str]] = []
    for page in range(1, MAX_PAGES + 1):
        url = f"{_repo_url(api, repo)}/tags?per_page={PER_PAGE}&page={page}"
        result = _fetch_list(http, url)
        if isinstance(result, Err):
            return result
        for data in result.value:
            name = get_str(data, "name")
            commit = get_table(data, "commit")
            sha = get_str(commit, "sha") if commit is not None else None
            if name is not None and sha is not None:
                tags.append((name, sha))
        if len(result.value) < PER_PAGE:
            break
    return Ok(tags)


def resolve_tag_commit(
    http: HttpClient, api: str, repo: RepoCoords, tag: str
) -> Result[str, HttpError]:
    """Commit hash a tag points at, peeling annotated tag objects."""
    url = f"{_repo_url(api, repo)}/git/ref/tags/{quote(tag, safe='')}"
    result = _fetch_dict(http, url)
    if isinstance(result, Err):
        return result
    obj = get_table(result.value, "object")
    if obj is None:
        return Err(_malformed(url, "ref without object"))
    sha = get_str(obj, "sha")
    kind = get_str(obj, "type")
    if sha is None:
        return Err(_malformed(url, "ref without sha"))
    if kind != "tag":
        return Ok(sha)

    tag_url = f"{_repo_url(api, repo)}/git/tags/{sha}"
    tag_result = _fetch_dict(http, tag_url)
    if isinstance(tag_result, Err):
        return tag_result
    target = get_table(tag_result.value, "object")
    target_sha = get_str(target, "sha") if target is not None else None
    if target_sha is None:
        return Err(_malformed(tag_url, "tag object without target"))
    return Ok(target_sha)


# =============================================================================
# Contents
# =============================================================================


def list_root_names(
    http: HttpClient, api: str, repo: RepoCoords
) -> Result[list[str], HttpError]:
    """File names at the repository root (default branch)."""
    url = f"{_repo_url(api, repo)}/contents/"
    result = _fetch_list(http, url)
    if isinstance(result, Err):
        return result
    files = [d for d in result.value if get_str(d, "type") == "file"]
    return Ok([n for n in (get_str(d, "name") for d in files) if n is not None])


def get_file_text(
    http: HttpClient, api: str, repo: RepoCoords, path: str
) -> Result[str, HttpError]:
    """Decoded UTF-8 text of a file on the default branch."""
    url = f"{_repo_url(api, repo)}/contents/{quote(path)}"
    result = _fetch_dict(http, url)
    if isinstance(result, Err):
        return result

    content = get_raw_str(result.value, "content")
    if content is None or get_str(result.value, "encoding") != "base64":
        return Err(_malformed(url, "file content"))
    try:
        return Ok(base64.b64decode(content).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError) as e:
        return Err(_malformed(url, f"undecodable content: {e}"))
