"""Query resolution.

``resolve`` turns a parsed query into an ``IdentifiedThing`` using one
backend. Issues closed by a pull request in another repository are followed
there: the commit and release are looked up through ``backend.for_repo``.

Usage:
    match resolve_with_timeout(backend, parsed.query, config.resolve_timeout):
        case Ok(thing):
            render(thing)
        case Err(error):
            report(error)
"""

from __future__ import annotations

import re
import threading
from collections.abc import Callable
from dataclasses import replace

from wtg.backend.base import Backend
from wtg.core.errors import WtgError
from wtg.core.notices import CrossRepoFetchFailed
from wtg.core.result import Err, Ok, Result
from wtg.model import (
    CommitInfo,
    EnrichedInfo,
    EntryPoint,
    FileResult,
    IdentifiedThing,
    IssueInfo,
    PullRequestInfo,
    RepoCoords,
    TagInfo,
    TagResult,
)
from wtg.query import CommitHash, FilePath, IssueOrPrNumber, Query, TagName, Unknown, check_path
from wtg.resolution.tag_summary import summarize_tag

__all__ = ["resolve", "resolve_with_timeout"]

_HEX_RE = re.compile(r"^[0-9a-fA-F]{4,40}$")
_NUMBER_RE = re.compile(r"^#?([0-9]+)$")

type _Attempt = Callable[[], Result[IdentifiedThing, WtgError]]


def resolve(backend: Backend, query: Query) -> Result[IdentifiedThing, WtgError]:
    """Identify ``query`` and find the release that shipped it."""
    match query:
        case CommitHash(hash=rev):
            return resolve_commit(backend, rev)
        case IssueOrPrNumber(number=number):
            return resolve_number(backend, number)
        case FilePath(path=path):
            return resolve_file(backend, path)
        case TagName(name=name):
            return resolve_tag(backend, name)
        case Unknown(raw=raw):
            return resolve_unknown(backend, raw)


def resolve_with_timeout(
    backend: Backend, query: Query, timeout: float
) -> Result[IdentifiedThing, WtgError]:
    """``resolve`` bounded by ``timeout`` seconds; no partial result on expiry.

    The work runs on a daemon thread so an expired resolution never keeps the
    process alive. Notices it emits are staged and only kept when it finishes
    in time.
    """
    outcome: list[Result[IdentifiedThing, WtgError]] = []
    failure: list[Exception] = []

    def work() -> None:
        try:
            outcome.append(resolve(backend, query))
        except Exception as e:  # re-raised on the calling thread
            failure.append(e)

    backend.notices.hold()
    worker = threading.Thread(target=work, name="wtg-resolve", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        backend.notices.discard()
        return Err(
            WtgError(
                kind="timeout",
                message=f"resolution did not finish within {timeout:g}s",
                hint="raise --timeout or check network access",
            )
        )

    backend.notices.release()
    if failure:
        raise failure[0]
    return outcome[0]


# =============================================================================
# Commits
# =============================================================================


def _release_for(backend: Backend, commit: CommitInfo) -> TagInfo | None:
    # A missing release is a normal outcome, not a failure of the query.
    release = backend.find_release_for_commit(commit)
    return release.value if isinstance(release, Ok) else None


def _with_url(backend: Backend, commit: CommitInfo) -> CommitInfo:
    if commit.url is not None:
        return commit
    url = backend.commit_url(commit.hash)
    if url is None:
        return commit
    return replace(commit, url=url)


def resolve_commit(backend: Backend, rev: str) -> Result[IdentifiedThing, WtgError]:
    commit = backend.find_commit(rev)
    if isinstance(commit, Err):
        return commit
    return Ok(
        EnrichedInfo(
            entry_point=EntryPoint(kind="commit", value=rev),
            commit=_with_url(backend, commit.value),
            release=_release_for(backend, commit.value),
        )
    )


# =============================================================================
# Issues and pull requests
# =============================================================================


def _is_other_repo(backend: Backend, repo: RepoCoords) -> bool:
    current = backend.repo()
    return current is not None and not current.same_repo(repo)


def _merged_commit(
    backend: Backend, pr: PullRequestInfo
) -> tuple[CommitInfo | None, TagInfo | None, RepoCoords | None]:
    """Merge commit and release of ``pr``, following it to its own repository.

    Returns ``(commit, release, redirected_repo)``.
    """
    if not pr.merged or pr.merge_commit_sha is None:
        return (None, None, None)

    target = backend
    redirected: RepoCoords | None = None
    if _is_other_repo(backend, pr.repo):
        switched = backend.for_repo(pr.repo)
        if isinstance(switched, Err):
            backend.notices.emit(CrossRepoFetchFailed(repo=pr.repo.slug, error=switched.error))
            return (None, None, None)
        target = switched.value
        redirected = pr.repo

    commit = target.find_commit(pr.merge_commit_sha)
    if isinstance(commit, Err):
        if redirected is not None:
            backend.notices.emit(CrossRepoFetchFailed(repo=pr.repo.slug, error=commit.error))
        return (None, None, None)
    return (_with_url(target, commit.value), _release_for(target, commit.value), redirected)


def resolve_number(backend: Backend, number: int) -> Result[IdentifiedThing, WtgError]:
    item = backend.find_issue_or_pr(number)
    if isinstance(item, Err):
        return item

    match item.value:
        case PullRequestInfo() as pr:
            commit, release, redirected = _merged_commit(backend, pr)
            return Ok(
                EnrichedInfo(
                    entry_point=EntryPoint(kind="pr", value=f"#{number}"),
                    commit=commit,
                    pr=pr,
                    release=release,
                    redirected_repo=redirected,
                )
            )
        case IssueInfo() as issue:
            closing = issue.closing_pr
            commit, release, redirected = (
                _merged_commit(backend, closing) if closing is not None else (None, None, None)
            )
            return Ok(
                EnrichedInfo(
                    entry_point=EntryPoint(kind="issue", value=f"#{number}"),
                    commit=commit,
                    pr=closing,
                    issue=issue,
                    release=release,
                    redirected_repo=redirected,
                )
            )


# =============================================================================
# Files and tags
# =============================================================================


def resolve_file(backend: Backend, path: str) -> Result[IdentifiedThing, WtgError]:
    info = backend.find_file(path)
    if isinstance(info, Err):
        return info
    last = info.value.last_commit
    return Ok(
        FileResult(
            file_info=info.value,
            commit_url=last.url or backend.commit_url(last.hash),
            author_urls=tuple(backend.author_url(c.author_email) for c in info.value.history),
        )
    )


def resolve_tag(backend: Backend, name: str) -> Result[IdentifiedThing, WtgError]:
    tag = backend.find_tag(name)
    if isinstance(tag, Err):
        return tag
    return Ok(
        TagResult(
            tag=tag.value,
            url=tag.value.release_url or backend.tag_url(name),
            summary=summarize_tag(backend, tag.value),
        )
    )


# =============================================================================
# Disambiguation
# =============================================================================


def resolve_unknown(backend: Backend, raw: str) -> Result[IdentifiedThing, WtgError]:
    """Try commit, issue/PR, tag and file interpretations in that order.

    Only ``not_found`` and ``unsupported`` move on to the next one.
    """
    attempts: list[_Attempt] = []
    if _HEX_RE.match(raw):
        attempts.append(lambda: resolve_commit(backend, raw))
    number = _NUMBER_RE.match(raw)
    if number is not None:
        attempts.append(lambda: resolve_number(backend, int(number.group(1))))
    attempts.append(lambda: resolve_tag(backend, raw))
    if check_path(raw):
        attempts.append(lambda: resolve_file(backend, raw))

    for attempt in attempts:
        result = attempt()
        if isinstance(result, Ok) or not result.error.is_recoverable:
            return result
    return Err(
        WtgError(
            kind="not_found",
            message=f"nothing named {raw!r}",
            hint="not a commit, issue, pull request, tag or file here",
        )
    )
