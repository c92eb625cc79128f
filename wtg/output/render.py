"""Terminal rendering of resolution results and notices."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from wtg.core.notices import (
    AnonymousFallbackFailed,
    CacheUpdateFailed,
    CrossRepoFetchFailed,
    HostedOnlyMode,
    LocalOnlyMode,
    Notice,
    RateLimitHit,
)
from wtg.model import (
    ChangeSummary,
    CommitInfo,
    EnrichedInfo,
    FileResult,
    IdentifiedThing,
    IssueInfo,
    PullRequestInfo,
    TagInfo,
    TagResult,
)
from wtg.output.console import Style

if TYPE_CHECKING:
    from wtg.output.console import ConsoleProtocol

__all__ = ["format_notice", "render_notices", "render_thing"]

_DATE_FORMAT = "%Y-%m-%d %H:%M UTC"


def _date(commit: CommitInfo) -> str:
    return commit.timestamp.strftime(_DATE_FORMAT)


def _author(commit: CommitInfo) -> str:
    if commit.author_login:
        return f"{commit.author_name} (@{commit.author_login})"
    if commit.author_email:
        return f"{commit.author_name} <{commit.author_email}>"
    return commit.author_name


def render_thing(thing: IdentifiedThing, console: ConsoleProtocol) -> None:
    match thing:
        case EnrichedInfo():
            _render_enriched(thing, console)
        case FileResult():
            _render_file(thing, console)
        case TagResult():
            _render_tag(thing, console)


# =============================================================================
# Commits, issues and pull requests
# =============================================================================


def _render_commit(commit: CommitInfo, console: ConsoleProtocol) -> None:
    console.field("Commit", commit.short_hash)
    more = f" (+{commit.message_lines - 1} lines)" if commit.message_lines > 1 else ""
    console.field("Message", f"{commit.message}{more}")
    console.field("Author", _author(commit))
    console.field("Date", _date(commit))
    if commit.url:
        console.print(commit.url, Style.LINK)


def _render_issue(issue: IssueInfo, console: ConsoleProtocol) -> None:
    console.field("Issue", f"#{issue.number} {issue.title}")
    console.field("State", issue.state)
    if issue.author:
        console.field("Opened by", f"@{issue.author}")
    console.print(issue.url, Style.LINK)


def _render_pr(pr: PullRequestInfo, console: ConsoleProtocol) -> None:
    console.field("Pull request", f"{pr.repo}#{pr.number} {pr.title}")
    state = "merged" if pr.merged else pr.state
    console.field("State", state)
    if pr.author:
        console.field("Author", f"@{pr.author}")
    console.print(pr.url, Style.LINK)


def _render_release(release: TagInfo | None, console: ConsoleProtocol) -> None:
    if release is None:
        console.field("Released in", "not in any release yet")
        return
    kind = "release" if release.is_release else "tag"
    console.field("Released in", f"{release.name} ({kind}, {release.timestamp:%Y-%m-%d})")
    if release.release_url:
        console.print(release.release_url, Style.LINK)


def _render_enriched(info: EnrichedInfo, console: ConsoleProtocol) -> None:
    titles = {"commit": "Commit", "issue": "Issue", "pr": "Pull request"}
    console.header(f"{titles[info.entry_point.kind]} {info.entry_point.value}")

    if info.issue is not None:
        _render_issue(info.issue, console)
        if info.pr is None:
            console.print("No closing pull request found.", Style.DIM)
    if info.pr is not None:
        _render_pr(info.pr, console)
    if info.redirected_repo is not None:
        console.field("Resolved in", info.redirected_repo.slug)

    if info.commit is not None:
        _render_commit(info.commit, console)
        _render_release(info.release, console)
    elif info.pr is not None and not info.pr.merged:
        console.print("Not merged; nothing was released.", Style.DIM)


# =============================================================================
# Files and tags
# =============================================================================


def _render_file(result: FileResult, console: ConsoleProtocol) -> None:
    info = result.file_info
    console.header(f"File {info.path}")
    _render_commit(info.last_commit, console)

    if len(info.history) > 1:
        console.newline()
        console.print("History:", Style.BOLD)
        urls = result.author_urls
        for i, commit in enumerate(info.history):
            url = urls[i] if i < len(urls) else None
            suffix = f" {url}" if url else ""
            console.print(
                f"  {commit.short_hash} {commit.timestamp:%Y-%m-%d} "
                f"{commit.author_name}: {commit.message}{suffix}"
            )


def _render_summary(summary: ChangeSummary, console: ConsoleProtocol) -> None:
    match summary.source:
        case "release" | "changelog":
            label = "Release notes" if summary.source == "release" else "Changelog"
            console.print(f"{label}:", Style.BOLD)
            for line in (summary.text or "").splitlines():
                console.print(f"  {line}")
            if summary.omitted_lines is not None:
                console.print(f"  ... {summary.omitted_lines} more lines", Style.DIM)
        case "commits":
            console.print(f"Commits since {summary.previous_tag}:", Style.BOLD)
            for commit in summary.commits:
                console.print(f"  {commit.short_hash} {commit.message}")


def _render_tag(result: TagResult, console: ConsoleProtocol) -> None:
    tag = result.tag
    console.header(f"Tag {tag.name}")
    kind = "release" if tag.is_release else "tag"
    if tag.semver is not None and tag.semver.is_prerelease:
        kind = f"pre-{kind}"
    console.field("Kind", kind)
    console.field("Commit", tag.commit_hash[:7])
    console.field("Date", tag.timestamp.strftime(_DATE_FORMAT))
    if result.url:
        console.print(result.url, Style.LINK)
    if result.summary is not None:
        console.newline()
        _render_summary(result.summary, console)


# =============================================================================
# Notices
# =============================================================================


def format_notice(notice: Notice) -> str:
    match notice:
        case RateLimitHit(authenticated=True):
            return "GitHub API rate limit reached for the authenticated token"
        case RateLimitHit(authenticated=False):
            return "GitHub API rate limit reached (anonymous); set GITHUB_TOKEN for a higher limit"
        case AnonymousFallbackFailed(operation=operation, error=error):
            return f"anonymous retry of {operation} failed: {error}"
        case CrossRepoFetchFailed(repo=repo, error=error):
            return f"could not follow the pull request into {repo}: {error}"
        case LocalOnlyMode(reason=reason):
            return f"local git data only ({reason})"
        case HostedOnlyMode(reason=reason):
            return f"GitHub API only ({reason})"
        case CacheUpdateFailed(repo=repo, reason=reason):
            return f"could not update the cached clone of {repo} ({reason}); using cached data"


def render_notices(notices: Iterable[Notice], console: ConsoleProtocol) -> None:
    """Print notices as warnings, dropping exact repeats."""
    seen: set[str] = set()
    for notice in notices:
        text = format_notice(notice)
        if text in seen:
            continue
        seen.add(text)
        console.warning(text)
