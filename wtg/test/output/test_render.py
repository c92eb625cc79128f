"""Tests for wtg.output.render module."""

from __future__ import annotations

from dataclasses import replace

from wtg.core.errors import WtgError
from wtg.core.notices import (
    AnonymousFallbackFailed,
    CacheUpdateFailed,
    CrossRepoFetchFailed,
    HostedOnlyMode,
    LocalOnlyMode,
    RateLimitHit,
)
from wtg.model import (
    ChangeSummary,
    EnrichedInfo,
    EntryPoint,
    FileInfo,
    FileResult,
    IssueInfo,
    PullRequestInfo,
    RepoCoords,
    TagResult,
)
from wtg.output.console import MockConsole, Style
from wtg.output.render import format_notice, render_notices, render_thing

from .._builders import make_commit, make_tag

WIDGETS = RepoCoords("octo", "widgets")
ENGINE = RepoCoords("octo", "engine")
SHA = "abcdef1234567890abcdef1234567890abcdef12"


def _render(thing: object) -> MockConsole:
    console = MockConsole()
    render_thing(thing, console)  # type: ignore[arg-type]
    return console


class TestRenderCommit:
    def test_commit_with_release(self) -> None:
        url = f"https://github.com/octo/widgets/commit/{SHA}"
        commit = make_commit(SHA, message="Fix crash", url=url)
        release = make_tag(
            "v1.0.0", SHA, on=2, is_release=True, release_url="https://github.com/r/v1.0.0"
        )
        console = _render(
            EnrichedInfo(
                entry_point=EntryPoint("commit", "abcdef1"), commit=commit, release=release
            )
        )

        assert console.outputs[0].message == "Commit abcdef1"
        assert console.outputs[0].style == Style.HEADER
        assert "Commit: abcdef1" in console.messages
        assert "Message: Fix crash" in console.messages
        assert "Date: 2024-01-01 12:00 UTC" in console.messages
        assert "Released in: v1.0.0 (release, 2024-01-02)" in console.messages
        assert console.count(Style.LINK) == 2

    def test_commit_not_released(self) -> None:
        info = EnrichedInfo(entry_point=EntryPoint("commit", "abc"), commit=make_commit())
        console = _render(info)
        assert "Released in: not in any release yet" in console.messages

    def test_multiline_message_note(self) -> None:
        commit = make_commit()
        console = _render(
            EnrichedInfo(
                entry_point=EntryPoint("commit", "abc"), commit=replace(commit, message_lines=4)
            )
        )
        assert "Message: Fix the thing (+3 lines)" in console.messages


class TestRenderNumbers:
    def test_issue_closed_in_other_repo(self) -> None:
        pr = PullRequestInfo(
            number=7,
            title="Fix crash",
            state="closed",
            url="https://github.com/octo/engine/pull/7",
            repo=ENGINE,
            merged=True,
            merge_commit_sha=SHA,
        )
        issue = IssueInfo(
            number=12,
            title="Crash on start",
            state="closed",
            url="https://github.com/octo/widgets/issues/12",
            repo=WIDGETS,
            closing_pr=pr,
        )
        console = _render(
            EnrichedInfo(
                entry_point=EntryPoint("issue", "#12"),
                commit=make_commit(SHA),
                pr=pr,
                issue=issue,
                release=make_tag("v3.0.0", SHA),
                redirected_repo=ENGINE,
            )
        )

        assert console.outputs[0].message == "Issue #12"
        assert "Issue: #12 Crash on start" in console.messages
        assert "Pull request: octo/engine#7 Fix crash" in console.messages
        assert "State: merged" in console.messages
        assert "Resolved in: octo/engine" in console.messages
        assert "Released in: v3.0.0 (tag, 2024-01-01)" in console.messages

    def test_issue_without_pr(self) -> None:
        issue = IssueInfo(
            number=3,
            title="Idea",
            state="open",
            url="https://github.com/o/r/issues/3",
            repo=WIDGETS,
        )
        console = _render(EnrichedInfo(entry_point=EntryPoint("issue", "#3"), issue=issue))
        assert console.find("No closing pull request found.")
        assert not console.find("Released in")

    def test_unmerged_pr(self) -> None:
        pr = PullRequestInfo(
            number=5, title="WIP", state="open", url="https://github.com/o/r/pull/5", repo=WIDGETS
        )
        console = _render(EnrichedInfo(entry_point=EntryPoint("pr", "#5"), pr=pr))
        assert console.outputs[0].message == "Pull request #5"
        assert console.find("Not merged")


class TestRenderFileAndTag:
    def test_file_history(self) -> None:
        last = make_commit(SHA, message="Edit", on=3)
        first = make_commit("1" * 40, message="Create", on=1)
        result = FileResult(
            file_info=FileInfo(path="src/app.py", last_commit=last, history=(last, first)),
            author_urls=("https://github.com/dev", None),
        )

        console = _render(result)

        assert console.outputs[0].message == "File src/app.py"
        assert console.find("History:")
        assert "  abcdef1 2024-01-03 Dev: Edit https://github.com/dev" in console.messages
        assert "  1111111 2024-01-01 Dev: Create" in console.messages

    def test_tag_with_truncated_notes(self) -> None:
        summary = ChangeSummary(source="release", text="- A\n- B", omitted_lines=30)
        console = _render(
            TagResult(
                tag=make_tag("v2.0.0-rc.1", is_release=True), url="https://x", summary=summary
            )
        )

        assert "Kind: pre-release" in console.messages
        assert console.find("Release notes:")
        assert "  - A" in console.messages
        assert "  ... 30 more lines" in console.messages

    def test_tag_with_changelog(self) -> None:
        summary = ChangeSummary(source="changelog", text="- Fixed")
        console = _render(TagResult(tag=make_tag("v1.0.0"), summary=summary))

        assert "Kind: tag" in console.messages
        assert console.find("Changelog:")
        assert not console.find("more lines")

    def test_tag_with_commits(self) -> None:
        summary = ChangeSummary(
            source="commits", commits=(make_commit(SHA, message="Tweak"),), previous_tag="v0.9.0"
        )
        console = _render(TagResult(tag=make_tag("v1.0.0"), summary=summary))

        assert console.find("Commits since v0.9.0:")
        assert "  abcdef1 Tweak" in console.messages


class TestNotices:
    """Test notice wording and de-duplication."""

    def test_format(self) -> None:
        error = WtgError(kind="timeout", message="commit abc timed out")
        assert "authenticated token" in format_notice(RateLimitHit(authenticated=True))
        assert "GITHUB_TOKEN" in format_notice(RateLimitHit(authenticated=False))
        assert format_notice(AnonymousFallbackFailed("commit abc", error)) == (
            "anonymous retry of commit abc failed: commit abc timed out"
        )
        assert format_notice(CrossRepoFetchFailed("octo/engine", error)).startswith(
            "could not follow the pull request into octo/engine"
        )
        assert format_notice(LocalOnlyMode("no GitHub remote configured")) == (
            "local git data only (no GitHub remote configured)"
        )
        assert format_notice(HostedOnlyMode("no clone")) == "GitHub API only (no clone)"
        assert format_notice(CacheUpdateFailed("octo/widgets", "network down")) == (
            "could not update the cached clone of octo/widgets (network down); using cached data"
        )

    def test_render_dedups(self) -> None:
        console = MockConsole()
        render_notices(
            [
                RateLimitHit(authenticated=False),
                LocalOnlyMode("x"),
                RateLimitHit(authenticated=False),
            ],
            console,
        )
        assert console.count(Style.WARNING) == 2
        assert console.messages[1] == "warning: local git data only (x)"
