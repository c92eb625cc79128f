"""Tests for wtg.backend.hosted module against a mocked GitHub API."""

from __future__ import annotations

import base64

from wtg.backend.hosted import GitHubBackend
from wtg.core.notices import Notices
from wtg.core.result import Err, Ok
from wtg.hosted.client import HostedClient
from wtg.hosted.http import MockHttpClient
from wtg.model import IssueInfo, RepoCoords

from .._builders import make_commit, make_tag

API = "https://api.github.com"
WEB = "https://github.com"
REPO = RepoCoords("octo", "widgets")
BASE = f"{API}/repos/octo/widgets"
SHA = "1" * 40


def _backend(http: MockHttpClient, *, token: bool = True) -> GitHubBackend:
    if token:
        client = HostedClient(MockHttpClient(), Notices(), primary=http, api_url=API, web_url=WEB)
    else:
        client = HostedClient(http, Notices(), api_url=API, web_url=WEB)
    return GitHubBackend(client, REPO)


def commit_json(
    sha: str, date: str = "2024-01-01T12:00:00Z", message: str = "Change"
) -> dict[str, object]:
    return {
        "sha": sha,
        "commit": {
            "message": message,
            "author": {"name": "Dev", "email": "dev@example.com", "date": date},
            "committer": {"name": "Dev", "email": "dev@example.com", "date": date},
        },
    }


def release_json(tag: str, created: str, body: str = "Notes") -> dict[str, object]:
    return {
        "tag_name": tag,
        "html_url": f"https://github.com/octo/widgets/releases/tag/{tag}",
        "body": body,
        "created_at": created,
    }


def pull_json(number: int, *, merged: bool, repo: str = "octo/widgets") -> dict[str, object]:
    return {
        "number": number,
        "title": f"PR {number}",
        "state": "closed",
        "html_url": f"https://github.com/{repo}/pull/{number}",
        "merged": merged,
        "merge_commit_sha": SHA if merged else None,
        "base": {"repo": {"full_name": repo}},
    }


def tag_fixture(http: MockHttpClient, tag: str, sha: str, date: str) -> None:
    http.set_json(f"{BASE}/git/ref/tags/{tag}", {"object": {"sha": sha, "type": "commit"}})
    http.set_json(f"{BASE}/commits/{sha}", commit_json(sha, date))


# =============================================================================
# Issues and pull requests
# =============================================================================


class TestIssues:
    def _closed_issue(self, http: MockHttpClient) -> None:
        http.set_json(
            f"{BASE}/issues/12",
            {
                "number": 12,
                "title": "Crash",
                "state": "closed",
                "html_url": "https://github.com/octo/widgets/issues/12",
            },
        )

    def test_closed_issue_prefers_merged_pr(self) -> None:
        http = MockHttpClient(authenticated=True)
        self._closed_issue(http)
        refs = [
            {
                "event": "cross-referenced",
                "source": {
                    "issue": {"number": n, "pull_request": {}, "repository_url": f"{BASE}"}
                },
            }
            for n in (20, 21)
        ]
        http.set_json(f"{BASE}/issues/12/timeline?per_page=100&page=1", refs)
        http.set_json(f"{BASE}/pulls/20", pull_json(20, merged=False))
        http.set_json(f"{BASE}/pulls/21", pull_json(21, merged=True))

        result = _backend(http).find_issue_or_pr(12)

        assert isinstance(result, Ok)
        issue = result.value
        assert isinstance(issue, IssueInfo)
        assert issue.closing_pr is not None
        assert issue.closing_pr.number == 21

    def test_unmerged_pr_used_when_nothing_merged(self) -> None:
        http = MockHttpClient(authenticated=True)
        self._closed_issue(http)
        http.set_json(
            f"{BASE}/issues/12/timeline?per_page=100&page=1",
            [
                {
                    "event": "cross-referenced",
                    "source": {
                        "issue": {"number": 20, "pull_request": {}, "repository_url": BASE}
                    },
                }
            ],
        )
        http.set_json(f"{BASE}/pulls/20", pull_json(20, merged=False))

        result = _backend(http).find_issue_or_pr(12)

        assert isinstance(result, Ok)
        assert isinstance(result.value, IssueInfo)
        assert result.value.closing_pr is not None
        assert result.value.closing_pr.merged is False

    def test_without_token_no_closing_pr(self) -> None:
        http = MockHttpClient()
        self._closed_issue(http)

        result = _backend(http, token=False).find_issue_or_pr(12)

        assert isinstance(result, Ok)
        assert isinstance(result.value, IssueInfo)
        assert result.value.closing_pr is None
        assert not any("timeline" in url for url in http.calls)

    def test_missing_number(self) -> None:
        result = _backend(MockHttpClient(authenticated=True)).find_issue_or_pr(99)

        assert isinstance(result, Err)
        assert result.error.kind == "not_found"


# =============================================================================
# Tags and releases
# =============================================================================


class TestTags:
    def test_find_tag_with_release(self) -> None:
        http = MockHttpClient(authenticated=True)
        tag_fixture(http, "v1.0.0", SHA, "2024-01-05T00:00:00Z")
        release = release_json("v1.0.0", "2024-01-06T00:00:00Z")
        http.set_json(f"{BASE}/releases/tags/v1.0.0", release)

        result = _backend(http).find_tag("v1.0.0")

        assert isinstance(result, Ok)
        tag = result.value
        assert tag.commit_hash == SHA
        assert tag.is_release is True
        assert tag.release_url == "https://github.com/octo/widgets/releases/tag/v1.0.0"
        assert tag.semver is not None

    def test_find_tag_without_release(self) -> None:
        http = MockHttpClient(authenticated=True)
        tag_fixture(http, "nightly", SHA, "2024-01-05T00:00:00Z")

        result = _backend(http).find_tag("nightly")

        assert isinstance(result, Ok)
        assert result.value.is_release is False
        assert result.value.semver is None

    def test_find_release_blank_body(self) -> None:
        http = MockHttpClient(authenticated=True)
        release = release_json("v1.0.0", "2024-01-06T00:00:00Z", body="  \n\t")
        http.set_json(f"{BASE}/releases/tags/v1.0.0", release)

        result = _backend(http).find_release("v1.0.0")

        assert isinstance(result, Ok)
        assert result.value.tag_name == "v1.0.0"
        assert result.value.body is None

    def test_release_for_commit(self) -> None:
        http = MockHttpClient(authenticated=True)
        commit = make_commit("c" * 40, on=1)
        http.set_json(
            f"{BASE}/releases?per_page=100&page=1",
            [
                release_json("nightly", "2024-01-03T00:00:00Z"),
                release_json("v1.2.0", "2024-01-20T00:00:00Z"),
                release_json("v1.1.0", "2024-01-10T00:00:00Z"),
            ],
        )
        http.set_json(f"{BASE}/compare/{'c' * 40}...v1.1.0", {"status": "diverged"})
        http.set_json(f"{BASE}/compare/{'c' * 40}...v1.2.0", {"status": "ahead"})
        http.set_json(f"{BASE}/compare/{'c' * 40}...nightly", {"status": "ahead"})
        tag_fixture(http, "v1.2.0", SHA, "2024-01-19T00:00:00Z")
        release = release_json("v1.2.0", "2024-01-20T00:00:00Z")
        http.set_json(f"{BASE}/releases/tags/v1.2.0", release)

        result = _backend(http).find_release_for_commit(commit)

        assert isinstance(result, Ok)
        assert result.value.name == "v1.2.0"
        assert result.value.is_release is True
        assert f"{BASE}/compare/{'c' * 40}...nightly" not in http.calls

    def test_release_for_commit_none_contain(self) -> None:
        http = MockHttpClient(authenticated=True)
        http.set_json(
            f"{BASE}/releases?per_page=100&page=1",
            [release_json("v1.0.0", "2024-01-10T00:00:00Z")],
        )
        http.set_json(f"{BASE}/compare/{'c' * 40}...v1.0.0", {"status": "behind"})

        result = _backend(http).find_release_for_commit(make_commit("c" * 40, on=1))

        assert isinstance(result, Err)
        assert result.error.kind == "not_found"

    def test_previous_semver_tag(self) -> None:
        http = MockHttpClient(authenticated=True)
        http.set_json(
            f"{BASE}/tags?per_page=100&page=1",
            [
                {"name": "v1.1.0", "commit": {"sha": "2" * 40}},
                {"name": "v1.0.0", "commit": {"sha": SHA}},
                {"name": "nightly", "commit": {"sha": "3" * 40}},
            ],
        )
        tag_fixture(http, "v1.0.0", SHA, "2024-01-05T00:00:00Z")

        result = _backend(http).find_previous_tag(make_tag("v1.1.0", "2" * 40, on=9))

        assert isinstance(result, Ok)
        assert result.value.name == "v1.0.0"
        assert result.value.commit_hash == SHA

    def test_previous_non_semver_tag_uses_release_dates(self) -> None:
        http = MockHttpClient(authenticated=True)
        http.set_json(
            f"{BASE}/tags?per_page=100&page=1",
            [
                {"name": "build-3", "commit": {"sha": "3" * 40}},
                {"name": "build-2", "commit": {"sha": "2" * 40}},
                {"name": "build-1", "commit": {"sha": SHA}},
            ],
        )
        http.set_json(
            f"{BASE}/releases?per_page=100&page=1",
            [
                release_json("build-3", "2024-01-30T00:00:00Z"),
                release_json("build-2", "2024-01-20T00:00:00Z"),
                release_json("build-1", "2024-01-10T00:00:00Z"),
            ],
        )

        result = _backend(http).find_previous_tag(make_tag("build-3", "3" * 40, on=29))

        assert isinstance(result, Ok)
        assert result.value.name == "build-2"
        assert result.value.is_release is True

    def test_commits_between_tags(self) -> None:
        http = MockHttpClient(authenticated=True)
        commits = [commit_json(str(i) * 40, message=f"Change {i}") for i in range(1, 8)]
        http.set_json(f"{BASE}/compare/v1.0.0...v1.1.0", {"status": "ahead", "commits": commits})

        result = _backend(http).commits_between_tags("v1.0.0", "v1.1.0", 5)

        assert isinstance(result, Ok)
        assert [c.message for c in result.value] == [f"Change {i}" for i in range(7, 2, -1)]


# =============================================================================
# Files, changelog, URLs
# =============================================================================


class TestMisc:
    def test_find_file(self) -> None:
        http = MockHttpClient(authenticated=True)
        http.set_json(
            f"{BASE}/commits?path=src/app.py&per_page=20",
            [commit_json("2" * 40), commit_json(SHA)],
        )

        result = _backend(http).find_file("src/app.py")

        assert isinstance(result, Ok)
        assert result.value.last_commit.hash == "2" * 40
        assert len(result.value.history) == 2

    def test_find_file_without_history(self) -> None:
        http = MockHttpClient(authenticated=True)
        http.set_json(f"{BASE}/commits?path=gone.txt&per_page=20", [])

        result = _backend(http).find_file("gone.txt")

        assert isinstance(result, Err)
        assert result.error.kind == "not_found"

    def test_changelog_text(self) -> None:
        http = MockHttpClient(authenticated=True)
        http.set_json(f"{BASE}/contents/", [{"name": "changelog.md", "type": "file"}])
        encoded = base64.b64encode(b"## [1.0.0]\n- First\n").decode()
        http.set_json(f"{BASE}/contents/changelog.md", {"content": encoded, "encoding": "base64"})

        assert _backend(http).changelog_text() == Ok("## [1.0.0]\n- First\n")

    def test_changelog_absent(self) -> None:
        http = MockHttpClient(authenticated=True)
        http.set_json(f"{BASE}/contents/", [{"name": "README.md", "type": "file"}])

        result = _backend(http).changelog_text()

        assert isinstance(result, Err)
        assert result.error.kind == "not_found"

    def test_for_repo_switches_coordinates(self) -> None:
        backend = _backend(MockHttpClient(authenticated=True))

        other = backend.for_repo(RepoCoords("octo", "engine"))

        assert isinstance(other, Ok)
        assert other.value.repo() == RepoCoords("octo", "engine")
        assert other.value.notices is backend.notices

    def test_urls(self) -> None:
        backend = _backend(MockHttpClient(authenticated=True))
        assert backend.commit_url(SHA) == f"https://github.com/octo/widgets/commit/{SHA}"
        assert backend.issue_url(4) == "https://github.com/octo/widgets/issues/4"
