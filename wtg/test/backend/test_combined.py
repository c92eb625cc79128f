"""Tests for wtg.backend.combined module."""

from __future__ import annotations

from wtg.backend.combined import CombinedBackend, prefer_error
from wtg.core.errors import WtgError
from wtg.core.result import Err, Ok
from wtg.model import ReleaseInfo, RepoCoords

from .._builders import FakeBackend, make_commit, make_tag

REPO = RepoCoords("octo", "widgets")
RATE_LIMITED = WtgError(kind="rate_limited", message="GitHub API rate limit exceeded")
GIT_BROKEN = WtgError(kind="not_in_repo", message="git log failed")


def _combined(local: FakeBackend, hosted: FakeBackend) -> CombinedBackend:
    if hosted.coords is None:
        hosted.coords = REPO
    return CombinedBackend(local, hosted)  # type: ignore[arg-type]


class TestPreferError:
    """Test choosing between two failures of the same lookup."""

    def test_hosted_specific_wins(self) -> None:
        assert prefer_error(WtgError.not_found("x"), RATE_LIMITED) is RATE_LIMITED

    def test_local_specific_beats_generic_hosted(self) -> None:
        local = WtgError.not_found("x")
        assert prefer_error(local, WtgError.unsupported("y")) is local

    def test_both_generic_prefers_hosted(self) -> None:
        hosted = WtgError(kind="hosted_error", message="boom")
        assert prefer_error(WtgError.unsupported("x"), hosted) is hosted


class TestDelegation:
    """Test local-first lookups with GitHub fallback."""

    def test_local_hit_skips_hosted(self) -> None:
        commit = make_commit("a" * 40)
        hosted = FakeBackend()
        backend = _combined(FakeBackend(commits={commit.hash: commit}), hosted)

        assert backend.find_commit("aaaa") == Ok(commit)
        assert hosted.calls == []

    def test_local_miss_falls_back(self) -> None:
        commit = make_commit("b" * 40)
        backend = _combined(FakeBackend(), FakeBackend(commits={commit.hash: commit}))

        assert backend.find_commit("bbbb") == Ok(commit)

    def test_unsupported_falls_back(self) -> None:
        pr_backend = FakeBackend(failures={"find_issue_or_pr": WtgError.unsupported("issues")})
        hosted = FakeBackend()

        result = _combined(pr_backend, hosted).find_issue_or_pr(5)

        assert isinstance(result, Err)
        assert hosted.calls == ["find_issue_or_pr"]

    def test_local_hard_failure_is_returned(self) -> None:
        hosted = FakeBackend(commits={"a" * 40: make_commit()})
        backend = _combined(FakeBackend(failures={"find_commit": GIT_BROKEN}), hosted)

        assert backend.find_commit("aaaa") == Err(GIT_BROKEN)
        assert hosted.calls == []

    def test_both_fail_prefers_specific_hosted_error(self) -> None:
        backend = _combined(FakeBackend(), FakeBackend(failures={"find_commit": RATE_LIMITED}))

        assert backend.find_commit("abcd") == Err(RATE_LIMITED)

    def test_both_fail_local_beats_generic(self) -> None:
        hosted = FakeBackend(failures={"find_tag": WtgError.unsupported("tags")})

        result = _combined(FakeBackend(), hosted).find_tag("v1.0.0")

        assert isinstance(result, Err)
        assert result.error.kind == "not_found"


class TestReleaseMarking:
    """Local tags gain release status from the hosted side."""

    def test_local_tag_marked_as_release(self) -> None:
        release = ReleaseInfo(
            tag_name="v1.0.0", url="https://github.com/octo/widgets/releases/tag/v1.0.0"
        )
        local = FakeBackend(tags={"v1.0.0": make_tag("v1.0.0")})
        backend = _combined(local, FakeBackend(releases={"v1.0.0": release}))

        result = backend.find_tag("v1.0.0")

        assert isinstance(result, Ok)
        assert result.value.is_release is True
        assert result.value.release_url == release.url

    def test_release_lookup_failure_keeps_tag(self) -> None:
        tag = make_tag("v1.0.0")
        hosted = FakeBackend(failures={"find_release": RATE_LIMITED})
        backend = _combined(FakeBackend(tags={"v1.0.0": tag}), hosted)

        assert backend.find_tag("v1.0.0") == Ok(tag)

    def test_release_for_commit_marked(self) -> None:
        commit = make_commit()
        release = ReleaseInfo(tag_name="v2.0.0", url="https://example.com/r")
        local = FakeBackend(release_for={commit.hash: make_tag("v2.0.0")})
        backend = _combined(local, FakeBackend(releases={"v2.0.0": release}))

        result = backend.find_release_for_commit(commit)

        assert isinstance(result, Ok)
        assert result.value.is_release is True


class TestCommitsBetweenTags:
    def test_local_non_empty_wins(self) -> None:
        commits = [make_commit("c" * 40)]
        hosted = FakeBackend(between=[make_commit("d" * 40)])

        result = _combined(FakeBackend(between=commits), hosted).commits_between_tags("a", "b", 5)

        assert result == Ok(commits)
        assert hosted.calls == []

    def test_empty_local_asks_hosted(self) -> None:
        commits = [make_commit("d" * 40)]
        backend = _combined(FakeBackend(), FakeBackend(between=commits))

        result = backend.commits_between_tags("a", "b", 5)

        assert result == Ok(commits)

    def test_empty_local_stands_when_hosted_fails(self) -> None:
        hosted = FakeBackend(failures={"commits_between_tags": RATE_LIMITED})

        assert _combined(FakeBackend(), hosted).commits_between_tags("a", "b", 5) == Ok([])

    def test_local_hard_failure(self) -> None:
        local = FakeBackend(failures={"commits_between_tags": GIT_BROKEN})

        assert _combined(local, FakeBackend()).commits_between_tags("a", "b", 5) == Err(GIT_BROKEN)


class TestRepositorySwitch:
    def test_same_repo_stays_combined(self) -> None:
        backend = _combined(FakeBackend(), FakeBackend())

        result = backend.for_repo(RepoCoords("OCTO", "widgets"))

        assert isinstance(result, Ok)
        assert isinstance(result.value, CombinedBackend)

    def test_other_repo_goes_hosted(self) -> None:
        engine = FakeBackend(coords=RepoCoords("octo", "engine"))
        backend = _combined(FakeBackend(), FakeBackend(others={"octo/engine": engine}))

        result = backend.for_repo(RepoCoords("octo", "engine"))

        assert result == Ok(engine)

    def test_urls_come_from_hosted(self) -> None:
        backend = _combined(FakeBackend(), FakeBackend())
        assert backend.commit_url("abc") == "https://github.com/octo/widgets/commit/abc"
        assert backend.repo() == REPO
