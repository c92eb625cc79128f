"""Immutable data model shared by backends, resolution and output."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from wtg.semver import SemverInfo

__all__ = [
    "ChangeSummary",
    "CommitInfo",
    "EnrichedInfo",
    "EntryPoint",
    "FileInfo",
    "FileResult",
    "IdentifiedThing",
    "IssueInfo",
    "IssueOrPr",
    "PullRequestInfo",
    "ReleaseInfo",
    "RepoCoords",
    "SummarySource",
    "TagInfo",
    "TagResult",
]


@dataclass(frozen=True, slots=True)
class RepoCoords:
    """GitHub repository coordinates."""

    owner: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"

    def same_repo(self, other: RepoCoords | None) -> bool:
        # GitHub treats owner and repository names case-insensitively.
        if other is None:
            return False
        return (
            self.owner.lower() == other.owner.lower() and self.name.lower() == other.name.lower()
        )

    def __str__(self) -> str:
        return self.slug


@dataclass(frozen=True, slots=True)
class CommitInfo:
    """Snapshot of one commit.

    Attributes:
        hash: Full 40-character hash.
        short_hash: Abbreviated hash (7 characters).
        author_name: Author display name.
        author_email: Author email (may be empty).
        timestamp: Committer timestamp, timezone-aware.
        message: First line of the commit message.
        message_lines: Total number of lines in the message.
        parents: Parent hashes.
        url: Canonical web URL, when known.
        author_login: GitHub login of the author, when known.
    """

    hash: str
    short_hash: str
    author_name: str
    author_email: str
    timestamp: datetime
    message: str
    message_lines: int = 1
    parents: tuple[str, ...] = ()
    url: str | None = None
    author_login: str | None = None


@dataclass(frozen=True, slots=True)
class TagInfo:
    """A tag and what it points at.

    ``semver`` is present only when the tag name parses fully as a semantic
    version.
    """

    name: str
    commit_hash: str
    timestamp: datetime
    semver: SemverInfo | None = None
    is_release: bool = False
    release_url: str | None = None

    @property
    def is_semver(self) -> bool:
        return self.semver is not None


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    """A hosted release object."""

    tag_name: str
    url: str
    created_at: datetime | None = None
    published_at: datetime | None = None
    title: str | None = None
    body: str | None = None
    prerelease: bool = False

    def __post_init__(self) -> None:
        if self.body is not None and not self.body.strip():
            object.__setattr__(self, "body", None)


@dataclass(frozen=True, slots=True)
class PullRequestInfo:
    number: int
    title: str
    state: str
    url: str
    repo: RepoCoords
    merged: bool = False
    merge_commit_sha: str | None = None
    author: str | None = None


@dataclass(frozen=True, slots=True)
class IssueInfo:
    """An issue; ``closing_pr`` may belong to a different repository."""

    number: int
    title: str
    state: str
    url: str
    repo: RepoCoords
    author: str | None = None
    closing_pr: PullRequestInfo | None = None


type IssueOrPr = IssueInfo | PullRequestInfo


@dataclass(frozen=True, slots=True)
class FileInfo:
    """A path and the commits that touched it, most recent first."""

    path: str
    last_commit: CommitInfo
    history: tuple[CommitInfo, ...] = ()


# -----------------------------------------------------------------------------
# Resolution results
# -----------------------------------------------------------------------------

EntryKind = Literal["commit", "issue", "pr"]


@dataclass(frozen=True, slots=True)
class EntryPoint:
    """What the user asked about."""

    kind: EntryKind
    value: str


@dataclass(frozen=True, slots=True)
class EnrichedInfo:
    """A commit, PR or issue, plus the release that shipped it.

    ``redirected_repo`` is set when the commit and release were resolved in a
    different repository than the one queried (cross-repository PR).
    """

    entry_point: EntryPoint
    commit: CommitInfo | None = None
    pr: PullRequestInfo | None = None
    issue: IssueInfo | None = None
    release: TagInfo | None = None
    redirected_repo: RepoCoords | None = None


@dataclass(frozen=True, slots=True)
class FileResult:
    file_info: FileInfo
    commit_url: str | None = None
    author_urls: tuple[str | None, ...] = ()


SummarySource = Literal["release", "changelog", "commits"]


@dataclass(frozen=True, slots=True)
class ChangeSummary:
    """Best-available description of what changed in a tag.

    Attributes:
        source: Where the description came from.
        text: Truncated text (release and changelog sources).
        omitted_lines: Lines dropped by truncation, None when nothing was dropped.
        commits: Commits since the previous tag (commits source).
        previous_tag: Name of the previous tag (commits source).
    """

    source: SummarySource
    text: str | None = None
    omitted_lines: int | None = None
    commits: tuple[CommitInfo, ...] = field(default_factory=tuple)
    previous_tag: str | None = None


@dataclass(frozen=True, slots=True)
class TagResult:
    tag: TagInfo
    url: str | None = None
    summary: ChangeSummary | None = None


type IdentifiedThing = EnrichedInfo | FileResult | TagResult
