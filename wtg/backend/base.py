"""Backend capability interface.

A backend answers lookups against one source of repository data. Every
operation has a default implementation returning ``unsupported``, so a
backend overrides only what it can actually do and callers can treat
"cannot answer" uniformly with "not found" when falling back.
"""

from __future__ import annotations

from abc import ABC

from wtg.core.errors import WtgError
from wtg.core.notices import Notices
from wtg.core.result import Err, Result
from wtg.model import CommitInfo, FileInfo, IssueOrPr, ReleaseInfo, RepoCoords, TagInfo

__all__ = ["Backend", "DEFAULT_HISTORY_LIMIT"]

# Commits listed for a file.
DEFAULT_HISTORY_LIMIT = 20


class Backend(ABC):
    """Lookups against a repository data source.

    Backends receive the caller's ``Notices`` accumulator at construction
    and only ever append to it.
    """

    notices: Notices

    def repo(self) -> RepoCoords | None:
        """Hosted coordinates this backend answers for, if known."""
        return None

    def for_repo(self, coords: RepoCoords) -> Result[Backend, WtgError]:
        """A new backend for other coordinates, sharing configuration and notices."""
        return Err(WtgError.unsupported("switching repository"))

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def find_commit(self, rev: str) -> Result[CommitInfo, WtgError]:
        return Err(WtgError.unsupported("commit lookup"))

    def find_issue_or_pr(self, number: int) -> Result[IssueOrPr, WtgError]:
        return Err(WtgError.unsupported("issue and pull request lookup"))

    def find_file(
        self, path: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> Result[FileInfo, WtgError]:
        return Err(WtgError.unsupported("file history"))

    def find_tag(self, name: str) -> Result[TagInfo, WtgError]:
        return Err(WtgError.unsupported("tag lookup"))

    def find_release_for_commit(self, commit: CommitInfo) -> Result[TagInfo, WtgError]:
        """Earliest release tag containing ``commit``."""
        return Err(WtgError.unsupported("release lookup"))

    def find_previous_tag(self, tag: TagInfo) -> Result[TagInfo, WtgError]:
        return Err(WtgError.unsupported("previous tag lookup"))

    def commits_between_tags(
        self, older: str, newer: str, limit: int
    ) -> Result[list[CommitInfo], WtgError]:
        """Commits strictly between two tags, most recent first."""
        return Err(WtgError.unsupported("commit range listing"))

    def find_release(self, tag_name: str) -> Result[ReleaseInfo, WtgError]:
        """The hosted release object for a tag."""
        return Err(WtgError.unsupported("release details"))

    def changelog_text(self) -> Result[str, WtgError]:
        """Content of the repository-root changelog."""
        return Err(WtgError.unsupported("changelog access"))

    # -------------------------------------------------------------------------
    # URLs
    # -------------------------------------------------------------------------

    def commit_url(self, hash_: str) -> str | None:
        return None

    def tag_url(self, name: str) -> str | None:
        return None

    def issue_url(self, number: int) -> str | None:
        return None

    def author_url(self, email: str) -> str | None:
        return None
