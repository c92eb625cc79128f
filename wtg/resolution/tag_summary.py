"""What changed in a tag.

Sources, best first:
1. the release body or the changelog section, whichever is longer after
   trimming (ties go to the release body; the body is only considered when
   the tag has a release)
2. the commits between the previous tag and this one

Text is cut to ``MAX_LINES`` lines. The selection is deterministic for the
same inputs.
"""

from __future__ import annotations

from wtg.backend.base import Backend
from wtg.changelog import MAX_LINES, extract_version_section, truncate_content
from wtg.core.result import Err
from wtg.model import ChangeSummary, SummarySource, TagInfo

__all__ = ["COMMIT_LIMIT", "MIN_CONTENT_CHARS", "choose_text", "summarize_tag"]

# Candidates shorter than this (after trimming) count as absent.
MIN_CONTENT_CHARS = 1

COMMIT_LIMIT = 5


def _usable(text: str | None) -> str | None:
    if text is None:
        return None
    trimmed = text.strip()
    return trimmed if len(trimmed) >= MIN_CONTENT_CHARS else None


def choose_text(
    release_body: str | None, changelog_section: str | None
) -> tuple[SummarySource, str] | None:
    """Pick the longer usable text; ties go to the release body."""
    release = _usable(release_body)
    changelog = _usable(changelog_section)
    if release is not None and (changelog is None or len(release) >= len(changelog)):
        return ("release", release)
    if changelog is not None:
        return ("changelog", changelog)
    return None


def _release_body(backend: Backend, tag: TagInfo) -> str | None:
    if not tag.is_release:
        return None
    release = backend.find_release(tag.name)
    if isinstance(release, Err):
        return None
    return release.value.body


def _changelog_section(backend: Backend, tag: TagInfo) -> str | None:
    text = backend.changelog_text()
    if isinstance(text, Err):
        return None
    return extract_version_section(text.value, tag.name)


def summarize_tag(backend: Backend, tag: TagInfo) -> ChangeSummary | None:
    """Best available description of ``tag``, or None when there is nothing."""
    chosen = choose_text(_release_body(backend, tag), _changelog_section(backend, tag))
    if chosen is not None:
        source, text = chosen
        truncated, omitted = truncate_content(text, MAX_LINES)
        return ChangeSummary(source=source, text=truncated, omitted_lines=omitted)

    previous = backend.find_previous_tag(tag)
    if isinstance(previous, Err):
        return None
    commits = backend.commits_between_tags(previous.value.name, tag.name, COMMIT_LIMIT)
    if isinstance(commits, Err) or not commits.value:
        return None
    return ChangeSummary(
        source="commits",
        commits=tuple(commits.value),
        previous_tag=previous.value.name,
    )
