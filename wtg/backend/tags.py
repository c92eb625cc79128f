"""Tag ordering rules shared by the local and hosted backends."""

from __future__ import annotations

from collections.abc import Iterable

from wtg.model import TagInfo
from wtg.semver import parse_semver, semver_sort_key

__all__ = ["pick_release_tag", "release_priority", "semver_predecessor", "timestamp_predecessor"]


def release_priority(tag: TagInfo) -> int:
    """Lower is better: released semver, semver, released other, other."""
    if tag.is_semver:
        return 0 if tag.is_release else 1
    return 2 if tag.is_release else 3


def pick_release_tag(candidates: Iterable[TagInfo]) -> TagInfo | None:
    """Best tag among those containing a commit.

    Ordered by ``release_priority``, then earliest target timestamp, then name.
    """
    return min(
        candidates,
        key=lambda t: (release_priority(t), t.timestamp, t.name),
        default=None,
    )


def semver_predecessor(name: str, names: Iterable[str]) -> str | None:
    """Immediate predecessor of semver tag ``name`` among ``names``.

    Returns None when ``name`` is not semver or is the earliest version.
    """
    info = parse_semver(name)
    if info is None:
        return None
    key = semver_sort_key(name, info)

    best: str | None = None
    best_key = None
    for other in names:
        other_info = parse_semver(other)
        if other_info is None or other == name:
            continue
        other_key = semver_sort_key(other, other_info)
        if other_key < key and (best_key is None or other_key > best_key):
            best, best_key = other, other_key
    return best


def timestamp_predecessor(tag: TagInfo, tags: Iterable[TagInfo]) -> TagInfo | None:
    """Latest tag on a different commit with a strictly earlier timestamp.

    Equal timestamps go to the greatest tag name.
    """
    candidates = [
        t for t in tags if t.commit_hash != tag.commit_hash and t.timestamp < tag.timestamp
    ]
    return max(candidates, key=lambda t: (t.timestamp, t.name), default=None)
