"""Semantic-version decomposition of tag names.

Accepted shape: optional ``v``, ``MAJOR.MINOR``, optional ``.PATCH``, optional
``-PRERELEASE`` (dot-separated alphanumeric identifiers). Anything else is not
a semver tag.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = ["SemverInfo", "parse_semver", "semver_sort_key"]


_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)(?:\.(0|[1-9]\d*))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

type _IdentKey = tuple[int, int, str]
type SemverKey = tuple[int, int, int, int, tuple[_IdentKey, ...]]


@dataclass(frozen=True, slots=True)
class SemverInfo:
    major: int
    minor: int
    patch: int | None = None
    prerelease: str | None = None

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def sort_key(self) -> SemverKey:
        """Ordering key: a stable release sorts after all of its pre-releases."""
        patch = self.patch if self.patch is not None else 0
        if self.prerelease is None:
            return (self.major, self.minor, patch, 1, ())
        return (self.major, self.minor, patch, 0, _prerelease_key(self.prerelease))

    def __str__(self) -> str:
        s = f"{self.major}.{self.minor}"
        if self.patch is not None:
            s += f".{self.patch}"
        if self.prerelease is not None:
            s += f"-{self.prerelease}"
        return s


def _prerelease_key(prerelease: str) -> tuple[_IdentKey, ...]:
    # Numeric identifiers compare numerically and sort before alphanumeric ones.
    parts: list[_IdentKey] = []
    for ident in prerelease.split("."):
        if ident.isdigit():
            parts.append((0, int(ident), ""))
        else:
            parts.append((1, 0, ident))
    return tuple(parts)


def parse_semver(name: str) -> SemverInfo | None:
    m = _SEMVER_RE.match(name)
    if m is None:
        return None
    patch = m.group(3)
    return SemverInfo(
        major=int(m.group(1)),
        minor=int(m.group(2)),
        patch=int(patch) if patch is not None else None,
        prerelease=m.group(4),
    )


def semver_sort_key(name: str, info: SemverInfo) -> tuple[SemverKey, str]:
    """Total ordering for semver tags; equal versions are ordered by name."""
    return (info.sort_key(), name)
