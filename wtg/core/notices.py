"""Non-fatal conditions surfaced alongside results.

Backends append notices to a ``Notices`` accumulator handed to them by the
caller. Nothing in the library prints; the CLI decides how to render them.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field

from wtg.core.errors import WtgError

__all__ = [
    "AnonymousFallbackFailed",
    "CacheUpdateFailed",
    "CrossRepoFetchFailed",
    "HostedOnlyMode",
    "LocalOnlyMode",
    "Notice",
    "Notices",
    "RateLimitHit",
]


@dataclass(frozen=True, slots=True)
class RateLimitHit:
    """The GitHub API refused a call because of rate limiting.

    Attributes:
        authenticated: Whether the refused call carried a token.
    """

    authenticated: bool


@dataclass(frozen=True, slots=True)
class AnonymousFallbackFailed:
    """The anonymous retry after a failed primary call failed as well."""

    operation: str
    error: WtgError


@dataclass(frozen=True, slots=True)
class CrossRepoFetchFailed:
    """A PR from another repository could not be resolved there."""

    repo: str
    error: WtgError


@dataclass(frozen=True, slots=True)
class LocalOnlyMode:
    """No GitHub remote was found; only local git data is used."""

    reason: str


@dataclass(frozen=True, slots=True)
class HostedOnlyMode:
    """No matching local clone; only the GitHub API is used."""

    reason: str


@dataclass(frozen=True, slots=True)
class CacheUpdateFailed:
    """Refreshing a cached clone failed; its older data is used as is."""

    repo: str
    reason: str


type Notice = (
    RateLimitHit
    | AnonymousFallbackFailed
    | CrossRepoFetchFailed
    | LocalOnlyMode
    | HostedOnlyMode
    | CacheUpdateFailed
)


def _empty_notices() -> list[Notice]:
    return []


@dataclass
class Notices:
    """Ordered, append-only notice accumulator owned by the top-level caller.

    Work that may be abandoned runs between ``hold`` and ``release``: notices
    it emits are staged apart from ``items`` and only merged on ``release``.
    After ``discard`` the staged notices and any later emits are dropped, so a
    worker left running past its deadline cannot add to what gets rendered.
    """

    items: list[Notice] = field(default_factory=_empty_notices)
    _staged: list[Notice] | None = field(default=None, init=False, repr=False, compare=False)
    _closed: bool = field(default=False, init=False, repr=False, compare=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def emit(self, notice: Notice) -> None:
        self.extend((notice,))

    def extend(self, notices: tuple[Notice, ...] | list[Notice]) -> None:
        with self._lock:
            if self._closed:
                return
            target = self.items if self._staged is None else self._staged
            target.extend(notices)

    def hold(self) -> None:
        """Stage further notices until ``release`` or ``discard``."""
        with self._lock:
            if self._staged is None:
                self._staged = []

    def release(self) -> None:
        """Append the staged notices to ``items`` and stop staging."""
        with self._lock:
            if self._staged is not None:
                self.items.extend(self._staged)
                self._staged = None

    def discard(self) -> None:
        """Drop the staged notices and ignore every later emit."""
        with self._lock:
            self._staged = None
            self._closed = True

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Notice]:
        return iter(self.items)

    def of_type[N](self, kind: type[N]) -> list[N]:
        """Return the notices that are instances of ``kind``."""
        return [n for n in self.items if isinstance(n, kind)]
