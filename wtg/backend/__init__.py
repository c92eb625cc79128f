"""Repository data sources and their composition."""

from wtg.backend.base import Backend
from wtg.backend.combined import CombinedBackend
from wtg.backend.factory import ResolvedBackend, resolve_backend
from wtg.backend.hosted import GitHubBackend
from wtg.backend.local import GitBackend

__all__ = [
    "Backend",
    "CombinedBackend",
    "GitBackend",
    "GitHubBackend",
    "ResolvedBackend",
    "resolve_backend",
]
