"""Local git access."""

from wtg.git.cache import CachedClone, open_cached_clone
from wtg.git.repository import GitError, GitRepo, Remote

__all__ = ["CachedClone", "GitError", "GitRepo", "Remote", "open_cached_clone"]
