"""Canonical github.com web URLs."""

from __future__ import annotations

from urllib.parse import quote

from wtg.model import RepoCoords

__all__ = ["author_url_from_email", "commit_url", "issue_url", "profile_url", "tag_url"]

_NOREPLY_DOMAIN = "@users.noreply.github.com"


def _repo_base(web: str, repo: RepoCoords) -> str:
    return f"{web}/{quote(repo.owner, safe='')}/{quote(repo.name, safe='')}"


def commit_url(web: str, repo: RepoCoords, hash_: str) -> str:
    return f"{_repo_base(web, repo)}/commit/{quote(hash_, safe='')}"


def tag_url(web: str, repo: RepoCoords, tag: str) -> str:
    return f"{_repo_base(web, repo)}/tree/{quote(tag, safe='')}"


def issue_url(web: str, repo: RepoCoords, number: int) -> str:
    # github.com redirects /issues/N to /pull/N for pull requests.
    return f"{_repo_base(web, repo)}/issues/{number}"


def profile_url(web: str, username: str) -> str:
    return f"{web}/{quote(username, safe='')}"


def author_url_from_email(web: str, email: str) -> str | None:
    """Profile URL for a GitHub noreply address.

    Both ``user@users.noreply.github.com`` and
    ``12345+user@users.noreply.github.com`` are recognized.
    """
    if not email.lower().endswith(_NOREPLY_DOMAIN):
        return None
    local = email[: -len(_NOREPLY_DOMAIN)]
    username = local.split("+", 1)[1] if "+" in local else local
    if not username:
        return None
    return profile_url(web, username)
