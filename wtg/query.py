"""Classification of raw user input into a typed query.

Accepted input forms:
- ``#123``: issue or PR number
- GitHub URLs: ``.../commit/<sha>``, ``.../issues/<n>``, ``.../pull/<n>``,
  ``.../blob/<ref>/<path>``, ``.../tree/<ref>/<path>``,
  ``.../releases/tag/<tag>``; with or without scheme, ``www.`` prefix,
  ``api.github.com/repos/...`` and ``git@github.com:...`` SSH forms
- anything else is ``Unknown`` and is disambiguated against the backend

A URL also yields the repository it belongs to, which then overrides the
repository detected from the working directory.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from urllib.parse import unquote, urlsplit

from wtg.core.errors import WtgError
from wtg.core.result import Err, Ok, Result
from wtg.model import RepoCoords

__all__ = [
    "CommitHash",
    "FilePath",
    "IssueOrPrNumber",
    "ParsedInput",
    "Query",
    "TagName",
    "Unknown",
    "check_path",
    "parse_input",
    "parse_query",
    "parse_remote_url",
    "parse_repo_url",
    "sanitize_query",
]


@dataclass(frozen=True, slots=True)
class CommitHash:
    hash: str


@dataclass(frozen=True, slots=True)
class IssueOrPrNumber:
    number: int


@dataclass(frozen=True, slots=True)
class FilePath:
    path: str


@dataclass(frozen=True, slots=True)
class TagName:
    name: str


@dataclass(frozen=True, slots=True)
class Unknown:
    raw: str


type Query = CommitHash | IssueOrPrNumber | FilePath | TagName | Unknown


@dataclass(frozen=True, slots=True)
class ParsedInput:
    """A query plus the repository it explicitly refers to, if any."""

    query: Query
    repo: RepoCoords | None = None


_SEGMENT_RE = re.compile(r"^[A-Za-z0-9._-]+$")
_NUMBER_RE = re.compile(r"[0-9]+")
_GITHUB_HOSTS = {"github.com": False, "api.github.com": True}


def sanitize_query(raw: str) -> str | None:
    """Trim whitespace; reject empty input and control characters."""
    trimmed = raw.strip()
    if not trimmed:
        return None
    if any(ord(c) < 32 or ord(c) == 127 for c in trimmed):
        return None
    return trimmed


def check_path(path: str) -> bool:
    """True if ``path`` is a non-empty relative path without ``..`` components."""
    if not path or path.startswith("/"):
        return False
    return ".." not in PurePosixPath(path).parts


def _sanitize_segment(raw: str) -> str | None:
    trimmed = raw.strip()
    if not trimmed or not _SEGMENT_RE.match(trimmed):
        return None
    return trimmed


def _collect_segments(path: str) -> list[str]:
    return [unquote(s) for s in path.strip("/").split("/") if s]


def _ssh_segments(url: str) -> list[str] | None:
    if not url.startswith("git@github.com:"):
        return None
    path = url.split(":", 1)[1]
    path = path.split("#", 1)[0].split("?", 1)[0]
    return _collect_segments(path)


def _http_segments(url: str) -> tuple[list[str], bool] | None:
    candidate = url
    lower = url.lower()
    if lower.startswith(("github.com/", "www.github.com/", "api.github.com/")):
        candidate = f"https://{url}"
    elif lower.startswith("//"):
        candidate = f"https:{url}"

    try:
        parts = urlsplit(candidate)
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None

    host = parts.hostname.lower()
    if host.startswith("www."):
        host = host[4:]
    if host not in _GITHUB_HOSTS:
        return None
    return (_collect_segments(parts.path), _GITHUB_HOSTS[host])


def _split_repo(segments: list[str], is_api: bool) -> tuple[RepoCoords, list[str]] | None:
    if is_api:
        if len(segments) < 3 or segments[0] != "repos":
            return None
        segments = segments[1:]
    if len(segments) < 2:
        return None

    owner = _sanitize_segment(segments[0])
    name = segments[1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    repo = _sanitize_segment(name)
    if owner is None or repo is None:
        return None
    return (RepoCoords(owner, repo), segments[2:])


def _query_from_segments(rest: list[str]) -> Query | None:
    if not rest:
        return None

    match rest[0]:
        case "commit" | "commits" if len(rest) >= 2:
            sha = sanitize_query(rest[1])
            return CommitHash(sha) if sha else None
        case "issues" | "pull" | "pulls" if len(rest) >= 2:
            return IssueOrPrNumber(int(rest[1])) if _NUMBER_RE.fullmatch(rest[1]) else None
        case "releases" if len(rest) >= 3 and rest[1] == "tag":
            name = sanitize_query("/".join(rest[2:]))
            return TagName(name) if name else None
        case "blob" | "tree" if len(rest) >= 3:
            # The ref may contain slashes; without an API call the first
            # segment after blob/tree is taken as the whole ref.
            path = "/".join(rest[2:])
            if sanitize_query(path) is None or not check_path(path):
                return None
            return FilePath(path)
        case _:
            return None


def parse_repo_url(url: str) -> RepoCoords | None:
    """Parse repository coordinates from a URL, remote URL or ``owner/repo``."""
    trimmed = url.strip()
    if not trimmed:
        return None

    segments = _ssh_segments(trimmed)
    if segments is not None:
        split = _split_repo(segments, False)
        return split[0] if split else None

    http = _http_segments(trimmed)
    if http is not None:
        split = _split_repo(*http)
        return split[0] if split else None

    parts = trimmed.split("/")
    if len(parts) == 2:
        split = _split_repo(parts, False)
        return split[0] if split else None
    return None


def parse_remote_url(url: str) -> RepoCoords | None:
    """Parse a git remote URL (HTTPS, ``git@github.com:`` or ``ssh://``).

    Unlike ``parse_repo_url``, bare ``owner/repo`` strings are rejected since
    a remote of that shape is a local path.
    """
    trimmed = url.strip()
    segments = _ssh_segments(trimmed)
    if segments is not None:
        split = _split_repo(segments, False)
        return split[0] if split else None
    if "://" not in trimmed:
        return None
    http = _http_segments(trimmed)
    if http is None:
        return None
    split = _split_repo(*http)
    return split[0] if split else None


def parse_query(raw: str) -> Result[Query, WtgError]:
    """Classify a plain (non-URL) input."""
    text = sanitize_query(raw)
    if text is None:
        return Err(WtgError.parse("empty or invalid input", hint=repr(raw)))

    if text.startswith("#") and _NUMBER_RE.fullmatch(text[1:]):
        return Ok(IssueOrPrNumber(int(text[1:])))

    # Paths, tags, branch names and hashes cannot be told apart without
    # looking at the repository.
    return Ok(Unknown(text))


def _parse_url_input(raw: str) -> ParsedInput | None:
    trimmed = raw.strip()
    segments = _ssh_segments(trimmed)
    if segments is not None:
        split = _split_repo(segments, False)
    else:
        http = _http_segments(trimmed)
        if http is None:
            return None
        split = _split_repo(*http)
    if split is None:
        return None

    repo, rest = split
    query = _query_from_segments(rest)
    if query is None:
        return None
    return ParsedInput(query=query, repo=repo)


def parse_input(raw: str, repo_url: str | None = None) -> Result[ParsedInput, WtgError]:
    """Turn CLI input into a ``ParsedInput``.

    Args:
        raw: The identifier or URL given by the user.
        repo_url: Explicit repository (``owner/repo`` or URL), if given.
    """
    if repo_url is not None:
        repo = parse_repo_url(repo_url)
        if repo is None:
            return Err(WtgError.parse("invalid repository", hint=repo_url))
        url_input = _parse_url_input(raw)
        if url_input is not None and repo.same_repo(url_input.repo):
            return Ok(url_input)
        query = parse_query(raw)
        if isinstance(query, Err):
            return query
        return Ok(ParsedInput(query=query.value, repo=repo))

    url_input = _parse_url_input(raw)
    if url_input is not None:
        return Ok(url_input)

    query = parse_query(raw)
    if isinstance(query, Err):
        return query
    return Ok(ParsedInput(query=query.value))
