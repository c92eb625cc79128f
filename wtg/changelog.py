"""CHANGELOG.md parsing for the Keep a Changelog format.

Only strict ``## [version]`` headers are recognized (see
https://keepachangelog.com). A section runs from the line after its header to
the next ``## [...]`` header or the end of the file.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from wtg.core.errors import WtgError
from wtg.core.result import Err, Ok, Result

__all__ = [
    "CHANGELOG_FILENAME",
    "MAX_LINES",
    "extract_version_section",
    "find_changelog_name",
    "read_changelog",
    "truncate_content",
]

CHANGELOG_FILENAME = "changelog.md"

# Maximum number of lines shown before truncation.
MAX_LINES = 20

_HEADER_RE = re.compile(r"^## \[([^\]]+)\]", re.MULTILINE)


def _strip_v(version: str) -> str:
    return version[1:] if version.startswith("v") else version


def extract_version_section(content: str, version: str) -> str | None:
    """Return the trimmed body of the section for ``version``.

    A leading ``v`` is ignored on both the queried version and the header
    versions; the remaining text must match exactly.

    Returns:
        The section text, or None when the version has no section or the
        section is empty.
    """
    wanted = _strip_v(version.strip())
    start: int | None = None
    end: int | None = None

    for match in _HEADER_RE.finditer(content):
        if start is not None:
            end = match.start()
            break
        if _strip_v(match.group(1)) == wanted:
            newline = content.find("\n", match.end())
            start = len(content) if newline == -1 else newline + 1

    if start is None:
        return None

    section = content[start : end if end is not None else len(content)].strip()
    return section or None


def find_changelog_name(names: Iterable[str]) -> str | None:
    """Pick the changelog file among repository-root entries (case-insensitive)."""
    for name in sorted(names):
        if name.lower() == CHANGELOG_FILENAME:
            return name
    return None


def read_changelog(repo_root: Path) -> Result[str, WtgError]:
    """Read the changelog from a working tree root."""
    try:
        names = [p.name for p in repo_root.iterdir() if p.is_file()]
    except OSError as e:
        return Err(WtgError(kind="not_found", message="repository root not readable", hint=str(e)))

    name = find_changelog_name(names)
    if name is None:
        return Err(WtgError.not_found(f"{CHANGELOG_FILENAME} in {repo_root}"))

    try:
        return Ok((repo_root / name).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        return Err(WtgError.parse(f"unreadable changelog: {name}", hint=str(e)))


def truncate_content(content: str, max_lines: int = MAX_LINES) -> tuple[str, int | None]:
    """Cap ``content`` at ``max_lines`` lines.

    Returns:
        ``(content, None)`` when nothing was dropped, otherwise the first
        ``max_lines`` lines with trailing whitespace trimmed and the number of
        omitted lines.
    """
    lines = content.splitlines()
    if len(lines) <= max_lines:
        return (content, None)
    kept = "\n".join(lines[:max_lines]).rstrip()
    return (kept, len(lines) - max_lines)
