"""GitHub token discovery.

Yields zero or one token. Sources, first match wins:
- ``GITHUB_TOKEN`` then ``GH_TOKEN`` environment variables
- ``gh auth token`` (GitHub CLI credential store)
"""

from __future__ import annotations

import shutil
from collections.abc import Mapping
from pathlib import Path

from wtg.core.result import Ok
from wtg.platform.process import run as run_process

_GH_TIMEOUT_SECONDS = 5.0

TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


def token_from_env(env: Mapping[str, str]) -> str | None:
    for name in TOKEN_ENV_VARS:
        value = env.get(name, "").strip()
        if value:
            return value
    return None


def token_from_gh_cli(cwd: Path) -> str | None:
    """Ask the GitHub CLI for its stored token, if gh is installed and logged in."""
    if shutil.which("gh") is None:
        return None
    result = run_process(["gh", "auth", "token"], cwd=cwd, timeout=_GH_TIMEOUT_SECONDS)
    if isinstance(result, Ok):
        token = result.value.strip()
        return token or None
    return None


def discover_token(env: Mapping[str, str], cwd: Path, *, use_gh_cli: bool = True) -> str | None:
    token = token_from_env(env)
    if token is not None:
        return token
    if use_gh_cli:
        return token_from_gh_cli(cwd)
    return None
