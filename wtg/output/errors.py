"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from wtg.core.config import ConfigError
from wtg.core.errors import ErrorCode, WtgError
from wtg.output.console import Style

if TYPE_CHECKING:
    from wtg.output.console import ConsoleProtocol

__all__ = ["error_exit_code", "print_config_error", "print_error"]


def print_error(error: WtgError, console: ConsoleProtocol) -> None:
    """Print an error with a kind-specific hint."""
    console.error(error.message)
    if error.hint:
        console.print(f"  {error.hint}", Style.DIM)
    match error.kind:
        case "rate_limited":
            console.print("hint: set GITHUB_TOKEN or run `gh auth login`", Style.DIM)
        case "auth_failed" if error.sso:
            console.print("hint: authorize the token for SSO, or use --no-auth", Style.DIM)
        case "auth_failed":
            console.print("hint: refresh the token, or use --no-auth", Style.DIM)
        case "not_in_repo":
            console.print("hint: pass a GitHub URL or --repo OWNER/REPO", Style.DIM)
        case _:
            pass


def print_config_error(error: ConfigError, console: ConsoleProtocol) -> None:
    console.error(error.message)


def error_exit_code(error: WtgError) -> int:
    """Get exit code for an error."""
    match error.kind:
        case "not_found" | "ambiguous" | "parse_error" | "unsupported":
            return int(ErrorCode.USER_ERROR)
        case "not_in_repo" | "auth_failed":
            return int(ErrorCode.ENV_ERROR)
        case (
            "rate_limited"
            | "timeout"
            | "network_error"
            | "hosted_error"
            | "cross_repo_resolution_failed"
        ):
            return int(ErrorCode.NETWORK_ERROR)
