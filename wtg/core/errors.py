"""Error taxonomy and CLI exit codes.

``WtgError`` is the single error value returned by backends and the
resolution engine. Its ``kind`` drives recovery decisions (fallback chains
recover ``unsupported`` and ``not_found``) and, at the CLI boundary, the
process exit code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

__all__ = ["ErrorCode", "ErrorKind", "WtgError", "GENERIC_KINDS", "RECOVERABLE_KINDS"]


class ErrorCode(IntEnum):
    """Exit codes for the wtg CLI.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (nothing matched, malformed input)
    - 2: Environment error (not a repository, credential rejected)
    - 4: Network error (rate limit, timeout, API failure)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


ErrorKind = Literal[
    "not_found",
    "ambiguous",
    "unsupported",
    "rate_limited",
    "auth_failed",
    "timeout",
    "network_error",
    "parse_error",
    "cross_repo_resolution_failed",
    "not_in_repo",
    "hosted_error",
]

# Kinds that a fallback chain may step past.
RECOVERABLE_KINDS: frozenset[ErrorKind] = frozenset({"not_found", "unsupported"})

# Kinds that carry little information for the user; a more specific error
# from another source is preferred over these.
GENERIC_KINDS: frozenset[ErrorKind] = frozenset({"unsupported", "hosted_error"})


@dataclass(frozen=True, slots=True)
class WtgError:
    """A failed lookup or operation.

    Attributes:
        kind: Machine-readable category.
        message: Human-readable summary.
        hint: Optional extra detail (underlying error text, suggested fix).
        sso: True for organization SSO/SAML authorization failures.
    """

    kind: ErrorKind
    message: str
    hint: str | None = None
    sso: bool = False

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message

    @property
    def is_recoverable(self) -> bool:
        return self.kind in RECOVERABLE_KINDS

    @property
    def is_generic(self) -> bool:
        return self.kind in GENERIC_KINDS

    @staticmethod
    def not_found(what: str) -> WtgError:
        return WtgError(kind="not_found", message=f"not found: {what}")

    @staticmethod
    def unsupported(operation: str) -> WtgError:
        return WtgError(kind="unsupported", message=f"{operation} is not supported by this backend")

    @staticmethod
    def parse(message: str, hint: str | None = None) -> WtgError:
        return WtgError(kind="parse_error", message=message, hint=hint)
