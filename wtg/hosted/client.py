"""Authenticated/anonymous fallback around GitHub API calls.

``HostedClient`` owns two HTTP clients: a primary one (carrying the token, if
any) and an anonymous secondary. ``call`` runs an API function on the primary
and, if that fails, retries once on the secondary. Failures are turned into
``WtgError`` values and classified into notices:

- secondary rate-limited: ``RateLimitHit(authenticated=False)``, its error
- secondary SSO/SAML refusal: the primary error, no notice
- secondary not-found: the primary error, no notice
- any other secondary failure: ``AnonymousFallbackFailed``, its error
- a 404 on the primary is returned as is, without a retry
- success on the secondary emits nothing

Without a token the anonymous client is the only attempt.
"""

from __future__ import annotations

from collections.abc import Callable

from wtg.core.config import WtgConfig
from wtg.core.errors import WtgError
from wtg.core.notices import AnonymousFallbackFailed, Notices, RateLimitHit
from wtg.core.result import Err, Ok, Result
from wtg.hosted.http import HttpClient, HttpError, RealHttpClient

__all__ = ["HostedClient", "to_wtg_error"]


def to_wtg_error(operation: str, e: HttpError) -> WtgError:
    """Map an HTTP failure to the error taxonomy."""
    detail = str(e)
    if e.is_not_found:
        return WtgError(kind="not_found", message=f"not found: {operation}", hint=detail)
    if e.rate_limited:
        return WtgError(kind="rate_limited", message="GitHub API rate limit exceeded", hint=detail)
    if e.sso:
        return WtgError(
            kind="auth_failed",
            message="token not authorized for this organization (SAML SSO)",
            hint=detail,
            sso=True,
        )
    if e.status == 401:
        return WtgError(kind="auth_failed", message="GitHub rejected the token", hint=detail)
    if e.timed_out:
        return WtgError(kind="timeout", message=f"{operation} timed out", hint=detail)
    if e.status == 0 and not e.malformed:
        return WtgError(kind="network_error", message=f"{operation} failed", hint=detail)
    return WtgError(kind="hosted_error", message=f"{operation} failed", hint=detail)


class HostedClient:
    """GitHub API access with one anonymous retry.

    Attributes:
        api_url: REST API root
        web_url: Web root for canonical URLs
        notices: Accumulator shared with the owning backend
    """

    def __init__(
        self,
        anonymous: HttpClient,
        notices: Notices,
        *,
        primary: HttpClient | None = None,
        api_url: str,
        web_url: str,
    ) -> None:
        self._primary = primary
        self._anonymous = anonymous
        self.notices = notices
        self.api_url = api_url
        self.web_url = web_url

    @classmethod
    def from_config(cls, config: WtgConfig, notices: Notices) -> HostedClient:
        token = config.effective_token
        primary = (
            RealHttpClient(
                token=token, timeout=config.request_timeout, user_agent=config.user_agent
            )
            if token is not None
            else None
        )
        anonymous = RealHttpClient(timeout=config.request_timeout, user_agent=config.user_agent)
        return cls(
            anonymous, notices, primary=primary, api_url=config.api_url, web_url=config.web_url
        )

    @property
    def has_auth(self) -> bool:
        return self._primary is not None

    def call[T](
        self, operation: str, fn: Callable[[HttpClient], Result[T, HttpError]]
    ) -> Result[T, WtgError]:
        """Run ``fn`` on the primary client, falling back to the anonymous one.

        Args:
            operation: Short description used in errors and notices
            fn: API call taking the client to use
        """
        first = self._primary if self._primary is not None else self._anonymous
        result = fn(first)
        if isinstance(result, Ok):
            return result

        primary_error = to_wtg_error(operation, result.error)
        if self._primary is None or result.error.is_not_found:
            if primary_error.kind == "rate_limited":
                self.notices.emit(RateLimitHit(authenticated=first.authenticated))
            return Err(primary_error)

        retry = fn(self._anonymous)
        if isinstance(retry, Ok):
            return retry

        error = to_wtg_error(operation, retry.error)
        if error.kind == "rate_limited":
            self.notices.emit(RateLimitHit(authenticated=False))
            return Err(error)
        if error.sso or error.kind == "not_found":
            return Err(primary_error)
        self.notices.emit(AnonymousFallbackFailed(operation=operation, error=error))
        return Err(error)

    def call_authenticated[T](
        self, operation: str, fn: Callable[[HttpClient], Result[T, HttpError]]
    ) -> Result[T, WtgError]:
        """Run ``fn`` on the token-carrying client only.

        Returns ``unsupported`` when no token is configured.
        """
        if self._primary is None:
            return Err(WtgError.unsupported(f"{operation} without a GitHub token"))
        result = fn(self._primary)
        if isinstance(result, Ok):
            return result
        error = to_wtg_error(operation, result.error)
        if error.kind == "rate_limited":
            self.notices.emit(RateLimitHit(authenticated=True))
        return Err(error)
