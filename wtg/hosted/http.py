"""HTTP client abstraction for the GitHub REST API.

This module provides:
- HttpClient: Protocol for JSON GET requests (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing

A client is bound to one credential: ``RealHttpClient(token=...)`` sends it on
every request, ``RealHttpClient()`` is anonymous. Fallback between the two is
handled one level up, in ``wtg.hosted.client``.
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from email.message import Message
from typing import Protocol, runtime_checkable

from wtg.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
]

_ACCEPT = "application/vnd.github+json"
_API_VERSION = "2022-11-28"


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
        rate_limited: The API refused the call because of rate limiting
        sso: The token is not authorized for the organization (SAML/SSO)
        timed_out: The request exceeded its timeout
        malformed: The response arrived but did not have the expected shape
    """

    url: str
    status: int
    message: str
    rate_limited: bool = False
    sso: bool = False
    timed_out: bool = False
    malformed: bool = False

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


def _classify(url: str, status: int, reason: str, headers: Message, body: str) -> HttpError:
    message = reason
    try:
        payload: object = json.loads(body) if body else None
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict):
        api_message = payload.get("message")  # pyright: ignore[reportUnknownMemberType]
        if isinstance(api_message, str) and api_message:
            message = api_message

    lower = message.lower()
    remaining = headers.get("X-RateLimit-Remaining")
    rate_limited = status == 429 or (
        status == 403 and (remaining == "0" or "rate limit" in lower)
    )
    sso = status == 403 and (headers.get("X-GitHub-SSO") is not None or "saml" in lower)
    return HttpError(url=url, status=status, message=message, rate_limited=rate_limited, sso=sso)


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    This abstraction allows injecting mock clients for testing,
    avoiding real network calls in unit tests.
    """

    @property
    def authenticated(self) -> bool:
        """True if requests carry a credential."""
        ...

    def get_json(self, url: str) -> Result[object, HttpError]:
        """Fetch URL and parse the body as JSON (object or array).

        Args:
            url: URL to fetch

        Returns:
            Ok with the parsed JSON value, or Err with HttpError
        """
        ...


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - GitHub API headers and bearer authentication
    - Rate-limit and SSO detection on 403/429
    - Timeout handling
    """

    def __init__(
        self,
        token: str | None = None,
        timeout: float = 10.0,
        user_agent: str = "wtg",
    ) -> None:
        """Initialize HTTP client.

        Args:
            token: Bearer token, or None for anonymous requests
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
        """
        self._token = token
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    def _headers(self) -> dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": _ACCEPT,
            "X-GitHub-Api-Version": _API_VERSION,
        }
        if self._token is not None:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _request(self, url: str) -> Result[bytes, HttpError]:
        try:
            req = urllib.request.Request(url, headers=self._headers())
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            try:
                body = e.read().decode("utf-8", errors="replace")
            except OSError:
                body = ""
            return Err(_classify(url, e.code, str(e.reason), e.headers, body))
        except urllib.error.URLError as e:
            if isinstance(e.reason, TimeoutError):
                return Err(
                    HttpError(url=url, status=0, message="Request timed out", timed_out=True)
                )
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out", timed_out=True))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(self, url: str) -> Result[object, HttpError]:
        """Fetch URL and parse as JSON."""
        result = self._request(url)
        if isinstance(result, Err):
            return result

        try:
            data: object = json.loads(result.value.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(
                HttpError(url=url, status=0, message=f"JSON parse error: {e}", malformed=True)
            )
        return Ok(data)


class MockHttpClient:
    """Mock HTTP client for testing.

    Allows setting predefined responses for specific URLs. Unknown URLs
    answer 404.

    Usage:
        client = MockHttpClient(authenticated=True)
        client.set_json("https://api.github.com/repos/o/r", {"id": 1})
        result = client.get_json("https://api.github.com/repos/o/r")
        assert result == Ok({"id": 1})
    """

    def __init__(self, authenticated: bool = False) -> None:
        self._authenticated = authenticated
        self._json_responses: dict[str, object] = {}
        self._default_error: HttpError | None = None
        self.calls: list[str] = []

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    def set_json(self, url: str, response: object) -> None:
        """Set JSON response (or an HttpError) for URL."""
        self._json_responses[url] = response

    def fail_all(self, error: HttpError) -> None:
        """Answer every unmapped URL with ``error`` instead of 404."""
        self._default_error = error

    def get_json(self, url: str) -> Result[object, HttpError]:
        """Get mocked JSON response."""
        self.calls.append(url)

        if url not in self._json_responses:
            if self._default_error is not None:
                return Err(self._default_error)
            return Err(HttpError(url=url, status=404, message="Not Found"))

        response = self._json_responses[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)
