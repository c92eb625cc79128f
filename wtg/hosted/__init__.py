"""GitHub REST API access."""

from wtg.hosted.client import HostedClient, to_wtg_error
from wtg.hosted.http import HttpClient, HttpError, MockHttpClient, RealHttpClient

__all__ = [
    "HostedClient",
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    "to_wtg_error",
]
