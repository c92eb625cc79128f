"""Typed configuration.

``WtgConfig`` is built once at startup and passed explicitly to the backend
constructors; there is no module-level client or settings object.

Sources, lowest to highest priority:
- built-in defaults
- optional TOML file (``$WTG_CONFIG`` or ``~/.config/wtg/config.toml``)
- environment (``GITHUB_TOKEN``/``GH_TOKEN``, ``WTG_GH_NO_AUTH``)
- CLI flags (applied by the caller with ``dataclasses.replace``)

Example config.toml:

    [github]
    api_url = "https://api.github.com"
    request_timeout = 10

    [resolve]
    timeout = 60
    fetch = false
    cache_dir = "~/.cache/wtg/repos"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from wtg import __version__
from wtg.core.result import Err, Ok, Result
from wtg.core.structured import StrDict, as_str_dict, get_bool, get_float, get_str, get_table

__all__ = [
    "ConfigError",
    "WtgConfig",
    "apply_env",
    "default_config_path",
    "load_config",
    "load_config_or_default",
    "DEFAULT_API_URL",
    "DEFAULT_WEB_URL",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_RESOLVE_TIMEOUT",
]

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_WEB_URL = "https://github.com"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RESOLVE_TIMEOUT = 60.0

NO_AUTH_ENV_VAR = "WTG_GH_NO_AUTH"
CONFIG_ENV_VAR = "WTG_CONFIG"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the config file cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class WtgConfig:
    """Runtime configuration for one invocation.

    Attributes:
        token: GitHub token, or None for anonymous access only.
        force_anonymous: Ignore any token and use anonymous access.
        request_timeout: Per-request HTTP timeout in seconds.
        resolve_timeout: Outer timeout for a whole resolution in seconds.
        allow_fetch: Permit network git access: one ``git fetch --tags`` in a
            local clone, or cloning and refreshing a cached clone.
        cache_dir: Root for cached bare clones, or None for the user cache.
        api_url: GitHub REST API root.
        web_url: GitHub web root (for canonical URLs).
        user_agent: User-Agent header for API calls.
    """

    token: str | None = None
    force_anonymous: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    resolve_timeout: float = DEFAULT_RESOLVE_TIMEOUT
    allow_fetch: bool = False
    cache_dir: Path | None = None
    api_url: str = DEFAULT_API_URL
    web_url: str = DEFAULT_WEB_URL
    user_agent: str = f"wtg/{__version__}"

    @property
    def effective_token(self) -> str | None:
        """Token to authenticate with, honoring the anonymous switch."""
        if self.force_anonymous:
            return None
        return self.token

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> WtgConfig:
        """Create a config from a parsed TOML mapping."""
        github: StrDict = get_table(data, "github") or {}
        resolve: StrDict = get_table(data, "resolve") or {}

        return cls(
            force_anonymous=get_bool(github, "anonymous") or False,
            request_timeout=get_float(github, "request_timeout") or DEFAULT_REQUEST_TIMEOUT,
            resolve_timeout=get_float(resolve, "timeout") or DEFAULT_RESOLVE_TIMEOUT,
            allow_fetch=get_bool(resolve, "fetch") or False,
            cache_dir=_optional_path(get_str(resolve, "cache_dir")),
            api_url=(get_str(github, "api_url") or DEFAULT_API_URL).rstrip("/"),
            web_url=(get_str(github, "web_url") or DEFAULT_WEB_URL).rstrip("/"),
        )


def _optional_path(raw: str | None) -> Path | None:
    return Path(raw).expanduser() if raw else None


def default_config_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    explicit = env.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit).expanduser()
    return Path.home() / ".config" / "wtg" / "config.toml"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[WtgConfig, ConfigError]:
    """Load configuration from a TOML file.

    Args:
        path: Path to config.toml

    Returns:
        Ok(WtgConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result
    return Ok(WtgConfig.from_dict(result.value))


def load_config_or_default(path: Path) -> WtgConfig:
    """Load config from file, or the defaults if it is missing or invalid."""
    result = load_config(path)
    if isinstance(result, Ok):
        return result.value
    return WtgConfig()


def apply_env(config: WtgConfig, env: Mapping[str, str], token: str | None) -> WtgConfig:
    """Layer environment-derived settings over ``config``.

    Args:
        config: Base configuration (defaults or file).
        env: Environment mapping.
        token: Token from credential discovery, if any.
    """
    no_auth = env.get(NO_AUTH_ENV_VAR, "").strip().lower() in _TRUTHY
    return replace(
        config,
        token=token if token is not None else config.token,
        force_anonymous=config.force_anonymous or no_auth,
    )
