from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

import typer

from wtg.core.config import WtgConfig, apply_env, default_config_path, load_config
from wtg.core.credentials import discover_token
from wtg.core.errors import ErrorCode
from wtg.core.result import Err
from wtg.output.console import ConsoleProtocol, RichConsole
from wtg.output.errors import print_config_error


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: WtgConfig
    console: ConsoleProtocol
    cwd: Path


def build_config(
    env: Mapping[str, str],
    cwd: Path,
    *,
    console: ConsoleProtocol,
    fetch: bool = False,
    no_auth: bool = False,
    timeout: float | None = None,
) -> WtgConfig:
    """Layer defaults, config file, environment and flags."""
    config = WtgConfig()
    path = default_config_path(env)
    if path.exists():
        loaded = load_config(path)
        if isinstance(loaded, Err):
            print_config_error(loaded.error, console)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
        config = loaded.value

    config = apply_env(config, env, None)
    anonymous = no_auth or config.force_anonymous
    # The gh CLI is not consulted when anonymous access is forced.
    token = None if anonymous else discover_token(env, cwd)
    config = replace(config, token=token, force_anonymous=anonymous)

    if fetch:
        config = replace(config, allow_fetch=True)
    if timeout is not None:
        config = replace(config, resolve_timeout=timeout)
    return config


def build_context(*, fetch: bool, no_auth: bool, timeout: float | None) -> CLIContext:
    console = RichConsole()
    cwd = Path.cwd()
    config = build_config(
        os.environ, cwd, console=console, fetch=fetch, no_auth=no_auth, timeout=timeout
    )
    return CLIContext(config=config, console=console, cwd=cwd)
