from __future__ import annotations

from itertools import chain
from pathlib import Path

import typer

from wtg import __version__
from wtg.backend.factory import resolve_backend
from wtg.cli.context import build_context
from wtg.core.config import WtgConfig
from wtg.core.errors import ErrorCode
from wtg.core.notices import Notices
from wtg.core.result import Err
from wtg.hosted.client import HostedClient
from wtg.output.console import ConsoleProtocol
from wtg.output.errors import error_exit_code, print_error
from wtg.output.render import render_notices, render_thing
from wtg.query import parse_input
from wtg.resolution.engine import resolve_with_timeout

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Find out what a commit, issue, PR, file or tag is, and which release shipped it.",
)


def run_query(
    raw: str,
    *,
    repo: str | None,
    config: WtgConfig,
    console: ConsoleProtocol,
    cwd: Path,
    client: HostedClient | None = None,
) -> int:
    """Resolve one identifier and render the outcome.

    Returns:
        The process exit code.
    """
    parsed = parse_input(raw, repo)
    if isinstance(parsed, Err):
        print_error(parsed.error, console)
        return error_exit_code(parsed.error)

    notices = Notices()
    resolved = resolve_backend(parsed.value.repo, config, notices, cwd, client=client)
    if isinstance(resolved, Err):
        print_error(resolved.error, console)
        return error_exit_code(resolved.error)

    backend = resolved.value.backend
    result = resolve_with_timeout(backend, parsed.value.query, config.resolve_timeout)
    render_notices(chain(resolved.value.notices, backend.notices), console)
    if isinstance(result, Err):
        print_error(result.error, console)
        return error_exit_code(result.error)

    render_thing(result.value, console)
    return int(ErrorCode.OK)


@app.command()
def wtg(
    query: str | None = typer.Argument(
        None,
        metavar="INPUT",
        help="Commit hash, #number, file path, tag, or GitHub URL.",
        show_default=False,
    ),
    repo: str | None = typer.Option(
        None,
        "--repo",
        "-r",
        metavar="OWNER/REPO",
        help="Repository to query (owner/repo or URL) instead of the current clone.",
    ),
    fetch: bool = typer.Option(
        False,
        "--fetch",
        help="Run `git fetch --tags` before reading; clone or refresh the cached copy of --repo.",
    ),
    no_auth: bool = typer.Option(False, "--no-auth", help="Use anonymous GitHub access only."),
    timeout: float | None = typer.Option(
        None, "--timeout", min=1.0, help="Give up after this many seconds."
    ),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Identify INPUT and report the release that shipped it."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)
    if query is None:
        typer.echo("error: missing INPUT", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    ctx = build_context(fetch=fetch, no_auth=no_auth, timeout=timeout)
    code = run_query(query, repo=repo, config=ctx.config, console=ctx.console, cwd=ctx.cwd)
    raise typer.Exit(code=code)


def main() -> None:
    app()
