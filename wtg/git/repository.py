"""Read-only access to a local git repository.

``GitRepo`` wraps the ``git`` executable. Every method returns a Result;
lookups of things that do not exist return ``Ok(None)`` (or an empty list)
so callers can tell "absent" apart from "git failed". Only ``clone_bare``,
``fetch_tags`` and ``fetch_refs`` touch the network.

Usage:
    match GitRepo.discover(Path.cwd()):
        case Ok(repo):
            commit = repo.resolve_commit("HEAD")
        case Err(e):
            print(f"not a repository: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from wtg.core.result import Err, Ok, Result
from wtg.model import CommitInfo, RepoCoords, TagInfo
from wtg.platform.process import ProcessError
from wtg.platform.process import run as run_process
from wtg.query import parse_remote_url
from wtg.semver import parse_semver

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 2 * 60.0

# Field and record separators for --format output.
_FS = "\x1f"
_RS = "\x1e"

_COMMIT_FORMAT = "%x1e%H%x1f%an%x1f%ae%x1f%ct%x1f%P%x1f%B"
_TAG_FORMAT = (
    "%(refname:short)%1f%(objectname)%1f%(*objectname)"
    "%1f%(committerdate:unix)%1f%(*committerdate:unix)"
)

_PREFERRED_REMOTES = ("origin", "upstream")
_MIRROR_REFSPECS = ("+refs/heads/*:refs/heads/*", "+refs/tags/*:refs/tags/*")

__all__ = ["GitError", "GitRepo", "Remote"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
        timed_out: True if git was killed after its timeout
    """

    command: str
    message: str
    returncode: int = 1
    timed_out: bool = False


@dataclass(frozen=True, slots=True)
class Remote:
    name: str
    url: str


def _git_error(command: str, e: ProcessError) -> GitError:
    return GitError(
        command=command,
        message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
        returncode=e.returncode,
        timed_out=e.timed_out,
    )


def _timestamp(raw: str) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(raw), tz=UTC)
    except ValueError:
        return None


def _parse_commit(record: str) -> CommitInfo | None:
    fields = record.split(_FS, 5)
    if len(fields) != 6:
        return None
    hash_, author_name, author_email, ct, parents, body = fields
    ts = _timestamp(ct)
    if ts is None:
        return None
    lines = body.strip().splitlines()
    return CommitInfo(
        hash=hash_,
        short_hash=hash_[:7],
        author_name=author_name,
        author_email=author_email,
        timestamp=ts,
        message=lines[0] if lines else "",
        message_lines=max(len(lines), 1),
        parents=tuple(parents.split()),
    )


def _parse_commits(output: str) -> list[CommitInfo]:
    commits: list[CommitInfo] = []
    for record in output.split(_RS):
        if not record.strip():
            continue
        commit = _parse_commit(record.lstrip("\n"))
        if commit is not None:
            commits.append(commit)
    return commits


def _parse_tag_line(line: str) -> TagInfo | None:
    fields = line.split(_FS)
    if len(fields) != 5:
        return None
    name, obj, peeled, date, peeled_date = fields
    # Annotated tags carry the peeled commit; lightweight tags point at it.
    target = peeled or obj
    ts = _timestamp(peeled_date or date)
    if not name or not target or ts is None:
        # Tags of trees or blobs have no committer date.
        return None
    return TagInfo(name=name, commit_hash=target, timestamp=ts, semver=parse_semver(name))


class GitRepo:
    """A local git repository, either a working tree or a bare clone.

    Attributes:
        path: Path to the repository top level
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def discover(cls, start: Path) -> Result[GitRepo, GitError]:
        """Find the repository containing ``start``."""
        result = run_process(
            ["git", "rev-parse", "--show-toplevel"], cwd=start, timeout=_GIT_TIMEOUT_SECONDS
        )
        match result:
            case Err(e):
                return Err(_git_error("rev-parse", e))
            case Ok(stdout):
                top = stdout.strip()
                if not top:
                    return Err(GitError(command="rev-parse", message="no work tree"))
                return Ok(cls(Path(top)))

    @classmethod
    def clone_bare(cls, url: str, target: Path) -> Result[GitRepo, GitError]:
        """Clone ``url`` into ``target`` without a working tree."""
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(GitError(command="clone", message=f"cannot create {target.parent}: {e}"))
        result = run_process(
            ["git", "clone", "--bare", "--quiet", url, str(target)],
            cwd=target.parent,
            env={"GIT_TERMINAL_PROMPT": "0"},
            timeout=_GIT_NETWORK_TIMEOUT_SECONDS,
        )
        if isinstance(result, Err):
            return Err(_git_error("clone", result.error))
        return Ok(cls(target))

    # -------------------------------------------------------------------------
    # Remotes
    # -------------------------------------------------------------------------

    def remotes(self) -> Result[list[Remote], GitError]:
        """Configured remotes with their fetch URLs, in git's order."""
        result = self._run(["remote", "-v"])
        if isinstance(result, Err):
            return Err(_git_error("remote", result.error))

        remotes: list[Remote] = []
        seen: set[str] = set()
        for line in result.value.splitlines():
            parts = line.split()
            if len(parts) < 2 or parts[0] in seen:
                continue
            if len(parts) >= 3 and parts[2] != "(fetch)":
                continue
            seen.add(parts[0])
            remotes.append(Remote(name=parts[0], url=parts[1]))
        return Ok(remotes)

    def hosted_remote(self) -> RepoCoords | None:
        """GitHub coordinates of the first matching remote.

        ``origin`` is checked first, then ``upstream``, then the rest.
        """
        result = self.remotes()
        if isinstance(result, Err):
            return None

        by_name = {r.name: r for r in result.value}
        ordered = [by_name[n] for n in _PREFERRED_REMOTES if n in by_name]
        ordered += [r for r in result.value if r.name not in _PREFERRED_REMOTES]
        for remote in ordered:
            coords = parse_remote_url(remote.url)
            if coords is not None:
                return coords
        return None

    # -------------------------------------------------------------------------
    # Commits
    # -------------------------------------------------------------------------

    def resolve_commit(self, rev: str) -> Result[CommitInfo | None, GitError]:
        """Resolve a full hash, unique prefix or ref to a commit.

        Returns:
            Ok(CommitInfo), Ok(None) when ``rev`` names no commit, or
            Err(GitError) when git itself failed.
        """
        if rev.startswith("-"):
            return Ok(None)
        verify = self._run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"])
        match verify:
            case Err(e) if e.returncode == 1 or e.returncode == 128:
                return Ok(None)
            case Err(e):
                return Err(_git_error("rev-parse", e))
            case Ok(stdout):
                full = stdout.strip()

        result = self._run(["log", "-1", f"--format={_COMMIT_FORMAT}", full, "--"])
        if isinstance(result, Err):
            return Err(_git_error("log", result.error))
        commits = _parse_commits(result.value)
        return Ok(commits[0] if commits else None)

    def tags_containing(self, commit: str) -> Result[list[str], GitError]:
        """Names of tags whose target has ``commit`` as an ancestor."""
        result = self._run(["tag", "--contains", commit, "--format=%(refname:short)"])
        if isinstance(result, Err):
            return Err(_git_error("tag", result.error))
        return Ok([line.strip() for line in result.value.splitlines() if line.strip()])

    def file_history(self, path: str, limit: int) -> Result[list[CommitInfo], GitError]:
        """Commits touching ``path``, most recent first, following renames."""
        result = self._run(
            ["log", f"-n{limit}", "--follow", f"--format={_COMMIT_FORMAT}", "--", path]
        )
        if isinstance(result, Err):
            return Err(_git_error("log", result.error))
        return Ok(_parse_commits(result.value))

    def log_range(self, older: str, newer: str, limit: int) -> Result[list[CommitInfo], GitError]:
        """Commits reachable from ``newer`` but not ``older``, most recent first."""
        result = self._run(
            ["log", f"-n{limit}", f"--format={_COMMIT_FORMAT}", f"{older}..{newer}", "--"]
        )
        if isinstance(result, Err):
            return Err(_git_error("log", result.error))
        return Ok(_parse_commits(result.value))

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def list_tags(self) -> Result[list[TagInfo], GitError]:
        """All tags that point (directly or peeled) at a commit."""
        result = self._run(["for-each-ref", f"--format={_TAG_FORMAT}", "refs/tags"])
        if isinstance(result, Err):
            return Err(_git_error("for-each-ref", result.error))

        tags: list[TagInfo] = []
        for line in result.value.splitlines():
            tag = _parse_tag_line(line)
            if tag is not None:
                tags.append(tag)
        return Ok(tags)

    def fetch_tags(self) -> Result[str, GitError]:
        """Fetch tags from the default remote."""
        result = self._run(["fetch", "--tags", "--quiet"])
        match result:
            case Err(e):
                return Err(_git_error("fetch", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def fetch_refs(self, remote: str = "origin") -> Result[str, GitError]:
        """Mirror branches and tags from ``remote`` into this repository."""
        result = self._run(["fetch", "--quiet", "--prune", remote, *_MIRROR_REFSPECS])
        match result:
            case Err(e):
                return Err(_git_error("fetch", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = _GIT_NETWORK_TIMEOUT_SECONDS if command == "fetch" else _GIT_TIMEOUT_SECONDS
        # Never prompt for credentials on fetch.
        env = {"GIT_TERMINAL_PROMPT": "0"}
        return run_process(
            ["git", "-C", str(self.path), *args], cwd=self.path, env=env, timeout=timeout
        )
