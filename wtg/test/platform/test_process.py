"""Tests for wtg.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from wtg.core.result import Err, Ok
from wtg.platform.process import ProcessError, run

PROBE = "import os; print(os.environ['WTG_PROBE'], 'PATH' in os.environ)"


class TestProcessError:
    """Test ProcessError dataclass."""

    def test_str_short_command(self) -> None:
        error = ProcessError(
            command=("git", "status"),
            returncode=128,
            stdout="",
            stderr="fatal: not a git repository",
        )
        assert str(error) == "git status failed (exit 128)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("git", "log", "-n5", "--follow", "--", "a.py"),
            returncode=1,
            stdout="",
            stderr="error",
        )
        assert str(error) == "git log -n5 ... failed (exit 1)"

    def test_str_timeout(self) -> None:
        error = ProcessError(("git", "fetch"), -1, "", "", timed_out=True)
        assert str(error) == "git fetch timed out"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    """Test run function."""

    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; print('bad', file=sys.stderr); sys.exit(42)"],
            cwd=tmp_path,
        )

        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert "bad" in result.error.stderr

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_env_is_layered(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", PROBE],
            cwd=tmp_path,
            env={"WTG_PROBE": "yes"},
        )

        assert isinstance(result, Ok)
        assert result.value.split() == ["yes", "True"]

    def test_timeout(self, tmp_path: Path) -> None:
        sleeper = [sys.executable, "-c", "import time; time.sleep(5)"]
        result = run(sleeper, cwd=tmp_path, timeout=0.2)

        assert isinstance(result, Err)
        assert result.error.timed_out is True
        assert result.error.returncode == -1
