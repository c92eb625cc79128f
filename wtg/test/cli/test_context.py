"""Tests for wtg.cli.context module."""

from __future__ import annotations

from pathlib import Path

import pytest
import typer

from wtg.cli import context
from wtg.cli.context import build_config
from wtg.output.console import MockConsole


@pytest.fixture
def no_gh(monkeypatch: pytest.MonkeyPatch) -> list[Path]:
    """Replace token discovery, recording where it was asked to look."""
    asked: list[Path] = []

    def fake_discover(env: dict[str, str], cwd: Path) -> str | None:
        asked.append(cwd)
        return env.get("GITHUB_TOKEN")

    monkeypatch.setattr(context, "discover_token", fake_discover)
    return asked


def _env(tmp_path: Path, **extra: str) -> dict[str, str]:
    return {"WTG_CONFIG": str(tmp_path / "config.toml"), **extra}


class TestBuildConfig:
    def test_defaults_without_file(self, tmp_path: Path, no_gh: list[Path]) -> None:
        config = build_config(_env(tmp_path), tmp_path, console=MockConsole())

        assert config.token is None
        assert config.force_anonymous is False
        assert config.allow_fetch is False
        assert config.resolve_timeout == 60.0
        assert no_gh == [tmp_path]

    def test_token_from_env(self, tmp_path: Path, no_gh: list[Path]) -> None:
        config = build_config(_env(tmp_path, GITHUB_TOKEN="tok"), tmp_path, console=MockConsole())

        assert config.effective_token == "tok"

    def test_file_values(self, tmp_path: Path, no_gh: list[Path]) -> None:
        (tmp_path / "config.toml").write_text(
            '[github]\napi_url = "https://ghe.example.com/api/v3/"\n\n'
            "[resolve]\ntimeout = 5.0\nfetch = true\n",
            encoding="utf-8",
        )

        config = build_config(_env(tmp_path), tmp_path, console=MockConsole())

        assert config.api_url == "https://ghe.example.com/api/v3"
        assert config.resolve_timeout == 5.0
        assert config.allow_fetch is True

    def test_flags_override_file(self, tmp_path: Path, no_gh: list[Path]) -> None:
        (tmp_path / "config.toml").write_text("[resolve]\ntimeout = 5.0\n", encoding="utf-8")

        config = build_config(
            _env(tmp_path), tmp_path, console=MockConsole(), fetch=True, timeout=2.0
        )

        assert config.resolve_timeout == 2.0
        assert config.allow_fetch is True

    def test_no_auth_flag_skips_discovery(self, tmp_path: Path, no_gh: list[Path]) -> None:
        config = build_config(
            _env(tmp_path, GITHUB_TOKEN="tok"), tmp_path, console=MockConsole(), no_auth=True
        )

        assert config.effective_token is None
        assert config.force_anonymous is True
        assert no_gh == []

    def test_no_auth_env(self, tmp_path: Path, no_gh: list[Path]) -> None:
        env = _env(tmp_path, GITHUB_TOKEN="tok", WTG_GH_NO_AUTH="1")

        config = build_config(env, tmp_path, console=MockConsole())

        assert config.effective_token is None
        assert no_gh == []

    def test_invalid_file_exits(self, tmp_path: Path, no_gh: list[Path]) -> None:
        (tmp_path / "config.toml").write_text("[resolve\n", encoding="utf-8")
        console = MockConsole()

        with pytest.raises(typer.Exit) as exc_info:
            build_config(_env(tmp_path), tmp_path, console=console)

        assert exc_info.value.exit_code == 2
        assert console.has_error()
        assert console.find("Invalid TOML syntax")
