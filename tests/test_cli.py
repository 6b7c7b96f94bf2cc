"""Tests for the CLI module."""

import json
import re
from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner

from semtrail import __version__
from semtrail.cli import main

from conftest import requires_git


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep config lookups away from the real working and home directories."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
    for name in (
        "SEMTRAIL_CONFIG",
        "SEMTRAIL_TAG_PREFIX",
        "SEMTRAIL_MINIMUM_MAJOR_MINOR",
        "SEMTRAIL_BUILD_METADATA",
        "SEMTRAIL_AUTO_INCREMENT",
        "SEMTRAIL_DEFAULT_PRE_RELEASE_PHASE",
        "SEMTRAIL_VERBOSITY",
    ):
        monkeypatch.delenv(name, raising=False)


def test_main_help() -> None:
    """Test that --help works."""
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "SemVer" in result.output


def test_version() -> None:
    """Test that --version works."""
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert re.search(r"\d+\.\d+\.\d+", result.output)
    assert __version__ in result.output


def test_calculate_command_exists() -> None:
    """Test that the calculate command exists."""
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", "--help"])
    assert result.exit_code == 0
    assert "--tag-prefix" in result.output
    assert "--minimum-major-minor" in result.output


def test_config_path() -> None:
    """Test the config path command."""
    runner = CliRunner()
    result = runner.invoke(main, ["config", "path"])
    assert result.exit_code == 0
    assert "semtrail.ini" in result.output


def test_calculate_not_a_repository(tmp_path: Path) -> None:
    """Test a missing directory still prints the default version."""
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", str(tmp_path / "missing"), "-v", "error"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "0.0.0-alpha.0"


def test_calculate_options_applied(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        main,
        [
            "calculate",
            str(tmp_path / "missing"),
            "-v",
            "error",
            "-m",
            "1.2",
            "-b",
            "ci.7",
            "-p",
            "beta",
        ],
    )
    assert result.exit_code == 0
    assert result.stdout.strip() == "1.2.0-beta.0+ci.7"


def test_calculate_json(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        main, ["calculate", str(tmp_path / "missing"), "-v", "error", "--format", "json"]
    )
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data == {
        "version": "0.0.0-alpha.0",
        "major": 0,
        "minor": 0,
        "patch": 0,
        "pre_release": ["alpha", "0"],
        "build_metadata": "",
    }


def test_invalid_minimum() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", "-m", "one"])
    assert result.exit_code == 2


def test_leading_zero_phase(tmp_path: Path) -> None:
    """Test a phase that would build an invalid version is rejected up front."""
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", str(tmp_path / "missing"), "-p", "01"])
    assert result.exit_code == 1
    assert "'01'" in result.output


def test_invalid_build_metadata(tmp_path: Path) -> None:
    """Test invalid option values are reported as errors, not tracebacks."""
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", str(tmp_path / "missing"), "-b", "a+b"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_missing_config_file(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["--config", str(tmp_path / "nope.ini"), "calculate"])
    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_unknown_project(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["calculate", str(tmp_path), "--project", "web"])
    assert result.exit_code == 1
    assert "Unknown project 'web'" in result.output


def test_config_init_and_show(tmp_path: Path) -> None:
    """Test config init writes a file that config show then reads."""
    runner = CliRunner()
    result = runner.invoke(main, ["config", "init", "--tag-prefix", "v"])
    assert result.exit_code == 0
    assert (tmp_path / "semtrail.ini").exists()

    result = runner.invoke(main, ["config", "init"])
    assert result.exit_code == 1
    assert "already exists" in result.output

    result = runner.invoke(main, ["config", "show"])
    assert result.exit_code == 0
    assert "Tag prefix: v" in result.output
    assert "Auto increment: minor" in result.output


@requires_git
class TestCalculateInRepository:
    """Tests running calculate against a real repository."""

    def test_tag_prefix(self, git_repo: Callable[..., str]) -> None:
        git_repo("commit", "--allow-empty", "-q", "-m", "first")
        git_repo("tag", "2.3.4")
        git_repo("tag", "v5.6.7")
        path = str(git_repo.path)  # type: ignore[attr-defined]

        runner = CliRunner()
        plain = runner.invoke(main, ["calculate", path, "-v", "error"])
        prefixed = runner.invoke(main, ["calculate", path, "-v", "error", "-t", "v"])

        assert plain.stdout.strip() == "2.3.4"
        assert prefixed.stdout.strip() == "5.6.7"

    def test_tag_prefix_from_environment(self, git_repo: Callable[..., str]) -> None:
        git_repo("commit", "--allow-empty", "-q", "-m", "first")
        git_repo("tag", "v1.0.0")
        git_repo("commit", "--allow-empty", "-q", "-m", "second")

        runner = CliRunner()
        result = runner.invoke(
            main,
            ["calculate", str(git_repo.path), "-v", "error"],  # type: ignore[attr-defined]
            env={"SEMTRAIL_TAG_PREFIX": "v"},
        )
        assert result.exit_code == 0
        assert result.stdout.strip() == "1.1.0-alpha.1"

    def test_projects_from_config(self, tmp_path: Path, git_repo: Callable[..., str]) -> None:
        """Test two projects in one repository, selected by --project."""
        git_repo("commit", "--allow-empty", "-q", "-m", "first")
        git_repo("tag", "2.3.4")
        git_repo("tag", "v5.6.7")
        config = tmp_path / "semtrail.ini"
        config.write_text(
            "[logging]\nverbosity = error\n\n[project:lib]\ntag_prefix =\n\n[project:app]\ntag_prefix = v\n",
            encoding="utf-8",
        )
        path = str(git_repo.path)  # type: ignore[attr-defined]

        runner = CliRunner()
        lib = runner.invoke(main, ["--config", str(config), "calculate", path, "--project", "lib"])
        app = runner.invoke(main, ["--config", str(config), "calculate", path, "--project", "app"])

        assert lib.stdout.strip() == "2.3.4"
        assert app.stdout.strip() == "5.6.7"

    def test_trace_output_on_stderr(self, git_repo: Callable[..., str]) -> None:
        git_repo("commit", "--allow-empty", "-q", "-m", "first")
        git_repo("tag", "1.0.0")

        runner = CliRunner()
        result = runner.invoke(main, ["calculate", str(git_repo.path), "-v", "trace"])  # type: ignore[attr-defined]
        assert result.exit_code == 0
        assert "Starting at commit" in result.output
        assert "Calculated version 1.0.0." in result.output
