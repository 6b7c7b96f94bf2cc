"""Shared fixtures for semtrail tests."""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from semtrail.config import reset_config


class RecordingLogger:
    """Logger that keeps every message for assertions."""

    def __init__(self, trace: bool = True, debug: bool = True) -> None:
        self._trace = trace
        self._debug = debug
        self.messages: list[tuple[str, str]] = []
        self.warnings: list[tuple[int, str]] = []

    @property
    def is_trace_enabled(self) -> bool:
        return self._trace

    @property
    def is_debug_enabled(self) -> bool:
        return self._debug

    def trace(self, message: str) -> None:
        self.messages.append(("trace", message))

    def debug(self, message: str) -> None:
        self.messages.append(("debug", message))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warn(self, code: int, message: str) -> None:
        self.warnings.append((code, message))
        self.messages.append(("warn", message))

    def at(self, level: str) -> list[str]:
        """Get the messages logged at one level."""
        return [message for lvl, message in self.messages if lvl == level]


@pytest.fixture
def log() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture(autouse=True)
def _fresh_config() -> None:
    reset_config()


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def _git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        [
            "git",
            "-c",
            "user.name=semtrail tests",
            "-c",
            "user.email=tests@example.com",
            "-c",
            "commit.gpgsign=false",
            "-c",
            "tag.gpgsign=false",
            *args,
        ],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> Callable[..., str]:
    """An empty git repository; call the fixture to run git commands in it.

    Example:
        ```python
        def test_x(git_repo):
            git_repo("commit", "--allow-empty", "-m", "first")
        ```
    """
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")

    def run(*args: str) -> str:
        return _git(repo, *args)

    run.path = repo  # type: ignore[attr-defined]
    return run
