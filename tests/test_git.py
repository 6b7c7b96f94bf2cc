"""Tests for reading history from git."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from semtrail.config import VersionOptions
from semtrail.errors import GitError
from semtrail.git import GitRepository, parse_log, parse_show_ref
from semtrail.graph import Tag
from semtrail.versioner import get_version

from conftest import RecordingLogger, requires_git


class TestParseLog:
    """Tests for parse_log."""

    def test_linear(self) -> None:
        graph = parse_log("ccc bbb\nbbb aaa\naaa")
        assert graph.head == "ccc"
        assert graph["ccc"].parents == ("bbb",)
        assert graph["aaa"].is_root
        assert len(graph.commits) == 3

    def test_merge_parent_order(self) -> None:
        """Test the first parent stays first."""
        graph = parse_log("m x y\nx base\ny base\nbase\n")
        assert graph["m"].parents == ("x", "y")

    def test_shallow_clone(self) -> None:
        """Test a parent missing from the output becomes a root."""
        graph = parse_log("bbb aaa")
        assert "aaa" in graph
        assert graph["aaa"].is_root

    def test_blank_lines_ignored(self) -> None:
        graph = parse_log("\nbbb aaa\n\naaa\n")
        assert graph.head == "bbb"

    def test_empty(self) -> None:
        with pytest.raises(GitError):
            parse_log("")


class TestParseShowRef:
    """Tests for parse_show_ref."""

    def test_lightweight(self) -> None:
        output = "aaa refs/tags/1.0.0\nbbb refs/tags/v2.0.0\n"
        assert parse_show_ref(output) == [Tag("1.0.0", "aaa"), Tag("v2.0.0", "bbb")]

    def test_annotated_resolved_to_commit(self) -> None:
        """Test the dereferenced line replaces the tag object's sha."""
        output = "tagobj refs/tags/1.0.0\ncommit1 refs/tags/1.0.0^{}\n"
        assert parse_show_ref(output) == [Tag("1.0.0", "commit1")]

    def test_non_tag_refs_ignored(self) -> None:
        output = "aaa refs/heads/main\nbbb refs/tags/1.0.0\ngarbage\n"
        assert parse_show_ref(output) == [Tag("1.0.0", "bbb")]

    def test_empty(self) -> None:
        assert parse_show_ref("") == []


class TestGitRepository:
    """Tests against a real git repository."""

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert not GitRepository(tmp_path / "missing").is_working_directory()

    def test_missing_git_executable(self, tmp_path: Path) -> None:
        repository = GitRepository(tmp_path, git="semtrail-no-such-git")
        with pytest.raises(GitError, match="not found"):
            repository.is_working_directory()

    @requires_git
    def test_plain_directory(self, tmp_path: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()
        assert not GitRepository(plain).is_working_directory()

    @requires_git
    def test_no_commits(self, git_repo: Callable[..., str]) -> None:
        repository = GitRepository(git_repo.path)  # type: ignore[attr-defined]
        assert repository.is_working_directory()
        assert repository.try_get_head() is None
        assert repository.get_tags() == []

    @requires_git
    def test_history_and_tags(self, git_repo: Callable[..., str]) -> None:
        git_repo("commit", "--allow-empty", "-q", "-m", "first")
        first = git_repo("rev-parse", "HEAD")
        git_repo("tag", "1.0.0")
        git_repo("commit", "--allow-empty", "-q", "-m", "second")
        second = git_repo("rev-parse", "HEAD")
        git_repo("tag", "-a", "v2.0.0", "-m", "annotated")

        repository = GitRepository(git_repo.path)  # type: ignore[attr-defined]
        graph = repository.try_get_head()

        assert graph is not None
        assert graph.head == second
        assert graph[second].parents == (first,)
        assert graph[first].is_root
        assert sorted(repository.get_tags(), key=lambda tag: tag.name) == [
            Tag("1.0.0", first),
            Tag("v2.0.0", second),
        ]

    @requires_git
    def test_work_dir_in_subdirectory(self, git_repo: Callable[..., str]) -> None:
        git_repo("commit", "--allow-empty", "-q", "-m", "first")
        sub = git_repo.path / "nested"  # type: ignore[attr-defined]
        sub.mkdir()
        assert GitRepository(sub).is_working_directory()


@requires_git
class TestGetVersionFromGit:
    """End-to-end calculations against real repositories."""

    def test_empty_repository(self, git_repo: Callable[..., str], log: RecordingLogger) -> None:
        version = get_version(git_repo.path, VersionOptions(), log)  # type: ignore[attr-defined]
        assert str(version) == "0.0.0-alpha.0"
        assert log.warnings == []

    def test_height_past_tag(self, git_repo: Callable[..., str], log: RecordingLogger) -> None:
        git_repo("commit", "--allow-empty", "-q", "-m", "first")
        git_repo("tag", "1.2.3")
        git_repo("commit", "--allow-empty", "-q", "-m", "second")
        git_repo("commit", "--allow-empty", "-q", "-m", "third")

        version = get_version(git_repo.path, VersionOptions(), log)  # type: ignore[attr-defined]
        assert str(version) == "1.3.0-alpha.2"

    def test_prefixed_projects(self, git_repo: Callable[..., str], log: RecordingLogger) -> None:
        """Test two tag prefixes on one commit give independent versions."""
        git_repo("commit", "--allow-empty", "-q", "-m", "first")
        git_repo("tag", "2.3.4")
        git_repo("tag", "-a", "v5.6.7", "-m", "annotated")
        path = git_repo.path  # type: ignore[attr-defined]

        assert str(get_version(path, VersionOptions(), log)) == "2.3.4"
        assert str(get_version(path, VersionOptions(tag_prefix="v"), log)) == "5.6.7"

    def test_merge(self, git_repo: Callable[..., str], log: RecordingLogger) -> None:
        git_repo("commit", "--allow-empty", "-q", "-m", "base")
        git_repo("tag", "1.0.0")
        git_repo("checkout", "-q", "-b", "feature")
        git_repo("commit", "--allow-empty", "-q", "-m", "feature work")
        git_repo("tag", "2.0.0")
        git_repo("checkout", "-q", "-")
        git_repo("commit", "--allow-empty", "-q", "-m", "main work")
        git_repo("merge", "-q", "--no-ff", "--no-edit", "feature")

        version = get_version(git_repo.path, VersionOptions(), log)  # type: ignore[attr-defined]
        assert str(version) == "2.1.0-alpha.1"
