"""Read the commit graph and tags of a git repository.

Shells out to the git executable. Nothing here ever writes to the repository.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Protocol

from semtrail.errors import GitError
from semtrail.graph import Commit, CommitGraph, Tag
from semtrail.logger import Logger, NullLogger

TAG_REF_PREFIX = "refs/tags/"
DEREFERENCE_SUFFIX = "^{}"


class GraphSource(Protocol):
    """Anything that can supply a commit graph and tags."""

    def is_working_directory(self) -> bool: ...

    def try_get_head(self) -> CommitGraph | None: ...

    def get_tags(self) -> list[Tag]: ...


class GitRepository:
    """Commit graph source backed by the git executable."""

    def __init__(
        self,
        work_dir: str | Path = ".",
        git: str = "git",
        timeout: float | None = 60,
        log: Logger | None = None,
    ) -> None:
        """Initialize the repository reader.

        Args:
            work_dir: Directory inside the working tree.
            git: git executable to run.
            timeout: Seconds to wait for each git command.
            log: Logger for the commands being run.
        """
        self.work_dir = Path(work_dir)
        self.git = git
        self._timeout = timeout
        self._log = log or NullLogger()

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Run a git command in the working directory.

        Raises:
            GitError: If git can't be started or times out.
        """
        command = [self.git, *args]
        if self._log.is_trace_enabled:
            self._log.trace(f"Running {' '.join(command)} in '{self.work_dir}'...")

        try:
            result = subprocess.run(
                command,
                cwd=self.work_dir,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self._timeout,
            )
        except FileNotFoundError as e:
            raise GitError(f"'{self.git}' not found. Is git installed and on the PATH?") from e
        except subprocess.TimeoutExpired as e:
            raise GitError(f"{' '.join(command)} timed out after {self._timeout}s") from e
        except OSError as e:
            raise GitError(f"Failed to run {' '.join(command)}: {e}") from e

        if self._log.is_trace_enabled:
            self._log.trace(f"{' '.join(command)} exited with code {result.returncode}.")
        return result

    def _check(self, *args: str) -> str:
        result = self._run(*args)
        if result.returncode != 0:
            raise GitError(
                f"git {' '.join(args)} failed with exit code {result.returncode}: "
                f"{result.stderr.strip()}"
            )
        return result.stdout

    def is_working_directory(self) -> bool:
        """Check whether the directory is inside a git working tree."""
        if not self.work_dir.is_dir():
            return False
        return self._run("status", "--short").returncode == 0

    def try_get_head(self) -> CommitGraph | None:
        """Get HEAD and every commit reachable from it.

        Returns:
            The commit graph, or None if the repository has no commits yet.

        Raises:
            GitError: If git fails for any other reason.
        """
        if self._run("rev-parse", "--verify", "--quiet", "HEAD").returncode != 0:
            return None

        output = self._check("log", "--pretty=format:%H %P", "HEAD")
        return parse_log(output)

    def get_tags(self) -> list[Tag]:
        """Get every tag with the commit it points at.

        Annotated tags are resolved to the commit they annotate.
        """
        result = self._run("show-ref", "--tags", "--dereference")
        # show-ref exits 1 when there are no tags
        if result.returncode == 1 and not result.stdout.strip():
            return []
        if result.returncode != 0:
            raise GitError(
                f"git show-ref failed with exit code {result.returncode}: {result.stderr.strip()}"
            )
        return parse_show_ref(result.stdout)


def parse_log(output: str) -> CommitGraph:
    """Parse `git log --pretty=format:"%H %P"` output into a graph.

    The first line is HEAD.

    Raises:
        GitError: If the output is empty.
    """
    commits: dict[str, Commit] = {}
    head: str | None = None

    for line in output.splitlines():
        fields = line.split()
        if not fields:
            continue
        sha, parents = fields[0], tuple(fields[1:])
        if head is None:
            head = sha
        commits[sha] = Commit(sha, parents)

    if head is None:
        raise GitError("git log returned no commits")

    # shallow clones: parents outside the clone become roots
    for commit in list(commits.values()):
        for parent in commit.parents:
            commits.setdefault(parent, Commit(parent))

    return CommitGraph(head=head, commits=commits)


def parse_show_ref(output: str) -> list[Tag]:
    """Parse `git show-ref --tags --dereference` output.

    For annotated tags the dereferenced "^{}" line names the tagged commit and
    replaces the line naming the tag object.
    """
    targets: dict[str, str] = {}

    for line in output.splitlines():
        fields = line.split(maxsplit=1)
        if len(fields) != 2 or not fields[1].startswith(TAG_REF_PREFIX):
            continue
        sha, ref = fields[0], fields[1].strip()
        name = ref[len(TAG_REF_PREFIX) :]
        if name.endswith(DEREFERENCE_SUFFIX):
            targets[name[: -len(DEREFERENCE_SUFFIX)]] = sha
        else:
            targets.setdefault(name, sha)

    return [Tag(name, sha) for name, sha in targets.items()]
