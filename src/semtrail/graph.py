"""Read-only commit graph model.

Commits refer to their parents by sha, and a CommitGraph owns all of them in
a single mapping. The search walks the graph by identity and never holds
pointers between commits.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

SHORT_SHA_LENGTH = 7


@dataclass(frozen=True)
class Commit:
    """A commit and its ordered parents. The first parent is the mainline."""

    sha: str
    parents: tuple[str, ...] = ()

    @property
    def short_sha(self) -> str:
        return self.sha[:SHORT_SHA_LENGTH]

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


@dataclass(frozen=True)
class Tag:
    """A tag name and the sha of the commit it targets."""

    name: str
    sha: str

    def __str__(self) -> str:
        return f"{self.name} ({self.sha[:SHORT_SHA_LENGTH]})"


@dataclass(frozen=True)
class CommitGraph:
    """The commits reachable from HEAD, keyed by sha."""

    head: str
    commits: Mapping[str, Commit] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.head not in self.commits:
            raise KeyError(f"HEAD commit {self.head} is not in the graph")

    @classmethod
    def from_parents(cls, head: str, parents: Mapping[str, Iterable[str]]) -> CommitGraph:
        """Build a graph from a mapping of sha to parent shas.

        Parents that appear only as values (never as keys) are added as root
        commits.

        Example:
            ```python
            graph = CommitGraph.from_parents("c", {"c": ["b"], "b": ["a"], "a": []})
            ```
        """
        commits: dict[str, Commit] = {}
        for sha, parent_shas in parents.items():
            commits[sha] = Commit(sha, tuple(parent_shas))
        for commit in list(commits.values()):
            for parent in commit.parents:
                commits.setdefault(parent, Commit(parent))
        return cls(head=head, commits=commits)

    def __getitem__(self, sha: str) -> Commit:
        try:
            return self.commits[sha]
        except KeyError:
            raise KeyError(f"Commit {sha} is not in the graph") from None

    def __contains__(self, sha: object) -> bool:
        return sha in self.commits

    @property
    def head_commit(self) -> Commit:
        return self[self.head]

    def parents_of(self, sha: str) -> list[Commit]:
        """Get the parent commits of a commit, in order."""
        return [self[parent] for parent in self[sha].parents]
