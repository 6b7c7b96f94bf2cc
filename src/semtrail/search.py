"""Search the commit graph for version candidates.

The walk starts at HEAD and follows parents depth-first with an explicit
stack, first parent first. It stops descending at the first commit on each
path that carries a version tag. Every commit is processed at most once, so
merge-heavy histories cost O(edges) rather than one walk per path.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from semtrail.graph import Commit, CommitGraph, Tag
from semtrail.logger import Logger
from semtrail.version import Version


@dataclass(frozen=True)
class Candidate:
    """A commit that could supply the version.

    Attributes:
        commit: The commit carrying the version.
        height: Edges walked from HEAD along the path that found the commit.
        tag: Name of the tag, or "" for a root commit with no version tag.
        version: The tag's version, or the default version for a root commit.
        index: Order in which the walk found the candidate (0-based).
    """

    commit: Commit
    height: int
    tag: str
    version: Version
    index: int

    def __str__(self) -> str:
        return format_candidate(self)


def format_candidate(
    candidate: Candidate,
    tag_width: int = 0,
    version_width: int = 0,
    height_width: int = 0,
) -> str:
    """Render a candidate, padding columns so several line up in a list."""
    tag = f"'{candidate.tag}',".ljust(tag_width + 3)
    version = f"{candidate.version},".ljust(version_width + 1)
    height = str(candidate.height).rjust(height_width)
    return (
        f"{{ Commit: {candidate.commit.short_sha}, Tag: {tag} "
        f"Version: {version} Height: {height} }}"
    )


@dataclass
class SearchResult:
    """Candidates found by the walk, in discovery order."""

    candidates: list[Candidate] = field(default_factory=list)
    commits_checked: int = 0


def parse_version_tags(
    tags: Iterable[Tag], tag_prefix: str, log: Logger
) -> list[tuple[Tag, Version]]:
    """Parse the tags that are versions under the prefix.

    Tags that aren't versions are skipped. The result is ordered by version,
    then tag name, so the order git listed the tags in never matters.

    Args:
        tags: All tags in the repository.
        tag_prefix: Prefix a version tag must start with (may be empty).
        log: Logger for skipped tags.

    Returns:
        (tag, version) pairs.
    """
    tags_and_versions: list[tuple[Tag, Version]] = []

    for tag in tags:
        version = Version.try_parse(tag.name, tag_prefix)
        if version is not None:
            tags_and_versions.append((tag, version))
        elif log.is_debug_enabled:
            log.debug(f"Ignoring non-version tag {tag}.")

    tags_and_versions.sort(key=lambda pair: (pair[1].precedence_key(), pair[0].name))
    return tags_and_versions


def find_candidates(
    graph: CommitGraph,
    tags: Iterable[Tag],
    tag_prefix: str,
    default_pre_release_phase: str,
    log: Logger,
) -> SearchResult:
    """Walk the graph from HEAD and collect version candidates.

    Args:
        graph: Commits reachable from HEAD.
        tags: All tags in the repository.
        tag_prefix: Prefix a version tag must start with (may be empty).
        default_pre_release_phase: Phase of the default version given to
            untagged root commits.
        log: Logger for diagnostics.

    Returns:
        The candidates, in discovery order, and the number of commits checked.
        There is always at least one candidate.
    """
    tags_by_sha: dict[str, list[tuple[Tag, Version]]] = {}
    for tag, version in parse_version_tags(tags, tag_prefix, log):
        tags_by_sha.setdefault(tag.sha, []).append((tag, version))

    result = SearchResult()
    checked: set[str] = set()
    # (commit, height along this path, child that pushed it)
    stack: list[tuple[Commit, int, Commit]] = []

    commit = graph.head_commit
    height = 0
    previous: Commit | None = None

    if log.is_trace_enabled:
        log.trace(f"Starting at commit {commit.short_sha} (height {height})...")

    while True:
        if commit.sha not in checked:
            checked.add(commit.sha)

            commit_tags = tags_by_sha.get(commit.sha)
            if commit_tags:
                for tag, version in commit_tags:
                    candidate = Candidate(commit, height, tag.name, version, len(result.candidates))
                    if log.is_trace_enabled:
                        log.trace(f"Found version tag {candidate}.")
                    result.candidates.append(candidate)
            else:
                if log.is_trace_enabled and commit.is_merge:
                    log.trace(f"History diverges from {commit.short_sha} (height {height}) to:")
                    for parent in graph.parents_of(commit.sha):
                        log.trace(f"- {parent.short_sha} (height {height + 1})")

                for parent in reversed(graph.parents_of(commit.sha)):
                    stack.append((parent, height + 1, commit))

                if commit.is_root and (not stack or stack[-1][1] <= height):
                    candidate = Candidate(
                        commit,
                        height,
                        "",
                        Version.default(default_pre_release_phase),
                        len(result.candidates),
                    )
                    if log.is_trace_enabled:
                        log.trace(f"Found root commit {candidate}.")
                    result.candidates.append(candidate)
        elif log.is_trace_enabled and previous is not None:
            log.trace(
                f"History converges from {previous.short_sha} (height {height - 1}) back to "
                f"previously seen commit {commit.short_sha} (height {height}). Abandoning path."
            )

        if not stack:
            break

        previous = commit
        old_height = height
        commit, height, child = stack.pop()

        if log.is_trace_enabled:
            _trace_step(log, stack, commit, height, child, old_height)

    result.commits_checked = len(checked)
    return result


def _trace_step(
    log: Logger,
    stack: list[tuple[Commit, int, Commit]],
    commit: Commit,
    height: int,
    child: Commit,
    old_height: int,
) -> None:
    if child.is_merge and height > old_height:
        log.trace(
            f"Following path from {child.short_sha} (height {height - 1}) "
            f"through first parent {commit.short_sha} (height {height})..."
        )
    elif height <= old_height:
        which = "next" if stack and stack[-1][1] == height else "last"
        log.trace(
            f"Backtracking to {child.short_sha} (height {height - 1}) "
            f"and following path through {which} parent {commit.short_sha} (height {height})..."
        )
