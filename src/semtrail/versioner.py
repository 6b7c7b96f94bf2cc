"""Calculate the version of a working directory from its git history.

The calculation always produces a version. A directory that isn't a git
working tree, or a repository without commits, gets the default version
0.0.0-{phase}.0 and a diagnostic instead of an error.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from semtrail.config import VersionOptions
from semtrail.git import GitRepository, GraphSource
from semtrail.graph import CommitGraph, Tag
from semtrail.logger import Logger
from semtrail.search import find_candidates
from semtrail.selection import select_candidate, version_from_candidate
from semtrail.version import Version

NOT_A_WORKING_DIRECTORY = 1001


def get_version(
    work_dir: str | Path,
    options: VersionOptions,
    log: Logger,
    repository: GraphSource | None = None,
) -> Version:
    """Calculate the version of a working directory.

    Args:
        work_dir: Directory inside the git working tree.
        options: Tag prefix, minimum, build metadata and bump settings.
        log: Logger for diagnostics. Required.
        repository: Graph source to read from. Defaults to git in work_dir.

    Returns:
        The calculated version.

    Raises:
        ValueError: If no logger is given.
        GitError: If git itself fails unexpectedly.
    """
    if log is None:
        raise ValueError("A logger is required")

    if repository is None:
        repository = GitRepository(work_dir, log=log)

    phase = options.default_pre_release_phase

    if not repository.is_working_directory():
        version = Version.default(phase)
        log.warn(
            NOT_A_WORKING_DIRECTORY,
            f"'{work_dir}' is not a valid Git working directory. Using default version {version}.",
        )
        return _finish(version, options, log)

    graph = repository.try_get_head()
    if graph is None:
        version = Version.default(phase)
        log.info(f"No commits found. Using default version {version}.")
        return _finish(version, options, log)

    return calculate_version(graph, repository.get_tags(), options, log)


def calculate_version(
    graph: CommitGraph,
    tags: Iterable[Tag],
    options: VersionOptions,
    log: Logger,
) -> Version:
    """Calculate the version of HEAD in an already-loaded commit graph.

    Args:
        graph: Commits reachable from HEAD.
        tags: All tags in the repository.
        options: Tag prefix, minimum, build metadata and bump settings.
        log: Logger for diagnostics. Required.

    Returns:
        The calculated version.
    """
    if log is None:
        raise ValueError("A logger is required")

    phase = options.default_pre_release_phase

    result = find_candidates(graph, tags, options.tag_prefix, phase, log)
    log.debug(f"{result.commits_checked:,} commits checked.")

    candidate = select_candidate(result.candidates, options.tag_prefix, log)
    version = version_from_candidate(candidate, options.auto_increment, phase)

    return _finish(version, options, log)


def _finish(version: Version, options: VersionOptions, log: Logger) -> Version:
    version = version.add_build_metadata(options.build_metadata)

    calculated = version.satisfying(options.minimum_major_minor, options.default_pre_release_phase)

    if options.minimum_major_minor is not None:
        if calculated != version:
            log.info(
                f"Bumping version to {calculated} to satisfy minimum major minor "
                f"{options.minimum_major_minor}."
            )
        else:
            log.debug(
                f"The calculated version {calculated} satisfies the minimum major minor "
                f"{options.minimum_major_minor}."
            )

    log.info(f"Calculated version {calculated}.")
    return calculated
