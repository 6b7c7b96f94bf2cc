"""Choose one candidate and derive the version from it."""

from __future__ import annotations

from collections.abc import Sequence

from semtrail.logger import Logger
from semtrail.search import Candidate, format_candidate
from semtrail.version import Version, VersionPart


def order_candidates(candidates: Sequence[Candidate]) -> list[Candidate]:
    """Sort candidates so the one to use comes last.

    Candidates are ordered by version ascending, then by discovery index
    descending. Among equal versions the earliest-discovered candidate is
    therefore last, and wins.
    """
    by_index = sorted(candidates, key=lambda candidate: candidate.index, reverse=True)
    # stable sort keeps the index order within equal versions
    return sorted(by_index, key=lambda candidate: candidate.version.precedence_key())


def select_candidate(
    candidates: Sequence[Candidate],
    tag_prefix: str,
    log: Logger,
) -> Candidate:
    """Pick the candidate with the greatest version.

    Args:
        candidates: Candidates found by the graph walk.
        tag_prefix: Tag prefix in use, for the "no tag found" message.
        log: Logger for diagnostics.

    Returns:
        The selected candidate.

    Raises:
        ValueError: If there are no candidates.
    """
    if not candidates:
        raise ValueError("There are no candidates to select from")

    ordered = order_candidates(candidates)

    tag_width = version_width = height_width = 0
    if log.is_debug_enabled:
        tag_width = max(len(candidate.tag) for candidate in ordered)
        version_width = max(len(str(candidate.version)) for candidate in ordered)
        height_width = len(str(max(candidate.height for candidate in ordered)))

        for candidate in ordered[:-1]:
            log.debug(f"Ignoring {format_candidate(candidate, tag_width, version_width, height_width)}.")

    selected = ordered[-1]

    if not selected.tag:
        prefixed = f" prefixed with '{tag_prefix}'" if tag_prefix else ""
        log.info(
            f"No commit found with a valid SemVer 2.0 version{prefixed}. "
            f"Using default version {selected.version}."
        )

    padding = "    " if log.is_debug_enabled and len(ordered) > 1 else " "
    log.info(f"Using{padding}{format_candidate(selected, tag_width, version_width, height_width)}.")

    return selected


def version_from_candidate(
    candidate: Candidate,
    auto_increment: VersionPart,
    default_pre_release_phase: str,
) -> Version:
    """Get the version for HEAD from the selected candidate."""
    return candidate.version.with_height(candidate.height, auto_increment, default_pre_release_phase)
