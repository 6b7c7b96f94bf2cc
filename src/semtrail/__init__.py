"""semtrail - calculate SemVer 2.0 versions from git history."""

from semtrail._version import __version__
from semtrail.config import VersionOptions
from semtrail.errors import ConfigError, GitError, NotAVersionError, SemtrailError
from semtrail.graph import Commit, CommitGraph, Tag
from semtrail.logger import ConsoleLogger, Logger, NullLogger, Verbosity
from semtrail.search import Candidate, find_candidates
from semtrail.selection import select_candidate
from semtrail.version import MajorMinor, Version, VersionPart, compare
from semtrail.versioner import calculate_version, get_version

__all__ = [
    "__version__",
    # Version model
    "Version",
    "VersionPart",
    "MajorMinor",
    "compare",
    # Commit graph
    "Commit",
    "CommitGraph",
    "Tag",
    # Search and selection
    "Candidate",
    "find_candidates",
    "select_candidate",
    # Calculation
    "VersionOptions",
    "calculate_version",
    "get_version",
    # Logging
    "Logger",
    "ConsoleLogger",
    "NullLogger",
    "Verbosity",
    # Errors
    "SemtrailError",
    "NotAVersionError",
    "GitError",
    "ConfigError",
]
