"""Exception hierarchy for semtrail.

Every error the tool raises on purpose derives from SemtrailError, so the CLI
can report them uniformly. Conditions the calculation recovers from (a tag
that isn't a version, a directory that isn't a repository) never surface as
exceptions from get_version().
"""

from __future__ import annotations


class SemtrailError(Exception):
    """Base exception for all semtrail errors."""

    pass


class NotAVersionError(SemtrailError, ValueError):
    """Text is not a SemVer 2.0 version (or lacks the required prefix).

    Attributes:
        text: The text that failed to parse.
        prefix: The prefix that was required.
    """

    def __init__(self, text: str, prefix: str = "", message: str | None = None) -> None:
        self.text = text
        self.prefix = prefix
        if message is None:
            if prefix:
                message = f"'{text}' is not a valid SemVer 2.0 version prefixed with '{prefix}'"
            else:
                message = f"'{text}' is not a valid SemVer 2.0 version"
        super().__init__(message)


class GitError(SemtrailError):
    """A git command failed unexpectedly."""

    pass


class ConfigError(SemtrailError):
    """Configuration value is invalid."""

    pass


def get_friendly_message(error: Exception) -> str:
    """Get a one-line message suitable for showing to a user.

    Args:
        error: The exception to describe.

    Returns:
        Human-readable message.
    """
    if isinstance(error, GitError):
        return f"Git error: {error}"
    if isinstance(error, ConfigError):
        return f"Configuration error: {error}"
    if isinstance(error, NotAVersionError):
        return str(error)
    return f"{type(error).__name__}: {error}"
