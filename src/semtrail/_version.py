"""Version calculation for semtrail itself.

In a source checkout the version is calculated from the checkout's own git
history with a "v" tag prefix. Installed copies report the version recorded
in the package metadata.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from pathlib import Path

from semtrail.config import VersionOptions
from semtrail.errors import SemtrailError
from semtrail.logger import NullLogger
from semtrail.version import Version
from semtrail.versioner import get_version as calculate_from_git

# src/semtrail/_version.py -> repository root
_CHECKOUT_ROOT = Path(__file__).resolve().parents[2]


def _get_checkout_version() -> str | None:
    """Calculate the version from the source checkout, if there is one.

    Returns:
        Version string, or None if not running from a checkout or git fails.
    """
    if not (_CHECKOUT_ROOT / ".git").exists():
        return None
    try:
        version = calculate_from_git(_CHECKOUT_ROOT, VersionOptions(tag_prefix="v"), NullLogger())
    except SemtrailError:
        return None
    return str(version)


def get_version() -> str:
    """Get the full version string.

    Returns:
        SemVer string, e.g. "1.3.0-alpha.4", or the default version if
        neither git nor package metadata can supply one.
    """
    checkout_version = _get_checkout_version()
    if checkout_version is not None:
        return checkout_version
    try:
        return package_version("semtrail")
    except PackageNotFoundError:
        return str(Version.default())


# Calculate version once at import time
__version__ = get_version()
