"""SemVer 2.0 version model.

Versions are immutable. Every transformation (bumping by height, satisfying a
minimum, adding build metadata) returns a new Version.

Example:
    ```python
    tagged = Version.parse("v1.2.3", prefix="v")
    print(tagged.with_height(4, VersionPart.MINOR, "alpha"))  # 1.3.0-alpha.4
    ```
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from semtrail.errors import NotAVersionError

# https://semver.org/#is-there-a-suggested-regular-expression-regex-to-check-a-semver-string
SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+(?P<buildmetadata>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$",
    re.ASCII,
)

_NUMERIC_RE = re.compile(r"^\d+$", re.ASCII)
_IDENTIFIER_RE = re.compile(r"^[0-9A-Za-z-]+$", re.ASCII)
_MAJOR_MINOR_RE = re.compile(r"^(?P<major>0|[1-9]\d*)(?:\.(?P<minor>0|[1-9]\d*))?$", re.ASCII)


class VersionPart(str, Enum):
    """Part of a version to increment for commits past a release tag."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    @classmethod
    def parse(cls, value: str) -> VersionPart:
        """Parse a part name, case-insensitively.

        Raises:
            ValueError: If the name isn't major, minor or patch.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid version part '{value}'. Valid values are major, minor and patch."
            ) from None


def is_numeric_identifier(identifier: str) -> bool:
    """Check whether a pre-release identifier is numeric."""
    return bool(_NUMERIC_RE.fullmatch(identifier))


def has_leading_zero(identifier: str) -> bool:
    """Check whether a numeric identifier has a leading zero, which SemVer forbids."""
    return is_numeric_identifier(identifier) and len(identifier) > 1 and identifier[0] == "0"


def _phase_identifiers(phase: str) -> tuple[str, ...]:
    return tuple(phase.split("."))


def _compare_identifiers(a: str, b: str) -> int:
    a_numeric = is_numeric_identifier(a)
    b_numeric = is_numeric_identifier(b)

    if a_numeric and b_numeric:
        x, y = int(a), int(b)
        return (x > y) - (x < y)
    if a_numeric:
        return -1
    if b_numeric:
        return 1
    # Ordinal comparison; identifiers are ASCII
    return (a > b) - (a < b)


class MajorMinor(BaseModel):
    """A minimum major.minor floor for calculated versions."""

    model_config = ConfigDict(frozen=True)

    major: int = Field(default=0, ge=0)
    minor: int = Field(default=0, ge=0)

    @classmethod
    def parse(cls, text: str) -> MajorMinor:
        """Parse "MAJOR.MINOR" or "MAJOR" (minor defaults to 0).

        Raises:
            ValueError: If the text isn't a valid major.minor.
        """
        match = _MAJOR_MINOR_RE.fullmatch(text.strip())
        if match is None:
            raise ValueError(
                f"Invalid minimum major minor '{text}'. Expected MAJOR or MAJOR.MINOR, e.g. 1.0."
            )
        return cls(major=int(match.group("major")), minor=int(match.group("minor") or 0))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


class Version(BaseModel):
    """An immutable SemVer 2.0 version.

    Equality is structural (build metadata included). Ordering follows SemVer
    precedence, where build metadata never participates; use compare() or
    precedence_key() when sorting.
    """

    model_config = ConfigDict(frozen=True)

    major: int = Field(default=0, ge=0)
    minor: int = Field(default=0, ge=0)
    patch: int = Field(default=0, ge=0)
    pre_release: tuple[str, ...] = ()
    build_metadata: str = ""

    @field_validator("pre_release", mode="before")
    @classmethod
    def _coerce_pre_release(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(value.split(".")) if value else ()
        if isinstance(value, (list, tuple)):
            return tuple(str(item) for item in value)
        return value

    @field_validator("pre_release")
    @classmethod
    def _validate_pre_release(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for identifier in value:
            if not _IDENTIFIER_RE.fullmatch(identifier):
                raise ValueError(f"Invalid pre-release identifier '{identifier}'")
            if has_leading_zero(identifier):
                raise ValueError(f"Numeric pre-release identifier '{identifier}' has a leading zero")
        return value

    @field_validator("build_metadata")
    @classmethod
    def _validate_build_metadata(cls, value: str) -> str:
        if "+" in value:
            raise ValueError(f"Build metadata '{value}' must not contain '+'")
        return value

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, text: str, prefix: str = "") -> Version:
        """Parse a version, optionally requiring a prefix such as "v".

        Args:
            text: Text to parse, e.g. a tag name.
            prefix: Prefix the text must start with. Stripped before parsing.

        Returns:
            The parsed version.

        Raises:
            NotAVersionError: If the text lacks the prefix or isn't SemVer 2.0.
        """
        if not text.startswith(prefix):
            raise NotAVersionError(text, prefix)

        match = SEMVER_RE.fullmatch(text[len(prefix) :])
        if match is None:
            raise NotAVersionError(text, prefix)

        prerelease = match.group("prerelease")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            pre_release=tuple(prerelease.split(".")) if prerelease else (),
            build_metadata=match.group("buildmetadata") or "",
        )

    @classmethod
    def try_parse(cls, text: str, prefix: str = "") -> Version | None:
        """Parse a version, returning None instead of raising."""
        try:
            return cls.parse(text, prefix)
        except NotAVersionError:
            return None

    @classmethod
    def default(cls, default_pre_release_phase: str = "alpha") -> Version:
        """The version used when no tag is found: 0.0.0-{phase}.0."""
        return cls(pre_release=(*_phase_identifiers(default_pre_release_phase), "0"))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_pre_release(self) -> bool:
        return bool(self.pre_release)

    def precedence_key(self) -> tuple[Any, ...]:
        """Sort key that orders versions by SemVer precedence.

        Releases sort after pre-releases of the same major.minor.patch;
        numeric identifiers sort before alphanumeric ones.
        """
        identifiers = tuple(
            (0, int(identifier), "") if is_numeric_identifier(identifier) else (1, 0, identifier)
            for identifier in self.pre_release
        )
        return (self.major, self.minor, self.patch, not self.pre_release, identifiers)

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def with_height(
        self,
        height: int,
        auto_increment: VersionPart,
        default_pre_release_phase: str,
    ) -> Version:
        """Get the version for a commit `height` commits past this one.

        A release is bumped (auto_increment part +1, lower parts zeroed) and
        given the pre-release {phase}.{height}. A pre-release keeps its numbers
        and phase, and gets height appended as a trailing identifier.

        Args:
            height: Commits between HEAD and the commit carrying this version.
            auto_increment: Part to increment when this version is a release.
            default_pre_release_phase: Phase for the new pre-release.

        Returns:
            This version when height is 0, otherwise the bumped version.
        """
        if height < 0:
            raise ValueError(f"Height must not be negative, got {height}")

        if height == 0:
            return self

        if self.pre_release:
            return Version(
                major=self.major,
                minor=self.minor,
                patch=self.patch,
                pre_release=(*self.pre_release, str(height)),
            )

        if auto_increment is VersionPart.MAJOR:
            numbers = (self.major + 1, 0, 0)
        elif auto_increment is VersionPart.MINOR:
            numbers = (self.major, self.minor + 1, 0)
        else:
            numbers = (self.major, self.minor, self.patch + 1)

        return Version(
            major=numbers[0],
            minor=numbers[1],
            patch=numbers[2],
            pre_release=(*_phase_identifiers(default_pre_release_phase), str(height)),
        )

    def satisfying(self, min_major_minor: MajorMinor | None, default_pre_release_phase: str) -> Version:
        """Raise this version to a minimum major.minor if it is below it.

        The raised version is {min.major}.{min.minor}.0-{phase}.0, keeping any
        build metadata. Applying this twice gives the same result as once.
        """
        if min_major_minor is None:
            return self

        if (self.major, self.minor) >= (min_major_minor.major, min_major_minor.minor):
            return self

        return Version(
            major=min_major_minor.major,
            minor=min_major_minor.minor,
            patch=0,
            pre_release=(*_phase_identifiers(default_pre_release_phase), "0"),
            build_metadata=self.build_metadata,
        )

    def add_build_metadata(self, build_metadata: str) -> Version:
        """Get a copy with its build metadata set to build_metadata.

        Empty metadata leaves the version unchanged, so a tag's own metadata
        survives when none is configured.

        Raises:
            ValueError: If the metadata contains "+".
        """
        if not build_metadata:
            return self

        if "+" in build_metadata:
            raise ValueError(f"Build metadata '{build_metadata}' must not contain '+'")

        return self.model_copy(update={"build_metadata": build_metadata})

    # ------------------------------------------------------------------
    # Ordering and rendering
    # ------------------------------------------------------------------

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return compare(self, other) >= 0

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre_release:
            text += "-" + ".".join(self.pre_release)
        if self.build_metadata:
            text += "+" + self.build_metadata
        return text


def compare(a: Version, b: Version) -> int:
    """Compare two versions by SemVer 2.0 precedence.

    Returns:
        -1 if a < b, 0 if they have equal precedence, 1 if a > b.
    """
    for x, y in ((a.major, b.major), (a.minor, b.minor), (a.patch, b.patch)):
        if x != y:
            return -1 if x < y else 1

    if not a.pre_release and not b.pre_release:
        return 0
    if not a.pre_release:
        return 1
    if not b.pre_release:
        return -1

    for x, y in zip(a.pre_release, b.pre_release):
        result = _compare_identifiers(x, y)
        if result != 0:
            return result

    length_a, length_b = len(a.pre_release), len(b.pre_release)
    return (length_a > length_b) - (length_a < length_b)
