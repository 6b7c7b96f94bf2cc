"""Configuration management for semtrail."""

from __future__ import annotations

import configparser
import os
import re
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from semtrail.errors import ConfigError
from semtrail.logger import Verbosity
from semtrail.version import MajorMinor, VersionPart, has_leading_zero

DEFAULT_PRE_RELEASE_PHASE = "alpha"
CONFIG_FILE_NAME = "semtrail.ini"
PROJECT_SECTION_PREFIX = "project:"

_IDENTIFIERS_RE = re.compile(r"^[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*$", re.ASCII)

# INI keys that map onto VersionOptions / ProjectOptions fields
_VERSION_KEYS = (
    "tag_prefix",
    "minimum_major_minor",
    "build_metadata",
    "auto_increment",
    "default_pre_release_phase",
)


def _parse_major_minor(value: Any) -> Any:
    if isinstance(value, str):
        if not value.strip():
            return None
        return MajorMinor.parse(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # YAML reads "1.2" as a float
        return MajorMinor.parse(str(value))
    return value


def _parse_version_part(value: Any) -> Any:
    if isinstance(value, str):
        if not value.strip():
            return None
        return VersionPart.parse(value)
    return value


def _check_phase(value: str | None) -> str | None:
    if value and not _IDENTIFIERS_RE.fullmatch(value):
        raise ValueError(
            f"Invalid default pre-release phase '{value}'. "
            "Use dot-separated identifiers of letters, digits and hyphens."
        )
    if value:
        for identifier in value.split("."):
            if has_leading_zero(identifier):
                raise ValueError(
                    f"Invalid default pre-release phase '{value}'. "
                    f"Numeric identifier '{identifier}' has a leading zero."
                )
    return value


def _check_build_metadata(value: str | None) -> str | None:
    if value and not _IDENTIFIERS_RE.fullmatch(value):
        raise ValueError(
            f"Invalid build metadata '{value}'. "
            "Use dot-separated identifiers of letters, digits and hyphens."
        )
    return value


class VersionOptions(BaseModel):
    """Options for calculating a version."""

    tag_prefix: str = ""
    minimum_major_minor: MajorMinor | None = None
    build_metadata: str = ""
    auto_increment: VersionPart = VersionPart.MINOR
    default_pre_release_phase: str = DEFAULT_PRE_RELEASE_PHASE

    @field_validator("minimum_major_minor", mode="before")
    @classmethod
    def _minimum_major_minor(cls, value: Any) -> Any:
        return _parse_major_minor(value)

    @field_validator("auto_increment", mode="before")
    @classmethod
    def _auto_increment(cls, value: Any) -> Any:
        return _parse_version_part(value) or VersionPart.MINOR

    @field_validator("default_pre_release_phase", mode="before")
    @classmethod
    def _default_phase(cls, value: Any) -> Any:
        # An empty phase means "use the default"
        if value is None or value == "":
            return DEFAULT_PRE_RELEASE_PHASE
        return value

    @field_validator("default_pre_release_phase")
    @classmethod
    def _validate_phase(cls, value: str) -> str:
        _check_phase(value)
        return value

    @field_validator("build_metadata", mode="before")
    @classmethod
    def _build_metadata(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("build_metadata")
    @classmethod
    def _validate_build_metadata(cls, value: str) -> str:
        _check_build_metadata(value)
        return value


class ProjectOptions(BaseModel):
    """Per-project overrides of VersionOptions. Unset fields inherit."""

    tag_prefix: str | None = None
    minimum_major_minor: MajorMinor | None = None
    build_metadata: str | None = None
    auto_increment: VersionPart | None = None
    default_pre_release_phase: str | None = None

    @field_validator("minimum_major_minor", mode="before")
    @classmethod
    def _minimum_major_minor(cls, value: Any) -> Any:
        return _parse_major_minor(value)

    @field_validator("auto_increment", mode="before")
    @classmethod
    def _auto_increment(cls, value: Any) -> Any:
        return _parse_version_part(value)

    @field_validator("default_pre_release_phase", mode="before")
    @classmethod
    def _default_phase(cls, value: Any) -> Any:
        return value or None

    @field_validator("default_pre_release_phase")
    @classmethod
    def _validate_phase(cls, value: str | None) -> str | None:
        return _check_phase(value)

    @field_validator("build_metadata")
    @classmethod
    def _validate_build_metadata(cls, value: str | None) -> str | None:
        return _check_build_metadata(value)


class LoggingConfig(BaseModel):
    """Diagnostic output configuration."""

    verbosity: Verbosity = Verbosity.INFO

    @field_validator("verbosity", mode="before")
    @classmethod
    def _verbosity(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Verbosity.parse(value)
        return value


class AppConfig(BaseModel):
    """Application configuration."""

    version: VersionOptions = Field(default_factory=VersionOptions)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    projects: dict[str, ProjectOptions] = Field(default_factory=dict)

    def options_for(self, project: str | None = None) -> VersionOptions:
        """Get the version options for a project.

        Args:
            project: Project name, or None for the [version] defaults.

        Returns:
            The [version] options with the project's overrides applied.

        Raises:
            ConfigError: If the project isn't configured.
        """
        if project is None:
            return self.version

        if project not in self.projects:
            known = ", ".join(sorted(self.projects)) or "(none)"
            raise ConfigError(f"Unknown project '{project}'. Configured projects: {known}")

        overrides = self.projects[project]
        return self.version.model_copy(
            update={
                name: getattr(overrides, name)
                for name in ProjectOptions.model_fields
                if getattr(overrides, name) is not None
            }
        )


# Global config instance
_config: AppConfig | None = None
_config_path: Path | None = None  # Track where config was loaded from


def get_exe_directory() -> Path:
    """Get the directory containing the executable (or script).

    Handles both normal Python execution and PyInstaller bundles.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    return Path.cwd()


def get_config_paths() -> list[Path]:
    """Get list of config file paths to search, in priority order.

    Search order:
    1. Exe directory
    2. Current working directory
    3. User home directory (~/.semtrail/)
    4. YAML files in the current and home directories

    Returns:
        List of paths to check for config files.
    """
    paths = []

    exe_dir = get_exe_directory()
    home_dir = Path.home() / ".semtrail"

    paths.append(exe_dir / CONFIG_FILE_NAME)

    cwd = Path.cwd()
    if cwd != exe_dir:  # Avoid duplicates
        paths.append(cwd / CONFIG_FILE_NAME)

    paths.append(home_dir / CONFIG_FILE_NAME)

    paths.append(cwd / "semtrail.yaml")
    paths.append(cwd / "semtrail.yml")
    paths.append(cwd / ".semtrail.yaml")
    paths.append(cwd / ".semtrail.yml")
    paths.append(home_dir / "config.yaml")
    paths.append(home_dir / "config.yml")

    return paths


def find_config_file() -> Path | None:
    """Find the first existing config file."""
    for path in get_config_paths():
        if path.exists():
            return path
    return None


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and $VAR syntax.

    Args:
        value: Config value (string, dict, list, or other).

    Returns:
        Value with environment variables expanded.
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

        def replace(match: re.Match[str]) -> str:
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, "")

        return pattern.sub(replace, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _read_version_section(parser: configparser.ConfigParser, section: str) -> dict[str, str]:
    return {
        key: parser.get(section, key).strip()
        for key in _VERSION_KEYS
        if parser.has_option(section, key)
    }


def _load_ini_config(path: Path) -> dict[str, Any]:
    """Load configuration from INI file.

    Args:
        path: Path to INI config file.

    Returns:
        Dictionary structure matching AppConfig schema.
    """
    # No interpolation: tag prefixes and metadata may legitimately contain "%"
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read(path, encoding="utf-8")
    except configparser.Error as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e

    config: dict[str, Any] = {}

    if parser.has_section("version"):
        config["version"] = _read_version_section(parser, "version")

    if parser.has_section("logging") and parser.has_option("logging", "verbosity"):
        config["logging"] = {"verbosity": parser.get("logging", "verbosity").strip()}

    projects: dict[str, dict[str, str]] = {}
    for section in parser.sections():
        if section.startswith(PROJECT_SECTION_PREFIX):
            name = section[len(PROJECT_SECTION_PREFIX) :].strip()
            if name:
                # An empty value is an explicit override (e.g. no prefix)
                projects[name] = _read_version_section(parser, section)
    if projects:
        config["projects"] = projects

    return config


def _load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file.

    Supports both INI (.ini/.cfg) and YAML (.yaml/.yml) formats.
    Environment variables are expanded in all values using ${VAR} syntax.

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Returns:
        Loaded configuration with environment variables expanded.

    Raises:
        ConfigError: If the file can't be parsed or holds invalid values.
    """
    global _config, _config_path

    if path is None:
        path = find_config_file()

    if path is None or not path.exists():
        _config = AppConfig()
        _config_path = None
        return _config

    if path.suffix in (".ini", ".cfg"):
        raw_config = _load_ini_config(path)
    else:
        raw_config = _load_yaml_config(path)

    expanded_config = _expand_env_vars(raw_config)

    try:
        _config = AppConfig.model_validate(expanded_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e
    _config_path = path
    return _config


def get_config_path() -> Path | None:
    """Get the path to the currently loaded config file."""
    return _config_path


def get_config() -> AppConfig:
    """Get the current configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the cached configuration.

    Useful for testing or when config file changes.
    """
    global _config, _config_path
    _config = None
    _config_path = None


def save_default_config(path: Path | None = None, tag_prefix: str = "") -> Path:
    """Save a default INI config file.

    Args:
        path: Where to save. Defaults to ./semtrail.ini.
        tag_prefix: Tag prefix to write into the [version] section.

    Returns:
        Path to saved config file.
    """
    if path is None:
        path = Path.cwd() / CONFIG_FILE_NAME

    default_config = f"""\
# semtrail configuration
# You can use environment variables with ${{VAR}} syntax

[version]
# Prefix version tags must start with (e.g. v for v1.2.3)
tag_prefix = {tag_prefix}
# Minimum MAJOR.MINOR for calculated versions (e.g. 1.0)
minimum_major_minor =
# Build metadata appended after "+"
build_metadata =
# Part to bump for commits after a release tag: major, minor or patch
auto_increment = minor
# Pre-release phase for calculated versions
default_pre_release_phase = {DEFAULT_PRE_RELEASE_PHASE}

[logging]
# error, warn, info, debug or trace
verbosity = info

# Per-project overrides, selected with --project NAME:
# [project:api]
# tag_prefix = api-v
"""

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(default_config)

    return path
