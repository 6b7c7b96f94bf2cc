"""Command-line interface for semtrail."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import NoReturn

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from semtrail import __version__
from semtrail.config import AppConfig, VersionOptions, get_config, load_config
from semtrail.errors import ConfigError, SemtrailError, get_friendly_message
from semtrail.logger import ConsoleLogger, Verbosity
from semtrail.version import MajorMinor, Version, VersionPart

# Load environment variables from .env file
load_dotenv()

console = Console(highlight=False)
error_console = Console(stderr=True, highlight=False)


def _parse_minimum(ctx: click.Context, param: click.Parameter, value: str | None) -> MajorMinor | None:
    if value is None or not value.strip():
        return None
    try:
        return MajorMinor.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _parse_verbosity(ctx: click.Context, param: click.Parameter, value: str | None) -> Verbosity | None:
    if value is None:
        return None
    try:
        return Verbosity.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _fail(error: Exception) -> NoReturn:
    error_console.print(f"[red]Error:[/red] {escape(get_friendly_message(error))}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="semtrail")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    envvar="SEMTRAIL_CONFIG",
    help="Config file to use (default: search standard locations)",
)
@click.pass_context
def main(ctx: click.Context, config_file: Path | None) -> None:
    """semtrail - Calculate a SemVer 2.0 version from git tags and history."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file


def _load_app_config(ctx: click.Context) -> AppConfig:
    config_file = ctx.obj.get("config_file") if ctx.obj else None
    if config_file is not None:
        if not config_file.exists():
            raise ConfigError(f"Config file not found: {config_file}")
        return load_config(config_file)
    return get_config()


@main.command()
@click.argument(
    "work_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    required=False,
)
@click.option(
    "--tag-prefix",
    "-t",
    default=None,
    envvar="SEMTRAIL_TAG_PREFIX",
    help="Prefix version tags must start with, e.g. v",
)
@click.option(
    "--minimum-major-minor",
    "-m",
    default=None,
    envvar="SEMTRAIL_MINIMUM_MAJOR_MINOR",
    callback=_parse_minimum,
    help="Minimum MAJOR.MINOR for the calculated version, e.g. 1.0",
)
@click.option(
    "--build-metadata",
    "-b",
    default=None,
    envvar="SEMTRAIL_BUILD_METADATA",
    help="Build metadata to append after '+'",
)
@click.option(
    "--auto-increment",
    "-a",
    type=click.Choice([part.value for part in VersionPart], case_sensitive=False),
    default=None,
    envvar="SEMTRAIL_AUTO_INCREMENT",
    help="Part to bump for commits after a release tag (default: minor)",
)
@click.option(
    "--default-pre-release-phase",
    "-p",
    default=None,
    envvar="SEMTRAIL_DEFAULT_PRE_RELEASE_PHASE",
    help="Pre-release phase for calculated versions (default: alpha)",
)
@click.option(
    "--verbosity",
    "-v",
    default=None,
    envvar="SEMTRAIL_VERBOSITY",
    callback=_parse_verbosity,
    help="error, warn, info, debug or trace (default: info)",
)
@click.option("--project", default=None, help="Use the [project:NAME] section of the config")
@click.option(
    "--format",
    "-f",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.pass_context
def calculate(
    ctx: click.Context,
    work_dir: Path,
    tag_prefix: str | None,
    minimum_major_minor: MajorMinor | None,
    build_metadata: str | None,
    auto_increment: str | None,
    default_pre_release_phase: str | None,
    verbosity: Verbosity | None,
    project: str | None,
    format: str,
) -> None:
    """Calculate the version of WORK_DIR (default: current directory)."""
    from semtrail.versioner import get_version

    try:
        cfg = _load_app_config(ctx)
        options = cfg.options_for(project)

        # CLI options override the config file
        overrides = {
            "tag_prefix": tag_prefix,
            "minimum_major_minor": minimum_major_minor,
            "build_metadata": build_metadata,
            "auto_increment": auto_increment,
            "default_pre_release_phase": default_pre_release_phase,
        }
        overrides = {key: value for key, value in overrides.items() if value is not None}
        if overrides:
            options = VersionOptions.model_validate({**dict(options), **overrides})

        log = ConsoleLogger(verbosity if verbosity is not None else cfg.logging.verbosity)
        version = get_version(work_dir, options, log)
    except ValidationError as e:
        _fail(ConfigError(str(e)))
    except SemtrailError as e:
        _fail(e)
    except KeyboardInterrupt:
        error_console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(130)

    if format == "json":
        _output_version_json(version)
    else:
        console.print(str(version), markup=False)


def _output_version_json(version: Version) -> None:
    """Output the calculated version as JSON."""
    output = {
        "version": str(version),
        "major": version.major,
        "minor": version.minor,
        "patch": version.patch,
        "pre_release": list(version.pre_release),
        "build_metadata": version.build_metadata,
    }
    console.print_json(json.dumps(output))


@main.group()
def config() -> None:
    """Manage semtrail configuration."""
    pass


@config.command(name="show")
@click.option("--project", default=None, help="Show the options for a [project:NAME] section")
@click.pass_context
def config_show(ctx: click.Context, project: str | None) -> None:
    """Show current configuration."""
    from semtrail.config import get_config_path

    try:
        cfg = _load_app_config(ctx)
        options = cfg.options_for(project)
    except SemtrailError as e:
        _fail(e)

    config_file = get_config_path()

    console.print("[bold]Current Configuration[/bold]")
    console.print()

    if config_file:
        console.print(f"[dim]Config file:[/dim] {config_file}")
    else:
        console.print("[dim]Config file:[/dim] (none - using defaults)")
    console.print()

    title = f"Version (project {project})" if project else "Version"
    console.print(f"[bold]{title}:[/bold]")
    console.print(f"  Tag prefix: {options.tag_prefix or '(none)'}", markup=False)
    console.print(f"  Minimum major minor: {options.minimum_major_minor or '(none)'}")
    console.print(f"  Build metadata: {options.build_metadata or '(none)'}", markup=False)
    console.print(f"  Auto increment: {options.auto_increment.value}")
    console.print(f"  Default pre-release phase: {options.default_pre_release_phase}")
    console.print()

    console.print("[bold]Logging:[/bold]")
    console.print(f"  Verbosity: {cfg.logging.verbosity.name.lower()}")
    console.print()

    console.print("[bold]Projects:[/bold]")
    if cfg.projects:
        for name in sorted(cfg.projects):
            console.print(f"  {name}", markup=False)
    else:
        console.print("  (none)")


@config.command(name="path")
def config_path() -> None:
    """Show configuration file paths."""
    from semtrail.config import find_config_file, get_config_paths

    console.print("[bold]Configuration paths (in priority order):[/bold]")
    config_file = find_config_file()

    for path in get_config_paths():
        if path.exists():
            if path == config_file:
                console.print(f"  [green]{path}[/green] (active)")
            else:
                console.print(f"  {path} (exists)")
        else:
            console.print(f"  [dim]{path}[/dim]")

    console.print()
    console.print("[bold]Other paths:[/bold]")
    console.print(f"  .env file: {Path.cwd() / '.env'}")


@config.command(name="init")
@click.option("--force", is_flag=True, help="Overwrite existing config file")
@click.option("--tag-prefix", "-t", default="", help="Tag prefix to write into the config")
def config_init(force: bool, tag_prefix: str) -> None:
    """Create a default semtrail.ini in the current directory."""
    from semtrail.config import CONFIG_FILE_NAME, save_default_config

    config_path = Path.cwd() / CONFIG_FILE_NAME

    if config_path.exists() and not force:
        console.print(f"[yellow]Config file already exists:[/yellow] {config_path}")
        console.print("Use --force to overwrite.")
        sys.exit(1)

    save_default_config(config_path, tag_prefix=tag_prefix)
    console.print(f"[green]Created config file:[/green] {config_path}")
    console.print("Edit this file to customize your settings.")


if __name__ == "__main__":
    main()
