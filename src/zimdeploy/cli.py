"""Command line interface for the installer build."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import click
import typer

from .pipeline.config import build_build_config, environment_settings, load_config_file
from .pipeline.errors import ConfigurationError
from .pipeline.logging_utils import DEFAULT_SYSLOG_LEVEL, BuildLogger
from .pipeline.runtime import BuildContext, run_pipeline

PROG_NAME = "zim-deploy"


def _usage_error_types() -> tuple[type[Exception], ...]:
    """Usage-error classes of the click that typer commands run on.

    Newer typer releases bundle their own click as ``typer._click``; its
    exceptions do not derive from the installed ``click`` package.
    """

    types: list[type[Exception]] = [click.UsageError]
    bundled = getattr(typer, "_click", None)
    if bundled is not None:
        types.append(bundled.exceptions.UsageError)
    return tuple(types)


USAGE_ERRORS = _usage_error_types()

app = typer.Typer(
    help="Build the Zim desktop installer: dependencies, virtualenv, freeze, NSIS.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _collect_overrides(
    config_file: Path | None,
    cli_overrides: dict[str, Any],
) -> dict[str, Any]:
    """Layer defaults < config file < environment < command line."""

    overrides: dict[str, Any] = {}
    if config_file is not None:
        overrides.update(load_config_file(config_file))
        # Relative paths in the file are relative to the file's directory
        # unless the file names its own deploy_dir.
        overrides.setdefault("deploy_dir", config_file.resolve().parent)
    overrides.update(environment_settings())
    overrides.update({key: value for key, value in cli_overrides.items() if value is not None})
    return overrides


@app.command(context_settings={"help_option_names": ["-h", "--help"]})
def build(
    skip_deps: bool = typer.Option(
        False, "-s", "--skip-deps", help="Skip installing dependencies."
    ),
    deploy_dir: Path | None = typer.Option(
        None, help="Directory holding the freezer spec and installer script (default: cwd)"
    ),
    config_file: Path | None = typer.Option(
        None, "--config", help="TOML file with a [build] table of overrides"
    ),
    log_level: int | None = typer.Option(
        None, help="Verbosity, 7 = debug -> 0 = emergency (overrides LOG_LEVEL)"
    ),
    color: bool | None = typer.Option(
        None, "--color/--no-color", help="Force or disable coloured output (overrides NO_COLOR)"
    ),
    event_log: Path | None = typer.Option(
        None, help="Append JSON-lines stage events to this file"
    ),
):
    no_color = None if color is None else not color
    bootstrap_level = log_level
    if bootstrap_level is None:
        bootstrap_level = environment_settings().get("log_level", DEFAULT_SYSLOG_LEVEL)
    bootstrap = BuildLogger(bootstrap_level, no_color=no_color)
    try:
        overrides = _collect_overrides(
            config_file,
            {
                "skip_deps": True if skip_deps else None,
                "deploy_dir": deploy_dir,
                "log_level": log_level,
                "no_color": no_color,
                "event_log": event_log,
            },
        )
        config = build_build_config(overrides)
    except ConfigurationError as exc:
        bootstrap.emergency(str(exc))

    logger = BuildLogger(config.log_level, no_color=config.no_color)
    context = BuildContext.create(config, logger=logger)
    logger.debug(f"Build directory {config.deploy_dir}, platform {context.platform.value}")
    result = run_pipeline(context)
    raise typer.Exit(result.exit_code)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point; ``-h`` and unknown options print usage and exit 0."""

    args = list(sys.argv[1:] if argv is None else argv)
    command = typer.main.get_command(app)
    try:
        result = command.main(args=args, prog_name=PROG_NAME, standalone_mode=False)
    except USAGE_ERRORS as exc:
        if exc.ctx is not None:
            typer.echo(exc.ctx.get_help())
        else:
            typer.echo(exc.format_message())
        return 0
    return int(result or 0)


__all__ = ["app", "build", "main"]
