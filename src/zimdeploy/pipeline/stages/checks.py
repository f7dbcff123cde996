"""Build tool presence and interpreter version checks."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from packaging.version import InvalidVersion, Version

from ..errors import ConfigurationError, DependencyError
from .base import BuildState, Platform

if TYPE_CHECKING:
    from ..runtime.session import BuildContext

__all__ = ["parse_python_version", "run"]

_PYTHON_VERSION_RE = re.compile(r"^Python (\d+\.\d+)(?:\.\d+)?\S*\s*$")


def parse_python_version(output: str) -> str | None:
    """Extract ``major.minor`` from ``python --version`` output."""

    for line in output.splitlines():
        match = _PYTHON_VERSION_RE.match(line.strip())
        if match:
            return match.group(1)
    return None


def _resolve_python(context: BuildContext) -> str:
    config = context.config
    if context.platform is Platform.MACOS:
        candidate = str(config.macos_python)
        if context.commands.which(candidate) is None:
            raise DependencyError(f"Python not found at {candidate}.")
        return candidate
    return context.commands.require(
        config.python_command,
        "Python 3.x not found. Have you started MSYS2 MinGW 64-bit?",
    )


def run(context: BuildContext, state: BuildState) -> None:
    config = context.config
    commands = context.commands

    python = _resolve_python(context)
    commands.require("pkg-config", "pkg-config not found")

    if not commands.succeeds(["pkg-config", "--print-errors", "--exists", config.gi_requirement]):
        raise DependencyError(
            "GObject-Introspection not found, Please check above errors and correct them",
            context={"requirement": config.gi_requirement},
        )

    version = parse_python_version(commands.output([python, "--version"]))
    if not version:
        raise ConfigurationError("Cannot determine Python version.")
    try:
        too_old = Version(version) < Version(config.min_python_version)
    except InvalidVersion as exc:
        raise ConfigurationError(
            f"Invalid min_python_version {config.min_python_version!r}", cause=exc
        ) from exc
    if too_old:
        raise DependencyError(
            f"Python {version} is older than the required {config.min_python_version}."
        )

    context.logger.debug(f"Using Python {version} at {python}")
    state.python_command = python
    state.python_version = version
