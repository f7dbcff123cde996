"""Isolated Python environment for the frozen application."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import DependencyError, ExternalCommandError
from .base import BuildState

if TYPE_CHECKING:
    from ..runtime.session import BuildContext

__all__ = ["initialize", "prepare", "venv_bin_dir"]


def venv_bin_dir(venv_dir: Path) -> Path:
    """Script directory of ``venv_dir``: ``bin`` (POSIX, MSYS2) or ``Scripts`` (native Windows)."""

    scripts = venv_dir / "Scripts"
    if not (venv_dir / "bin").is_dir() and scripts.is_dir():
        return scripts
    return venv_dir / "bin"


def _venv_python(bin_dir: Path) -> Path:
    for name in ("python", "python.exe", "python3"):
        candidate = bin_dir / name
        if candidate.exists():
            return candidate
    return bin_dir / "python"


def prepare(context: BuildContext, state: BuildState) -> None:
    config = context.config
    python = state.python_command or config.python_command
    venv_dir = config.venv_dir

    if venv_dir.exists():
        shutil.rmtree(venv_dir)
    venv_dir.parent.mkdir(parents=True, exist_ok=True)
    context.commands.run([python, "-m", "venv", "--prompt", config.app_name, venv_dir])

    context.logger.info("Entering virtual environment ...")
    bin_dir = venv_bin_dir(venv_dir)
    context.env.set("VIRTUAL_ENV", str(venv_dir))
    context.env.prepend_path("PATH", bin_dir)
    context.env.unset("PYTHONHOME")

    state.venv_dir = venv_dir
    state.venv_python = _venv_python(bin_dir)


def initialize(context: BuildContext, state: BuildState) -> None:
    python = state.require_venv_python()
    commands = context.commands
    commands.run([python, "-m", "pip", "install", "-U", "pip"])
    commands.run([python, "-m", "pip", "install", *context.config.venv_packages])

    context.logger.info("Checking virtual environment ...")
    for statement, message in context.config.module_checks:
        try:
            commands.run([python, "-c", statement])
        except ExternalCommandError as exc:
            raise DependencyError(
                f"{message}\n\nThe Command used to test this:\n\n    >>> {statement}\n",
                context={"statement": statement},
                cause=exc,
            ) from exc
