"""Install the application into the build virtual environment."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import coerce_stage_error
from .base import BuildState, Platform
from .virtualenv import venv_bin_dir

if TYPE_CHECKING:
    from ..runtime.session import BuildContext

__all__ = ["LAUNCHER_TARGET", "launcher_source_name", "run"]

LAUNCHER_TARGET = "{name}_launch.py"


def launcher_source_name(platform: Platform, launcher: str) -> str | None:
    """Name of the installed launcher script that clashes with the package."""

    if platform is Platform.WINDOWS:
        return f"{launcher}.py"
    if platform is Platform.MACOS:
        return launcher
    return None


def run(context: BuildContext, state: BuildState) -> None:
    config = context.config
    python = state.require_venv_python()
    context.commands.run([python, "setup.py", "-q", "install"], cwd=config.project_dir)

    # Rename launcher to avoid conflict with module
    source_name = launcher_source_name(context.platform, config.launcher_name)
    if source_name is None:
        return
    bin_dir = venv_bin_dir(state.venv_dir or config.venv_dir)
    source = bin_dir / source_name
    target = bin_dir / LAUNCHER_TARGET.format(name=config.launcher_name)
    try:
        source.replace(target)
    except FileNotFoundError as exc:
        raise coerce_stage_error(
            "install_application",
            f"Launcher {source.name} was not installed into {bin_dir}.",
            context={"launcher": str(source)},
            cause=exc,
        ) from exc
    context.logger.debug(f"Renamed launcher {source.name} -> {target.name}")
