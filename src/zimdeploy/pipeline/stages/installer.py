"""Compile the Windows setup executable with NSIS."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BuildState

if TYPE_CHECKING:
    from ..runtime.session import BuildContext

__all__ = ["run"]


def run(context: BuildContext, state: BuildState) -> None:
    config = context.config
    version = state.require_version()
    makensis = context.commands.require("makensis", "makensis not found; install NSIS.")

    context.commands.run(
        [makensis, "-NOCD", f"-DVERSION={version}", config.installer_script],
        cwd=config.dist_dir,
    )

    state.installer_path = config.installer_path(version)
    context.logger.info(f"Setup file is at: {state.installer_path}")
