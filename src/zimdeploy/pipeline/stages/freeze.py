"""Freeze the application into a standalone tree with PyInstaller."""

from __future__ import annotations

import shutil
from typing import TYPE_CHECKING

from .base import BuildState

if TYPE_CHECKING:
    from ..runtime.session import BuildContext

__all__ = ["FREEZE_HASH_SEED", "run"]

# Known repeatable seed so the frozen archive is reproducible.
FREEZE_HASH_SEED = "1"


def run(context: BuildContext, state: BuildState) -> None:
    config = context.config
    python = state.require_venv_python()

    if config.dist_dir.exists():
        shutil.rmtree(config.dist_dir)

    with context.env.override("PYTHONHASHSEED", FREEZE_HASH_SEED):
        context.commands.run(
            [python, "-m", "PyInstaller", "-y", config.freeze_spec],
            cwd=config.deploy_dir,
        )
