"""macOS application icon generation."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .base import BuildState

if TYPE_CHECKING:
    from ..runtime.session import BuildContext

__all__ = ["iconset_entries", "run"]


def iconset_entries(sizes: tuple[int, ...]) -> list[tuple[str, int]]:
    """``(file name, pixel height)`` pairs for a 1x and 2x iconset."""

    entries: list[tuple[str, int]] = []
    for size in sizes:
        entries.append((f"icon_{size}x{size}.png", size))
        entries.append((f"icon_{size}x{size}@2x.png", size * 2))
    return entries


def run(context: BuildContext, state: BuildState) -> None:
    config = context.config
    commands = context.commands
    rsvg = commands.require("rsvg-convert", "rsvg-convert not found; install librsvg.")
    iconutil = commands.require("iconutil", "iconutil not found.")

    icon_dir: Path = config.build_dir / f"{config.app_name}.iconset"
    icon_dir.mkdir(parents=True, exist_ok=True)
    for filename, height in iconset_entries(config.icon_sizes):
        commands.run(
            [rsvg, "-h", str(height), config.icon_source],
            stdout_path=icon_dir / filename,
        )

    commands.run([iconutil, "-c", "icns", icon_dir])
    state.icns_path = icon_dir.with_suffix(".icns")
