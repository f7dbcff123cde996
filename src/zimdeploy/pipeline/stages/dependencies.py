"""Platform package-manager dependency installation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BuildState

if TYPE_CHECKING:
    from ..runtime.session import BuildContext

__all__ = ["install_homebrew", "install_msys", "msys_package_names"]


def msys_package_names(
    arch: str, msys_packages: tuple[str, ...], mingw_packages: tuple[str, ...]
) -> list[str]:
    """Plain MSYS packages followed by ``mingw-w64-<arch>-`` prefixed ones."""

    return [*msys_packages, *(f"mingw-w64-{arch}-{name}" for name in mingw_packages)]


def install_msys(context: BuildContext, state: BuildState) -> None:
    arch = context.env.environ.get("MSYSTEM_CARCH", "")
    if not arch:
        context.logger.info("MSYSTEM_CARCH is not set; not an MSYS2 shell, nothing to install.")
        return

    context.logger.info("Installing MSys dependencies ...")
    # Skip font cache update
    context.env.set("MSYS2_FC_CACHE_SKIP", "1")

    config = context.config
    packages = msys_package_names(arch, config.msys_packages, config.mingw_packages)
    pacman = context.commands.require("pacman", "pacman not found; is this an MSYS2 shell?")
    context.commands.run([pacman, "--noconfirm", "-S", "--needed", *packages])


def install_homebrew(context: BuildContext, state: BuildState) -> None:
    brew = context.commands.require("brew", "brew not found; Please install Homebrew first.")
    context.logger.info("Installing dependencies using Homebrew ...")
    context.commands.run([brew, "install", *context.config.brew_packages])
