"""Stage registry for the installer build."""

from __future__ import annotations

from . import checks, dependencies, freeze, icons, install, installer, version, virtualenv
from .base import (
    ANY_PLATFORM,
    MACOS_ONLY,
    WINDOWS_ONLY,
    BuildState,
    Platform,
    StageDefinition,
    platforms,
)

PIPELINE_STAGES: list[StageDefinition] = [
    StageDefinition(
        "install_msys_dependencies",
        dependencies.install_msys,
        WINDOWS_ONLY,
        skip_flag="skip_deps",
    ),
    StageDefinition(
        "install_homebrew_dependencies",
        dependencies.install_homebrew,
        MACOS_ONLY,
        skip_flag="skip_deps",
    ),
    StageDefinition("check_dependencies", checks.run, description="Checking dependencies ..."),
    StageDefinition(
        "prepare_virtualenv",
        virtualenv.prepare,
        description="Preparing virtual environment ...",
    ),
    StageDefinition(
        "initialize_virtualenv",
        virtualenv.initialize,
        description="Initializing virtual environment ...",
    ),
    StageDefinition("determine_version", version.run, description="Determining version ..."),
    StageDefinition(
        "install_application",
        install.run,
        description="Installing application in the virtual environment ...",
    ),
    StageDefinition(
        "prepare_app_icon", icons.run, MACOS_ONLY, description="Preparing app icon ..."
    ),
    StageDefinition(
        "build_distribution", freeze.run, description="Building distribution ..."
    ),
    StageDefinition(
        "build_windows_installer",
        installer.run,
        WINDOWS_ONLY,
        description="Building Windows installer ...",
    ),
]

__all__ = [
    "ANY_PLATFORM",
    "MACOS_ONLY",
    "PIPELINE_STAGES",
    "WINDOWS_ONLY",
    "BuildState",
    "Platform",
    "StageDefinition",
    "platforms",
]
