"""Shared state and definitions for build stages."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..runtime.session import BuildContext


class Platform(str, Enum):
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"

    @classmethod
    def current(cls, platform: str | None = None) -> Platform:
        """Classify ``sys.platform`` (or ``platform``); unknown systems count as LINUX."""

        name = sys.platform if platform is None else platform
        if name in {"win32", "msys", "cygwin"}:
            return cls.WINDOWS
        if name == "darwin":
            return cls.MACOS
        return cls.LINUX


ANY_PLATFORM: frozenset[Platform] = frozenset(Platform)
WINDOWS_ONLY: frozenset[Platform] = frozenset({Platform.WINDOWS})
MACOS_ONLY: frozenset[Platform] = frozenset({Platform.MACOS})


@dataclass
class BuildState:
    """Mutable state passed between build stages."""

    python_command: str | None = None
    python_version: str | None = None
    venv_dir: Path | None = None
    venv_python: Path | None = None
    version: str | None = None
    version_info_path: Path | None = None
    icns_path: Path | None = None
    installer_path: Path | None = None
    notes: list[str] = field(default_factory=list)

    def record_version(self, value: str) -> str:
        """Store the application version; it is write-once and never empty."""

        if self.version is not None:
            raise RuntimeError(f"Version already determined as {self.version!r}")
        cleaned = (value or "").strip()
        if not cleaned:
            raise ConfigurationError("Cannot determine application version.")
        self.version = cleaned
        return cleaned

    def require_version(self) -> str:
        if not self.version:
            raise ConfigurationError("Application version has not been determined.")
        return self.version

    def require_venv_python(self) -> Path:
        if self.venv_python is None:
            raise ConfigurationError("Virtual environment has not been prepared.")
        return self.venv_python


StageRunner = Callable[["BuildContext", BuildState], None]


@dataclass(frozen=True)
class StageDefinition:
    name: str
    runner: StageRunner
    platforms: frozenset[Platform] = ANY_PLATFORM
    description: str | None = None
    # Name of a boolean BuildConfig attribute that disables this stage.
    skip_flag: str | None = None

    def applies_to(self, platform: Platform) -> bool:
        return platform in self.platforms


def platforms(values: Iterable[str | Platform]) -> frozenset[Platform]:
    """Build a platform set from tags; ``"any"`` expands to every platform."""

    result: set[Platform] = set()
    for value in values:
        if isinstance(value, Platform):
            result.add(value)
        elif value == "any":
            result.update(Platform)
        else:
            result.add(Platform(value))
    return frozenset(result)


__all__ = [
    "ANY_PLATFORM",
    "MACOS_ONLY",
    "WINDOWS_ONLY",
    "BuildState",
    "Platform",
    "StageDefinition",
    "StageRunner",
    "platforms",
]
