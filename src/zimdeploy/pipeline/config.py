"""Configuration defaults for the installer build."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from dataclasses import fields as dataclass_fields
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .logging_utils import DEFAULT_SYSLOG_LEVEL

MSYS_PACKAGES: tuple[str, ...] = ("make", "unzip")

MINGW_PACKAGES: tuple[str, ...] = (
    "gcc",
    "gtk3",
    "pkg-config",
    "cairo",
    "gobject-introspection",
    "python",
    "python-gobject",
    "python-cairo",
    "python-xdg",
    "gtksourceview3",
    "python-pip",
    "nsis",
)

BREW_PACKAGES: tuple[str, ...] = (
    "pkg-config",
    "python@3.8",
    "gtk+3",
    "adwaita-icon-theme",
    "gtksourceview3",
    "pygobject3",
    "librsvg",
)

VENV_PACKAGES: tuple[str, ...] = ("PyGObject", "xdg", "pyinstaller")

MODULE_CHECKS: tuple[tuple[str, str], ...] = (
    ("import gi", "PyGObject (gobject-introspection) can not be loaded"),
    (
        "from gi.repository import Gtk",
        "Gtk3 is not installed in a way it can be loaded in Python",
    ),
)

ICON_SIZES: tuple[int, ...] = (16, 32, 64, 128, 256, 512)


def _coerce_optional_path(value: Path | str | None) -> Path | None:
    if value is None:
        return None
    return Path(value).expanduser()


def parse_log_level(raw: str | None, default: int = DEFAULT_SYSLOG_LEVEL) -> int:
    """Parse ``LOG_LEVEL``; anything that is not an integer yields ``default``."""

    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def parse_no_color(raw: str | None) -> bool | None:
    """Parse ``NO_COLOR`` into ``True`` (disable), ``False`` (force) or ``None`` (auto)."""

    if raw is None:
        return None
    lowered = raw.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def environment_settings(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Read the verbosity and colour settings from the process environment.

    Only variables that are present are returned, so they can be layered over
    a configuration file.
    """

    env = os.environ if environ is None else environ
    settings: dict[str, Any] = {}
    if "LOG_LEVEL" in env:
        settings["log_level"] = parse_log_level(env["LOG_LEVEL"])
    no_color = parse_no_color(env.get("NO_COLOR"))
    if no_color is not None:
        settings["no_color"] = no_color
    return settings


@dataclass(slots=True)
class BuildConfig:
    """Validated configuration for one installer build.

    Relative paths are resolved against ``deploy_dir``, the directory holding
    the freezer spec, the NSIS script and the version-info template.
    """

    deploy_dir: Path = dataclass_field(default_factory=Path.cwd)
    project_dir: Path | None = None
    build_dir: Path | None = None
    venv_dir: Path | None = None
    dist_dir: Path | None = None
    app_name: str = "Zim"
    launcher_name: str = "zim"
    freeze_spec: Path = Path("src/zim.spec")
    installer_script: Path = Path("src/zim-installer.nsi")
    installer_name: str = "zim-desktop-wiki-{version}-setup.exe"
    version_template: Path = Path("src/file_version_info.txt.in")
    version_info_name: str = "file_version_info.txt"
    icon_source: Path | None = None
    icon_sizes: tuple[int, ...] = ICON_SIZES
    python_command: str = "python3"
    macos_python: Path = Path("/usr/local/opt/python@3.8/bin/python3")
    min_python_version: str = "3.6"
    gi_requirement: str = "gobject-introspection-1.0 >= 1.46.0"
    msys_packages: tuple[str, ...] = MSYS_PACKAGES
    mingw_packages: tuple[str, ...] = MINGW_PACKAGES
    brew_packages: tuple[str, ...] = BREW_PACKAGES
    venv_packages: tuple[str, ...] = VENV_PACKAGES
    module_checks: tuple[tuple[str, str], ...] = MODULE_CHECKS
    skip_deps: bool = False
    log_level: int = DEFAULT_SYSLOG_LEVEL
    no_color: bool | None = None
    event_log: Path | None = None

    def __post_init__(self) -> None:
        self.deploy_dir = Path(self.deploy_dir).expanduser().resolve()
        self.project_dir = self._resolve(self.project_dir) or self.deploy_dir.parent
        self.build_dir = self._resolve(self.build_dir) or self.deploy_dir / "build"
        self.venv_dir = self._resolve(self.venv_dir) or self.build_dir / "venv"
        self.dist_dir = self._resolve(self.dist_dir) or self.deploy_dir / "dist" / "zim"
        self.freeze_spec = self._resolve(self.freeze_spec)
        self.installer_script = self._resolve(self.installer_script)
        self.version_template = self._resolve(self.version_template)
        self.icon_source = self._resolve(self.icon_source) or (
            self.project_dir / "icons" / "zim48.svg"
        )
        self.macos_python = Path(self.macos_python)
        self.event_log = _coerce_optional_path(self.event_log)

        if not self.app_name:
            raise ConfigurationError("app_name must not be empty")
        if "{version}" not in self.installer_name:
            raise ConfigurationError("installer_name must contain a {version} placeholder")
        self.icon_sizes = tuple(int(size) for size in self.icon_sizes)
        if any(size <= 0 for size in self.icon_sizes):
            raise ConfigurationError("icon_sizes must be positive integers")
        for name in ("msys_packages", "mingw_packages", "brew_packages", "venv_packages"):
            value = getattr(self, name)
            if isinstance(value, str):
                raise ConfigurationError(f"{name} must be a list of package names")
            setattr(self, name, tuple(str(item) for item in value))
        self.module_checks = tuple((str(stmt), str(msg)) for stmt, msg in self.module_checks)
        self.skip_deps = bool(self.skip_deps)
        self.log_level = int(self.log_level)

    def _resolve(self, value: Path | str | None) -> Path | None:
        path = _coerce_optional_path(value)
        if path is None:
            return None
        if not path.is_absolute():
            path = self.deploy_dir / path
        return path

    def installer_path(self, version: str) -> Path:
        """Location of the setup executable produced for ``version``."""

        return self.dist_dir / self.installer_name.format(version=version)

    def model_dump(self) -> dict[str, Any]:
        """Return the configuration as a dictionary."""

        return {field.name: getattr(self, field.name) for field in dataclass_fields(self)}


def load_config_file(path: Path) -> dict[str, Any]:
    """Read ``[build]`` overrides from a TOML file."""

    try:
        with Path(path).open("rb") as handle:
            payload = tomllib.load(handle)
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read configuration file {path}", context={"path": str(path)}, cause=exc
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(
            f"Invalid configuration file {path}: {exc}", context={"path": str(path)}, cause=exc
        ) from exc

    table = payload.get("build", {})
    if not isinstance(table, dict):
        raise ConfigurationError(f"[build] in {path} must be a table")
    return dict(table)


def build_build_config(overrides: Mapping[str, Any] | None = None) -> BuildConfig:
    """Return a validated build configuration merged with overrides.

    ``None`` values are ignored so CLI options that were not given fall back
    to the defaults.
    """

    known = {field.name for field in dataclass_fields(BuildConfig)}
    merged: dict[str, Any] = {}
    for key, value in (overrides or {}).items():
        if key not in known:
            raise ConfigurationError(f"Unknown configuration key: {key}")
        if value is None:
            continue
        merged[key] = value

    try:
        return BuildConfig(**merged)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(str(exc), cause=exc) from exc


__all__ = [
    "BREW_PACKAGES",
    "BuildConfig",
    "MINGW_PACKAGES",
    "MODULE_CHECKS",
    "MSYS_PACKAGES",
    "VENV_PACKAGES",
    "build_build_config",
    "environment_settings",
    "load_config_file",
    "parse_log_level",
    "parse_no_color",
]
