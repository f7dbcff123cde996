from __future__ import annotations

from pathlib import Path

import pytest

from zimdeploy.pipeline.config import (
    BuildConfig,
    build_build_config,
    environment_settings,
    load_config_file,
    parse_log_level,
    parse_no_color,
)
from zimdeploy.pipeline.errors import ConfigurationError


def test_defaults_follow_deploy_directory_layout(tmp_path: Path) -> None:
    tmp_path = tmp_path.resolve()
    deploy = tmp_path / "zim" / "windows"
    config = BuildConfig(deploy_dir=deploy)

    assert config.project_dir == tmp_path / "zim"
    assert config.build_dir == deploy / "build"
    assert config.venv_dir == deploy / "build" / "venv"
    assert config.dist_dir == deploy / "dist" / "zim"
    assert config.freeze_spec == deploy / "src" / "zim.spec"
    assert config.installer_script == deploy / "src" / "zim-installer.nsi"
    assert config.version_template == deploy / "src" / "file_version_info.txt.in"
    assert config.icon_source == tmp_path / "zim" / "icons" / "zim48.svg"
    assert config.installer_path("0.75.2") == (
        deploy / "dist" / "zim" / "zim-desktop-wiki-0.75.2-setup.exe"
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 6), ("7", 7), (" 3 ", 3), ("", 6), ("verbose", 6), ("6.5", 6)],
)
def test_log_level_falls_back_to_default_when_malformed(raw, expected) -> None:
    assert parse_log_level(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, None), ("true", True), ("TRUE", True), ("false", False), ("1", None), ("yes", None)],
)
def test_no_color_is_tri_state(raw, expected) -> None:
    assert parse_no_color(raw) is expected


def test_environment_settings_only_reports_present_values() -> None:
    assert environment_settings({}) == {}
    assert environment_settings({"LOG_LEVEL": "junk", "NO_COLOR": "maybe"}) == {"log_level": 6}
    assert environment_settings({"LOG_LEVEL": "7", "NO_COLOR": "true"}) == {
        "log_level": 7,
        "no_color": True,
    }


def test_unknown_override_key_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Unknown configuration key"):
        build_build_config({"deploy_dir": tmp_path, "frobnicate": True})


def test_none_overrides_keep_defaults(tmp_path: Path) -> None:
    config = build_build_config({"deploy_dir": tmp_path, "app_name": None})

    assert config.app_name == "Zim"


def test_installer_name_requires_version_placeholder(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        build_build_config({"deploy_dir": tmp_path, "installer_name": "setup.exe"})


def test_package_lists_must_not_be_strings(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        build_build_config({"deploy_dir": tmp_path, "brew_packages": "gtk+3"})


def test_load_config_file_reads_build_table(tmp_path: Path) -> None:
    path = tmp_path / "deploy.toml"
    path.write_text(
        '[build]\napp_name = "Notes"\nvenv_packages = ["PyGObject"]\nicon_sizes = [16, 32]\n',
        encoding="utf-8",
    )

    overrides = load_config_file(path)
    config = build_build_config({"deploy_dir": tmp_path, **overrides})

    assert config.app_name == "Notes"
    assert config.venv_packages == ("PyGObject",)
    assert config.icon_sizes == (16, 32)


def test_load_config_file_reports_invalid_toml(tmp_path: Path) -> None:
    path = tmp_path / "deploy.toml"
    path.write_text("[build\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid configuration file"):
        load_config_file(path)


def test_load_config_file_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Cannot read configuration file"):
        load_config_file(tmp_path / "missing.toml")
