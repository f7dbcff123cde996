"""Regression tests for the zim-deploy Typer CLI."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
import typer
from typer.testing import CliRunner

from zimdeploy import cli


@pytest.fixture
def captured(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    calls: list = []

    def _fake_run_pipeline(context):
        calls.append(context)
        return SimpleNamespace(exit_code=getattr(_fake_run_pipeline, "exit_code", 0))

    monkeypatch.setattr(cli, "run_pipeline", _fake_run_pipeline)
    return SimpleNamespace(calls=calls, fake=_fake_run_pipeline)


def test_skip_flag_reaches_config(captured, tmp_path):
    result = CliRunner().invoke(cli.app, ["-s", "--deploy-dir", str(tmp_path)])

    assert result.exit_code == 0, result.output
    (context,) = captured.calls
    assert context.config.skip_deps is True
    assert context.config.deploy_dir == tmp_path.resolve()


def test_dependencies_installed_by_default(captured, tmp_path):
    result = CliRunner().invoke(cli.app, ["--deploy-dir", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert captured.calls[0].config.skip_deps is False


def test_pipeline_exit_code_is_propagated(captured, tmp_path):
    captured.fake.exit_code = 7

    result = CliRunner().invoke(cli.app, ["--deploy-dir", str(tmp_path)])

    assert result.exit_code == 7


def test_help_exits_cleanly(captured):
    result = CliRunner().invoke(cli.app, ["-h"])

    assert result.exit_code == 0
    assert "--skip-deps" in result.output
    assert "--no-skip-deps" not in result.output
    assert captured.calls == []


def test_unknown_flag_prints_usage_and_exits_zero(captured, capsys):
    code = cli.main(["--bogus"])

    assert code == 0
    assert "--skip-deps" in capsys.readouterr().out
    assert captured.calls == []


def test_usage_errors_cover_the_click_typer_runs_on() -> None:
    command = typer.main.get_command(cli.app)

    with pytest.raises(cli.USAGE_ERRORS):
        command.make_context(cli.PROG_NAME, ["--bogus"])


def test_unknown_flag_after_valid_options_still_exits_zero(captured, capsys, tmp_path):
    code = cli.main(["-s", "--deploy-dir", str(tmp_path), "--frobnicate"])

    assert code == 0
    assert "--skip-deps" in capsys.readouterr().out
    assert captured.calls == []


def test_main_returns_pipeline_exit_code(captured, tmp_path):
    captured.fake.exit_code = 3

    assert cli.main(["-s", "--deploy-dir", str(tmp_path)]) == 3
    assert captured.calls[0].config.skip_deps is True


def test_malformed_log_level_falls_back_to_default(captured, monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_LEVEL", "loud")
    monkeypatch.setenv("NO_COLOR", "sometimes")

    result = CliRunner().invoke(cli.app, ["--deploy-dir", str(tmp_path)])

    assert result.exit_code == 0, result.output
    config = captured.calls[0].config
    assert config.log_level == 6
    assert config.no_color is None


def test_command_line_overrides_environment(captured, monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_LEVEL", "3")
    monkeypatch.setenv("NO_COLOR", "false")

    CliRunner().invoke(
        cli.app, ["--deploy-dir", str(tmp_path), "--log-level", "7", "--no-color"]
    )

    config = captured.calls[0].config
    assert config.log_level == 7
    assert config.no_color is True


def test_config_file_is_applied(captured, tmp_path):
    config_file = tmp_path / "deploy.toml"
    config_file.write_text('[build]\napp_name = "Notes"\nskip_deps = true\n', encoding="utf-8")

    result = CliRunner().invoke(cli.app, ["--config", str(config_file)])

    assert result.exit_code == 0, result.output
    config = captured.calls[0].config
    assert config.app_name == "Notes"
    assert config.skip_deps is True
    assert config.deploy_dir == tmp_path.resolve()


def test_invalid_config_is_an_emergency(captured, tmp_path):
    config_file = tmp_path / "deploy.toml"
    config_file.write_text("[build]\nnot_a_setting = 1\n", encoding="utf-8")

    result = CliRunner().invoke(cli.app, ["--config", str(config_file)])

    assert result.exit_code == 1
    assert captured.calls == []
