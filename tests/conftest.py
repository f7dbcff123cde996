from __future__ import annotations

import io
import os
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from zimdeploy.pipeline.commands import CommandRunner
from zimdeploy.pipeline.config import build_build_config
from zimdeploy.pipeline.logging_utils import BuildLogger
from zimdeploy.pipeline.runtime.environment import EnvironmentGuard
from zimdeploy.pipeline.runtime.session import BuildContext
from zimdeploy.pipeline.stages.base import Platform


class FakeCommands(CommandRunner):
    """CommandRunner that records argv instead of spawning processes.

    ``outputs``, ``returncodes`` and ``side_effects`` are keyed by a substring
    of the space-joined command line.
    """

    def __init__(
        self,
        logger: BuildLogger,
        *,
        outputs: dict[str, str] | None = None,
        returncodes: dict[str, int] | None = None,
        side_effects: dict[str, Callable[[list[str], Path | None], None]] | None = None,
        missing: tuple[str, ...] = (),
    ) -> None:
        super().__init__(logger)
        self.outputs = dict(outputs or {})
        self.returncodes = dict(returncodes or {})
        self.side_effects = dict(side_effects or {})
        self.missing = set(missing)
        self.calls: list[tuple[list[str], Path | None]] = []

    def which(self, name: str) -> str | None:
        if name in self.missing:
            return None
        return name if os.path.isabs(name) else f"/usr/bin/{name}"

    def _spawn(self, args, *, cwd, stdout=None, capture=False):  # type: ignore[override]
        argv = [os.fspath(arg) for arg in args]
        self.calls.append((argv, cwd))
        joined = " ".join(argv)
        for key, effect in self.side_effects.items():
            if key in joined:
                effect(argv, cwd)
        code = next((value for key, value in self.returncodes.items() if key in joined), 0)
        out = next((value for key, value in self.outputs.items() if key in joined), "")
        if stdout is not None and out:
            stdout.write(out)
        return subprocess.CompletedProcess(argv, code, stdout=out if capture else None)

    def joined_calls(self) -> list[str]:
        return [" ".join(argv) for argv, _cwd in self.calls]


class ContextFactory:
    def __init__(self, tmp_path: Path) -> None:
        self.tmp_path = tmp_path
        self.stream = io.StringIO()

    def __call__(
        self,
        platform: Platform = Platform.LINUX,
        *,
        environ: dict[str, str] | None = None,
        log_level: int = 7,
        commands_kwargs: dict | None = None,
        **overrides,
    ) -> BuildContext:
        deploy_dir = self.tmp_path / "project" / "deploy"
        deploy_dir.mkdir(parents=True, exist_ok=True)
        config = build_build_config(
            {"deploy_dir": deploy_dir, "log_level": log_level, "no_color": True, **overrides}
        )
        logger = BuildLogger(config.log_level, no_color=True, stream=self.stream)
        commands = FakeCommands(logger, **(commands_kwargs or {}))
        env = EnvironmentGuard(
            environ=dict(environ if environ is not None else {"PATH": "/usr/bin"})
        )
        return BuildContext.create(
            config, logger=logger, commands=commands, env=env, platform=platform
        )

    @property
    def output(self) -> str:
        return self.stream.getvalue()


@pytest.fixture
def make_context(tmp_path: Path) -> ContextFactory:
    return ContextFactory(tmp_path)
