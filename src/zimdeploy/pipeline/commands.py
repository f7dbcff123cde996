"""External command invocation with exit-status-only contracts."""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path

from .errors import ConfigurationError, DependencyError, ExternalCommandError
from .logging_utils import BuildLogger

__all__ = ["CommandRunner", "format_command"]

CommandArg = str | os.PathLike[str]


def format_command(args: Sequence[CommandArg]) -> str:
    return shlex.join(os.fspath(arg) for arg in args)


class CommandRunner:
    """Run child processes and turn failures into pipeline errors.

    Children inherit the current ``os.environ``, which is how virtual
    environment activation performed through the environment guard reaches
    them.
    """

    def __init__(self, logger: BuildLogger):
        self.logger = logger

    def which(self, name: str) -> str | None:
        return shutil.which(name)

    def require(self, name: str, message: str | None = None) -> str:
        """Return the resolved path of ``name`` or raise :class:`DependencyError`."""

        resolved = self.which(name)
        if resolved is None:
            raise DependencyError(message or f"{name} not found", context={"tool": name})
        return resolved

    def _spawn(
        self,
        args: Sequence[CommandArg],
        *,
        cwd: Path | None,
        stdout=None,
        capture: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        argv = [os.fspath(arg) for arg in args]
        self.logger.debug(f"$ {format_command(argv)}" + (f"  (in {cwd})" if cwd else ""))
        if cwd is not None and not Path(cwd).is_dir():
            raise ConfigurationError(
                f"Working directory {cwd} does not exist; cannot run {argv[0]}.",
                context={"command": argv, "cwd": str(cwd)},
            )
        try:
            return subprocess.run(
                argv,
                cwd=cwd,
                stdout=subprocess.PIPE if capture else stdout,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise DependencyError(
                f"{argv[0]} not found",
                context={"command": argv},
                cause=exc,
                exit_code=127,
            ) from exc

    def run(
        self,
        args: Sequence[CommandArg],
        *,
        cwd: Path | None = None,
        stdout_path: Path | None = None,
    ) -> None:
        """Run ``args``; a non-zero exit raises :class:`ExternalCommandError`."""

        if stdout_path is not None:
            with Path(stdout_path).open("w", encoding="utf-8") as handle:
                completed = self._spawn(args, cwd=cwd, stdout=handle)
        else:
            completed = self._spawn(args, cwd=cwd)
        self._check(args, completed)

    def output(self, args: Sequence[CommandArg], *, cwd: Path | None = None) -> str:
        """Run ``args`` and return its standard output."""

        completed = self._spawn(args, cwd=cwd, capture=True)
        self._check(args, completed)
        return completed.stdout or ""

    def succeeds(self, args: Sequence[CommandArg], *, cwd: Path | None = None) -> bool:
        """Return whether ``args`` exits with status zero."""

        return self._spawn(args, cwd=cwd).returncode == 0

    @staticmethod
    def _check(args: Sequence[CommandArg], completed: subprocess.CompletedProcess[str]) -> None:
        if completed.returncode != 0:
            argv = [os.fspath(arg) for arg in args]
            raise ExternalCommandError(
                f"Command exited with status {completed.returncode}: {format_command(argv)}",
                command=argv,
                returncode=completed.returncode,
            )
