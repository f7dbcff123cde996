"""Scoped mutation of process-wide environment variables.

The build activates a virtual environment, prepends to ``PATH`` and pins
``PYTHONHASHSEED`` while freezing.  :class:`EnvironmentGuard` snapshots every
variable before it is touched and puts each one back, or removes it again,
when the run ends, whichever way it ends.
"""

from __future__ import annotations

import os
import signal
import threading
from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from contextlib import AbstractContextManager, contextmanager
from types import FrameType, MappingProxyType
from typing import Any, Final

GUARDED_VARIABLES: Final[tuple[str, ...]] = (
    "PATH",
    "PKG_CONFIG_PATH",
    "VIRTUAL_ENV",
    "PYTHONHOME",
    "PYTHONHASHSEED",
    "MSYS2_FC_CACHE_SKIP",
)

_MISSING: Final = object()


def _raise_on_sigterm(signum: int, frame: FrameType | None) -> None:
    raise SystemExit(128 + signum)


class EnvironmentGuard(AbstractContextManager["EnvironmentGuard"]):
    """Capture/restore discipline for named environment variables."""

    def __init__(
        self,
        names: Iterable[str] = GUARDED_VARIABLES,
        environ: MutableMapping[str, str] | None = None,
    ):
        self.names = tuple(names)
        self.environ = os.environ if environ is None else environ
        self._snapshot: dict[str, Any] = {}
        self._previous_handler: Any = None
        self._handler_installed = False

    @property
    def snapshot(self) -> Mapping[str, str | None]:
        """Captured values; ``None`` marks a variable that was unset."""

        return MappingProxyType(
            {name: (None if value is _MISSING else value) for name, value in self._snapshot.items()}
        )

    def capture(self, *names: str) -> None:
        """Snapshot ``names``; a name already captured keeps its first value."""

        for name in names:
            if name not in self._snapshot:
                self._snapshot[name] = self.environ.get(name, _MISSING)

    def set(self, name: str, value: str) -> None:
        self.capture(name)
        self.environ[name] = value

    def unset(self, name: str) -> None:
        self.capture(name)
        self.environ.pop(name, None)

    def prepend_path(self, name: str, entry: str | os.PathLike[str]) -> None:
        """Put ``entry`` in front of a ``PATH``-like variable."""

        current = self.environ.get(name)
        value = os.fspath(entry)
        self.set(name, f"{value}{os.pathsep}{current}" if current else value)

    @contextmanager
    def override(self, name: str, value: str) -> Iterator[None]:
        """Set ``name`` for the duration of the block only."""

        self.capture(name)
        previous = self.environ.get(name, _MISSING)
        self.environ[name] = value
        try:
            yield
        finally:
            if previous is _MISSING:
                self.environ.pop(name, None)
            else:
                self.environ[name] = previous

    def restore(self) -> None:
        """Reinstate every captured variable exactly as it was."""

        for name, value in self._snapshot.items():
            if value is _MISSING:
                self.environ.pop(name, None)
            else:
                self.environ[name] = value
        self._snapshot.clear()

    def __enter__(self) -> EnvironmentGuard:
        self.capture(*self.names)
        # Signal handlers can only be installed from the main thread.
        if threading.current_thread() is threading.main_thread():
            self._previous_handler = signal.signal(signal.SIGTERM, _raise_on_sigterm)
            self._handler_installed = True
        return self

    def __exit__(self, exc_type, exc, tb):  # type: ignore[override]
        try:
            self.restore()
        finally:
            if self._handler_installed:
                previous = self._previous_handler
                signal.signal(signal.SIGTERM, signal.SIG_DFL if previous is None else previous)
                self._handler_installed = False
        return False


__all__ = ["EnvironmentGuard", "GUARDED_VARIABLES"]
