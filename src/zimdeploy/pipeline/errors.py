"""Unified error types for the build pipeline.

Every fatal condition raised by a stage is a :class:`PipelineError`.  The
hierarchy keeps the originating stage, a serialisable context payload and the
process exit code together so the runner can report a single diagnostic line
and terminate with the right status.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "PipelineError",
    "StageExecutionError",
    "ConfigurationError",
    "DependencyError",
    "ExternalCommandError",
    "attach_context",
    "coerce_stage_error",
]


@dataclass(slots=True)
class PipelineError(RuntimeError):
    """Base class for pipeline level failures.

    Attributes
    ----------
    message:
        Human readable description of the failure.
    stage:
        Optional stage identifier (``None`` for configuration level issues).
    context:
        JSON serialisable dictionary with granular diagnostics.
    cause:
        Underlying exception (kept for debugging, not included in ``__str__``).
    exit_code:
        Status the process terminates with when this error aborts a run.
    """

    message: str
    stage: str | None = None
    context: MutableMapping[str, Any] = field(default_factory=dict)
    cause: Exception | None = None
    exit_code: int = 1

    def __post_init__(self) -> None:
        if self.context is None:
            self.context = {}

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class StageExecutionError(PipelineError):
    """Error raised when a specific stage fails to execute."""


class ConfigurationError(PipelineError):
    """Raised for invalid settings or an undeterminable version string."""


class DependencyError(PipelineError):
    """Raised when a required external tool is missing or unusable."""


@dataclass(slots=True)
class ExternalCommandError(PipelineError):
    """A child process exited with a non-zero status.

    ``exit_code`` mirrors ``returncode`` so the pipeline terminates with the
    child's own status.  A child killed by signal N (negative ``returncode``
    on POSIX) maps to ``128 + N`` like a shell would report it.
    """

    command: Sequence[str] = ()
    returncode: int = 1

    def __post_init__(self) -> None:
        if self.context is None:
            self.context = {}
        self.context.setdefault("command", list(self.command))
        self.context.setdefault("returncode", self.returncode)
        self.exit_code = self.returncode if self.returncode > 0 else 128 - self.returncode


def attach_context(
    error: PipelineError,
    context: Mapping[str, Any] | None,
) -> PipelineError:
    """Merge ``context`` into ``error.context`` preserving existing keys."""

    if not context:
        return error
    for key, value in context.items():
        error.context.setdefault(key, value)
    return error


def coerce_stage_error(
    stage: str,
    message: str,
    *,
    context: Mapping[str, Any] | None = None,
    cause: Exception | None = None,
) -> StageExecutionError:
    """Create :class:`StageExecutionError` with a rich context payload."""

    payload: MutableMapping[str, Any] = {}
    if context:
        payload.update(context)
    if cause:
        payload.setdefault("cause", repr(cause))
    return StageExecutionError(message=message, stage=stage, context=payload, cause=cause)
