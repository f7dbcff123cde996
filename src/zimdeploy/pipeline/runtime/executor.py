"""Fail-fast execution of an ordered stage list."""

from __future__ import annotations

import traceback
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import PipelineError, attach_context
from ..logging_utils import StageGuard, _format_elapsed
from ..stages.base import BuildState, StageDefinition
from .session import BuildContext, build_stage_plan

INTERRUPTED_EXIT_CODE = 130


class RunStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    FAILED = "failed"
    COMPLETED = "completed"


@dataclass(slots=True, frozen=True)
class StageFailure:
    """Diagnostic context for the stage that aborted a run."""

    stage: str
    index: int
    exit_code: int
    message: str
    function: str | None = None
    lineno: int | None = None
    context: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class PipelineRun:
    stages: tuple[StageDefinition, ...]
    status: RunStatus = RunStatus.NOT_STARTED
    current_index: int | None = None
    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failure: StageFailure | None = None

    @property
    def exit_code(self) -> int:
        if self.failure is not None:
            return self.failure.exit_code
        return 0

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.COMPLETED


def _failure_site(
    exc: BaseException, stage: StageDefinition
) -> tuple[str | None, int | None]:
    """Locate the failing line, preferring frames from the stage's own module."""

    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return None, None
    code = getattr(stage.runner, "__code__", None)
    if code is not None:
        for frame in reversed(frames):
            if frame.filename == code.co_filename:
                return frame.name, frame.lineno
    innermost = frames[-1]
    return innermost.name, innermost.lineno


def _exit_code_for(exc: BaseException) -> int:
    if isinstance(exc, PipelineError):
        return int(exc.exit_code) or 1
    if isinstance(exc, KeyboardInterrupt):
        return INTERRUPTED_EXIT_CODE
    if isinstance(exc, SystemExit):
        code = exc.code
        # A recorded failure never reports success, even for exit(0).
        return code if isinstance(code, int) and code != 0 else 1
    return 1


class PipelineRunner:
    """Execute stages in order and stop at the first failure.

    Nothing is rolled back on failure; reruns are expected to start from a
    clean slate at the tool level.  Environment variables captured by the
    context's guard are restored on every exit path.
    """

    def __init__(self, context: BuildContext, state: BuildState | None = None):
        self.context = context
        self.state = state or BuildState()

    def run(self, stages: Iterable[StageDefinition]) -> PipelineRun:
        run = PipelineRun(stages=build_stage_plan(stages))
        logger = self.context.logger
        try:
            with self.context.env:
                run.status = RunStatus.RUNNING
                try:
                    self._run_stages(run)
                finally:
                    logger.info("Cleaning up.")
        finally:
            if run.status is RunStatus.RUNNING:
                run.status = RunStatus.FAILED
            self._log_timings()
            logger.info("Done.")
        return run

    def _run_stages(self, run: PipelineRun) -> None:
        context = self.context
        logger = context.logger
        total = len(run.stages)
        for index, stage in enumerate(run.stages):
            run.current_index = index
            if not stage.applies_to(context.platform):
                logger.debug(
                    f"Skipping {stage.name}: not applicable on {context.platform.value}"
                )
                self._record_skip(run, stage, "platform")
                continue
            if stage.skip_flag and getattr(context.config, stage.skip_flag, False):
                logger.info(f"Skipping {stage.name} ({stage.skip_flag}).")
                self._record_skip(run, stage, stage.skip_flag)
                continue

            try:
                with StageGuard(
                    logger, context.events, context.stats, stage.name, stage.description
                ):
                    stage.runner(context, self.state)
            except SystemExit as exc:
                self._fail(run, stage, index, total, exc)
                raise
            except (Exception, KeyboardInterrupt) as exc:
                self._fail(run, stage, index, total, exc)
                return
            run.executed.append(stage.name)

        run.current_index = None
        run.status = RunStatus.COMPLETED
        logger.info("Finished successfully.")

    def _record_skip(self, run: PipelineRun, stage: StageDefinition, reason: str) -> None:
        run.skipped.append(stage.name)
        self.context.events.event(stage.name, "skip", reason=reason)

    def _fail(
        self,
        run: PipelineRun,
        stage: StageDefinition,
        index: int,
        total: int,
        exc: BaseException,
    ) -> None:
        function, lineno = _failure_site(exc, stage)
        context: dict[str, Any] = {}
        if isinstance(exc, PipelineError):
            if exc.stage is None:
                exc.stage = stage.name
            context = dict(attach_context(exc, {"step": index + 1}).context)
        message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
        run.failure = StageFailure(
            stage=stage.name,
            index=index,
            exit_code=_exit_code_for(exc),
            message=message,
            function=function,
            lineno=lineno,
            context=context,
        )
        run.executed.append(stage.name)
        run.status = RunStatus.FAILED
        location = f" in function {function} on line {lineno}" if function else ""
        self.context.logger.error(
            f"Error in stage '{stage.name}' (step {index + 1}/{total}){location}: {message}"
        )

    def _log_timings(self) -> None:
        timings = self.context.stats.stage_timings_ms
        if not timings:
            return
        summary = ", ".join(f"{name}={_format_elapsed(ms)}" for name, ms in timings.items())
        self.context.logger.debug(f"Stage timings: {summary}")


def run_pipeline(
    context: BuildContext,
    stages: Iterable[StageDefinition] | None = None,
    state: BuildState | None = None,
) -> PipelineRun:
    """Run ``stages`` (the default installer stages when omitted)."""

    if stages is None:
        from ..stages import PIPELINE_STAGES

        stages = PIPELINE_STAGES
    return PipelineRunner(context, state).run(stages)


__all__ = [
    "INTERRUPTED_EXIT_CODE",
    "PipelineRun",
    "PipelineRunner",
    "RunStatus",
    "StageFailure",
    "run_pipeline",
]
