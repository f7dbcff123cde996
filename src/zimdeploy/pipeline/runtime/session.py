"""Per-run build context shared by every stage."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..commands import CommandRunner
from ..config import BuildConfig
from ..logging_utils import BuildLogger, EventLog, RunStats
from ..stages.base import Platform, StageDefinition
from .environment import EnvironmentGuard


@dataclass(slots=True)
class BuildContext:
    """Container for the collaborators a stage may use."""

    config: BuildConfig
    logger: BuildLogger
    commands: CommandRunner
    env: EnvironmentGuard
    platform: Platform
    events: EventLog
    stats: RunStats
    run_id: str = field(default="")

    @classmethod
    def create(
        cls,
        config: BuildConfig,
        *,
        logger: BuildLogger | None = None,
        commands: CommandRunner | None = None,
        env: EnvironmentGuard | None = None,
        platform: Platform | None = None,
    ) -> BuildContext:
        run_id = uuid.uuid4().hex[:12]
        logger = logger or BuildLogger(config.log_level, no_color=config.no_color)
        return cls(
            config=config,
            logger=logger,
            commands=commands or CommandRunner(logger),
            env=env or EnvironmentGuard(),
            platform=platform or Platform.current(),
            events=EventLog(run_id, config.event_log),
            stats=RunStats(run_id=run_id),
            run_id=run_id,
        )


def build_stage_plan(definitions: Iterable[StageDefinition]) -> tuple[StageDefinition, ...]:
    """Return an ordered tuple of stage definitions, rejecting duplicate names."""

    plan = tuple(definitions)
    seen: set[str] = set()
    for definition in plan:
        if definition.name in seen:
            raise ValueError(f"Duplicate stage name: {definition.name}")
        seen.add(definition.name)
    return plan


__all__ = ["BuildContext", "build_stage_plan"]
