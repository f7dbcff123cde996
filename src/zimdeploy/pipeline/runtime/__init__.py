"""Runtime scaffolding: environment guard, build context and stage runner."""

from .environment import GUARDED_VARIABLES, EnvironmentGuard
from .executor import PipelineRun, PipelineRunner, RunStatus, StageFailure, run_pipeline
from .session import BuildContext, build_stage_plan

__all__ = [
    "BuildContext",
    "EnvironmentGuard",
    "GUARDED_VARIABLES",
    "PipelineRun",
    "PipelineRunner",
    "RunStatus",
    "StageFailure",
    "build_stage_plan",
    "run_pipeline",
]
