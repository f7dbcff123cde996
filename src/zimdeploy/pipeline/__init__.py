"""Installer build pipeline: stages, runner and their collaborators."""

from .config import BuildConfig, build_build_config
from .errors import (
    ConfigurationError,
    DependencyError,
    ExternalCommandError,
    PipelineError,
    StageExecutionError,
)
from .runtime import BuildContext, EnvironmentGuard, PipelineRunner, RunStatus, run_pipeline
from .stages import PIPELINE_STAGES, Platform, StageDefinition

__all__ = [
    "BuildConfig",
    "BuildContext",
    "ConfigurationError",
    "DependencyError",
    "EnvironmentGuard",
    "ExternalCommandError",
    "PIPELINE_STAGES",
    "PipelineError",
    "PipelineRunner",
    "Platform",
    "RunStatus",
    "StageDefinition",
    "StageExecutionError",
    "build_build_config",
    "run_pipeline",
]
