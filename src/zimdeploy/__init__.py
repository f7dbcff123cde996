"""
zim-deploy: build the Zim Desktop Wiki installer
Ordered, fail-fast build stages with guarded environment changes
"""

__version__ = "0.1.0"

from .pipeline import (
    PIPELINE_STAGES,
    BuildConfig,
    BuildContext,
    PipelineRunner,
    Platform,
    build_build_config,
    run_pipeline,
)

__all__ = [
    "PIPELINE_STAGES",
    "BuildConfig",
    "BuildContext",
    "PipelineRunner",
    "Platform",
    "build_build_config",
    "run_pipeline",
    "__version__",
]
