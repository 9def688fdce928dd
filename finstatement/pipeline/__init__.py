"""Pipeline orchestration and stage observers."""

from .observer import LoggingObserver, ObserverGroup, PipelineObserver
from .orchestrator import (
    PipelineRun,
    PipelineStage,
    ReportPipeline,
    run_pipeline,
    run_pipeline_async,
)

__all__ = [
    "ReportPipeline",
    "PipelineRun",
    "PipelineStage",
    "run_pipeline",
    "run_pipeline_async",
    "PipelineObserver",
    "LoggingObserver",
    "ObserverGroup",
]
