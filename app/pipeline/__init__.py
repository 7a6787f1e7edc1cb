"""Ingestion lifecycle: concurrent source runs, expiry sweep, run summaries."""

from .expiry import cleanup_expired_jobs
from .models import PipelineRunResult, RunState, SourceRunStats, SourceState
from .runner import LifecycleManager, build_job

__all__ = [
    "LifecycleManager",
    "build_job",
    "cleanup_expired_jobs",
    "PipelineRunResult",
    "SourceRunStats",
    "RunState",
    "SourceState",
]
