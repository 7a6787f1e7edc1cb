"""Scheduling module for periodic ingestion runs."""

from .service import JOB_ID, SchedulerService

__all__ = [
    "SchedulerService",
    "JOB_ID",
]
