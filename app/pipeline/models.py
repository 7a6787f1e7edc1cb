"""Data models for lifecycle run tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from app.utils.timestamps import format_timestamp


class RunState(str, Enum):
    """State of a lifecycle run: IDLE -> RUNNING -> CLEANUP -> COMPLETE."""

    IDLE = "idle"
    RUNNING = "running"
    CLEANUP = "cleanup"
    COMPLETE = "complete"


class SourceState(str, Enum):
    """State of one source task: FETCHING -> PROCESSING -> DONE or FAILED."""

    FETCHING = "fetching"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SourceRunStats:
    """
    Statistics for a single source's execution within a run.

    Each source task owns its instance; the manager only reads it after the
    task's future completes.

    Attributes:
        source_id: Unique identifier for the source
        source_type: Provider name
        state: Final source state
        fetched: Relevant postings returned by the adapter
        added: New jobs inserted
        updated: Existing jobs refreshed in place
        duplicates: Cross-source duplicates discarded
        errors: Failed provider calls plus postings that could not be processed
        duration_seconds: Time spent processing this source
        error_message: Optional error message if source failed
    """

    source_id: str
    source_type: str = ""
    state: SourceState = SourceState.FETCHING
    fetched: int = 0
    added: int = 0
    updated: int = 0
    duplicates: int = 0
    errors: int = 0
    duration_seconds: float = 0.0
    error_message: Optional[str] = None

    @property
    def had_errors(self) -> bool:
        return self.errors > 0 or self.state == SourceState.FAILED

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "source": self.source_id,
            "provider": self.source_type,
            "state": self.state.value,
            "fetched": self.fetched,
            "added": self.added,
            "updated": self.updated,
            "duplicates": self.duplicates,
            "errors": self.errors,
            "duration": round(self.duration_seconds, 3),
        }
        if self.error_message:
            data["error"] = self.error_message
        return data


@dataclass
class PipelineRunResult:
    """
    Aggregate results from a complete lifecycle run.

    Attributes:
        run_id: Hex id shared by every log line of the run
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        state: Final run state
        source_stats: Per-source execution statistics
        expired_jobs_removed: Jobs unpublished by the expiry sweep
        duplicate_log_pruned: Audit rows deleted after the run
        current_stats: Catalog counts after the run
        skipped: Whether the run was skipped (lock already held)
        error: Cleanup failure message; ingestion results are still reported
    """

    run_started_at: datetime
    run_finished_at: datetime
    run_id: str = ""
    state: RunState = RunState.IDLE
    source_stats: List[SourceRunStats] = field(default_factory=list)
    expired_jobs_removed: int = 0
    duplicate_log_pruned: int = 0
    current_stats: Dict[str, Any] = field(default_factory=dict)
    skipped: bool = False
    error: Optional[str] = None

    @property
    def total_duration_seconds(self) -> float:
        return (self.run_finished_at - self.run_started_at).total_seconds()

    @property
    def total_fetched(self) -> int:
        return sum(s.fetched for s in self.source_stats)

    @property
    def total_added(self) -> int:
        return sum(s.added for s in self.source_stats)

    @property
    def total_updated(self) -> int:
        return sum(s.updated for s in self.source_stats)

    @property
    def total_duplicates(self) -> int:
        return sum(s.duplicates for s in self.source_stats)

    @property
    def total_errors(self) -> int:
        return sum(s.errors for s in self.source_stats)

    @property
    def had_errors(self) -> bool:
        return any(s.had_errors for s in self.source_stats)

    @property
    def success(self) -> bool:
        """Source failures are reported per source and do not fail the run."""
        return self.error is None and not self.skipped

    def to_summary(self) -> Dict[str, Any]:
        """JSON-serializable run summary returned by the trigger and CLI."""
        summary = {
            "success": self.success,
            "timestamp": format_timestamp(self.run_finished_at),
            "duration": round(self.total_duration_seconds, 3),
            "run_id": self.run_id,
            "state": self.state.value,
            "skipped": self.skipped,
            "ingestion": {
                "results": [s.to_dict() for s in self.source_stats],
                "summary": {
                    "total_fetched": self.total_fetched,
                    "total_added": self.total_added,
                    "total_updated": self.total_updated,
                    "total_duplicates": self.total_duplicates,
                    "total_errors": self.total_errors,
                },
            },
            "cleanup": {
                "expired_jobs_removed": self.expired_jobs_removed,
                "duplicate_log_pruned": self.duplicate_log_pruned,
            },
            "current_stats": self.current_stats,
        }
        if self.error:
            summary["error"] = self.error
        return summary
