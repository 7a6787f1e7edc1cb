"""Read-only ingestion analytics and per-run daily source counters."""

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.domain.models import SourceStats
from app.logging import get_logger
from app.persistence import JobRepository, SourceStatsRepository
from app.utils.timestamps import start_of_utc_day, utc_now

logger = get_logger(__name__, component="analytics")


@dataclass
class SourcePerformance:
    """Performance of one source over a trailing window.

    Attributes:
        source: Provider name
        total_active: Published jobs currently attributed to the source
        jobs_last_7_days: Jobs first seen in the last 7 days
        jobs_last_n_days: Jobs first seen in the requested window
        total_fetched: Postings fetched in the window (from daily stats)
        total_duplicates: Cross-source duplicates discarded in the window
        duplicate_rate: total_duplicates / total_fetched, 0.0 when nothing fetched
        avg_quality_score: Mean of the daily average quality scores
    """

    source: str
    total_active: int
    jobs_last_7_days: int
    jobs_last_n_days: int
    total_fetched: int
    total_duplicates: int
    duplicate_rate: float
    avg_quality_score: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def record_ingestion_stats(
    session: Session,
    source: str,
    fetched: int,
    added: int,
    duplicates: int,
    now: Optional[datetime] = None,
) -> SourceStats:
    """Add one run's counters to today's row for a source.

    ``avg_quality_score`` is recomputed as the mean quality score of the
    source's jobs created since midnight UTC.
    """
    now = now or utc_now()
    today = start_of_utc_day(now)

    created_today = JobRepository(session).get_created_since(today, source_provider=source)
    avg_quality = (
        sum(job.quality_score for job in created_today) / len(created_today)
        if created_today
        else 0.0
    )

    stats = SourceStatsRepository(session).increment(
        source=source,
        day=today.date(),
        fetched=fetched,
        added=added,
        duplicate=duplicates,
        avg_quality_score=round(avg_quality, 2),
    )
    logger.debug(
        f"Recorded stats for {source}: +{added} jobs, {duplicates} duplicates",
        extra={
            "event": "analytics.stats.recorded",
            "source": source,
            "fetched": fetched,
            "added": added,
            "duplicates": duplicates,
            "avg_quality_score": stats.avg_quality_score,
        },
    )
    return stats


def get_ingestion_stats(session: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Current catalog counts: total active, active by source, added in 24h."""
    now = now or utc_now()
    repo = JobRepository(session)
    return {
        "total_active": repo.count_active(),
        "by_source": repo.count_active_by_source(),
        "added_last_24h": repo.count_created_since(now - timedelta(hours=24)),
    }


def get_source_performance(
    session: Session, source: str, days: int = 30, now: Optional[datetime] = None
) -> SourcePerformance:
    """Performance metrics for one source over the last ``days`` days."""
    now = now or utc_now()
    window_start = now - timedelta(days=days)
    jobs = JobRepository(session)

    stats = SourceStatsRepository(session).get_since(source, window_start.date())
    total_fetched = sum(row.jobs_fetched for row in stats)
    total_duplicates = sum(row.jobs_duplicate for row in stats)
    avg_quality = sum(row.avg_quality_score for row in stats) / len(stats) if stats else 0.0

    return SourcePerformance(
        source=source,
        total_active=jobs.count_active_by_source().get(source, 0),
        jobs_last_7_days=jobs.count_created_since(now - timedelta(days=7), source),
        jobs_last_n_days=jobs.count_created_since(window_start, source),
        total_fetched=total_fetched,
        total_duplicates=total_duplicates,
        duplicate_rate=round(total_duplicates / total_fetched, 4) if total_fetched else 0.0,
        avg_quality_score=round(avg_quality, 2),
    )


def get_all_source_performance(
    session: Session, days: int = 30, now: Optional[datetime] = None
) -> List[SourcePerformance]:
    """Performance for every source with jobs or recorded stats, by name."""
    sources = set(SourceStatsRepository(session).list_sources())
    sources.update(JobRepository(session).count_active_by_source())
    return [get_source_performance(session, source, days, now) for source in sorted(sources)]


def get_daily_trends(
    session: Session, days: int = 14, now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """Jobs added per UTC day for the last ``days`` days, oldest first.

    Days with no new jobs are reported with a zero count.
    """
    today = start_of_utc_day(now)
    first_day = today - timedelta(days=days - 1)
    counts = JobRepository(session).daily_created_counts(first_day)

    trends = []
    for offset in range(days):
        day = (first_day + timedelta(days=offset)).date().isoformat()
        trends.append({"date": day, "jobs_added": counts.get(day, 0)})
    return trends
