"""Ingestion analytics."""

from .service import (
    SourcePerformance,
    get_all_source_performance,
    get_daily_trends,
    get_ingestion_stats,
    get_source_performance,
    record_ingestion_stats,
)

__all__ = [
    "SourcePerformance",
    "record_ingestion_stats",
    "get_ingestion_stats",
    "get_source_performance",
    "get_all_source_performance",
    "get_daily_trends",
]
