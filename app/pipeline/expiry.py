"""Expiry sweep for published jobs."""

from datetime import datetime
from typing import Optional

from app.logging import get_logger
from app.persistence import JobRepository, get_session
from app.utils.timestamps import utc_now

logger = get_logger(__name__, component="pipeline")


def cleanup_expired_jobs(now: Optional[datetime] = None) -> int:
    """Unpublish every published job whose ``expires_at`` is before ``now``.

    Jobs are soft-removed (``is_published=False``), never deleted.

    Returns:
        Number of jobs unpublished
    """
    now = now or utc_now()
    with get_session() as session:
        expired = JobRepository(session).expire_stale(now)

    logger.info(
        f"Unpublished {expired} expired jobs",
        extra={"event": "lifecycle.expiry.completed", "expired": expired},
    )
    return expired
