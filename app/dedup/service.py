"""Duplicate detection for incoming candidates.

Decision order for each candidate:
1. Exact identity ``(source_provider, external_id)`` already stored -> UPDATE
2. Same ``dedup_key`` stored under a different provider -> DUPLICATE
3. Same canonical apply URL stored under a different provider -> DUPLICATE
4. Otherwise -> NEW

The fuzzy key is an exact hash of the normalized employer/title/location
triple; there is no similarity threshold. Candidates are only compared with
jobs from other providers, since a provider's own reposts carry their own ids.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from app.domain.models import CandidateJob, DuplicateAuditEntry, Job
from app.logging import get_logger
from app.persistence import DuplicateAuditRepository, JobRepository
from app.utils.hashing import compute_apply_url_hash, compute_dedup_key
from app.utils.timestamps import utc_now

logger = get_logger(__name__, component="dedup")


class DedupAction(str, Enum):
    NEW = "new"
    UPDATE = "update"
    DUPLICATE = "duplicate"


@dataclass
class DedupDecision:
    """Outcome of classifying one candidate.

    Attributes:
        action: What the pipeline should do with the candidate
        dedup_key: Fuzzy identity key computed for the candidate
        existing: The stored job matched, for UPDATE and DUPLICATE
    """

    action: DedupAction
    dedup_key: str
    existing: Optional[Job] = None


class Deduplicator:
    """Classifies candidates against the stored catalog."""

    def __init__(self, session: Session, audit_enabled: bool = True):
        self.jobs = JobRepository(session)
        self.audit = DuplicateAuditRepository(session)
        self.audit_enabled = audit_enabled

    def classify(self, candidate: CandidateJob, normalized_employer: str) -> DedupDecision:
        """Decide whether a candidate is new, an update, or a cross-source duplicate.

        Args:
            candidate: Normalized candidate
            normalized_employer: Employer after company-name normalization

        Returns:
            DedupDecision
        """
        dedup_key = compute_dedup_key(normalized_employer, candidate.title, candidate.location)

        existing = self.jobs.get_by_external_id(candidate.source_provider, candidate.external_id)
        if existing:
            return DedupDecision(DedupAction.UPDATE, dedup_key, existing)

        matched_on = "dedup_key"
        match = self.jobs.find_by_dedup_key(dedup_key, exclude_provider=candidate.source_provider)
        if match is None:
            matched_on = "apply_url"
            match = self.jobs.find_by_apply_url_hash(
                compute_apply_url_hash(candidate.apply_url),
                exclude_provider=candidate.source_provider,
            )
        if match:
            logger.debug(
                f"Duplicate of job {match.id} from {match.source_provider}",
                extra={
                    "event": "dedup.duplicate",
                    "external_id": candidate.external_id,
                    "matched_job_id": match.id,
                    "matched_provider": match.source_provider,
                    "matched_on": matched_on,
                },
            )
            return DedupDecision(DedupAction.DUPLICATE, dedup_key, match)

        return DedupDecision(DedupAction.NEW, dedup_key)

    def record_duplicate(
        self, candidate: CandidateJob, decision: DedupDecision, now: Optional[datetime] = None
    ) -> None:
        """Write a discarded candidate to the audit log (no-op when disabled)."""
        if not self.audit_enabled or decision.existing is None:
            return

        self.audit.record(
            DuplicateAuditEntry(
                source_provider=candidate.source_provider,
                external_id=candidate.external_id,
                title=candidate.title,
                employer=candidate.employer,
                dedup_key=decision.dedup_key,
                matched_job_id=decision.existing.id,
                created_at=now or utc_now(),
            )
        )


def prune_audit_log(
    session: Session, max_rows: int, retention_days: int, now: Optional[datetime] = None
) -> int:
    """Trim the duplicate audit log to its row and age limits.

    Returns:
        Number of rows deleted
    """
    cutoff = (now or utc_now()) - timedelta(days=retention_days)
    deleted = DuplicateAuditRepository(session).prune(max_rows=max_rows, cutoff=cutoff)
    if deleted:
        logger.info(
            f"Pruned {deleted} duplicate audit rows",
            extra={"event": "dedup.audit.pruned", "deleted": deleted},
        )
    return deleted
