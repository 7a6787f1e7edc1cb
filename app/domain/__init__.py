"""Domain models for the job ingestion service."""

from .models import CandidateJob, Company, DuplicateAuditEntry, Job, RawJob, SourceStats

__all__ = ["RawJob", "CandidateJob", "Job", "Company", "DuplicateAuditEntry", "SourceStats"]
