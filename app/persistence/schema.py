"""Database schema definition and ORM models.

This module defines SQLAlchemy ORM models for the catalog tables and provides
conversion methods between ORM models and domain models. Datetimes are stored
as fixed-width ISO 8601 UTC strings so they compare correctly as text.
"""

from datetime import date

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from app.domain.models import Company, DuplicateAuditEntry, Job, SourceStats
from app.logging import get_logger
from app.utils.timestamps import format_timestamp, parse_timestamp

logger = get_logger(__name__, component="database")

Base = declarative_base()


class JobModel(Base):
    """ORM model for the jobs table.

    ``(external_id, source_provider)`` is unique; upserts key on it.
    """

    __tablename__ = "jobs"

    id = Column(String(32), primary_key=True, nullable=False)
    external_id = Column(String(255), nullable=False)
    source_provider = Column(String(50), nullable=False)

    title = Column(Text, nullable=False)
    employer = Column(String(255), nullable=False)
    company_id = Column(String(32), ForeignKey("companies.id"), nullable=True)

    location = Column(String(255), nullable=True)
    city = Column(String(120), nullable=True)
    state = Column(String(60), nullable=True)
    state_code = Column(String(2), nullable=True)
    is_remote = Column(Boolean, nullable=False, default=False)
    job_type = Column(String(30), nullable=True)
    mode = Column(String(30), nullable=True)

    description = Column(Text, nullable=False, default="")
    description_summary = Column(Text, nullable=False, default="")
    apply_link = Column(Text, nullable=False)

    salary_range = Column(String(255), nullable=True)
    min_salary = Column(Float, nullable=True)
    max_salary = Column(Float, nullable=True)
    salary_period = Column(String(20), nullable=True)
    normalized_min_salary = Column(Integer, nullable=True)
    normalized_max_salary = Column(Integer, nullable=True)
    display_salary = Column(String(60), nullable=False, default="Competitive")
    salary_is_estimated = Column(Boolean, nullable=False, default=False)

    quality_score = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    dedup_key = Column(String(64), nullable=True)
    apply_url_hash = Column(String(64), nullable=True)

    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)
    expires_at = Column(String(50), nullable=True)
    original_posted_at = Column(String(50), nullable=True)

    __table_args__ = (
        UniqueConstraint("external_id", "source_provider", name="uq_jobs_external_source"),
        Index("idx_jobs_dedup_key", "dedup_key"),
        Index("idx_jobs_apply_url_hash", "apply_url_hash"),
        Index("idx_jobs_expires_at", "expires_at"),
        Index("idx_jobs_source_provider", "source_provider"),
        Index("idx_jobs_company_id", "company_id"),
    )

    def to_domain(self) -> Job:
        """Convert ORM model to domain model."""
        return Job(
            id=self.id,
            external_id=self.external_id,
            source_provider=self.source_provider,
            title=self.title,
            employer=self.employer,
            company_id=self.company_id,
            location=self.location,
            city=self.city,
            state=self.state,
            state_code=self.state_code,
            is_remote=bool(self.is_remote),
            job_type=self.job_type,
            mode=self.mode,
            description=self.description or "",
            description_summary=self.description_summary or "",
            apply_link=self.apply_link,
            salary_range=self.salary_range,
            min_salary=self.min_salary,
            max_salary=self.max_salary,
            salary_period=self.salary_period,
            normalized_min_salary=self.normalized_min_salary,
            normalized_max_salary=self.normalized_max_salary,
            display_salary=self.display_salary or "Competitive",
            salary_is_estimated=bool(self.salary_is_estimated),
            quality_score=self.quality_score or 0,
            is_published=bool(self.is_published),
            is_featured=bool(self.is_featured),
            dedup_key=self.dedup_key,
            apply_url_hash=self.apply_url_hash,
            created_at=parse_timestamp(self.created_at),
            updated_at=parse_timestamp(self.updated_at),
            expires_at=parse_timestamp(self.expires_at),
            original_posted_at=parse_timestamp(self.original_posted_at),
        )

    @staticmethod
    def row_from_domain(job: Job) -> dict:
        """Column values for an INSERT of this job."""
        return {
            "id": job.id,
            "external_id": job.external_id,
            "source_provider": job.source_provider,
            "title": job.title,
            "employer": job.employer,
            "company_id": job.company_id,
            "location": job.location,
            "city": job.city,
            "state": job.state,
            "state_code": job.state_code,
            "is_remote": job.is_remote,
            "job_type": job.job_type,
            "mode": job.mode,
            "description": job.description,
            "description_summary": job.description_summary,
            "apply_link": job.apply_link,
            "salary_range": job.salary_range,
            "min_salary": job.min_salary,
            "max_salary": job.max_salary,
            "salary_period": job.salary_period,
            "normalized_min_salary": job.normalized_min_salary,
            "normalized_max_salary": job.normalized_max_salary,
            "display_salary": job.display_salary,
            "salary_is_estimated": job.salary_is_estimated,
            "quality_score": job.quality_score,
            "is_published": job.is_published,
            "is_featured": job.is_featured,
            "dedup_key": job.dedup_key,
            "apply_url_hash": job.apply_url_hash,
            "created_at": format_timestamp(job.created_at),
            "updated_at": format_timestamp(job.updated_at),
            "expires_at": format_timestamp(job.expires_at),
            "original_posted_at": format_timestamp(job.original_posted_at),
        }

    @classmethod
    def from_domain(cls, job: Job) -> "JobModel":
        return cls(**cls.row_from_domain(job))


class CompanyModel(Base):
    """ORM model for the companies table."""

    __tablename__ = "companies"

    id = Column(String(32), primary_key=True, nullable=False)
    name = Column(String(255), nullable=False)
    normalized_name = Column(String(255), nullable=False, unique=True)
    aliases = Column(JSON, nullable=False, default=list)
    job_count = Column(Integer, nullable=False, default=0)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    def to_domain(self) -> Company:
        return Company(
            id=self.id,
            name=self.name,
            normalized_name=self.normalized_name,
            aliases=list(self.aliases or []),
            job_count=self.job_count or 0,
            is_verified=bool(self.is_verified),
            created_at=parse_timestamp(self.created_at),
            updated_at=parse_timestamp(self.updated_at),
        )

    @classmethod
    def from_domain(cls, company: Company) -> "CompanyModel":
        return cls(
            id=company.id,
            name=company.name,
            normalized_name=company.normalized_name,
            aliases=list(company.aliases),
            job_count=company.job_count,
            is_verified=company.is_verified,
            created_at=format_timestamp(company.created_at),
            updated_at=format_timestamp(company.updated_at),
        )


class DuplicateAuditModel(Base):
    """ORM model for discarded cross-source duplicates."""

    __tablename__ = "duplicate_audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_provider = Column(String(50), nullable=False)
    external_id = Column(String(255), nullable=False)
    title = Column(Text, nullable=False)
    employer = Column(String(255), nullable=False)
    dedup_key = Column(String(64), nullable=False)
    matched_job_id = Column(String(32), nullable=False)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_duplicate_audit_created_at", "created_at"),)

    def to_domain(self) -> DuplicateAuditEntry:
        return DuplicateAuditEntry(
            id=self.id,
            source_provider=self.source_provider,
            external_id=self.external_id,
            title=self.title,
            employer=self.employer,
            dedup_key=self.dedup_key,
            matched_job_id=self.matched_job_id,
            created_at=parse_timestamp(self.created_at),
        )

    @classmethod
    def from_domain(cls, entry: DuplicateAuditEntry) -> "DuplicateAuditModel":
        return cls(
            source_provider=entry.source_provider,
            external_id=entry.external_id,
            title=entry.title,
            employer=entry.employer,
            dedup_key=entry.dedup_key,
            matched_job_id=entry.matched_job_id,
            created_at=format_timestamp(entry.created_at),
        )


class SourceStatsModel(Base):
    """ORM model for per-source daily ingestion counters."""

    __tablename__ = "source_stats"

    source = Column(String(50), primary_key=True, nullable=False)
    day = Column(String(10), primary_key=True, nullable=False)
    jobs_fetched = Column(Integer, nullable=False, default=0)
    jobs_added = Column(Integer, nullable=False, default=0)
    jobs_duplicate = Column(Integer, nullable=False, default=0)
    avg_quality_score = Column(Float, nullable=False, default=0.0)

    def to_domain(self) -> SourceStats:
        return SourceStats(
            source=self.source,
            day=date.fromisoformat(self.day),
            jobs_fetched=self.jobs_fetched or 0,
            jobs_added=self.jobs_added or 0,
            jobs_duplicate=self.jobs_duplicate or 0,
            avg_quality_score=self.avg_quality_score or 0.0,
        )


def format_day(day: date) -> str:
    return day.isoformat()


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent).

    Args:
        engine: SQLAlchemy engine instance
    """
    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(
            f"Database schema ready. Tables: {', '.join(tables)}",
            extra={"event": "database.schema.ready", "tables": tables},
        )
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
