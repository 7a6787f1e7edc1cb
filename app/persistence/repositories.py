"""Data access layer (repositories) for persistence operations.

Repositories encapsulate database operations on jobs, companies, the duplicate
audit log and daily source stats, and return domain models rather than ORM
models. They never commit; the caller's ``get_session()`` block owns the
transaction.
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.models import Company, DuplicateAuditEntry, Job, SourceStats
from app.logging import get_logger
from app.utils.timestamps import format_timestamp

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    CompanyModel,
    DuplicateAuditModel,
    JobModel,
    SourceStatsModel,
    format_day,
)

logger = get_logger(__name__, component="database")

# Columns refreshed when a posting is seen again; id, created_at,
# company_id and original_posted_at are left alone
JOB_REFRESH_COLUMNS = (
    "title",
    "employer",
    "location",
    "city",
    "state",
    "state_code",
    "is_remote",
    "job_type",
    "mode",
    "description",
    "description_summary",
    "apply_link",
    "salary_range",
    "min_salary",
    "max_salary",
    "salary_period",
    "normalized_min_salary",
    "normalized_max_salary",
    "display_salary",
    "salary_is_estimated",
    "quality_score",
    "dedup_key",
    "apply_url_hash",
    "updated_at",
)


def _dialect_insert(session: Session):
    """Dialect-specific INSERT supporting ON CONFLICT, or None."""
    name = session.get_bind().dialect.name
    if name == "sqlite":
        return sqlite.insert
    if name == "postgresql":
        return postgresql.insert
    return None


class JobRepository:
    """Repository for job-related database operations."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def get(self, job_id: str) -> Optional[Job]:
        """Retrieve a job by id; None when absent."""
        try:
            job_model = self.session.get(JobModel, job_id)
            return job_model.to_domain() if job_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job {job_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job: {e}") from e

    def get_by_external_id(self, source_provider: str, external_id: str) -> Optional[Job]:
        """Retrieve a job by its provider-scoped identity.

        Args:
            source_provider: Provider name
            external_id: Provider-scoped id

        Returns:
            Job domain model if found, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(JobModel).where(
                JobModel.source_provider == source_provider,
                JobModel.external_id == external_id,
            )
            job_model = self.session.execute(stmt).scalar_one_or_none()
            return job_model.to_domain() if job_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving job {source_provider}/{external_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve job: {e}") from e

    def find_by_dedup_key(self, dedup_key: str, exclude_provider: str) -> Optional[Job]:
        """Oldest job with this dedup key from a provider other than ``exclude_provider``."""
        try:
            stmt = (
                select(JobModel)
                .where(
                    JobModel.dedup_key == dedup_key,
                    JobModel.source_provider != exclude_provider,
                )
                .order_by(JobModel.created_at.asc())
                .limit(1)
            )
            job_model = self.session.execute(stmt).scalar_one_or_none()
            return job_model.to_domain() if job_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error looking up dedup key {dedup_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to look up dedup key: {e}") from e

    def find_by_apply_url_hash(self, url_hash: str, exclude_provider: str) -> Optional[Job]:
        """Oldest job with this canonical apply URL from another provider."""
        try:
            stmt = (
                select(JobModel)
                .where(
                    JobModel.apply_url_hash == url_hash,
                    JobModel.source_provider != exclude_provider,
                )
                .order_by(JobModel.created_at.asc())
                .limit(1)
            )
            job_model = self.session.execute(stmt).scalar_one_or_none()
            return job_model.to_domain() if job_model else None
        except SQLAlchemyError as e:
            logger.error(f"Error looking up apply URL hash {url_hash}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to look up apply URL hash: {e}") from e

    def upsert(self, job: Job, renewed_expires_at: datetime) -> Tuple[Job, bool]:
        """Insert a job, or refresh the existing row with the same identity.

        Uses ``INSERT ... ON CONFLICT (external_id, source_provider) DO UPDATE``
        where the dialect supports it. On update the row keeps its id,
        created_at, company and original posting date, is republished, and
        its expiry moves to ``renewed_expires_at``.

        Args:
            job: Job to persist; its id is used only if the row is new
            renewed_expires_at: Expiry to apply when the row already exists

        Returns:
            (persisted Job, True if a new row was inserted)

        Raises:
            DataIntegrityError: On constraint violation
            PersistenceError: If database error occurs
        """
        try:
            insert_fn = _dialect_insert(self.session)
            if insert_fn is None:
                return self._upsert_portable(job, renewed_expires_at)

            row = JobModel.row_from_domain(job)
            stmt = insert_fn(JobModel).values(**row)
            set_ = {column: stmt.excluded[column] for column in JOB_REFRESH_COLUMNS}
            set_["is_published"] = True
            set_["expires_at"] = format_timestamp(renewed_expires_at)
            stmt = stmt.on_conflict_do_update(
                index_elements=["external_id", "source_provider"],
                set_=set_,
            ).returning(JobModel.id)

            persisted_id = self.session.execute(stmt).scalar_one()
            self.session.flush()

            persisted = self.session.execute(
                select(JobModel)
                .where(JobModel.id == persisted_id)
                .execution_options(populate_existing=True)
            ).scalar_one()
            return persisted.to_domain(), persisted_id == job.id

        except IntegrityError as e:
            logger.error(f"Integrity error upserting job {job.external_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert job due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting job {job.external_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert job: {e}") from e

    def _upsert_portable(self, job: Job, renewed_expires_at: datetime) -> Tuple[Job, bool]:
        stmt = select(JobModel).where(
            JobModel.source_provider == job.source_provider,
            JobModel.external_id == job.external_id,
        )
        existing = self.session.execute(stmt).scalar_one_or_none()
        if existing is None:
            job_model = JobModel.from_domain(job)
            self.session.add(job_model)
            self.session.flush()
            return job_model.to_domain(), True

        row = JobModel.row_from_domain(job)
        for column in JOB_REFRESH_COLUMNS:
            setattr(existing, column, row[column])
        existing.is_published = True
        existing.expires_at = format_timestamp(renewed_expires_at)
        self.session.flush()
        return existing.to_domain(), False

    def set_company(self, job_id: str, company_id: str) -> None:
        """Attach a job to a company.

        Raises:
            RecordNotFoundError: If job_id doesn't exist
        """
        try:
            result = self.session.execute(
                update(JobModel).where(JobModel.id == job_id).values(company_id=company_id)
            )
            if result.rowcount == 0:
                raise RecordNotFoundError(f"Job with id {job_id} not found")
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to set company: {e}") from e

    def reassign_company(self, from_company_id: str, to_company_id: str) -> int:
        """Move every job of one company to another; returns the row count."""
        try:
            result = self.session.execute(
                update(JobModel)
                .where(JobModel.company_id == from_company_id)
                .values(company_id=to_company_id)
            )
            return result.rowcount
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to reassign jobs: {e}") from e

    def expire_stale(self, now: datetime) -> int:
        """Unpublish published jobs whose expires_at is before ``now``.

        Returns:
            Count of jobs unpublished
        """
        try:
            now_str = format_timestamp(now)
            stmt = (
                update(JobModel)
                .where(
                    JobModel.is_published.is_(True),
                    JobModel.expires_at.is_not(None),
                    JobModel.expires_at < now_str,
                )
                .values(is_published=False, updated_at=now_str)
            )
            return self.session.execute(stmt).rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error expiring stale jobs: {e}", exc_info=True)
            raise PersistenceError(f"Failed to expire jobs: {e}") from e

    def count_active(self) -> int:
        stmt = select(func.count()).select_from(JobModel).where(JobModel.is_published.is_(True))
        return self.session.execute(stmt).scalar_one()

    def count_active_by_source(self) -> Dict[str, int]:
        stmt = (
            select(JobModel.source_provider, func.count())
            .where(JobModel.is_published.is_(True))
            .group_by(JobModel.source_provider)
            .order_by(JobModel.source_provider)
        )
        return {provider: count for provider, count in self.session.execute(stmt).all()}

    def count_created_since(self, since: datetime, source_provider: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(JobModel).where(
            JobModel.created_at >= format_timestamp(since)
        )
        if source_provider:
            stmt = stmt.where(JobModel.source_provider == source_provider)
        return self.session.execute(stmt).scalar_one()

    def count_by_source(self, source_provider: str) -> int:
        stmt = select(func.count()).select_from(JobModel).where(
            JobModel.source_provider == source_provider
        )
        return self.session.execute(stmt).scalar_one()

    def get_created_since(self, since: datetime, source_provider: Optional[str] = None) -> List[Job]:
        stmt = select(JobModel).where(JobModel.created_at >= format_timestamp(since))
        if source_provider:
            stmt = stmt.where(JobModel.source_provider == source_provider)
        return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

    def daily_created_counts(self, since: datetime) -> Dict[str, int]:
        """Jobs created per UTC day (``YYYY-MM-DD``) since ``since``."""
        day = func.substr(JobModel.created_at, 1, 10)
        stmt = (
            select(day, func.count())
            .where(JobModel.created_at >= format_timestamp(since))
            .group_by(day)
            .order_by(day)
        )
        return {row_day: count for row_day, count in self.session.execute(stmt).all()}


class CompanyRepository:
    """Repository for canonical employer records."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, company_id: str) -> Optional[Company]:
        model = self.session.get(CompanyModel, company_id)
        return model.to_domain() if model else None

    def get_by_normalized_name(self, normalized_name: str) -> Optional[Company]:
        stmt = select(CompanyModel).where(CompanyModel.normalized_name == normalized_name)
        model = self.session.execute(stmt).scalar_one_or_none()
        return model.to_domain() if model else None

    def list_all(self) -> List[Company]:
        stmt = select(CompanyModel).order_by(CompanyModel.normalized_name)
        return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

    def create(self, company: Company) -> Company:
        """Insert a company.

        Raises:
            DataIntegrityError: If normalized_name already exists
        """
        try:
            model = CompanyModel.from_domain(company)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            raise DataIntegrityError(
                f"Company {company.normalized_name!r} already exists: {e}"
            ) from e

    def get_or_create(self, company: Company) -> Tuple[Company, bool]:
        """Insert a company unless its normalized_name already exists.

        Concurrent workers resolving the same new employer both end up with
        the one stored row.

        Returns:
            (stored Company, True if this call inserted it)
        """
        insert_fn = _dialect_insert(self.session)
        if insert_fn is None:
            existing = self.get_by_normalized_name(company.normalized_name)
            if existing:
                return existing, False
            return self.create(company), True

        try:
            values = CompanyModel.from_domain(company)
            stmt = (
                insert_fn(CompanyModel)
                .values(
                    id=values.id,
                    name=values.name,
                    normalized_name=values.normalized_name,
                    aliases=values.aliases,
                    job_count=values.job_count,
                    is_verified=values.is_verified,
                    created_at=values.created_at,
                    updated_at=values.updated_at,
                )
                .on_conflict_do_nothing(index_elements=["normalized_name"])
            )
            inserted = self.session.execute(stmt).rowcount == 1
            stored = self.get_by_normalized_name(company.normalized_name)
            return stored, inserted
        except SQLAlchemyError as e:
            logger.error(f"Error creating company {company.normalized_name}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create company: {e}") from e

    def increment_job_count(self, company_id: str, by: int = 1, now: Optional[datetime] = None) -> None:
        values = {"job_count": CompanyModel.job_count + by}
        if now is not None:
            values["updated_at"] = format_timestamp(now)
        result = self.session.execute(
            update(CompanyModel).where(CompanyModel.id == company_id).values(**values)
        )
        if result.rowcount == 0:
            raise RecordNotFoundError(f"Company with id {company_id} not found")

    def update(self, company: Company) -> Company:
        """Overwrite name, aliases, job_count, is_verified and updated_at.

        Raises:
            RecordNotFoundError: If the company doesn't exist
        """
        model = self.session.get(CompanyModel, company.id)
        if model is None:
            raise RecordNotFoundError(f"Company with id {company.id} not found")
        model.name = company.name
        model.aliases = list(company.aliases)
        model.job_count = company.job_count
        model.is_verified = company.is_verified
        model.updated_at = format_timestamp(company.updated_at)
        self.session.flush()
        return model.to_domain()

    def delete(self, company_id: str) -> None:
        result = self.session.execute(delete(CompanyModel).where(CompanyModel.id == company_id))
        if result.rowcount == 0:
            raise RecordNotFoundError(f"Company with id {company_id} not found")


class DuplicateAuditRepository:
    """Repository for the bounded duplicate audit log."""

    def __init__(self, session: Session):
        self.session = session

    def record(self, entry: DuplicateAuditEntry) -> None:
        self.session.add(DuplicateAuditModel.from_domain(entry))
        self.session.flush()

    def count(self) -> int:
        return self.session.execute(
            select(func.count()).select_from(DuplicateAuditModel)
        ).scalar_one()

    def list_recent(self, limit: int = 100) -> List[DuplicateAuditEntry]:
        stmt = select(DuplicateAuditModel).order_by(DuplicateAuditModel.id.desc()).limit(limit)
        return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

    def prune(self, max_rows: int, cutoff: datetime) -> int:
        """Delete rows older than ``cutoff``, then all but the newest ``max_rows``.

        Returns:
            Count of deleted rows
        """
        try:
            deleted = self.session.execute(
                delete(DuplicateAuditModel).where(
                    DuplicateAuditModel.created_at < format_timestamp(cutoff)
                )
            ).rowcount

            keep_ids = (
                select(DuplicateAuditModel.id)
                .order_by(DuplicateAuditModel.id.desc())
                .limit(max_rows)
                .scalar_subquery()
            )
            deleted += self.session.execute(
                delete(DuplicateAuditModel).where(DuplicateAuditModel.id.not_in(keep_ids))
            ).rowcount
            return deleted
        except SQLAlchemyError as e:
            logger.error(f"Error pruning duplicate audit log: {e}", exc_info=True)
            raise PersistenceError(f"Failed to prune duplicate audit log: {e}") from e


class SourceStatsRepository:
    """Repository for per-source daily ingestion counters."""

    def __init__(self, session: Session):
        self.session = session

    def increment(
        self,
        source: str,
        day: date,
        fetched: int,
        added: int,
        duplicate: int,
        avg_quality_score: float,
    ) -> SourceStats:
        """Add to the (source, day) counters, creating the row if needed.

        ``avg_quality_score`` replaces the stored value rather than adding to it.
        """
        model = self.session.get(SourceStatsModel, (source, format_day(day)))
        if model is None:
            model = SourceStatsModel(
                source=source,
                day=format_day(day),
                jobs_fetched=0,
                jobs_added=0,
                jobs_duplicate=0,
                avg_quality_score=0.0,
            )
            self.session.add(model)

        model.jobs_fetched += fetched
        model.jobs_added += added
        model.jobs_duplicate += duplicate
        model.avg_quality_score = avg_quality_score
        self.session.flush()
        return model.to_domain()

    def get_since(self, source: str, since: date) -> List[SourceStats]:
        stmt = (
            select(SourceStatsModel)
            .where(SourceStatsModel.source == source, SourceStatsModel.day >= format_day(since))
            .order_by(SourceStatsModel.day)
        )
        return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

    def list_sources(self) -> List[str]:
        stmt = select(SourceStatsModel.source).distinct().order_by(SourceStatsModel.source)
        return list(self.session.execute(stmt).scalars().all())
