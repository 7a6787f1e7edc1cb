"""Persistence layer for the job catalog.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - JobRepository: jobs (upsert by (external_id, source_provider), expiry, counts)
    - CompanyRepository: canonical employers
    - DuplicateAuditRepository: discarded cross-source duplicates
    - SourceStatsRepository: per-source daily counters

    # Exceptions
    - PersistenceError, DatabaseConnectionError, RecordNotFoundError, DataIntegrityError

Example usage:
    >>> from app.persistence import init_database, get_session, JobRepository
    >>> init_database("sqlite:///./data/job_ingestion.db")
    >>> with get_session() as session:
    ...     active = JobRepository(session).count_active()
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import (
    CompanyRepository,
    DuplicateAuditRepository,
    JobRepository,
    SourceStatsRepository,
)

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "JobRepository",
    "CompanyRepository",
    "DuplicateAuditRepository",
    "SourceStatsRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
