"""Core domain models for postings, companies, and ingestion records.

This module defines the data structures used throughout the application:
- RawJob: a posting as an adapter mapped it, before normalization
- CandidateJob: a RawJob with normalized salary and location
- Job: the persisted, deduplicated catalog entry
- Company: canonical employer identity
- DuplicateAuditEntry: a discarded cross-source duplicate
- SourceStats: per-source, per-day ingestion counters
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _to_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class RawJob(BaseModel):
    """Posting data from a source adapter before normalization.

    Adapters fill in whatever the provider exposes. Structured salary fields
    take precedence over ``salary_text`` during normalization.
    """

    external_id: str = Field(..., description="Provider-scoped id (native or URL hash)")
    source_provider: str = Field(..., description="Provider name (adzuna, greenhouse, ...)")
    title: str = Field(..., description="Job title")
    employer: str = Field(..., description="Raw employer string")
    location: Optional[str] = Field(None, description="Raw location string")
    description: str = Field("", description="Plain-text description")
    apply_url: str = Field(..., description="Absolute apply URL")
    salary_text: Optional[str] = Field(None, description="Free-text salary, if the provider has one")
    salary_min: Optional[float] = Field(None, description="Structured salary minimum")
    salary_max: Optional[float] = Field(None, description="Structured salary maximum")
    salary_period: Optional[str] = Field(None, description="Provider period hint (hour, year, ...)")
    salary_is_estimated: bool = Field(False, description="Provider marked the salary as predicted")
    job_type: Optional[str] = Field(None, description="Provider employment type, when given")
    posted_at: Optional[datetime] = Field(None, description="When the job was posted (UTC)")
    expires_at: Optional[datetime] = Field(None, description="Provider close date (UTC)")

    @field_validator("external_id", "source_provider", "title", "employer", "apply_url")
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Strip whitespace from required string fields."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("location", "salary_text", "salary_period")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("posted_at", "expires_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return _to_utc(v)

    model_config = {"json_schema_extra": {"example": {
        "external_id": "adzuna_4821937",
        "source_provider": "adzuna",
        "title": "PMHNP - Remote",
        "employer": "Acme Health Inc",
        "location": "Austin, TX",
        "description": "Seeking a board-certified PMHNP...",
        "apply_url": "https://www.adzuna.com/land/ad/4821937",
        "salary_text": "$65-$75/hr",
    }}}


class CandidateJob(BaseModel):
    """A RawJob after text normalization, before identity resolution."""

    external_id: str
    source_provider: str
    title: str
    employer: str
    location: Optional[str] = None
    description: str = ""
    description_summary: str = ""
    apply_url: str

    # Raw salary as received, preserved for display/debugging
    salary_range: Optional[str] = None
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None

    # Normalized salary (annualized)
    normalized_min_salary: Optional[int] = None
    normalized_max_salary: Optional[int] = None
    salary_period: Optional[str] = Field(None, description="hourly or annual")
    display_salary: str = "Competitive"
    salary_is_estimated: bool = False

    # Normalized location
    city: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = None
    is_remote: bool = False
    is_hybrid: bool = False

    job_type: Optional[str] = Field(None, description="Full-Time, Part-Time, Contract or Per Diem")
    mode: Optional[str] = Field(None, description="Remote, Hybrid or In-Person")

    posted_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    # Validation flags
    salary_rejected: bool = False
    location_parsed: bool = False

    @property
    def has_salary(self) -> bool:
        return self.normalized_min_salary is not None or self.normalized_max_salary is not None


class Job(BaseModel):
    """Canonical persisted posting.

    ``(external_id, source_provider)`` is unique. ``id`` and ``created_at`` are
    assigned on first sighting and never change afterwards.
    """

    id: str = Field(..., description="Stable job id (uuid4 hex)")
    external_id: str
    source_provider: str
    title: str
    employer: str
    company_id: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = None
    is_remote: bool = False
    job_type: Optional[str] = None
    mode: Optional[str] = None
    description: str = ""
    description_summary: str = ""
    apply_link: str
    salary_range: Optional[str] = None
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None
    salary_period: Optional[str] = None
    normalized_min_salary: Optional[int] = None
    normalized_max_salary: Optional[int] = None
    display_salary: str = "Competitive"
    salary_is_estimated: bool = False
    quality_score: int = Field(0, ge=0, le=100)
    is_published: bool = True
    is_featured: bool = False
    dedup_key: Optional[str] = None
    apply_url_hash: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None
    original_posted_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", "expires_at", "original_posted_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return _to_utc(v)


class Company(BaseModel):
    """Canonical employer."""

    id: str
    name: str
    normalized_name: str
    aliases: List[str] = Field(default_factory=list)
    job_count: int = 0
    is_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DuplicateAuditEntry(BaseModel):
    """A candidate discarded as a cross-source duplicate."""

    id: Optional[int] = None
    source_provider: str
    external_id: str
    title: str
    employer: str
    dedup_key: str
    matched_job_id: str
    created_at: datetime


class SourceStats(BaseModel):
    """Ingestion counters for one source on one UTC day."""

    source: str
    day: date
    jobs_fetched: int = 0
    jobs_added: int = 0
    jobs_duplicate: int = 0
    avg_quality_score: float = 0.0
