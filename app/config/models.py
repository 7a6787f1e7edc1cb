"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class SourceType(str, Enum):
    """Supported job source providers."""

    ADZUNA = "adzuna"
    JOOBLE = "jooble"
    USAJOBS = "usajobs"
    GREENHOUSE = "greenhouse"
    LEVER = "lever"
    ASHBY = "ashby"
    WORKDAY = "workday"
    SMARTRECRUITERS = "smartrecruiters"
    JSEARCH = "jsearch"


# Providers that are searched by keyword rather than fetched per company slug
SEARCH_SOURCE_TYPES = {
    SourceType.ADZUNA.value,
    SourceType.JOOBLE.value,
    SourceType.USAJOBS.value,
    SourceType.JSEARCH.value,
}

DEFAULT_SEARCH_QUERIES = [
    "PMHNP",
    "Psychiatric Nurse Practitioner",
    "Psychiatric Mental Health Nurse Practitioner",
    "Behavioral Health Nurse Practitioner",
    "Psychiatric APRN",
    "Psych NP",
    "Mental Health NP",
    "Telepsychiatry Nurse Practitioner",
]

DEFAULT_ALLOW_TERMS = [
    "pmhnp",
    "psychiatric nurse",
    "psych np",
    "psych nurse practitioner",
    "mental health nurse practitioner",
    "psychiatric mental health",
    "psych mental health",
    "psychiatric aprn",
    "psychiatric arnp",
    "psychiatric prescriber",
    "behavioral health nurse practitioner",
    "behavioral health np",
    "psychiatry nurse practitioner",
    "nurse practitioner psychiatry",
    "telepsychiatry nurse practitioner",
]

DEFAULT_EXCLUDE_TERMS = [
    "registered nurse",
    "lpn",
    "cna",
    "physician assistant",
    "psychiatrist",
    "therapist",
    "counselor",
    "social worker",
    "psychologist",
    "pharmacist",
    "medical assistant",
    "case manager",
]

DEFAULT_GENERIC_TITLES = [
    "nurse practitioner",
    "np",
    "aprn",
    "arnp",
    "advanced practice provider",
    "app",
]


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _normalize_terms(values: List[str]) -> List[str]:
    normalized = []
    for term in values:
        stripped = term.strip().lower()
        if stripped and stripped not in normalized:
            normalized.append(stripped)
    return normalized


class BoardConfig(BaseModel):
    """One company board read by an ATS source."""

    slug: str = Field(..., min_length=1, description="Company slug in the provider's URLs")
    name: str = Field(..., min_length=1, description="Employer name stored on the jobs")
    instance: Optional[int] = Field(
        None, ge=1, le=99, description="Workday data center number (the N in wdN)"
    )
    site: Optional[str] = Field(None, min_length=1, description="Workday career site name")

    @field_validator("slug", "name")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped


def _name_from_slug(slug: str) -> str:
    return " ".join(part.capitalize() for part in slug.replace("_", "-").split("-") if part)


class SourceConfig(BaseModel):
    """Configuration for a single job source.

    ATS sources read one or more company ``boards``; without a ``boards``
    list, ``identifier`` is the board slug and ``name`` the employer name.
    All boards of a source are fetched one after another by one adapter.
    Search sources use ``identifier`` as a label and read
    ``queries``/``max_pages``/``location``.
    """

    name: str = Field(..., min_length=1, description="Human-readable name for the source")
    type: SourceType = Field(..., description="Provider type")
    identifier: str = Field(
        ..., min_length=1, description="Board slug (ATS) or unique label (search APIs)"
    )
    enabled: bool = Field(True, description="Whether to ingest this source")
    queries: List[str] = Field(
        default_factory=list,
        description="Search keywords for search APIs (defaults to the built-in query list)",
    )
    max_pages: int = Field(3, ge=1, le=20, description="Maximum pages per query")
    location: Optional[str] = Field(None, description="Optional location filter for search APIs")
    boards: List[BoardConfig] = Field(
        default_factory=list,
        description="Company boards for ATS sources (slugs or {slug, name, ...} mappings)",
    )

    @field_validator("boards", mode="before")
    @classmethod
    def expand_board_slugs(cls, v: Any) -> Any:
        """Accept bare slugs; the employer name is derived from the slug."""
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        return [
            {"slug": board, "name": _name_from_slug(board)} if isinstance(board, str) else board
            for board in v
        ]

    @model_validator(mode="after")
    def validate_boards(self):
        """Boards are unique per source; Workday boards need instance and site."""
        slugs = [board.slug for board in self.get_boards()]
        if len(slugs) != len(set(slugs)):
            raise ValueError(f"Duplicate board slug in source {self.identifier}")
        if self.type == SourceType.WORKDAY.value:
            for board in self.get_boards():
                if board.instance is None or not board.site:
                    raise ValueError(
                        f"Workday board {board.slug!r} requires 'instance' and 'site'"
                    )
        return self

    @field_validator("name", "identifier")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @field_validator("queries")
    @classmethod
    def strip_queries(cls, v: List[str]) -> List[str]:
        return [q.strip() for q in v if q and q.strip()]

    def get_queries(self) -> List[str]:
        """Configured queries, or the built-in list when none are set."""
        return self.queries or list(DEFAULT_SEARCH_QUERIES)

    def get_boards(self) -> List[BoardConfig]:
        """Configured boards, or a single board named by ``identifier``."""
        if self.boards:
            return list(self.boards)
        return [BoardConfig(slug=self.identifier, name=self.name)]

    model_config = {"use_enum_values": True}


class RelevanceCriteria(BaseModel):
    """Keyword allowlist/denylist applied by adapters before returning jobs."""

    allow_terms: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOW_TERMS),
        description="A job is relevant only if title or description contains one of these",
    )
    exclude_terms: List[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_TERMS),
        description="Titles containing these are rejected unless the title has an allow term",
    )
    generic_titles: List[str] = Field(
        default_factory=lambda: list(DEFAULT_GENERIC_TITLES),
        description="Titles this generic must themselves mention psychiatry/mental health",
    )

    @field_validator("allow_terms", "exclude_terms", "generic_titles")
    @classmethod
    def normalize_terms(cls, v: List[str]) -> List[str]:
        """Strip whitespace, lowercase, drop empties and repeats."""
        return _normalize_terms(v)

    @model_validator(mode="after")
    def validate_relevance_criteria(self):
        """Validate that the allowlist is usable."""
        if not self.allow_terms:
            raise ValueError("relevance.allow_terms must contain at least one term")

        conflicts = set(self.allow_terms) & set(self.exclude_terms)
        if conflicts:
            raise ValueError(
                f"Terms cannot be both allowed and excluded: {', '.join(sorted(conflicts))}"
            )
        return self


class LifecycleConfig(BaseModel):
    """Publish/expire lifecycle settings."""

    expiry_days: int = Field(30, ge=1, le=365, description="Days a new job stays published")
    renewal_days: int = Field(
        60, ge=1, le=365, description="Days added to expires_at when a job is seen again"
    )
    summary_length: int = Field(300, ge=50, le=2000, description="Description summary length")
    max_workers: int = Field(4, ge=1, le=32, description="Concurrent source tasks per run")


class DedupConfig(BaseModel):
    """Duplicate audit log retention."""

    audit_log_enabled: bool = Field(True, description="Record discarded duplicates")
    audit_log_max_rows: int = Field(5000, ge=0, description="Maximum retained audit rows")
    audit_log_retention_days: int = Field(30, ge=1, le=365, description="Audit row max age")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AdvancedConfig(BaseModel):
    """Advanced runtime settings."""

    http_request_timeout: int = Field(
        10, ge=5, le=10, description="Per-call timeout for provider APIs (seconds)"
    )
    user_agent: str = Field(
        "JobIngestionService/1.0",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )
    max_jobs_per_source: int = Field(
        1000, ge=0, description="Maximum jobs to keep per source (0 = unlimited)"
    )
    request_delay_seconds: float = Field(
        1.0, ge=0.0, le=10.0, description="Delay between paginated calls to one provider"
    )

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        """Strip whitespace from user agent."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class AppConfig(BaseModel):
    """Root configuration object for the job ingestion service."""

    sources: List[SourceConfig] = Field(..., min_length=1, description="Job sources to ingest")
    relevance: RelevanceCriteria = Field(
        default_factory=RelevanceCriteria, description="Keyword relevance filter"
    )
    scan_interval: str = Field("6h", description="Interval between scheduled runs")
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    advanced: AdvancedConfig = Field(
        default_factory=AdvancedConfig, description="Advanced runtime settings"
    )

    # Computed field
    scan_interval_seconds: Optional[int] = None

    @field_validator("scan_interval")
    @classmethod
    def validate_scan_interval(cls, v: str) -> str:
        """Validate and parse scan interval."""
        try:
            validate_duration_range(parse_duration(v), min_seconds=300, max_seconds=86400)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def validate_sources_and_compute_fields(self):
        """Validate sources and compute derived fields."""
        if not self.get_enabled_sources():
            raise ValueError(
                "At least one source must be enabled. All sources have enabled=false."
            )

        seen_sources = set()
        for source in self.sources:
            source_key = (source.type, source.identifier)
            if source_key in seen_sources:
                raise ValueError(
                    f"Duplicate source: {source.type}/{source.identifier} appears multiple times"
                )
            seen_sources.add(source_key)

        self.scan_interval_seconds = parse_duration(self.scan_interval)
        return self

    def get_enabled_sources(self) -> List[SourceConfig]:
        """Get list of enabled sources."""
        return [source for source in self.sources if source.enabled]

    def get_source_by_identifier(self, identifier: str) -> Optional[SourceConfig]:
        """Get a source by its identifier."""
        for source in self.sources:
            if source.identifier == identifier:
                return source
        return None
