"""Employer name normalization and canonical company resolution.

Every persisted job points at one Company, keyed by the normalized employer
name. "Acme Health, Inc." and "acme health" both normalize to ``acme`` and so
resolve to the same record.
"""

import re
import uuid
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.domain.models import Company
from app.logging import get_logger
from app.persistence import CompanyRepository, JobRepository, RecordNotFoundError
from app.utils.timestamps import utc_now

from .exceptions import CompanyMergeError

logger = get_logger(__name__, component="companies")

# Legal and corporate suffixes removed as whole words; longer forms first
SUFFIXES = [
    "incorporated",
    "inc.",
    "inc",
    "l.l.c.",
    "llc",
    "limited",
    "ltd",
    "corporation",
    "corp.",
    "corp",
    "company",
    "co.",
    "co",
    "medical group",
    "health care",
    "healthcare",
    "health",
    "medical",
    "group",
    "services",
    "solutions",
    "partners",
    "associates",
    "pllc",
    "p.c.",
    "pc",
    "p.a.",
    "pa",
]

# Canonical display name -> known spellings
KNOWN_COMPANIES: Dict[str, List[str]] = {
    "Talkiatry": ["talkiatry", "talkiatry inc"],
    "Talkspace": ["talkspace", "talkspace inc", "talkspace llc"],
    "SonderMind": ["sondermind", "sonder mind", "sondermind inc"],
    "LifeStance Health": ["lifestance", "lifestance health", "life stance"],
    "Cerebral": ["cerebral", "cerebral inc"],
    "Headway": ["headway", "headway health"],
    "Spring Health": ["spring health", "springhealth"],
    "Lyra Health": ["lyra health", "lyrahealth", "lyra"],
    "Modern Health": ["modern health", "modernhealth"],
    "Teladoc Health": ["teladoc", "teladoc health", "teladochealth"],
    "Brightside Health": ["brightside", "brightside health"],
    "Department of Veterans Affairs": [
        "veterans affairs",
        "va hospital",
        "va health",
        "va medical",
    ],
}

_SUFFIX_PATTERNS = [
    re.compile(rf"(?<![a-z0-9]){re.escape(suffix)}(?![a-z0-9])") for suffix in SUFFIXES
]


def normalize_company_name(name: Optional[str]) -> str:
    """Reduce an employer string to its identity key.

    Lowercases, strips legal/corporate suffixes as whole words, drops
    characters other than letters, digits, spaces and hyphens, and collapses
    whitespace. A name made only of suffix words keeps them, so only names
    without a letter or digit normalize to "".

    Example:
        >>> normalize_company_name("Acme Health, Inc.")
        'acme'
        >>> normalize_company_name("Health Partners")
        'health partners'
    """
    if not name:
        return ""

    lowered = name.lower().strip()
    stripped = lowered
    for pattern in _SUFFIX_PATTERNS:
        stripped = pattern.sub("", stripped)

    normalized = _clean_name(stripped)
    if not _IDENTIFYING.search(normalized):
        normalized = _clean_name(lowered)
    return normalized if _IDENTIFYING.search(normalized) else ""


_IDENTIFYING = re.compile(r"[a-z0-9]")


def _clean_name(value: str) -> str:
    value = re.sub(r"[^a-z0-9\s-]", "", value)
    return re.sub(r"\s+", " ", value).strip()


_CANONICAL_BY_ALIAS = {
    normalize_company_name(alias): canonical
    for canonical, aliases in KNOWN_COMPANIES.items()
    for alias in aliases
}


def find_canonical_name(name: Optional[str]) -> Optional[str]:
    """Canonical display name for a known employer, else None."""
    normalized = normalize_company_name(name)
    if not normalized:
        return None
    return _CANONICAL_BY_ALIAS.get(normalized)


class CompanyResolver:
    """Maps raw employer strings onto canonical Company records.

    All methods work inside the caller's session, so a resolve and the job
    write that triggered it commit together.
    """

    def __init__(self, session: Session):
        self.session = session
        self.companies = CompanyRepository(session)
        self.jobs = JobRepository(session)

    def resolve(self, employer: str) -> Company:
        """Find or create the company for an employer and count one job.

        Existing companies get ``job_count`` incremented. New ones start at 1;
        known employers get their canonical name, aliases and
        ``is_verified=True``.

        Raises:
            ValueError: If employer is blank or normalizes to nothing
        """
        if not employer or not employer.strip():
            raise ValueError("Employer name is required")

        normalized = normalize_company_name(employer)
        if not normalized:
            raise ValueError(f"Employer name {employer!r} has no identifying characters")

        now = utc_now()
        existing = self.companies.get_by_normalized_name(normalized)
        if existing:
            self.companies.increment_job_count(existing.id, now=now)
            existing.job_count += 1
            return existing

        canonical = find_canonical_name(employer)
        company = Company(
            id=uuid.uuid4().hex,
            name=canonical or employer.strip(),
            normalized_name=normalized,
            aliases=list(KNOWN_COMPANIES.get(canonical, [])) if canonical else [],
            job_count=1,
            is_verified=canonical is not None,
            created_at=now,
            updated_at=now,
        )
        created, inserted = self.companies.get_or_create(company)
        if not inserted:
            # Another worker created it between our lookup and insert
            self.companies.increment_job_count(created.id, now=now)
            created.job_count += 1
            return created

        logger.info(
            f"Created company {created.name!r}",
            extra={
                "event": "company.created",
                "company_id": created.id,
                "normalized_name": normalized,
                "is_verified": created.is_verified,
            },
        )
        return created

    def link_job(self, job_id: str) -> Optional[Company]:
        """Attach a job with no company to its resolved company.

        Returns:
            The company the job was linked to, or None if it already had one

        Raises:
            RecordNotFoundError: If the job does not exist
        """
        job = self.jobs.get(job_id)
        if job is None:
            raise RecordNotFoundError(f"Job with id {job_id} not found")
        if job.company_id:
            return None

        company = self.resolve(job.employer)
        self.jobs.set_company(job.id, company.id)
        return company

    def merge(self, keep_id: str, merge_id: str) -> Company:
        """Fold one company into another.

        Jobs of ``merge_id`` move to ``keep_id``, job counts are summed, the
        merged company's name, normalized name and aliases become aliases of
        the kept one, and the merged company is deleted. Nothing is flushed
        until both ids are validated, so a failed merge leaves the store as
        it was.

        Raises:
            CompanyMergeError: If the ids are equal or either is missing
        """
        if keep_id == merge_id:
            raise CompanyMergeError("Cannot merge a company into itself")

        keep = self.companies.get(keep_id)
        merge = self.companies.get(merge_id)
        if keep is None:
            raise CompanyMergeError(f"Company to keep not found: {keep_id}")
        if merge is None:
            raise CompanyMergeError(f"Company to merge not found: {merge_id}")

        moved = self.jobs.reassign_company(merge.id, keep.id)

        aliases = list(keep.aliases)
        for alias in [*merge.aliases, merge.name, merge.normalized_name]:
            if alias and alias not in aliases and alias != keep.normalized_name:
                aliases.append(alias)

        keep.aliases = aliases
        keep.job_count += merge.job_count
        keep.updated_at = utc_now()

        self.companies.delete(merge.id)
        merged = self.companies.update(keep)

        logger.info(
            f"Merged company {merge.name!r} into {keep.name!r}",
            extra={
                "event": "company.merged",
                "keep_id": keep.id,
                "merge_id": merge.id,
                "jobs_moved": moved,
            },
        )
        return merged
