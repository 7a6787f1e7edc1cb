"""Job normalization service for converting RawJob to CandidateJob.

This module implements the normalization logic that:
1. Collapses whitespace and rejects postings without title/employer/apply URL
2. Builds the description summary
3. Extracts and validates salary (structured fields first, then text)
4. Parses the location into city/state/remote flags
5. Detects job type and work mode from the title and description
"""

import logging
import re
from typing import Optional, Tuple

from app.domain.models import CandidateJob, RawJob
from app.logging import get_logger

from .exceptions import NormalizationError
from .location import parse_location
from .salary import (
    NormalizedSalary,
    normalize_salary,
    parse_salary_text,
    period_from_hint,
    text_marks_estimate,
)

logger = get_logger(__name__, component="normalization")

DEFAULT_SUMMARY_LENGTH = 300


def collapse_whitespace(value: Optional[str]) -> str:
    """Collapse runs of spaces and tabs, keeping paragraph breaks."""
    if not value:
        return ""
    text = re.sub(r"[ \t\r\f\v]+", " ", value)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def build_summary(description: str, length: int = DEFAULT_SUMMARY_LENGTH) -> str:
    """First ``length`` characters of the description, with "..." when cut."""
    flat = " ".join(description.split())
    if len(flat) <= length:
        return flat
    return flat[:length].rstrip() + "..."


def detect_job_type(text: str) -> Optional[str]:
    lowered = text.lower()
    if "per diem" in lowered or "per-diem" in lowered:
        return "Per Diem"
    if "contract" in lowered:
        return "Contract"
    if "part-time" in lowered or "part time" in lowered:
        return "Part-Time"
    if "full-time" in lowered or "full time" in lowered or "permanent" in lowered:
        return "Full-Time"
    return None


def detect_mode(text: str) -> Optional[str]:
    lowered = text.lower()
    if "hybrid" in lowered:
        return "Hybrid"
    if any(k in lowered for k in ("remote", "telehealth", "telepsychiatry", "work from home")):
        return "Remote"
    if any(k in lowered for k in ("on-site", "onsite", "in-person", "in person")):
        return "In-Person"
    return None


def _ordered_pair(
    low: Optional[float], high: Optional[float]
) -> Tuple[Optional[float], Optional[float]]:
    """Raw salary bounds with the smaller first; a missing bound stays missing."""
    if low is not None and high is not None and low > high:
        return high, low
    return low, high


class JobNormalizer:
    """Normalizes RawJob instances into CandidateJob models.

    The normalizer is stateless apart from its settings and is safe to share
    between source worker threads.
    """

    def __init__(
        self,
        summary_length: int = DEFAULT_SUMMARY_LENGTH,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize JobNormalizer.

        Args:
            summary_length: Characters kept in ``description_summary``
            logger_instance: Logger instance (defaults to module logger)
        """
        self.summary_length = summary_length
        self.logger = logger_instance or logger

    def normalize(self, raw_job: RawJob) -> CandidateJob:
        """Normalize a single RawJob.

        Args:
            raw_job: Posting as mapped by an adapter

        Returns:
            CandidateJob with salary, location and summary filled in

        Raises:
            NormalizationError: If title, employer or apply URL is empty after cleaning
        """
        title = " ".join(raw_job.title.split())
        employer = " ".join(raw_job.employer.split())
        apply_url = raw_job.apply_url.strip()

        for field_name, value in (("title", title), ("employer", employer), ("apply_url", apply_url)):
            if not value:
                raise NormalizationError(
                    f"Posting {raw_job.external_id} has no {field_name}",
                    field=field_name,
                    external_id=raw_job.external_id,
                )

        description = collapse_whitespace(raw_job.description)
        location = " ".join(raw_job.location.split()) if raw_job.location else None

        salary, salary_source, raw_min, raw_max = self._normalize_salary(raw_job, title, description)
        parsed_location = parse_location(location)

        context = f"{title} {location or ''} {description}"
        mode = detect_mode(f"{title} {location or ''}") or detect_mode(description)
        if parsed_location.is_hybrid:
            mode = "Hybrid"
        elif parsed_location.is_remote:
            mode = "Remote"

        if salary.rejected:
            self.logger.debug(
                "Salary rejected as implausible",
                extra={
                    "event": "normalization.salary.rejected",
                    "external_id": raw_job.external_id,
                    "source_provider": raw_job.source_provider,
                    "salary_source": salary_source,
                },
            )

        return CandidateJob(
            external_id=raw_job.external_id,
            source_provider=raw_job.source_provider,
            title=title,
            employer=employer,
            location=location,
            description=description,
            description_summary=build_summary(description, self.summary_length),
            apply_url=apply_url,
            salary_range=raw_job.salary_text,
            min_salary=raw_min,
            max_salary=raw_max,
            normalized_min_salary=salary.normalized_min,
            normalized_max_salary=salary.normalized_max,
            salary_period=salary.period,
            display_salary=salary.display,
            salary_is_estimated=salary.is_estimated if salary.has_salary else False,
            city=parsed_location.city,
            state=parsed_location.state,
            state_code=parsed_location.state_code,
            is_remote=parsed_location.is_remote,
            is_hybrid=parsed_location.is_hybrid,
            job_type=raw_job.job_type or detect_job_type(context),
            mode=mode,
            posted_at=raw_job.posted_at,
            expires_at=raw_job.expires_at,
            salary_rejected=salary.rejected,
            location_parsed=parsed_location.parsed,
        )

    def _normalize_salary(self, raw_job: RawJob, title: str, description: str):
        """Structured provider values first, then salary text, title, description.

        Returns:
            (NormalizedSalary, where it came from, raw min, raw max)
        """
        estimated = raw_job.salary_is_estimated or text_marks_estimate(raw_job.salary_text)

        if raw_job.salary_min is not None or raw_job.salary_max is not None:
            period = period_from_hint(raw_job.salary_period)
            if period is None and raw_job.salary_text:
                parsed = parse_salary_text(raw_job.salary_text)
                if parsed and not parsed.period_inferred:
                    period = parsed.period
            salary = normalize_salary(
                raw_job.salary_min, raw_job.salary_max, period, is_estimated=estimated
            )
            raw_min, raw_max = _ordered_pair(raw_job.salary_min, raw_job.salary_max)
            return salary, "structured", raw_min, raw_max

        for source_name, text in (
            ("salary_text", raw_job.salary_text),
            ("title", title),
            ("description", description),
        ):
            parsed = parse_salary_text(text)
            if parsed is None:
                continue
            period = period_from_hint(raw_job.salary_period) if parsed.period_inferred else None
            salary = normalize_salary(
                parsed.min_value,
                parsed.max_value,
                period or parsed.period,
                is_estimated=estimated or (parsed.period_inferred and period is None),
            )
            raw_min, raw_max = _ordered_pair(parsed.min_value, parsed.max_value)
            return salary, source_name, raw_min, raw_max

        return NormalizedSalary(), None, None, None
