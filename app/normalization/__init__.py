"""Normalization layer: RawJob to CandidateJob.

This package provides:
- parse_salary_text / normalize_salary / format_display_salary: salary extraction
- parse_location: city/state/remote parsing
- JobNormalizer: assembles a CandidateJob from a RawJob
"""

from .exceptions import NormalizationError
from .location import ParsedLocation, parse_location
from .salary import (
    NormalizedSalary,
    SalaryParseResult,
    format_display_salary,
    normalize_salary,
    parse_salary_text,
)
from .service import JobNormalizer, build_summary

__all__ = [
    "JobNormalizer",
    "NormalizationError",
    "build_summary",
    "parse_location",
    "ParsedLocation",
    "parse_salary_text",
    "normalize_salary",
    "format_display_salary",
    "SalaryParseResult",
    "NormalizedSalary",
]
