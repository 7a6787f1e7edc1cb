"""Canonical employer resolution and admin merges."""

from .exceptions import CompanyError, CompanyMergeError
from .resolver import (
    KNOWN_COMPANIES,
    SUFFIXES,
    CompanyResolver,
    find_canonical_name,
    normalize_company_name,
)

__all__ = [
    "CompanyResolver",
    "normalize_company_name",
    "find_canonical_name",
    "KNOWN_COMPANIES",
    "SUFFIXES",
    "CompanyError",
    "CompanyMergeError",
]
