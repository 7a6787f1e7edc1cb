"""Hashing and canonicalization helpers for job identity.

This module provides deterministic keys for:
- external_id fallback: hash of the canonical apply URL, for providers that
  expose no native id
- apply_url_hash: hash of the canonical apply URL, the second cross-source
  duplicate signal
- dedup_key: hash of the normalized employer + title + location triple used
  for cross-source duplicate detection
"""

import hashlib
import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# Query parameters that vary between fetches of the same posting
TRACKING_PARAMS = {"ref", "source", "src", "gclid", "fbclid"}
TRACKING_PREFIXES = ("utm_",)

TITLE_STOPWORDS = {"the", "a", "an", "at", "in", "for", "to", "and", "or"}


def hash_string(value: str) -> str:
    """Compute SHA256 hex digest of a string."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def canonicalize_url(url: str) -> str:
    """Reduce an apply URL to the form used for identity.

    Lowercases scheme and host, drops the fragment, strips tracking query
    parameters, sorts the remaining parameters and removes a trailing slash
    from the path.

    Args:
        url: Absolute URL as returned by the provider

    Returns:
        Canonical URL string

    Example:
        >>> canonicalize_url("HTTPS://Jobs.Example.com/p/1/?utm_source=x&b=2&a=1#apply")
        'https://jobs.example.com/p/1?a=1&b=2'
    """
    parts = urlsplit(url.strip())
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key.lower() not in TRACKING_PARAMS
        and not key.lower().startswith(TRACKING_PREFIXES)
    ]
    path = parts.path.rstrip("/") or ""
    return urlunsplit(
        (
            parts.scheme.lower(),
            parts.netloc.lower(),
            path,
            urlencode(sorted(query)),
            "",
        )
    )


def compute_url_external_id(provider: str, url: str) -> str:
    """Stable external id derived from the canonical apply URL.

    Args:
        provider: Source provider name used as prefix
        url: Apply URL

    Returns:
        ``<provider>_<first 16 hex chars of sha256>``
    """
    digest = hash_string(canonicalize_url(url))[:16]
    return f"{provider}_{digest}"


def compute_apply_url_hash(url: str) -> str:
    """Full SHA256 of the canonical apply URL, stored for cross-source matching."""
    return hash_string(canonicalize_url(url))


def normalize_title_for_dedup(title: str) -> str:
    """Lowercase, strip punctuation and stopwords."""
    cleaned = re.sub(r"[^a-z0-9\s]", " ", title.lower())
    words = [word for word in cleaned.split() if word not in TITLE_STOPWORDS]
    return " ".join(words)


def normalize_location_for_dedup(location: Optional[str]) -> str:
    """Lowercase and collapse whitespace; commas are kept."""
    if not location:
        return ""
    cleaned = re.sub(r"[^a-z0-9,\s]", "", location.lower())
    cleaned = re.sub(r"\s*,\s*", ", ", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip(" ,")


def compute_dedup_key(normalized_employer: str, title: str, location: Optional[str]) -> str:
    """Compute the cross-source fuzzy identity key.

    Args:
        normalized_employer: Employer already normalized by the company resolver
        title: Raw or cleaned job title
        location: Raw location string

    Returns:
        Hexadecimal SHA256 of ``employer|title|location`` after normalization
    """
    composite = "|".join(
        [
            normalized_employer.strip(),
            normalize_title_for_dedup(title),
            normalize_location_for_dedup(location),
        ]
    )
    return hash_string(composite)
