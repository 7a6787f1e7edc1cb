"""Utility functions for hashing, identity keys, and time handling."""

from .hashing import (
    canonicalize_url,
    compute_dedup_key,
    compute_url_external_id,
    hash_string,
    normalize_location_for_dedup,
    normalize_title_for_dedup,
)
from .timestamps import (
    days_from,
    ensure_utc,
    format_timestamp,
    from_unix_ms,
    parse_iso_datetime,
    parse_timestamp,
    start_of_utc_day,
    utc_now,
)

__all__ = [
    # Hashing
    "hash_string",
    "canonicalize_url",
    "compute_url_external_id",
    "compute_dedup_key",
    "normalize_title_for_dedup",
    "normalize_location_for_dedup",
    # Timestamps
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "parse_timestamp",
    "format_timestamp",
    "from_unix_ms",
    "start_of_utc_day",
    "days_from",
]
