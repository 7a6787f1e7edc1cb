"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List

from .models import SEARCH_SOURCE_TYPES


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    sources = config_dict.get("sources", []) or []
    for source in sources:
        if not isinstance(source, dict):
            continue
        name = source.get("name", "Unknown")
        if not source.get("enabled", True):
            warning_messages.append(f"Source '{name}' is disabled and will be skipped")

        # Search APIs multiply calls by queries x pages
        if source.get("type") in SEARCH_SOURCE_TYPES:
            queries = source.get("queries") or []
            max_pages = source.get("max_pages", 3)
            if isinstance(max_pages, int) and len(queries) * max_pages > 100:
                warning_messages.append(
                    f"Source '{name}' issues {len(queries) * max_pages} calls per run "
                    "and may hit provider rate limits"
                )

    advanced = config_dict.get("advanced", {})
    if isinstance(advanced, dict):
        delay = advanced.get("request_delay_seconds")
        if isinstance(delay, (int, float)) and delay < 0.5:
            warning_messages.append(
                f"request_delay_seconds={delay} is below the providers' documented pacing"
            )
        max_jobs = advanced.get("max_jobs_per_source", 1000)
        if isinstance(max_jobs, int) and max_jobs > 5000:
            warning_messages.append(
                f"Large max_jobs_per_source ({max_jobs}) may cause long runs"
            )

    lifecycle = config_dict.get("lifecycle", {})
    if isinstance(lifecycle, dict):
        expiry = lifecycle.get("expiry_days")
        renewal = lifecycle.get("renewal_days")
        if isinstance(expiry, int) and isinstance(renewal, int) and renewal < expiry:
            warning_messages.append(
                "lifecycle.renewal_days is shorter than expiry_days; "
                "re-sighted jobs will expire sooner than new ones"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
