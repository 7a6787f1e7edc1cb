"""Fixture-based adapters for testing.

These adapters stand in for real providers without making HTTP requests.
Postings come from in-memory dicts or a YAML file keyed by source
identifier; ``fetch_jobs`` still applies the base class id de-duplication,
relevance filtering and truncation.
"""

from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import yaml

from app.adapters.base import BaseAdapter
from app.adapters.exceptions import AdapterHTTPError
from app.config.models import SourceConfig
from app.domain.models import RawJob


def load_fixture_jobs(fixture_path: Path) -> Dict[str, List[Dict[str, Any]]]:
    """Load job fixtures from YAML file.

    Args:
        fixture_path: Path to YAML file with a top-level ``sources`` mapping

    Returns:
        Dictionary mapping source identifiers to lists of job data dicts

    Raises:
        FileNotFoundError: If fixture file doesn't exist
    """
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture_path}")

    with open(fixture_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return data.get("sources", {})


def make_raw_job(external_id: str, source_provider: str = "fixture", **overrides) -> RawJob:
    """Build a relevant RawJob with sensible defaults."""
    data = {
        "external_id": external_id,
        "source_provider": source_provider,
        "title": "PMHNP - Remote",
        "employer": "Acme Health Inc",
        "location": "Remote",
        "description": "Provide psychiatric care via telehealth.",
        "apply_url": f"https://example.com/jobs/{external_id}",
    }
    data.update(overrides)
    return RawJob(**data)


class FixtureAdapter(BaseAdapter):
    """Adapter that returns preset postings for each source identifier.

    Attributes:
        fixture_data: Dictionary mapping source identifiers to job dicts
        calls: Number of fetch_jobs calls made
    """

    ADAPTER_NAME = "fixture"

    def __init__(
        self,
        fixture_data: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        fixture_path: Optional[Path] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if fixture_path is not None:
            fixture_data = load_fixture_jobs(fixture_path)
        self.fixture_data = fixture_data or {}
        self.calls = 0

    def fetch_jobs(self, source_config: SourceConfig) -> List[RawJob]:
        self.calls += 1
        return super().fetch_jobs(source_config)

    def _fetch_raw_jobs(self, source_config: SourceConfig) -> Iterator[RawJob]:
        for job_dict in self.fixture_data.get(source_config.identifier, []):
            data = dict(job_dict)
            external_id = str(data.pop("external_id"))
            data.setdefault("source_provider", str(source_config.type))
            data.setdefault("employer", source_config.name)
            yield make_raw_job(external_id, **data)


class FailingAdapter(BaseAdapter):
    """Adapter whose provider is down: every call fails with a 503.

    With ``raise_errors`` the failure propagates out of ``fetch_jobs``;
    otherwise it is counted in ``fetch_errors`` the way board adapters
    treat server errors.
    """

    ADAPTER_NAME = "failing"

    def __init__(self, calls_per_fetch: int = 3, raise_errors: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.calls_per_fetch = calls_per_fetch
        self.raise_errors = raise_errors

    def _fetch_raw_jobs(self, source_config: SourceConfig) -> Iterator[RawJob]:
        for _ in range(self.calls_per_fetch):
            error = AdapterHTTPError(
                "HTTP 503: Service Unavailable",
                status_code=503,
                url=f"https://provider.invalid/{source_config.identifier}",
            )
            if self.raise_errors:
                raise error
            self.fetch_errors += 1
        return iter(())
