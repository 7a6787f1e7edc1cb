"""Jooble search API adapter."""

import re
from typing import Any, Dict, List

from app.config.models import SourceConfig
from app.domain.models import RawJob

from .exceptions import AdapterConfigurationError, AdapterResponseError
from .search import SearchAdapter


class JoobleAdapter(SearchAdapter):
    """Adapter for the Jooble job search API.

    API Details:
        Endpoint: https://jooble.org/api/{api_key}
        Method: POST with JSON body {keywords, location, page}
        Response: JSON object with 'jobs' array; salary is free text
    """

    ADAPTER_NAME = "jooble"
    API_BASE_URL = "https://jooble.org/api"
    PAGE_SIZE = 20
    DEFAULT_LOCATION = "United States"

    def __init__(self, api_key: str, **kwargs) -> None:
        if not api_key:
            raise AdapterConfigurationError("Jooble requires JOOBLE_API_KEY")
        super().__init__(**kwargs)
        self._api_key = api_key

    def _fetch_page(self, query: str, page: int, source_config: SourceConfig) -> List[Dict[str, Any]]:
        body = {
            "keywords": query,
            "location": source_config.location or self.DEFAULT_LOCATION,
            "page": str(page),
        }
        response = self._make_request(
            f"{self.API_BASE_URL}/{self._api_key}",
            method="POST",
            headers={"Content-Type": "application/json"},
            json_data=body,
        )
        if not isinstance(response, dict):
            raise AdapterResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )
        jobs = response.get("jobs") or []
        if not isinstance(jobs, list):
            raise AdapterResponseError("Expected 'jobs' field to be array")
        return jobs

    @staticmethod
    def _clean_snippet(snippet: str) -> str:
        # Snippets carry "..." markers where Jooble cut the text
        cleaned = re.sub(r"\.{3}|…", " ", snippet or "")
        return re.sub(r"\s+", " ", cleaned).strip()

    def _transform_job(self, item: Dict[str, Any], source_config: SourceConfig) -> RawJob:
        apply_url = item["link"]
        return RawJob(
            external_id=self._external_id(item.get("id"), apply_url),
            source_provider=self.ADAPTER_NAME,
            title=item["title"],
            employer=item.get("company") or "Company Not Listed",
            location=item.get("location") or self.DEFAULT_LOCATION,
            description=self._clean_snippet(self._clean_html(item.get("snippet"))),
            apply_url=apply_url,
            salary_text=item.get("salary") or None,
            job_type=item.get("type") or None,
            posted_at=self._parse_timestamp(item.get("updated")),
        )
