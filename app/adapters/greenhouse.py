"""Greenhouse job board adapter."""

from typing import Any, Dict, List, Optional

from app.config.models import BoardConfig
from app.domain.models import RawJob

from .ats import BoardAdapter
from .exceptions import AdapterResponseError


class GreenhouseAdapter(BoardAdapter):
    """Adapter for Greenhouse public job boards.

    API Details:
        Endpoint: https://boards-api.greenhouse.io/v1/boards/{slug}/jobs?content=true
        Method: GET
        Authentication: None (public)
        Response: JSON object with 'jobs' array; 'content' is HTML-escaped
    """

    ADAPTER_NAME = "greenhouse"
    API_BASE_URL = "https://boards-api.greenhouse.io/v1/boards"

    def _board_url(self, board: BoardConfig) -> str:
        return f"{self.API_BASE_URL}/{board.slug}/jobs"

    def _board_params(self) -> Dict[str, str]:
        return {"content": "true"}

    def _extract_postings(self, response: Any) -> List[Dict[str, Any]]:
        if not isinstance(response, dict):
            raise AdapterResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )
        jobs = response.get("jobs", [])
        if not isinstance(jobs, list):
            raise AdapterResponseError(
                f"Expected 'jobs' field to be array, got {type(jobs).__name__}"
            )
        return jobs

    @staticmethod
    def _metadata_value(job: Dict[str, Any], name: str) -> Optional[str]:
        for item in job.get("metadata") or []:
            if item.get("name") == name and item.get("value"):
                value = item["value"]
                return ", ".join(filter(None, value)) if isinstance(value, list) else str(value)
        return None

    def _transform_job(self, job: Dict[str, Any], board: BoardConfig) -> RawJob:
        location = (job.get("location") or {}).get("name") or self._metadata_value(
            job, "Job Posting Location"
        )
        apply_url = job["absolute_url"]

        return RawJob(
            external_id=self._external_id(job.get("id"), apply_url),
            source_provider=self.ADAPTER_NAME,
            title=job["title"],
            employer=board.name,
            location=location,
            description=self._clean_html(job.get("content")),
            apply_url=apply_url,
            job_type=self._metadata_value(job, "Employment Type"),
            posted_at=self._parse_timestamp(job.get("first_published") or job.get("updated_at")),
        )
