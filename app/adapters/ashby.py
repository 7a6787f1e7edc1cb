"""Ashby job board adapter."""

from typing import Any, Dict, List

from app.config.models import BoardConfig
from app.domain.models import RawJob

from .ats import BoardAdapter
from .exceptions import AdapterResponseError

EMPLOYMENT_TYPES = {
    "FullTime": "Full-Time",
    "PartTime": "Part-Time",
    "Contract": "Contract",
    "Temporary": "Contract",
}


class AshbyAdapter(BoardAdapter):
    """Adapter for Ashby public job boards.

    API Details:
        Endpoint: https://api.ashbyhq.com/posting-api/job-board/{slug}?includeCompensation=true
        Method: GET
        Authentication: None (public)
        Response: JSON object with 'jobs' array; salary in
            compensation.compensationTierSummary (e.g. "$130K – $180K")
    """

    ADAPTER_NAME = "ashby"
    API_BASE_URL = "https://api.ashbyhq.com/posting-api/job-board"

    def _board_url(self, board: BoardConfig) -> str:
        return f"{self.API_BASE_URL}/{board.slug}"

    def _board_params(self) -> Dict[str, str]:
        return {"includeCompensation": "true"}

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
        return [job for job in jobs if job.get("isListed", True)]

    def _transform_job(self, job: Dict[str, Any], board: BoardConfig) -> RawJob:
        apply_url = job.get("jobUrl") or job["applyUrl"]

        location = job.get("location")
        if job.get("isRemote") and (not location or "remote" not in location.lower()):
            location = f"{location} (Remote)" if location else "Remote"

        description = job.get("descriptionPlain") or self._clean_html(job.get("descriptionHtml"))
        compensation = job.get("compensation") or {}

        return RawJob(
            external_id=self._external_id(job.get("id"), apply_url),
            source_provider=self.ADAPTER_NAME,
            title=job["title"],
            employer=board.name,
            location=location,
            description=description,
            apply_url=apply_url,
            salary_text=compensation.get("compensationTierSummary"),
            job_type=EMPLOYMENT_TYPES.get(job.get("employmentType") or ""),
            posted_at=self._parse_timestamp(job.get("publishedAt") or job.get("updatedAt")),
        )
