"""Lever postings adapter."""

from typing import Any, Dict, List

from app.config.models import BoardConfig
from app.domain.models import RawJob
from app.utils.timestamps import from_unix_ms

from .ats import BoardAdapter
from .exceptions import AdapterResponseError


class LeverAdapter(BoardAdapter):
    """Adapter for Lever public postings.

    API Details:
        Endpoint: https://api.lever.co/v0/postings/{slug}?mode=json
        Method: GET
        Authentication: None (public)
        Response: JSON array of posting objects; timestamps in Unix milliseconds
    """

    ADAPTER_NAME = "lever"
    API_BASE_URL = "https://api.lever.co/v0/postings"

    def _board_url(self, board: BoardConfig) -> str:
        return f"{self.API_BASE_URL}/{board.slug}"

    def _board_params(self) -> Dict[str, str]:
        return {"mode": "json"}

    def _extract_postings(self, response: Any) -> List[Dict[str, Any]]:
        # Lever returns a bare array
        if isinstance(response, list):
            return response
        if isinstance(response, dict):
            return response.get("postings", [])
        raise AdapterResponseError(
            f"Expected JSON array or object, got {type(response).__name__}"
        )

    def _get_description(self, job: Dict[str, Any]) -> str:
        """Plain-text description and additional sections, HTML as fallback."""
        plain = [
            (job.get(key) or "").strip() for key in ("descriptionPlain", "additionalPlain")
        ]
        if any(plain):
            return "\n\n".join(part for part in plain if part)

        html_parts = [(job.get(key) or "").strip() for key in ("description", "additional")]
        return self._clean_html("\n\n".join(part for part in html_parts if part))

    def _transform_job(self, job: Dict[str, Any], board: BoardConfig) -> RawJob:
        categories = job.get("categories") or {}
        apply_url = job.get("hostedUrl") or job["applyUrl"]

        location = categories.get("location")
        if job.get("workplaceType") == "remote" and (not location or "remote" not in location.lower()):
            location = f"{location} (Remote)" if location else "Remote"

        salary = job.get("salaryRange") or {}
        interval = (salary.get("interval") or "").replace("-", " ")

        return RawJob(
            external_id=self._external_id(job.get("id"), apply_url),
            source_provider=self.ADAPTER_NAME,
            title=job["text"],
            employer=board.name,
            location=location,
            description=self._get_description(job),
            apply_url=apply_url,
            salary_min=salary.get("min"),
            salary_max=salary.get("max"),
            salary_period=interval or None,
            job_type=categories.get("commitment"),
            posted_at=from_unix_ms(job.get("createdAt")),
        )
