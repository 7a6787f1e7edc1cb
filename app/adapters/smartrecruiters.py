"""SmartRecruiters postings adapter."""

from typing import Any, Dict, List

from app.config.models import BoardConfig, SourceConfig
from app.domain.models import RawJob
from app.logging import get_logger

from .ats import BoardAdapter
from .exceptions import AdapterError, AdapterResponseError

logger = get_logger(__name__, component="adapter")

DESCRIPTION_SECTIONS = ("jobDescription", "qualifications", "additionalInformation")


class SmartRecruitersAdapter(BoardAdapter):
    """Adapter for SmartRecruiters public company postings.

    The listing is paged by ``offset`` and carries no description; postings
    whose title passes the relevance filter get one detail call each.

    API Details:
        Endpoint: https://api.smartrecruiters.com/v1/companies/{slug}/postings?limit=100&offset=N
        Method: GET
        Authentication: None (public)
        Response: JSON object with 'totalFound' and 'content' array; the
            detail endpoint (.../postings/{id}) returns jobAd.sections
    """

    ADAPTER_NAME = "smartrecruiters"
    API_BASE_URL = "https://api.smartrecruiters.com/v1/companies"
    APPLY_BASE_URL = "https://jobs.smartrecruiters.com"
    PAGE_SIZE = 100

    def _board_url(self, board: BoardConfig) -> str:
        return f"{self.API_BASE_URL}/{board.slug}/postings"

    def _extract_postings(self, response: Any) -> List[Dict[str, Any]]:
        if not isinstance(response, dict):
            raise AdapterResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )
        content = response.get("content") or []
        if not isinstance(content, list):
            raise AdapterResponseError(
                f"Expected 'content' field to be array, got {type(content).__name__}"
            )
        return content

    def _fetch_postings(self, board: BoardConfig, source_config: SourceConfig) -> List[Dict[str, Any]]:
        url = self._board_url(board)
        postings = []
        offset = 0
        for page in range(source_config.max_pages):
            if page:
                self._sleep_between_calls()
            response = self._make_request(url, params={"limit": self.PAGE_SIZE, "offset": offset})
            items = self._extract_postings(response)
            postings.extend(items)
            offset += len(items)
            if len(items) < self.PAGE_SIZE or offset >= int(response.get("totalFound") or 0):
                break

        relevant = [p for p in postings if self.relevance.is_relevant(p.get("name") or "")]
        for posting in relevant:
            if posting.get("id"):
                self._sleep_between_calls()
                posting["description"] = self._fetch_description(board, posting["id"])
        return relevant

    def _fetch_description(self, board: BoardConfig, posting_id: str) -> str:
        try:
            detail = self._make_request(f"{self._board_url(board)}/{posting_id}")
        except AdapterError as e:
            logger.warning(
                "Job detail unavailable",
                extra={
                    "event": "adapter.fetch.detail_failed",
                    "adapter": self.ADAPTER_NAME,
                    "board": board.slug,
                    "job_id": posting_id,
                    "error": str(e),
                },
            )
            return ""
        job_ad = detail.get("jobAd") if isinstance(detail, dict) else None
        sections = (job_ad or {}).get("sections") or {}
        parts = [(sections.get(name) or {}).get("text") for name in DESCRIPTION_SECTIONS]
        return self._clean_html("\n\n".join(part for part in parts if part))

    @staticmethod
    def _format_location(location: Dict[str, Any]) -> str:
        parts = [location.get("city"), location.get("region")]
        text = ", ".join(part for part in parts if part)
        if text:
            return f"{text} (Remote)" if location.get("remote") else text
        return "Remote" if location.get("remote") else "United States"

    def _transform_job(self, job: Dict[str, Any], board: BoardConfig) -> RawJob:
        posting_id = job["id"]
        apply_url = f"{self.APPLY_BASE_URL}/{board.slug}/{posting_id}"

        return RawJob(
            external_id=self._external_id(f"{board.slug}-{posting_id}", apply_url),
            source_provider=self.ADAPTER_NAME,
            title=job["name"],
            employer=board.name,
            location=self._format_location(job.get("location") or {}),
            description=job.get("description") or "",
            apply_url=apply_url,
            job_type=(job.get("typeOfEmployment") or {}).get("label"),
            posted_at=self._parse_timestamp(job.get("releasedDate")),
        )
