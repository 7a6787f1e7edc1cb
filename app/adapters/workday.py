"""Workday career site adapter."""

import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.config.models import BoardConfig, SourceConfig
from app.domain.models import RawJob
from app.logging import get_logger
from app.utils.timestamps import utc_now

from .ats import BoardAdapter
from .exceptions import AdapterError, AdapterResponseError

logger = get_logger(__name__, component="adapter")

# Titles worth a detail call; the relevance filter decides with the description
LIKELY_TITLE = re.compile(
    r"pmhnp|psych|mental health|behavioral health|nurse practitioner", re.IGNORECASE
)

_POSTED_DAYS_AGO = re.compile(r"(\d+)\+?\s+days?\s+ago", re.IGNORECASE)


def parse_posted_on(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Turn Workday's relative "Posted 3 Days Ago" into midnight UTC of that day.

    "Posted 30+ Days Ago" counts as 30 days; unrecognized text gives None.
    """
    if not text:
        return None
    now = now or utc_now()
    lowered = text.lower()
    if "today" in lowered:
        days = 0
    elif "yesterday" in lowered:
        days = 1
    else:
        match = _POSTED_DAYS_AGO.search(lowered)
        if not match:
            return None
        days = int(match.group(1))
    return (now - timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)


class WorkdayAdapter(BoardAdapter):
    """Adapter for Workday career sites (the public CXS search API).

    Each board is a tenant: ``slug``, data center ``instance`` and career
    ``site``. Workday has no list-all endpoint, so every configured query is
    searched and paged; postings found by several queries are kept once.
    Listing rows carry no description, which is read from the detail
    endpoint for titles that look relevant.

    API Details:
        Endpoint: https://{slug}.wd{instance}.myworkdayjobs.com/wday/cxs/{slug}/{site}/jobs
        Method: POST {"limit", "offset", "searchText"}
        Authentication: None (public)
        Response: JSON object with 'total' and 'jobPostings' array; the detail
            endpoint (same base plus externalPath) returns
            jobPostingInfo.jobDescription as HTML
    """

    ADAPTER_NAME = "workday"
    PAGE_SIZE = 20

    @staticmethod
    def _tenant_url(board: BoardConfig) -> str:
        return f"https://{board.slug}.wd{board.instance}.myworkdayjobs.com"

    def _cxs_url(self, board: BoardConfig) -> str:
        return f"{self._tenant_url(board)}/wday/cxs/{board.slug}/{board.site}"

    def _board_url(self, board: BoardConfig) -> str:
        return f"{self._cxs_url(board)}/jobs"

    def _extract_postings(self, response: Any) -> List[Dict[str, Any]]:
        if not isinstance(response, dict):
            raise AdapterResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )
        postings = response.get("jobPostings") or []
        if not isinstance(postings, list):
            raise AdapterResponseError(
                f"Expected 'jobPostings' field to be array, got {type(postings).__name__}"
            )
        return postings

    def _fetch_postings(self, board: BoardConfig, source_config: SourceConfig) -> List[Dict[str, Any]]:
        url = self._board_url(board)
        seen_paths = set()
        postings = []
        first_call = True

        for query in source_config.get_queries():
            offset = 0
            for _ in range(source_config.max_pages):
                if not first_call:
                    self._sleep_between_calls()
                first_call = False

                response = self._make_request(
                    url,
                    method="POST",
                    json_data={"limit": self.PAGE_SIZE, "offset": offset, "searchText": query},
                )
                page = self._extract_postings(response)
                for posting in page:
                    path = posting.get("externalPath")
                    if path and path not in seen_paths:
                        seen_paths.add(path)
                        postings.append(posting)

                offset += self.PAGE_SIZE
                if len(page) < self.PAGE_SIZE or offset >= int(response.get("total") or 0):
                    break

        for posting in postings:
            if LIKELY_TITLE.search(posting.get("title") or ""):
                self._sleep_between_calls()
                posting["description"] = self._fetch_description(board, posting["externalPath"])
        return postings

    def _fetch_description(self, board: BoardConfig, external_path: str) -> str:
        """Description HTML from the detail endpoint, cleaned; "" if unavailable."""
        try:
            detail = self._make_request(f"{self._cxs_url(board)}{external_path}")
        except AdapterError as e:
            logger.warning(
                "Job detail unavailable",
                extra={
                    "event": "adapter.fetch.detail_failed",
                    "adapter": self.ADAPTER_NAME,
                    "board": board.slug,
                    "path": external_path,
                    "error": str(e),
                },
            )
            return ""
        info = detail.get("jobPostingInfo") if isinstance(detail, dict) else None
        return self._clean_html((info or {}).get("jobDescription"))

    def _transform_job(self, job: Dict[str, Any], board: BoardConfig) -> RawJob:
        path = job["externalPath"]
        job_id = path.rstrip("/").rsplit("/", 1)[-1] or path
        apply_url = f"{self._tenant_url(board)}/en-US/{board.site}{path}"

        return RawJob(
            external_id=self._external_id(f"{board.slug}-{job_id}", apply_url),
            source_provider=self.ADAPTER_NAME,
            title=job["title"],
            employer=board.name,
            location=job.get("locationsText") or "United States",
            description=job.get("description") or "",
            apply_url=apply_url,
            posted_at=parse_posted_on(job.get("postedOn")),
        )
