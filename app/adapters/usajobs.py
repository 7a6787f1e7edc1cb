"""USAJobs search API adapter."""

from typing import Any, Dict, List

from app.config.models import SourceConfig
from app.domain.models import RawJob

from .exceptions import AdapterConfigurationError, AdapterResponseError
from .search import SearchAdapter

RATE_INTERVALS = {"PA": "annual", "PH": "hourly"}


class USAJobsAdapter(SearchAdapter):
    """Adapter for the USAJobs search API.

    API Details:
        Endpoint: https://data.usajobs.gov/api/search
        Method: GET
        Authentication: Authorization-Key header plus an email User-Agent
        Response: SearchResult.SearchResultItems[].MatchedObjectDescriptor
    """

    ADAPTER_NAME = "usajobs"
    API_URL = "https://data.usajobs.gov/api/search"
    HOST = "data.usajobs.gov"
    PAGE_SIZE = 100

    def __init__(self, api_key: str, contact_email: str, **kwargs) -> None:
        if not api_key or not contact_email:
            raise AdapterConfigurationError(
                "USAJobs requires USAJOBS_API_KEY and USAJOBS_USER_AGENT"
            )
        super().__init__(**kwargs)
        self._api_key = api_key
        self._contact_email = contact_email

    def _fetch_page(self, query: str, page: int, source_config: SourceConfig) -> List[Dict[str, Any]]:
        params = {"Keyword": query, "ResultsPerPage": self.PAGE_SIZE, "Page": page}
        if source_config.location:
            params["LocationName"] = source_config.location

        response = self._make_request(
            self.API_URL,
            headers={
                "Authorization-Key": self._api_key,
                "User-Agent": self._contact_email,
                "Host": self.HOST,
            },
            params=params,
        )
        if not isinstance(response, dict):
            raise AdapterResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )
        items = (response.get("SearchResult") or {}).get("SearchResultItems") or []
        return [item["MatchedObjectDescriptor"] for item in items if item.get("MatchedObjectDescriptor")]

    @staticmethod
    def _format_location(locations: List[Dict[str, Any]]) -> str:
        names = [loc.get("LocationName") for loc in locations if loc.get("LocationName")]
        if not names:
            return "United States"
        if len(names) == 1:
            return names[0]
        joined = "; ".join(names[:2])
        return f"{joined} + {len(names) - 2} more" if len(names) > 2 else joined

    def _transform_job(self, job: Dict[str, Any], source_config: SourceConfig) -> RawJob:
        details = (job.get("UserArea") or {}).get("Details") or {}
        remuneration = (job.get("PositionRemuneration") or [{}])[0]

        description_parts = [
            details.get("JobSummary"),
            "\n".join(details.get("MajorDuties") or []),
            details.get("Requirements"),
            details.get("Education"),
        ]
        description = "\n\n".join(part for part in description_parts if part)
        if not description:
            description = job.get("QualificationSummary") or ""

        location = self._format_location(job.get("PositionLocation") or [])
        if details.get("RemoteIndicator") is True or details.get("TeleworkEligible") is True:
            location = f"{location} (Remote)" if location != "United States" else "Remote"

        apply_url = details.get("ApplyOnlineUrl") or job["PositionURI"]
        salary_min = remuneration.get("MinimumRange")
        salary_max = remuneration.get("MaximumRange")

        return RawJob(
            external_id=self._external_id(job.get("PositionID"), apply_url),
            source_provider=self.ADAPTER_NAME,
            title=job["PositionTitle"],
            employer=job.get("OrganizationName") or job.get("DepartmentName") or "US Government",
            location=location,
            description=self._clean_html(description),
            apply_url=apply_url,
            salary_min=float(salary_min) if salary_min else None,
            salary_max=float(salary_max) if salary_max else None,
            salary_period=RATE_INTERVALS.get(remuneration.get("RateIntervalCode")),
            posted_at=self._parse_timestamp(job.get("PublicationStartDate")),
            expires_at=self._parse_timestamp(job.get("ApplicationCloseDate")),
        )
