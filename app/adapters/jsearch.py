"""JSearch (RapidAPI) search adapter."""

from typing import Any, Dict, List, Optional

from app.config.models import SourceConfig
from app.domain.models import RawJob

from .exceptions import AdapterConfigurationError, AdapterResponseError
from .search import SearchAdapter

EMPLOYMENT_TYPES = {
    "FULLTIME": "Full-Time",
    "PARTTIME": "Part-Time",
    "CONTRACTOR": "Contract",
    "PER_DIEM": "Per Diem",
}

SALARY_PERIODS = {"YEAR": "annual", "HOUR": "hourly", "MONTH": "monthly", "WEEK": "weekly"}


class JSearchAdapter(SearchAdapter):
    """Adapter for the JSearch aggregated search API on RapidAPI.

    API Details:
        Endpoint: https://jsearch.p.rapidapi.com/search
        Method: GET (query, page, num_pages=1, date_posted=month, country=us)
        Authentication: X-RapidAPI-Key and X-RapidAPI-Host headers
        Response: JSON object with 'data' array of about 10 jobs; structured
            salary with job_salary_period (YEAR, HOUR, MONTH, WEEK)
    """

    ADAPTER_NAME = "jsearch"
    API_URL = "https://jsearch.p.rapidapi.com/search"
    HOST = "jsearch.p.rapidapi.com"
    PAGE_SIZE = 10

    def __init__(self, api_key: str, **kwargs) -> None:
        if not api_key:
            raise AdapterConfigurationError("JSearch requires RAPIDAPI_KEY")
        super().__init__(**kwargs)
        self._api_key = api_key

    def _fetch_page(self, query: str, page: int, source_config: SourceConfig) -> List[Dict[str, Any]]:
        search = f"{query} in {source_config.location}" if source_config.location else query
        response = self._make_request(
            self.API_URL,
            headers={"X-RapidAPI-Key": self._api_key, "X-RapidAPI-Host": self.HOST},
            params={
                "query": search,
                "page": page,
                "num_pages": 1,
                "date_posted": "month",
                "country": "us",
                "language": "en",
            },
        )
        if not isinstance(response, dict):
            raise AdapterResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )
        data = response.get("data") or []
        if not isinstance(data, list):
            raise AdapterResponseError("Expected 'data' field to be array")
        return data

    @staticmethod
    def _format_location(item: Dict[str, Any]) -> str:
        city = item.get("job_city")
        state = item.get("job_state")
        place: Optional[str] = f"{city}, {state}" if city and state else state
        if item.get("job_is_remote"):
            return f"{place} (Remote)" if place else "Remote"
        return place or "United States"

    def _transform_job(self, item: Dict[str, Any], source_config: SourceConfig) -> RawJob:
        apply_url = item["job_apply_link"]
        salary_min = item.get("job_min_salary")
        salary_max = item.get("job_max_salary")

        return RawJob(
            external_id=self._external_id(item.get("job_id"), apply_url),
            source_provider=self.ADAPTER_NAME,
            title=item["job_title"],
            employer=item.get("employer_name") or "Company Not Listed",
            location=self._format_location(item),
            description=self._clean_html(item.get("job_description")),
            apply_url=apply_url,
            salary_min=salary_min or None,
            salary_max=salary_max or None,
            salary_period=SALARY_PERIODS.get((item.get("job_salary_period") or "").upper()),
            job_type=EMPLOYMENT_TYPES.get(item.get("job_employment_type") or ""),
            posted_at=self._parse_timestamp(item.get("job_posted_at_datetime_utc")),
            expires_at=self._parse_timestamp(item.get("job_offer_expiration_datetime_utc")),
        )
