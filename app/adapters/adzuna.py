"""Adzuna search API adapter."""

from typing import Any, Dict, List

from app.config.models import SourceConfig
from app.domain.models import RawJob

from .exceptions import AdapterConfigurationError, AdapterResponseError
from .search import SearchAdapter

CONTRACT_TIME_TYPES = {"full_time": "Full-Time", "part_time": "Part-Time"}
CONTRACT_TYPE_TYPES = {"contract": "Contract", "permanent": "Full-Time"}


class AdzunaAdapter(SearchAdapter):
    """Adapter for the Adzuna job search API.

    API Details:
        Endpoint: https://api.adzuna.com/v1/api/jobs/us/search/{page}
        Method: GET
        Authentication: app_id + app_key query parameters
        Response: JSON object with 'results' array; salaries are annual
    """

    ADAPTER_NAME = "adzuna"
    API_BASE_URL = "https://api.adzuna.com/v1/api/jobs/us/search"
    PAGE_SIZE = 50

    def __init__(self, app_id: str, app_key: str, **kwargs) -> None:
        if not app_id or not app_key:
            raise AdapterConfigurationError("Adzuna requires ADZUNA_APP_ID and ADZUNA_APP_KEY")
        super().__init__(**kwargs)
        self._app_id = app_id
        self._app_key = app_key

    def _fetch_page(self, query: str, page: int, source_config: SourceConfig) -> List[Dict[str, Any]]:
        params = {
            "app_id": self._app_id,
            "app_key": self._app_key,
            "what": query,
            "results_per_page": self.PAGE_SIZE,
            "content-type": "application/json",
        }
        if source_config.location:
            params["where"] = source_config.location

        response = self._make_request(f"{self.API_BASE_URL}/{page}", params=params)
        if not isinstance(response, dict):
            raise AdapterResponseError(
                f"Expected JSON object response, got {type(response).__name__}"
            )
        results = response.get("results") or []
        if not isinstance(results, list):
            raise AdapterResponseError("Expected 'results' field to be array")
        return results

    def _transform_job(self, item: Dict[str, Any], source_config: SourceConfig) -> RawJob:
        apply_url = item["redirect_url"]
        salary_min = item.get("salary_min")
        salary_max = item.get("salary_max")

        job_type = CONTRACT_TIME_TYPES.get(item.get("contract_time") or "") or CONTRACT_TYPE_TYPES.get(
            item.get("contract_type") or ""
        )

        return RawJob(
            external_id=self._external_id(item.get("id"), apply_url),
            source_provider=self.ADAPTER_NAME,
            title=item["title"],
            employer=(item.get("company") or {}).get("display_name") or "Company Not Listed",
            location=(item.get("location") or {}).get("display_name") or "United States",
            description=self._clean_html(item.get("description")),
            apply_url=apply_url,
            salary_min=salary_min or None,
            salary_max=salary_max or None,
            salary_period="annual" if (salary_min or salary_max) else None,
            salary_is_estimated=str(item.get("salary_is_predicted", "0")) == "1",
            job_type=job_type,
            posted_at=self._parse_timestamp(item.get("created")),
        )
