"""Source adapters for job search APIs and ATS job boards.

Search providers (paged keyword queries):
- Adzuna: adzuna.AdzunaAdapter
- Jooble: jooble.JoobleAdapter
- USAJobs: usajobs.USAJobsAdapter
- JSearch: jsearch.JSearchAdapter

ATS boards (company boards read one after another):
- Greenhouse: greenhouse.GreenhouseAdapter
- Lever: lever.LeverAdapter
- Ashby: ashby.AshbyAdapter
- Workday: workday.WorkdayAdapter
- SmartRecruiters: smartrecruiters.SmartRecruitersAdapter

Use the factory function to instantiate adapters:
    from app.adapters.factory import get_adapter
    adapter = get_adapter(source_config, advanced_config, env_config)
    jobs = adapter.fetch_jobs(source_config)
"""

from .adzuna import AdzunaAdapter
from .ashby import AshbyAdapter
from .base import BaseAdapter
from .exceptions import (
    AdapterConfigurationError,
    AdapterError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
)
from .factory import ADAPTER_MAP, get_adapter
from .greenhouse import GreenhouseAdapter
from .jooble import JoobleAdapter
from .jsearch import JSearchAdapter
from .lever import LeverAdapter
from .smartrecruiters import SmartRecruitersAdapter
from .usajobs import USAJobsAdapter
from .workday import WorkdayAdapter

__all__ = [
    # Base and factory
    "BaseAdapter",
    "get_adapter",
    "ADAPTER_MAP",
    # Adapters
    "AdzunaAdapter",
    "JoobleAdapter",
    "USAJobsAdapter",
    "JSearchAdapter",
    "GreenhouseAdapter",
    "LeverAdapter",
    "AshbyAdapter",
    "WorkdayAdapter",
    "SmartRecruitersAdapter",
    # Exceptions
    "AdapterError",
    "AdapterHTTPError",
    "AdapterTimeoutError",
    "AdapterResponseError",
    "AdapterConfigurationError",
]
