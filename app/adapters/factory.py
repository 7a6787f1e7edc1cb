"""Factory function for instantiating source adapters."""

from typing import Optional

from app.config.environment import EnvironmentConfig
from app.config.models import AdvancedConfig, SourceConfig
from app.logging import get_logger
from app.matching import RelevanceFilter

from .adzuna import AdzunaAdapter
from .ashby import AshbyAdapter
from .base import BaseAdapter
from .exceptions import AdapterConfigurationError
from .greenhouse import GreenhouseAdapter
from .jooble import JoobleAdapter
from .jsearch import JSearchAdapter
from .lever import LeverAdapter
from .smartrecruiters import SmartRecruitersAdapter
from .usajobs import USAJobsAdapter
from .workday import WorkdayAdapter

logger = get_logger(__name__, component="adapter")

ADAPTER_MAP = {
    "adzuna": AdzunaAdapter,
    "jooble": JoobleAdapter,
    "usajobs": USAJobsAdapter,
    "greenhouse": GreenhouseAdapter,
    "lever": LeverAdapter,
    "ashby": AshbyAdapter,
    "workday": WorkdayAdapter,
    "smartrecruiters": SmartRecruitersAdapter,
    "jsearch": JSearchAdapter,
}


def _credentials_for(source_type: str, env_config: Optional[EnvironmentConfig]) -> dict:
    if source_type not in ("adzuna", "jooble", "usajobs", "jsearch"):
        return {}
    if env_config is None:
        raise AdapterConfigurationError(f"{source_type} requires API credentials")
    if source_type == "adzuna":
        return {"app_id": env_config.adzuna_app_id, "app_key": env_config.adzuna_app_key}
    if source_type == "jooble":
        return {"api_key": env_config.jooble_api_key}
    if source_type == "jsearch":
        return {"api_key": env_config.rapidapi_key}
    return {
        "api_key": env_config.usajobs_api_key,
        "contact_email": env_config.usajobs_user_agent,
    }


def get_adapter(
    source_config: SourceConfig,
    advanced_config: AdvancedConfig,
    env_config: Optional[EnvironmentConfig] = None,
    relevance: Optional[RelevanceFilter] = None,
) -> BaseAdapter:
    """Instantiate the adapter for a configured source.

    Args:
        source_config: Source configuration with provider type and identifier
        advanced_config: Timeout, user-agent, max_jobs and request delay
        env_config: Provider credentials (required for search providers)
        relevance: Shared relevance filter

    Returns:
        Instantiated adapter for the source type

    Raises:
        AdapterConfigurationError: If the type is unknown or credentials are missing

    Example:
        >>> source = SourceConfig(name="Example", type="greenhouse", identifier="example")
        >>> adapter = get_adapter(source, AdvancedConfig())
        >>> jobs = adapter.fetch_jobs(source)
    """
    source_type = str(source_config.type).lower()
    adapter_class = ADAPTER_MAP.get(source_type)

    if not adapter_class:
        supported_types = ", ".join(sorted(ADAPTER_MAP))
        raise AdapterConfigurationError(
            f"Unknown source type: {source_config.type}. Supported types: {supported_types}"
        )

    logger.debug(
        "Creating adapter instance",
        extra={
            "event": "adapter.factory.created",
            "source_type": source_type,
            "source": source_config.identifier,
            "adapter_class": adapter_class.__name__,
        },
    )

    credentials = _credentials_for(source_type, env_config)
    try:
        return adapter_class(
            timeout=advanced_config.http_request_timeout,
            user_agent=advanced_config.user_agent,
            max_jobs=advanced_config.max_jobs_per_source,
            request_delay=advanced_config.request_delay_seconds,
            relevance=relevance,
            **credentials,
        )
    except AdapterConfigurationError:
        raise
    except Exception as e:
        raise AdapterConfigurationError(
            f"Failed to create {source_type} adapter: {e}"
        ) from e
