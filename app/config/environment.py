"""Environment variable loading and validation.

Provider credentials and the trigger secret live in the environment (or a
``.env`` file loaded by python-dotenv in ``app.main``), never in config.yaml.
"""

import os
import re
from typing import List, Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/job_ingestion.db"


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        adzuna_app_id: Optional[str] = None,
        adzuna_app_key: Optional[str] = None,
        jooble_api_key: Optional[str] = None,
        usajobs_api_key: Optional[str] = None,
        usajobs_user_agent: Optional[str] = None,
        rapidapi_key: Optional[str] = None,
        cron_secret: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.adzuna_app_id = adzuna_app_id
        self.adzuna_app_key = adzuna_app_key
        self.jooble_api_key = jooble_api_key
        self.usajobs_api_key = usajobs_api_key
        self.usajobs_user_agent = usajobs_user_agent
        self.rapidapi_key = rapidapi_key
        self.cron_secret = cron_secret
        self.log_level = log_level
        self.database_url = database_url or DEFAULT_DATABASE_URL

    def has_credentials_for(self, source_type: str) -> bool:
        """Whether the provider can be called with the current credentials.

        ATS feeds are public and always usable.

        Args:
            source_type: Provider type value (e.g. "adzuna")

        Returns:
            True if every credential the provider needs is set
        """
        if source_type == "adzuna":
            return bool(self.adzuna_app_id and self.adzuna_app_key)
        if source_type == "jooble":
            return bool(self.jooble_api_key)
        if source_type == "usajobs":
            return bool(self.usajobs_api_key and self.usajobs_user_agent)
        if source_type == "jsearch":
            return bool(self.rapidapi_key)
        return True


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional; a search provider whose credentials are missing
    is skipped at run time.

    - ADZUNA_APP_ID / ADZUNA_APP_KEY: Adzuna API credentials
    - JOOBLE_API_KEY: Jooble API key
    - USAJOBS_API_KEY / USAJOBS_USER_AGENT: USAJobs key and registered email
    - RAPIDAPI_KEY: RapidAPI key for JSearch
    - CRON_SECRET: Bearer secret required by the HTTP trigger
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - DATABASE_URL: SQLAlchemy database URL

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If a variable is present but invalid
    """
    errors: List[str] = []

    adzuna_app_id = _get("ADZUNA_APP_ID")
    adzuna_app_key = _get("ADZUNA_APP_KEY")
    usajobs_api_key = _get("USAJOBS_API_KEY")
    usajobs_user_agent = _get("USAJOBS_USER_AGENT")
    log_level = _get("LOG_LEVEL")

    if bool(adzuna_app_id) != bool(adzuna_app_key):
        errors.append(
            "ADZUNA_APP_ID and ADZUNA_APP_KEY must be set together."
        )

    if usajobs_api_key and not usajobs_user_agent:
        errors.append(
            "USAJOBS_API_KEY is set but USAJOBS_USER_AGENT is not. "
            "USAJobs requires the registered email as User-Agent."
        )

    if usajobs_user_agent and not _is_valid_email(usajobs_user_agent):
        errors.append(
            f"Invalid email address format in USAJOBS_USER_AGENT: '{usajobs_user_agent}'"
        )

    if log_level:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(valid_levels)}"
            )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Remove partially configured providers or complete their credentials",
            ],
        )

    return EnvironmentConfig(
        adzuna_app_id=adzuna_app_id,
        adzuna_app_key=adzuna_app_key,
        jooble_api_key=_get("JOOBLE_API_KEY"),
        usajobs_api_key=usajobs_api_key,
        usajobs_user_agent=usajobs_user_agent,
        rapidapi_key=_get("RAPIDAPI_KEY"),
        cron_secret=_get("CRON_SECRET"),
        log_level=log_level.upper() if log_level else None,
        database_url=_get("DATABASE_URL"),
    )


def _get(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _is_valid_email(email: str) -> bool:
    """Simple regex-based email format check."""
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    return bool(re.match(pattern, email))
