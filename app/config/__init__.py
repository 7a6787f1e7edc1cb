"""Configuration management for the job ingestion service."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config, validate_config_file
from .models import (
    AdvancedConfig,
    AppConfig,
    DedupConfig,
    LifecycleConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    RelevanceCriteria,
    SourceConfig,
    SourceType,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_app_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "SourceConfig",
    "RelevanceCriteria",
    "LifecycleConfig",
    "DedupConfig",
    "LoggingConfig",
    "AdvancedConfig",
    "EnvironmentConfig",
    # Enums
    "SourceType",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
