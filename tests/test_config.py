"""Integration tests for configuration module."""

from pathlib import Path

import pytest

from app.config import (
    ConfigurationError,
    SourceType,
    load_config,
    parse_app_config,
    validate_config_file,
)
from app.config.duration import DurationParseError, parse_duration, validate_duration_range
from app.config.environment import EnvironmentConfig, load_environment_config
from app.config.validators import check_for_warnings

EXAMPLE_CONFIG = Path(__file__).parent.parent / "config.example.yaml"

ENV_VARS = (
    "ADZUNA_APP_ID",
    "ADZUNA_APP_KEY",
    "JOOBLE_API_KEY",
    "USAJOBS_API_KEY",
    "USAJOBS_USER_AGENT",
    "RAPIDAPI_KEY",
    "CRON_SECRET",
    "LOG_LEVEL",
    "DATABASE_URL",
)

MINIMAL_CONFIG = """
sources:
  - name: Talkiatry
    type: greenhouse
    identifier: talkiatry
"""


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def mock_env_vars(clean_env):
    clean_env.setenv("ADZUNA_APP_ID", "app-id")
    clean_env.setenv("ADZUNA_APP_KEY", "app-key")
    clean_env.setenv("JOOBLE_API_KEY", "jooble-key")
    clean_env.setenv("USAJOBS_API_KEY", "usajobs-key")
    clean_env.setenv("USAJOBS_USER_AGENT", "ops@example.com")
    clean_env.setenv("RAPIDAPI_KEY", "rapid-key")
    clean_env.setenv("CRON_SECRET", "s3cret")
    return clean_env


def write_config(tmp_path, content):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(content)
    return config_file


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_example_config(self, mock_env_vars):
        """The shipped example config is valid."""
        app_config, env_config = load_config(EXAMPLE_CONFIG)

        assert len(app_config.sources) == 9
        assert app_config.sources[0].type == SourceType.ADZUNA
        assert app_config.sources[0].identifier == "adzuna-us"
        assert [s.identifier for s in app_config.get_enabled_sources()] == [
            "adzuna-us",
            "jooble-us",
            "usajobs",
            "jsearch-us",
            "greenhouse-telehealth",
            "cerebral",
            "workday-health-systems",
            "smartrecruiters-agencies",
        ]
        greenhouse = app_config.get_source_by_identifier("greenhouse-telehealth")
        assert [(b.slug, b.name) for b in greenhouse.get_boards()] == [
            ("talkiatry", "Talkiatry"),
            ("brightside", "Brightside Health"),
        ]
        workday = app_config.get_source_by_identifier("workday-health-systems")
        assert workday.get_boards()[1].instance == 5
        assert workday.get_boards()[1].site == "Careers"
        assert env_config.rapidapi_key == "rapid-key"
        assert "pmhnp" in app_config.relevance.allow_terms
        assert app_config.scan_interval_seconds == 6 * 3600
        assert app_config.lifecycle.renewal_days == 60
        assert app_config.dedup.audit_log_max_rows == 5000
        assert app_config.logging.format == "key-value"
        assert env_config.cron_secret == "s3cret"

    def test_load_minimal_config(self, tmp_path, clean_env):
        """Test loading a minimal configuration with defaults."""
        app_config, env_config = load_config(write_config(tmp_path, MINIMAL_CONFIG))

        assert len(app_config.sources) == 1
        assert app_config.scan_interval == "6h"
        assert app_config.lifecycle.expiry_days == 30
        assert app_config.lifecycle.summary_length == 300
        assert app_config.dedup.audit_log_retention_days == 30
        assert app_config.advanced.http_request_timeout == 10
        assert app_config.advanced.max_jobs_per_source == 1000
        assert "psychiatrist" in app_config.relevance.exclude_terms
        assert env_config.has_credentials_for("adzuna") is False

    def test_load_iso8601_duration_config(self, tmp_path, clean_env):
        config_file = write_config(tmp_path, MINIMAL_CONFIG + 'scan_interval: "PT30M"\n')
        app_config, _ = load_config(config_file)

        assert app_config.scan_interval_seconds == 1800

    def test_config_file_not_found(self, clean_env):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(Path("nonexistent.yaml"))

    def test_invalid_yaml_syntax(self, tmp_path, clean_env):
        config_file = write_config(tmp_path, "sources:\n  - name: [unclosed\n")

        with pytest.raises(ConfigurationError, match="YAML"):
            load_config(config_file)

    def test_empty_config_file(self, tmp_path, clean_env):
        with pytest.raises(ConfigurationError, match="empty"):
            load_config(write_config(tmp_path, ""))


class TestConfigurationValidation:
    """Test configuration validation errors."""

    def _errors(self, config_dict):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_app_config(config_dict)
        return exc_info.value.errors

    def test_missing_required_field_sources(self):
        errors = self._errors({"scan_interval": "6h"})
        assert "Missing required field: sources" in errors

    def test_invalid_source_type(self):
        errors = self._errors(
            {"sources": [{"name": "Monster", "type": "monster", "identifier": "m"}]}
        )
        assert any("sources -> 0 -> type" in error for error in errors)

    def test_duplicate_sources(self):
        source = {"name": "Talkiatry", "type": "greenhouse", "identifier": "talkiatry"}
        errors = self._errors({"sources": [source, dict(source)]})
        assert any("Duplicate source" in error for error in errors)

    def test_all_sources_disabled(self):
        errors = self._errors(
            {"sources": [{"name": "T", "type": "lever", "identifier": "t", "enabled": False}]}
        )
        assert any("At least one source must be enabled" in error for error in errors)

    def test_conflicting_terms(self):
        errors = self._errors(
            {
                "sources": [{"name": "T", "type": "lever", "identifier": "t"}],
                "relevance": {"allow_terms": ["pmhnp"], "exclude_terms": ["PMHNP"]},
            }
        )
        assert any("both allowed and excluded" in error for error in errors)

    def test_empty_allow_terms(self):
        errors = self._errors(
            {
                "sources": [{"name": "T", "type": "lever", "identifier": "t"}],
                "relevance": {"allow_terms": ["  "]},
            }
        )
        assert any("allow_terms" in error for error in errors)

    def test_scan_interval_too_short(self):
        errors = self._errors(
            {"sources": [{"name": "T", "type": "lever", "identifier": "t"}], "scan_interval": "1m"}
        )
        assert any("scan_interval" in error for error in errors)

    @pytest.mark.parametrize("timeout", [4, 11])
    def test_request_timeout_range(self, timeout):
        errors = self._errors(
            {
                "sources": [{"name": "T", "type": "lever", "identifier": "t"}],
                "advanced": {"http_request_timeout": timeout},
            }
        )
        assert any("http_request_timeout" in error for error in errors)

    def test_summary_length_range(self):
        errors = self._errors(
            {
                "sources": [{"name": "T", "type": "lever", "identifier": "t"}],
                "lifecycle": {"summary_length": 10},
            }
        )
        assert any("summary_length" in error for error in errors)

    def test_source_queries_default(self):
        config = parse_app_config(
            {"sources": [{"name": "Adzuna", "type": "adzuna", "identifier": "adzuna-us"}]}
        )
        assert "PMHNP" in config.sources[0].get_queries()

    def test_single_board_defaults_to_identifier(self):
        config = parse_app_config(
            {"sources": [{"name": "Talkiatry", "type": "greenhouse", "identifier": "talkiatry"}]}
        )
        boards = config.sources[0].get_boards()
        assert [(b.slug, b.name) for b in boards] == [("talkiatry", "Talkiatry")]

    def test_board_slugs_expand_to_names(self):
        config = parse_app_config(
            {
                "sources": [
                    {
                        "name": "Telehealth",
                        "type": "lever",
                        "identifier": "telehealth",
                        "boards": ["mind-path", {"slug": "cerebral", "name": "Cerebral Inc"}],
                    }
                ]
            }
        )
        boards = config.sources[0].get_boards()
        assert [(b.slug, b.name) for b in boards] == [
            ("mind-path", "Mind Path"),
            ("cerebral", "Cerebral Inc"),
        ]

    def test_duplicate_board_slug(self):
        errors = self._errors(
            {
                "sources": [
                    {"name": "T", "type": "greenhouse", "identifier": "t", "boards": ["a", "a"]}
                ]
            }
        )
        assert any("Duplicate board slug" in error for error in errors)

    def test_workday_board_requires_instance_and_site(self):
        errors = self._errors(
            {
                "sources": [
                    {
                        "name": "Health systems",
                        "type": "workday",
                        "identifier": "workday",
                        "boards": [{"slug": "trinityhealth", "name": "Trinity Health", "instance": 1}],
                    }
                ]
            }
        )
        assert any("requires 'instance' and 'site'" in error for error in errors)


class TestConfigurationWarnings:
    def test_disabled_source_warns(self):
        warnings = check_for_warnings(
            {"sources": [{"name": "Headway", "type": "ashby", "enabled": False}]}
        )
        assert warnings == ["Source 'Headway' is disabled and will be skipped"]

    def test_expensive_search_source_warns(self):
        warnings = check_for_warnings(
            {
                "sources": [
                    {"name": "Adzuna", "type": "adzuna", "queries": ["q"] * 30, "max_pages": 5}
                ]
            }
        )
        assert any("150 calls per run" in w for w in warnings)

    def test_short_renewal_warns(self):
        warnings = check_for_warnings({"lifecycle": {"expiry_days": 30, "renewal_days": 7}})
        assert any("renewal_days" in w for w in warnings)

    def test_clean_config_has_no_warnings(self):
        assert check_for_warnings({"sources": [{"name": "T", "type": "lever"}]}) == []


class TestDurationParsing:
    """Test duration parsing functionality."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("15m", 900),
            ("2h", 7200),
            ("30s", 30),
            ("1d", 86400),
            ("1h30m", 5400),
            ("PT15M", 900),
            ("PT2H", 7200),
            ("PT1H30M", 5400),
            ("P1D", 86400),
        ],
    )
    def test_parse_duration(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["invalid", "", "15x"])
    def test_parse_invalid_format(self, value):
        with pytest.raises(DurationParseError):
            parse_duration(value)

    def test_validate_duration_range_too_short(self):
        with pytest.raises(DurationParseError):
            validate_duration_range(60, min_seconds=300, max_seconds=86400)

    def test_validate_duration_range_too_long(self):
        with pytest.raises(DurationParseError):
            validate_duration_range(100000, min_seconds=300, max_seconds=86400)

    def test_validate_duration_range_valid(self):
        validate_duration_range(900, min_seconds=300, max_seconds=86400)


class TestEnvironmentVariables:
    """Test environment variable loading and validation."""

    def test_load_valid_environment_config(self, mock_env_vars):
        env_config = load_environment_config()

        assert env_config.adzuna_app_id == "app-id"
        assert env_config.jooble_api_key == "jooble-key"
        assert env_config.usajobs_user_agent == "ops@example.com"
        assert env_config.cron_secret == "s3cret"
        assert env_config.database_url.startswith("sqlite:///")

    def test_all_variables_optional(self, clean_env):
        env_config = load_environment_config()

        assert env_config.adzuna_app_id is None
        assert env_config.cron_secret is None
        assert env_config.log_level is None

    def test_adzuna_pair_required(self, clean_env):
        clean_env.setenv("ADZUNA_APP_ID", "app-id")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert "ADZUNA_APP_ID and ADZUNA_APP_KEY" in str(exc_info.value)

    def test_usajobs_requires_user_agent(self, clean_env):
        clean_env.setenv("USAJOBS_API_KEY", "usajobs-key")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert "USAJOBS_USER_AGENT" in str(exc_info.value)

    def test_invalid_email_format(self, clean_env):
        clean_env.setenv("USAJOBS_API_KEY", "usajobs-key")
        clean_env.setenv("USAJOBS_USER_AGENT", "invalid-email")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert "email" in str(exc_info.value).lower()

    def test_invalid_log_level(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError, match="LOG_LEVEL"):
            load_environment_config()

    def test_log_level_uppercased_and_blank_ignored(self, clean_env):
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("JOOBLE_API_KEY", "   ")

        env_config = load_environment_config()

        assert env_config.log_level == "DEBUG"
        assert env_config.jooble_api_key is None


class TestCredentials:
    @pytest.mark.parametrize(
        "env_kwargs,source_type,expected",
        [
            ({}, "greenhouse", True),
            ({}, "lever", True),
            ({}, "ashby", True),
            ({}, "adzuna", False),
            ({"adzuna_app_id": "id"}, "adzuna", False),
            ({"adzuna_app_id": "id", "adzuna_app_key": "key"}, "adzuna", True),
            ({"jooble_api_key": "key"}, "jooble", True),
            ({"usajobs_api_key": "key"}, "usajobs", False),
            ({"usajobs_api_key": "key", "usajobs_user_agent": "ops@example.com"}, "usajobs", True),
            ({}, "jsearch", False),
            ({"rapidapi_key": "key"}, "jsearch", True),
            ({}, "workday", True),
            ({}, "smartrecruiters", True),
        ],
    )
    def test_has_credentials_for(self, env_kwargs, source_type, expected):
        assert EnvironmentConfig(**env_kwargs).has_credentials_for(source_type) is expected


class TestConfigurationHelpers:
    """Test configuration helper methods."""

    def test_get_source_by_identifier(self):
        config = parse_app_config(
            {
                "sources": [
                    {"name": "A", "type": "lever", "identifier": "a"},
                    {"name": "B", "type": "greenhouse", "identifier": "b", "enabled": False},
                ]
            }
        )
        assert config.get_source_by_identifier("b").name == "B"
        assert config.get_source_by_identifier("missing") is None
        assert [s.identifier for s in config.get_enabled_sources()] == ["a"]

    def test_validate_config_file_utility(self, tmp_path, capsys):
        assert validate_config_file(EXAMPLE_CONFIG) is True
        assert validate_config_file(write_config(tmp_path, "scan_interval: 6h\n")) is False
        assert "validation failed" in capsys.readouterr().out
