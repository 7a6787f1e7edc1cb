"""End-to-end ingestion tests.

Runs the full lifecycle (fetch, relevance filter, normalize, dedup, persist,
stats, expiry sweep) against fixture-backed adapters, then reads the results
back through analytics and the HTTP trigger.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from app.analytics import get_all_source_performance, get_daily_trends
from app.api import create_app
from app.config.environment import EnvironmentConfig
from app.config.models import AppConfig, SourceConfig
from app.persistence import (
    CompanyRepository,
    DuplicateAuditRepository,
    JobRepository,
    close_database,
    get_session,
    init_database,
)
from app.pipeline import LifecycleManager, RunState
from tests.helpers import FixtureAdapter

FIXTURE_PATH = Path(__file__).parent.parent / "fixtures" / "sample_jobs.yaml"
SECRET = "integration-secret"


@pytest.fixture
def database(tmp_path):
    init_database(f"sqlite:///{tmp_path / 'ingestion.db'}")
    yield
    close_database()


@pytest.fixture
def app_config():
    return AppConfig(
        sources=[
            SourceConfig(name="Talkiatry", type="greenhouse", identifier="talkiatry"),
            SourceConfig(name="Talkiatry", type="lever", identifier="talkiatry-lever"),
        ],
        lifecycle={"max_workers": 1},
    )


@pytest.fixture
def fixture_adapter():
    return FixtureAdapter(fixture_path=FIXTURE_PATH, request_delay=0)


@pytest.fixture
def manager(database, app_config, fixture_adapter):
    def get_adapter(source_config, advanced_config, env_config=None, relevance=None):
        fixture_adapter.relevance = relevance
        return fixture_adapter

    with patch("app.pipeline.runner.get_adapter", side_effect=get_adapter):
        yield LifecycleManager(app_config, EnvironmentConfig(cron_secret=SECRET))


def test_first_run_populates_catalog(manager):
    result = manager.run_once()

    assert result.state == RunState.COMPLETE
    assert result.success is True
    assert result.total_fetched == 4
    assert result.total_added == 3
    assert result.total_duplicates == 1
    assert result.total_errors == 0

    with get_session() as session:
        jobs = JobRepository(session)
        assert jobs.count_active_by_source() == {"greenhouse": 2, "lever": 1}
        assert jobs.get_by_external_id("greenhouse", "gh_103") is None
        assert jobs.get_by_external_id("lever", "lever_201") is None

        companies = CompanyRepository(session).list_all()
        assert len(companies) == 1
        assert companies[0].job_count == 3
        assert companies[0].is_verified is True

        assert DuplicateAuditRepository(session).count() == 1


def test_second_run_updates_without_growth(manager):
    first = manager.run_once()
    second = manager.run_once()

    assert first.total_added == 3
    assert second.total_added == 0
    assert second.total_updated == 3
    assert second.total_duplicates == 1

    with get_session() as session:
        assert JobRepository(session).count_active() == 3
        assert CompanyRepository(session).list_all()[0].job_count == 3

        performance = {p.source: p for p in get_all_source_performance(session)}
        trends = get_daily_trends(session, days=1)

    assert performance["lever"].total_fetched == 4
    assert performance["lever"].total_duplicates == 2
    assert performance["lever"].duplicate_rate == 0.5
    assert performance["greenhouse"].total_active == 2
    assert performance["greenhouse"].duplicate_rate == 0.0
    assert trends[0]["jobs_added"] == 3


def test_http_trigger_runs_selected_source(manager):
    client = create_app(manager, SECRET).test_client()

    response = client.post(
        "/api/cron/ingest?source=talkiatry",
        headers={"Authorization": f"Bearer {SECRET}"},
    )

    assert response.status_code == 200
    summary = response.get_json()
    assert summary["success"] is True
    assert summary["ingestion"]["summary"]["total_added"] == 2
    assert [r["source"] for r in summary["ingestion"]["results"]] == ["talkiatry"]

    stats = client.get("/api/stats", headers={"Authorization": f"Bearer {SECRET}"})
    assert stats.status_code == 200
    assert stats.get_json()["current_stats"]["total_active"] == 2
