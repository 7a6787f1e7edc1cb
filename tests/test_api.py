"""Tests for the HTTP ingestion trigger."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from app.api import create_app
from app.config.exceptions import ConfigurationError
from app.persistence import close_database, init_database
from app.pipeline import LifecycleManager, PipelineRunResult, RunState, SourceRunStats, SourceState

SECRET = "s3cret-token"
AUTH = {"Authorization": f"Bearer {SECRET}"}
NOW = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)


def make_result(**overrides):
    data = {
        "run_started_at": NOW,
        "run_finished_at": NOW,
        "run_id": "abc123",
        "state": RunState.COMPLETE,
        "source_stats": [
            SourceRunStats(
                source_id="acme",
                source_type="greenhouse",
                state=SourceState.DONE,
                fetched=2,
                added=2,
            )
        ],
    }
    data.update(overrides)
    return PipelineRunResult(**data)


@pytest.fixture
def manager():
    manager = Mock(spec=LifecycleManager)
    manager.is_running = False
    manager.run_once.return_value = make_result()
    return manager


@pytest.fixture
def client(manager):
    app = create_app(manager, SECRET)
    app.config["TESTING"] = True
    return app.test_client()


class TestAuthorization:
    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": SECRET},
            {"Authorization": "Bearer wrong"},
            {"Authorization": f"Basic {SECRET}"},
        ],
    )
    def test_rejects_missing_or_wrong_secret(self, client, manager, headers):
        response = client.get("/api/cron/ingest", headers=headers)

        assert response.status_code == 401
        assert response.get_json() == {"error": "Unauthorized"}
        manager.run_once.assert_not_called()

    def test_unset_secret_rejects_everything(self, manager):
        client = create_app(manager, None).test_client()

        response = client.get("/api/cron/ingest", headers={"Authorization": "Bearer "})

        assert response.status_code == 401
        manager.run_once.assert_not_called()

    def test_stats_requires_secret(self, client):
        assert client.get("/api/stats").status_code == 401


class TestIngest:
    @pytest.mark.parametrize("method", ["get", "post"])
    def test_runs_and_returns_summary(self, client, manager, method):
        response = getattr(client, method)("/api/cron/ingest", headers=AUTH)

        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert body["run_id"] == "abc123"
        assert body["ingestion"]["summary"]["total_added"] == 2
        assert body["ingestion"]["results"][0]["source"] == "acme"
        manager.run_once.assert_called_once_with(source_ids=None)

    def test_source_filter(self, client, manager):
        client.get("/api/cron/ingest?source=acme,lever&source=usajobs", headers=AUTH)

        manager.run_once.assert_called_once_with(source_ids=["acme", "lever", "usajobs"])

    def test_skipped_run_is_conflict(self, client, manager):
        manager.run_once.return_value = make_result(skipped=True, source_stats=[])

        response = client.post("/api/cron/ingest", headers=AUTH)

        assert response.status_code == 409
        assert response.get_json()["skipped"] is True
        assert response.get_json()["success"] is False

    def test_configuration_error(self, client, manager):
        manager.run_once.side_effect = ConfigurationError(
            "No enabled source has usable credentials",
            errors=["adzuna-us (adzuna): credentials missing"],
        )

        response = client.post("/api/cron/ingest", headers=AUTH)

        assert response.status_code == 500
        body = response.get_json()
        assert body["success"] is False
        assert body["error"] == "No enabled source has usable credentials"
        assert body["errors"] == ["adzuna-us (adzuna): credentials missing"]
        assert body["timestamp"].endswith("Z")

    def test_unexpected_error(self, client, manager):
        manager.run_once.side_effect = RuntimeError("database is locked")

        response = client.post("/api/cron/ingest", headers=AUTH)

        assert response.status_code == 500
        body = response.get_json()
        assert body["success"] is False
        assert body["error"] == "database is locked"
        assert "timestamp" in body


class TestHealth:
    def test_health_is_public(self, client, manager):
        manager.is_running = True

        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.get_json() == {"status": "ok", "running": True}


class TestStats:
    @pytest.fixture
    def temp_database(self, tmp_path):
        init_database(f"sqlite:///{tmp_path / 'api.db'}")
        yield
        close_database()

    def test_stats_payload(self, client, temp_database):
        response = client.get("/api/stats?days=7", headers=AUTH)

        assert response.status_code == 200
        body = response.get_json()
        assert body["current_stats"] == {"total_active": 0, "by_source": {}, "added_last_24h": 0}
        assert body["sources"] == []
        assert len(body["daily_trends"]) == 7
