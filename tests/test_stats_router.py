"""Tests for the /api/stats routes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.core.dependencies import get_stats_anr_service, get_stats_settings_service
from api.routers import stats_router
from api.services import (
    StatsAlreadyCollectedError,
    StatsSendingError,
    StatsSharingDisabledError,
    StatsValidationError,
)
from conftest import FakeStatsSettingsService


class StubStatsAnrService:
    def __init__(self) -> None:
        self.collect_error: Exception | None = None
        self.get_error: Exception | None = None
        self.calls: list[tuple] = []

    async def collect_stats(self, anr_ids=None, *, force=False):
        self.calls.append(("collect", anr_ids, force))
        if self.collect_error:
            raise self.collect_error
        return [object(), object()]

    async def get_stats(self, stats_type, **filters):
        self.calls.append(("get", stats_type, filters))
        if self.get_error:
            raise self.get_error
        return {
            "metadata": {"resultset": {"count": 1, "offset": 0, "limit": 0}},
            "data": [{"type": stats_type}],
        }


@pytest.fixture
def stats_anr_service() -> StubStatsAnrService:
    return StubStatsAnrService()


@pytest.fixture
def settings_service() -> FakeStatsSettingsService:
    return FakeStatsSettingsService(is_sharing_enabled=False)


@pytest.fixture
def client(stats_anr_service, settings_service) -> TestClient:
    app = FastAPI()
    app.include_router(stats_router.router)
    app.dependency_overrides[get_stats_anr_service] = lambda: stats_anr_service
    app.dependency_overrides[get_stats_settings_service] = lambda: settings_service
    return TestClient(app)


class TestCollectRoute:
    def test_collects_for_all_anrs(self, client, stats_anr_service):
        response = client.post("/api/stats/collect", json={})

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "collected": 2}
        assert stats_anr_service.calls == [("collect", None, False)]

    def test_passes_ids_and_force(self, client, stats_anr_service):
        client.post("/api/stats/collect", json={"anr_ids": [1, 2, 3], "force": True})

        assert stats_anr_service.calls == [("collect", [1, 2, 3], True)]

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (StatsAlreadyCollectedError(), 409),
            (StatsSharingDisabledError(), 403),
            (StatsSendingError("down", status_code=500), 502),
        ],
    )
    def test_maps_errors_to_status_codes(self, client, stats_anr_service, error, status_code):
        stats_anr_service.collect_error = error

        response = client.post("/api/stats/collect", json={})

        assert response.status_code == status_code
        assert response.json()["detail"] == str(error)

    def test_already_collected_message(self, client, stats_anr_service):
        stats_anr_service.collect_error = StatsAlreadyCollectedError()

        response = client.post("/api/stats/collect", json={})

        assert response.json()["detail"] == "The stats is already collected for today."


class TestGetStatsRoute:
    def test_forwards_filters(self, client, stats_anr_service):
        response = client.get(
            "/api/stats",
            params={
                "type": "risk",
                "anrs": [1, 2],
                "date_from": "2024-01-01",
                "date_to": "2024-03-31",
                "aggregation_period": "month",
            },
        )

        assert response.status_code == 200
        assert response.json()["data"] == [{"type": "risk"}]
        _, stats_type, filters = stats_anr_service.calls[0]
        assert stats_type == "risk"
        assert filters["anr_ids"] == [1, 2]
        assert filters["date_from"].isoformat() == "2024-01-01"
        assert filters["aggregation_period"] == "month"

    def test_requires_type(self, client):
        assert client.get("/api/stats").status_code == 422

    def test_validation_error_is_bad_request(self, client, stats_anr_service):
        stats_anr_service.get_error = StatsValidationError("bad type")

        response = client.get("/api/stats", params={"type": "nope"})

        assert response.status_code == 400
        assert response.json()["detail"] == "bad type"


class TestSettingsRoutes:
    def test_get_and_update(self, client):
        assert client.get("/api/stats/settings").json() == {"is_sharing_enabled": False}

        response = client.patch("/api/stats/settings", json={"is_sharing_enabled": True})

        assert response.json() == {"is_sharing_enabled": True}
        assert client.get("/api/stats/settings").json() == {"is_sharing_enabled": True}


class TestAnrIdBounds:
    @pytest.mark.parametrize("anr_id", [0, 2**31])
    def test_collect_rejects_ids_outside_integer_column(self, client, stats_anr_service, anr_id):
        response = client.post("/api/stats/collect", json={"anr_ids": [1, anr_id]})

        assert response.status_code == 422
        assert stats_anr_service.calls == []

    def test_get_stats_rejects_ids_outside_integer_column(self, client, stats_anr_service):
        response = client.get("/api/stats", params={"type": "risk", "anrs": [2**31]})

        assert response.status_code == 422
        assert stats_anr_service.calls == []

    def test_collect_accepts_largest_integer_id(self, client, stats_anr_service):
        response = client.post("/api/stats/collect", json={"anr_ids": [2**31 - 1]})

        assert response.status_code == 200
        assert stats_anr_service.calls == [("collect", [2**31 - 1], False)]
