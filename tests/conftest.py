"""Shared fixtures: in-memory repositories and a queued stats API transport."""

import json
from collections import deque
from uuid import UUID

import httpx
import pytest

from api.services import StatsAnrService, StatsApiClient
from shared.models.anr import Anr
from shared.models.setting import StatsSettings

STATS_API_URL = "http://stats.test"

ANRS = [
    Anr(id=1, uuid=UUID("0f4a0d5c-7c0e-4b5e-9a51-6d1b2c3a4b01"), label="ANR 1"),
    Anr(id=2, uuid=UUID("0f4a0d5c-7c0e-4b5e-9a51-6d1b2c3a4b02"), label="ANR 2"),
    Anr(id=3, uuid=UUID("0f4a0d5c-7c0e-4b5e-9a51-6d1b2c3a4b03"), label="ANR 3"),
    Anr(id=4, uuid=UUID("0f4a0d5c-7c0e-4b5e-9a51-6d1b2c3a4b04"), label="ANR 4"),
    Anr(
        id=5,
        uuid=UUID("0f4a0d5c-7c0e-4b5e-9a51-6d1b2c3a4b05"),
        label="ANR 1 snapshot",
        is_snapshot=True,
    ),
]

RISK_COUNTS = {
    1: {"low": 50, "medium": 30, "high": 10},
    2: {"low": 3, "medium": 0, "high": 1},
    4: {"low": 0, "medium": 7, "high": 2},
}


class QueuedResponses:
    """httpx.MockTransport handler answering with queued responses, in order."""

    def __init__(self) -> None:
        self.responses: deque[httpx.Response] = deque()
        self.requests: list[httpx.Request] = []

    def append(self, response: httpx.Response) -> None:
        self.responses.append(response)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self.responses.popleft()

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


def stats_response(results: list[dict] | None = None) -> httpx.Response:
    results = results or []
    return httpx.Response(
        200,
        json={
            "metadata": {"resultset": {"count": len(results), "offset": 0, "limit": 0}},
            "data": results,
        },
    )


def ok_response() -> httpx.Response:
    return httpx.Response(201, content=b'{"status": "ok"}')


def request_json(request: httpx.Request):
    return json.loads(request.content)


class FakeAnrRepository:
    def __init__(self, anrs: list[Anr]) -> None:
        self.anrs = anrs

    async def list_all(self, *, exclude_snapshots: bool = True) -> list[Anr]:
        return [a for a in self.anrs if not (exclude_snapshots and a.is_snapshot)]

    async def list_by_ids(self, anr_ids) -> list[Anr]:
        return sorted((a for a in self.anrs if a.id in set(anr_ids)), key=lambda a: a.id)


class FakeStatsRepository:
    def __init__(self, risk_counts=None, threats=None, vulnerabilities=None) -> None:
        self.risk_counts = risk_counts or {}
        self.threats = threats or {}
        self.vulnerabilities = vulnerabilities or {}

    async def count_risks_by_level(self, anr_ids):
        return {k: v for k, v in self.risk_counts.items() if k in anr_ids}

    async def list_top_threats(self, anr_ids, limit=10):
        return {k: v[:limit] for k, v in self.threats.items() if k in anr_ids}

    async def list_top_vulnerabilities(self, anr_ids, limit=10):
        return {k: v[:limit] for k, v in self.vulnerabilities.items() if k in anr_ids}


class FakeStatsSettingsService:
    def __init__(self, is_sharing_enabled: bool = True) -> None:
        self.settings = StatsSettings(is_sharing_enabled=is_sharing_enabled)

    async def get_settings(self) -> StatsSettings:
        return self.settings

    async def update_settings(self, is_sharing_enabled: bool) -> StatsSettings:
        self.settings = StatsSettings(is_sharing_enabled=is_sharing_enabled)
        return self.settings


@pytest.fixture
def mock_handler() -> QueuedResponses:
    return QueuedResponses()


@pytest.fixture
async def stats_api(mock_handler):
    client = StatsApiClient(
        base_url=STATS_API_URL,
        api_key="secret-key",
        transport=httpx.MockTransport(mock_handler),
    )
    yield client
    await client.close()


@pytest.fixture
def stats_service(stats_api) -> StatsAnrService:
    service = StatsAnrService(pool=None, stats_api=stats_api)  # type: ignore[arg-type]
    service.anr_repo = FakeAnrRepository(ANRS)
    service.stats_repo = FakeStatsRepository(risk_counts=RISK_COUNTS)
    service.settings_service = FakeStatsSettingsService()
    return service
