"""Client for the remote stats collection API.

The API stores the daily stats data points of every ANR and serves them back
aggregated. Reads return ``{"metadata": {"resultset": {...}}, "data": [...]}``,
writes take a JSON array of data points and answer ``{"status": "ok"}``.
"""

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from api.services.exceptions import StatsFetchingError, StatsSendingError
from shared.models.stats import StatsDataObject

logger = logging.getLogger(__name__)

STATS_PATH = "/api/v1/stats"


class StatsApiClient:
    """Client for the stats API.

    Holds one shared httpx client for connection reuse. *transport* replaces
    the network layer (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not base_url:
            raise ValueError("Stats API base_url is required")

        self.base_url = base_url
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the shared HTTP client. Call on app shutdown."""
        await self._http.aclose()

    async def get_stats(self, params: dict[str, Any]) -> dict[str, Any]:
        """GET stats data matching *params* (list values are sent as repeated keys)."""
        try:
            response = await self._http.get(STATS_PATH, params=params)
        except httpx.HTTPError as e:
            logger.exception(f"Stats API GET {STATS_PATH} error: {e}")
            raise StatsFetchingError(f"Stats API is unreachable: {type(e).__name__}") from e

        if not response.is_success:
            logger.error(f"Failed to fetch stats: {response.status_code} {response.text}")
            raise StatsFetchingError(
                f"Stats API answered with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            logger.error(f"Unexpected stats API answer: {response.text[:200]}")
            raise StatsFetchingError(
                "Stats API answered with a body that is not a JSON object",
                status_code=response.status_code,
            )

        body.setdefault("data", [])
        return body

    async def send_stats_data(self, stats: Sequence[StatsDataObject]) -> None:
        """POST the data points as one JSON array."""
        payload = [item.to_dict() for item in stats]
        try:
            response = await self._http.post(STATS_PATH, json=payload)
        except httpx.HTTPError as e:
            logger.exception(f"Stats API POST {STATS_PATH} error: {e}")
            raise StatsSendingError(f"Stats API is unreachable: {type(e).__name__}") from e

        if not response.is_success:
            logger.error(f"Failed to send stats: {response.status_code} {response.text}")
            raise StatsSendingError(
                f"Stats API answered with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or body.get("status") != "ok":
            raise StatsSendingError(
                f"Unexpected stats API acknowledgment: {response.text}",
                status_code=response.status_code,
            )

        logger.debug(f"Stats API accepted {len(payload)} data point(s)")
