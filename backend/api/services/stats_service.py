"""Daily collection of ANR stats and read-through of the collected ones"""

import calendar
import logging
from collections.abc import Sequence
from datetime import date
from typing import Any

import asyncpg

from api.services.exceptions import (
    StatsAlreadyCollectedError,
    StatsSharingDisabledError,
    StatsValidationError,
)
from api.services.stats_api import StatsApiClient
from api.services.stats_settings_service import StatsSettingsService
from shared.models.anr import Anr
from shared.models.stats import (
    StatsData,
    StatsDataObject,
    StatsDateParams,
    StatsSeriesItem,
    StatsType,
)
from shared.repositories.anr import AnrRepository
from shared.repositories.stats import StatsRepository

logger = logging.getLogger(__name__)

RISK_LEVEL_LABELS = (
    ("low", "Low risks"),
    ("medium", "Medium risks"),
    ("high", "High risks"),
)

AGGREGATION_PERIODS = ("day", "week", "month", "quarter", "year")

DEFAULT_PERIOD_MONTHS = 3


def _months_before(value: date, months: int) -> date:
    """Same day *months* earlier, clamped to the end of a shorter month."""
    month_index = value.year * 12 + value.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _empty_result() -> dict[str, Any]:
    return {"metadata": {"resultset": {"count": 0, "offset": 0, "limit": 0}}, "data": []}


class StatsAnrService:
    """Collect the stats of the ANRs once per day and send them to the stats API"""

    def __init__(self, pool: asyncpg.Pool, stats_api: StatsApiClient, top_limit: int = 10):
        self.stats_api = stats_api
        self.top_limit = top_limit
        self.anr_repo = AnrRepository(pool)
        self.stats_repo = StatsRepository(pool)
        self.settings_service = StatsSettingsService(pool)

    async def collect_stats(
        self,
        anr_ids: Sequence[int] | None = None,
        *,
        force: bool = False,
        today: date | None = None,
    ) -> list[StatsDataObject]:
        """Collect and send today's stats for *anr_ids* (all ANRs when empty).

        Raises StatsAlreadyCollectedError when the stats API already holds data
        for today, unless *force* is set. Nothing is sent when no data point is
        produced. Returns the data points that were sent.
        """
        settings = await self.settings_service.get_settings()
        if not settings.is_sharing_enabled:
            raise StatsSharingDisabledError()

        today = today or date.today()
        if not force and await self.is_collected_for(today):
            logger.warning(f"Stats already collected for {today.isoformat()}")
            raise StatsAlreadyCollectedError()

        if anr_ids:
            anrs = await self.anr_repo.list_by_ids(anr_ids)
        else:
            anrs = await self.anr_repo.list_all()

        stats = await self.aggregate(anrs, StatsDateParams.from_date(today))
        if not stats:
            logger.info("No stats data to send")
            return []

        await self.stats_api.send_stats_data(stats)
        logger.info(f"Sent {len(stats)} stats data point(s) for {len(anrs)} ANR(s)")
        return stats

    async def is_collected_for(self, day: date) -> bool:
        """Check whether the stats API already holds data for *day*"""
        result = await self.stats_api.get_stats(
            {
                "type": StatsType.values(),
                "date_from": day.isoformat(),
                "date_to": day.isoformat(),
                "limit": 1,
            }
        )
        return bool(result["data"])

    async def aggregate(
        self, anrs: Sequence[Anr], date_params: StatsDateParams
    ) -> list[StatsDataObject]:
        """Build the data points: risk levels of every ANR, then top threats, then top vulnerabilities"""
        if not anrs:
            return []

        anr_ids = [anr.id for anr in anrs]
        risk_counts = await self.stats_repo.count_risks_by_level(anr_ids)
        top_threats = await self.stats_repo.list_top_threats(anr_ids, self.top_limit)
        top_vulnerabilities = await self.stats_repo.list_top_vulnerabilities(
            anr_ids, self.top_limit
        )

        stats = [
            StatsDataObject(
                type=StatsType.RISK,
                anr=anr.uuid,
                data=StatsData(
                    category=anr.label,
                    series=tuple(
                        StatsSeriesItem(label=label, value=risk_counts.get(anr.id, {}).get(key, 0))
                        for key, label in RISK_LEVEL_LABELS
                    ),
                ),
                date_params=date_params,
            )
            for anr in anrs
        ]
        for stats_type, ranking in (
            (StatsType.THREAT, top_threats),
            (StatsType.VULNERABILITY, top_vulnerabilities),
        ):
            stats.extend(
                StatsDataObject(
                    type=stats_type,
                    anr=anr.uuid,
                    data=StatsData(
                        category=anr.label,
                        series=tuple(
                            StatsSeriesItem(label=label, value=count)
                            for label, count in ranking[anr.id]
                        ),
                    ),
                    date_params=date_params,
                )
                for anr in anrs
                if ranking.get(anr.id)
            )

        return stats

    async def get_stats(
        self,
        stats_type: str,
        *,
        anr_ids: Sequence[int] | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        aggregation_period: str | None = None,
    ) -> dict[str, Any]:
        """Fetch collected stats from the stats API for display"""
        try:
            stats_type = StatsType(stats_type).value
        except ValueError:
            raise StatsValidationError(
                f"Stats type should be one of: {', '.join(StatsType.values())}"
            ) from None

        if aggregation_period is not None and aggregation_period not in AGGREGATION_PERIODS:
            raise StatsValidationError(
                f"Aggregation period should be one of: {', '.join(AGGREGATION_PERIODS)}"
            )

        date_to = date_to or date.today()
        date_from = date_from or _months_before(date_to, DEFAULT_PERIOD_MONTHS)
        if date_from > date_to:
            raise StatsValidationError("date_from should be before or equal to date_to")

        params: dict[str, Any] = {
            "type": stats_type,
            "date_from": date_from.isoformat(),
            "date_to": date_to.isoformat(),
        }
        if aggregation_period:
            params["aggregation_period"] = aggregation_period

        if anr_ids:
            anrs = await self.anr_repo.list_by_ids(anr_ids)
            if not anrs:
                return _empty_result()
            params["anrs"] = [str(anr.uuid) for anr in anrs]

        return await self.stats_api.get_stats(params)
