"""Aggregate queries over instance_risks, threats and vulnerabilities."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import asyncpg

logger = logging.getLogger(__name__)

# Tables that can be ranked by the number of evaluated risks referencing them
_RANKED_SOURCES = {
    "threat": ("threats", "threat_id"),
    "vulnerability": ("vulnerabilities", "vulnerability_id"),
}


class StatsRepository:
    """Pure SQL aggregations used by the stats collection."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def count_risks_by_level(self, anr_ids: Sequence[int]) -> dict[int, dict[str, int]]:
        """Count evaluated informational risks per ANR, split by the ANR thresholds.

        Returns ``{anr_id: {"low": n, "medium": n, "high": n}}``. ANRs without
        risks are absent from the result.
        """
        if not anr_ids:
            return {}
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT
                    r.anr_id,
                    COUNT(*) FILTER (
                        WHERE r.cache_max_risk >= 0 AND r.cache_max_risk <= a.low_threshold
                    ) AS low,
                    COUNT(*) FILTER (
                        WHERE r.cache_max_risk > a.low_threshold
                          AND r.cache_max_risk <= a.high_threshold
                    ) AS medium,
                    COUNT(*) FILTER (WHERE r.cache_max_risk > a.high_threshold) AS high
                FROM instance_risks r
                JOIN anrs a ON a.id = r.anr_id
                WHERE r.anr_id = ANY($1::int[])
                GROUP BY r.anr_id
                """,
                list(anr_ids),
            )
            return {
                row["anr_id"]: {
                    "low": row["low"] or 0,
                    "medium": row["medium"] or 0,
                    "high": row["high"] or 0,
                }
                for row in rows
            }

    async def list_top_threats(
        self, anr_ids: Sequence[int], limit: int = 10
    ) -> dict[int, list[tuple[str, int]]]:
        """Most frequent threats among evaluated risks, per ANR."""
        return await self._list_top("threat", anr_ids, limit)

    async def list_top_vulnerabilities(
        self, anr_ids: Sequence[int], limit: int = 10
    ) -> dict[int, list[tuple[str, int]]]:
        """Most frequent vulnerabilities among evaluated risks, per ANR."""
        return await self._list_top("vulnerability", anr_ids, limit)

    async def _list_top(
        self, source: str, anr_ids: Sequence[int], limit: int
    ) -> dict[int, list[tuple[str, int]]]:
        table, column = _RANKED_SOURCES[source]
        if not anr_ids:
            return {}
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT anr_id, label, usage_count
                FROM (
                    SELECT
                        r.anr_id,
                        s.label,
                        COUNT(*) AS usage_count,
                        ROW_NUMBER() OVER (
                            PARTITION BY r.anr_id ORDER BY COUNT(*) DESC, s.label
                        ) AS rank
                    FROM instance_risks r
                    JOIN {table} s ON s.id = r.{column}
                    WHERE r.anr_id = ANY($1::int[]) AND r.cache_max_risk >= 0
                    GROUP BY r.anr_id, s.id, s.label
                ) ranked
                WHERE rank <= $2
                ORDER BY anr_id, rank
                """,  # noqa: S608
                list(anr_ids),
                limit,
            )

        result: dict[int, list[tuple[str, int]]] = {}
        for row in rows:
            result.setdefault(row["anr_id"], []).append((row["label"], row["usage_count"]))
        logger.debug(f"Ranked {source} stats for {len(result)} ANR(s)")
        return result
