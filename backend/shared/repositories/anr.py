"""Repository for the anrs table."""

from __future__ import annotations

from collections.abc import Sequence

import asyncpg

from shared.models.anr import Anr

_COLUMNS = (
    "id, uuid, label, low_threshold, high_threshold, is_snapshot, created_at, updated_at"
)


class AnrRepository:
    """Read-only SQL operations for analysis records."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def list_all(self, *, exclude_snapshots: bool = True) -> list[Anr]:
        """Return all ANRs ordered by id. Snapshots are skipped by default."""
        query = f"SELECT {_COLUMNS} FROM anrs"
        if exclude_snapshots:
            query += " WHERE is_snapshot = FALSE"
        query += " ORDER BY id"
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query)
            return [Anr(**dict(row)) for row in rows]

    async def list_by_ids(self, anr_ids: Sequence[int]) -> list[Anr]:
        """Return the ANRs matching *anr_ids*, ordered by id. Unknown ids are ignored."""
        if not anr_ids:
            return []
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {_COLUMNS} FROM anrs WHERE id = ANY($1::int[]) ORDER BY id",
                list(anr_ids),
            )
            return [Anr(**dict(row)) for row in rows]
