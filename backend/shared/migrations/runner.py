"""SQL file migrations with a tracking table."""

from __future__ import annotations

import logging
from pathlib import Path

import asyncpg

logger = logging.getLogger(__name__)

VERSIONS_DIR = Path(__file__).resolve().parent / "versions"


class MigrationRunner:
    """Apply ``versions/NNN_description.sql`` files once each, in order.

    Applied versions are recorded in ``schema_migrations``.
    """

    TRACKING_TABLE = "schema_migrations"

    def __init__(self, pool: asyncpg.Pool, migrations_dir: Path | None = None) -> None:
        self.pool = pool
        self.migrations_dir = migrations_dir or VERSIONS_DIR

    async def ensure_table(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.TRACKING_TABLE} (
                    version    TEXT PRIMARY KEY,
                    name       TEXT NOT NULL,
                    applied_at TIMESTAMPTZ DEFAULT NOW()
                )
                """
            )

    async def get_applied(self) -> set[str]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT version FROM {self.TRACKING_TABLE}")  # noqa: S608
            return {row["version"] for row in rows}

    async def list_pending(self) -> list[Path]:
        """Return migration files not applied yet, sorted by version."""
        await self.ensure_table()
        applied = await self.get_applied()
        return [p for p in sorted(self.migrations_dir.glob("*.sql")) if p.stem not in applied]

    async def run_pending(self) -> list[str]:
        """Apply every pending migration. Returns the applied versions."""
        pending = await self.list_pending()
        if not pending:
            logger.info("Database is up to date, no pending migrations")
            return []

        for sql_path in pending:
            await self._apply_one(sql_path)

        versions = [p.stem for p in pending]
        logger.info(f"Applied {len(versions)} migration(s): {', '.join(versions)}")
        return versions

    async def _apply_one(self, sql_path: Path) -> None:
        """Execute one migration and record it in the same transaction."""
        logger.info(f"Applying migration: {sql_path.stem}")
        sql = sql_path.read_text(encoding="utf-8")
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(sql)
                await conn.execute(
                    f"INSERT INTO {self.TRACKING_TABLE} (version, name) VALUES ($1, $2)",
                    sql_path.stem,
                    sql_path.name,
                )
