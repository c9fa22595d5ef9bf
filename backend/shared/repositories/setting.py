"""Repository for the settings table."""

from __future__ import annotations

import json
from typing import Any

import asyncpg

from shared.cache import AsyncTTLCache, cached
from shared.models.setting import Setting

_setting_cache = AsyncTTLCache(maxsize=16, ttl=300)


def _row_to_setting(row: asyncpg.Record) -> Setting:
    """Convert a DB row to Setting, parsing the JSON value if needed."""
    d = dict(row)
    value = d.get("value")
    if isinstance(value, str):
        d["value"] = json.loads(value)
    elif value is None:
        d["value"] = {}
    return Setting(**d)


class SettingRepository:
    """Pure SQL operations for named settings."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    @cached(cache=_setting_cache, key_func=lambda self, name: f"setting:{name}")
    async def get(self, name: str) -> Setting | None:
        """Return a setting by name, or None when it was never stored."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT name, value, updated_at FROM settings WHERE name = $1",
                name,
            )
            if not row:
                return None
            return _row_to_setting(row)

    async def upsert(self, name: str, value: dict[str, Any]) -> Setting:
        """Insert or replace a setting value."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO settings (name, value)
                VALUES ($1, $2::jsonb)
                ON CONFLICT (name) DO UPDATE SET
                    value      = EXCLUDED.value,
                    updated_at = NOW()
                RETURNING name, value, updated_at
                """,
                name,
                json.dumps(value),
            )
        _setting_cache.invalidate(f"setting:{name}")
        return _row_to_setting(row)
