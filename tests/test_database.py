"""Tests for the database pool manager."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from shared.database import DatabaseManager, PoolConfig


def make_pool(conn: AsyncMock) -> MagicMock:
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    pool.acquire.return_value.__aexit__.return_value = False
    pool.close = AsyncMock()
    return pool


@pytest.fixture
def manager() -> DatabaseManager:
    return DatabaseManager("postgresql://stats@localhost/stats", PoolConfig(max_retries=1))


class TestDatabaseManager:
    @pytest.mark.asyncio
    async def test_connect_publishes_verified_pool(self, monkeypatch, manager):
        conn = AsyncMock()
        pool = make_pool(conn)
        monkeypatch.setattr(asyncpg, "create_pool", AsyncMock(return_value=pool))

        await manager.connect()

        assert manager.is_connected
        assert manager.pool is pool

    @pytest.mark.asyncio
    async def test_failed_check_closes_pool(self, monkeypatch, manager):
        conn = AsyncMock()
        conn.fetchval.side_effect = ConnectionError("refused")
        pool = make_pool(conn)
        monkeypatch.setattr(asyncpg, "create_pool", AsyncMock(return_value=pool))

        with pytest.raises(ConnectionError):
            await manager.connect()

        assert not manager.is_connected
        pool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_timed_out_connect_leaves_manager_disconnected(self, monkeypatch, manager):
        async def hang(*args, **kwargs):
            await asyncio.Event().wait()

        conn = AsyncMock()
        conn.fetchval.side_effect = hang
        pool = make_pool(conn)
        monkeypatch.setattr(asyncpg, "create_pool", AsyncMock(return_value=pool))

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(manager.connect(), timeout=0.05)

        assert not manager.is_connected
        pool.terminate.assert_called_once()
