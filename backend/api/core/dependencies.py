"""Dependency injection utilities for FastAPI"""

import logging

import asyncpg
from fastapi import Depends, HTTPException

from api.core.config import get_settings
from api.core.database import get_database_manager
from api.services import StatsAnrService, StatsApiClient, StatsSettingsService

logger = logging.getLogger(__name__)


_stats_api: StatsApiClient | None = None


def get_stats_api() -> StatsApiClient:
    """Get shared StatsApiClient singleton (connection reuse)."""
    global _stats_api
    if _stats_api is None:
        settings = get_settings()
        _stats_api = StatsApiClient(
            base_url=settings.stats_api_url,
            api_key=settings.stats_api_key,
            timeout=settings.stats_api_timeout,
        )
    return _stats_api


async def close_stats_api() -> None:
    """Close the shared StatsApiClient. Call on app shutdown."""
    global _stats_api
    if _stats_api is not None:
        await _stats_api.close()
        _stats_api = None


def get_db_pool() -> asyncpg.Pool:
    db_manager = get_database_manager()
    if not db_manager.is_connected:
        raise HTTPException(status_code=503, detail="Database not ready")
    return db_manager.pool


def get_stats_anr_service(
    pool: asyncpg.Pool = Depends(get_db_pool),
    stats_api: StatsApiClient = Depends(get_stats_api),
) -> StatsAnrService:
    """Get StatsAnrService instance (dependency injection)"""
    return StatsAnrService(pool, stats_api)


def get_stats_settings_service(
    pool: asyncpg.Pool = Depends(get_db_pool),
) -> StatsSettingsService:
    """Get StatsSettingsService instance (dependency injection)"""
    return StatsSettingsService(pool)
