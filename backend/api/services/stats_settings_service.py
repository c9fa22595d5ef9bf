"""Stats sharing settings"""

import logging

import asyncpg

from shared.models.setting import StatsSettings
from shared.repositories.setting import SettingRepository

logger = logging.getLogger(__name__)

STATS_SETTING_NAME = "stats"


class StatsSettingsService:
    """Read and update the ``stats`` setting"""

    def __init__(self, pool: asyncpg.Pool):
        self.setting_repo = SettingRepository(pool)

    async def get_settings(self) -> StatsSettings:
        setting = await self.setting_repo.get(STATS_SETTING_NAME)
        return StatsSettings.from_setting(setting)

    async def update_settings(self, is_sharing_enabled: bool) -> StatsSettings:
        settings = StatsSettings(is_sharing_enabled=is_sharing_enabled)
        await self.setting_repo.upsert(STATS_SETTING_NAME, settings.to_dict())
        logger.info(f"Stats sharing {'enabled' if is_sharing_enabled else 'disabled'}")
        return settings
