"""Services layer - Business logic

Services are initialized with their dependencies and accessed through dependency injection.
"""

from .exceptions import (
    StatsAlreadyCollectedError,
    StatsApiError,
    StatsError,
    StatsFetchingError,
    StatsSendingError,
    StatsSharingDisabledError,
    StatsValidationError,
)
from .stats_api import StatsApiClient
from .stats_service import StatsAnrService
from .stats_settings_service import StatsSettingsService

__all__ = [
    "StatsAlreadyCollectedError",
    "StatsAnrService",
    "StatsApiClient",
    "StatsApiError",
    "StatsError",
    "StatsFetchingError",
    "StatsSendingError",
    "StatsSettingsService",
    "StatsSharingDisabledError",
    "StatsValidationError",
]
