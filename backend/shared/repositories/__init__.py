"""Shared repository layer for the stats collection backend."""

from .anr import AnrRepository
from .setting import SettingRepository
from .stats import StatsRepository

__all__ = [
    "AnrRepository",
    "SettingRepository",
    "StatsRepository",
]
