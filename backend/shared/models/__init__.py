"""Shared data models for the stats collection backend."""

from .anr import Anr
from .setting import Setting, StatsSettings
from .stats import StatsData, StatsDataObject, StatsDateParams, StatsSeriesItem, StatsType

__all__ = [
    "Anr",
    "Setting",
    "StatsData",
    "StatsDataObject",
    "StatsDateParams",
    "StatsSeriesItem",
    "StatsSettings",
    "StatsType",
]
