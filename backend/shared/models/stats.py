"""Data models for the stats collected per ANR and sent to the stats API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID


class StatsType(str, Enum):
    """Category of a stats data point."""

    RISK = "risk"
    THREAT = "threat"
    VULNERABILITY = "vulnerability"

    @classmethod
    def values(cls) -> list[str]:
        return [t.value for t in cls]


@dataclass(frozen=True)
class StatsDateParams:
    """Date partition keys stamped on every collected data point."""

    day: int
    week: int
    month: int
    year: int

    @classmethod
    def from_date(cls, value: date) -> StatsDateParams:
        """Day of year is 1-based, week is the ISO week, year is the calendar year."""
        return cls(
            day=value.timetuple().tm_yday,
            week=value.isocalendar()[1],
            month=value.month,
            year=value.year,
        )


@dataclass(frozen=True)
class StatsSeriesItem:
    label: str
    value: int

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class StatsData:
    """Chart-ready payload: one category (ANR label) with its series."""

    category: str
    series: tuple[StatsSeriesItem, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "series": [item.to_dict() for item in self.series],
        }


@dataclass(frozen=True)
class StatsDataObject:
    """A single stats data point of one ANR for one day."""

    type: StatsType
    anr: UUID
    data: StatsData
    date_params: StatsDateParams

    def to_dict(self) -> dict[str, Any]:
        """Serialize into the stats API wire format (ANR UUID, never the id)."""
        return {
            "type": self.type.value,
            "anr": str(self.anr),
            "data": self.data.to_dict(),
            "day": self.date_params.day,
            "week": self.date_params.week,
            "month": self.date_params.month,
            "year": self.date_params.year,
        }
