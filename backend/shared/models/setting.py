"""Data models for the settings table."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Setting:
    """Named application setting with a JSON value."""

    name: str
    value: dict[str, Any] = field(default_factory=dict)
    updated_at: datetime | None = None


@dataclass
class StatsSettings:
    """Value of the ``stats`` setting."""

    is_sharing_enabled: bool = False

    @classmethod
    def from_setting(cls, setting: Setting | None) -> StatsSettings:
        if setting is None:
            return cls()
        return cls(is_sharing_enabled=bool(setting.value.get("is_sharing_enabled", False)))

    def to_dict(self) -> dict[str, Any]:
        return {"is_sharing_enabled": self.is_sharing_enabled}
