"""Data model for the anrs table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class Anr:
    """Analysis record (risk-assessment workspace)."""

    id: int
    uuid: UUID
    label: str
    low_threshold: int = 4
    high_threshold: int = 20
    is_snapshot: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

