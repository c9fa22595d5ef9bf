"""Stats collection API routes"""

import logging
from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from api.core.dependencies import get_stats_anr_service, get_stats_settings_service
from api.services import (
    StatsAlreadyCollectedError,
    StatsAnrService,
    StatsApiError,
    StatsSettingsService,
    StatsSharingDisabledError,
    StatsValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])

# anrs.id is a PostgreSQL INTEGER
AnrId = Annotated[int, Field(ge=1, le=2**31 - 1)]


# ============================================
# Request / Response Models
# ============================================


class ResultSet(BaseModel):
    count: int = 0
    offset: int = 0
    limit: int = 0


class StatsMetadata(BaseModel):
    resultset: ResultSet = Field(default_factory=ResultSet)


class StatsResponse(BaseModel):
    metadata: StatsMetadata = Field(default_factory=StatsMetadata)
    data: list[dict[str, Any]] = Field(default_factory=list)


class CollectRequest(BaseModel):
    anr_ids: list[AnrId] | None = None
    force: bool = False


class CollectResponse(BaseModel):
    status: str
    collected: int


class StatsSettingsBody(BaseModel):
    is_sharing_enabled: bool


# ============================================
# Routes
# ============================================


@router.get("", response_model=StatsResponse)
async def get_stats(
    type: str = Query(..., description="Stats type: risk, threat or vulnerability"),
    anrs: list[AnrId] | None = Query(None, description="ANR ids to filter on"),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    aggregation_period: str | None = Query(None),
    service: StatsAnrService = Depends(get_stats_anr_service),
) -> StatsResponse:
    """Get the collected stats from the stats API"""
    try:
        result = await service.get_stats(
            type,
            anr_ids=anrs,
            date_from=date_from,
            date_to=date_to,
            aggregation_period=aggregation_period,
        )
    except StatsValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StatsApiError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return StatsResponse(**result)


@router.post("/collect", response_model=CollectResponse)
async def collect_stats(
    body: CollectRequest,
    service: StatsAnrService = Depends(get_stats_anr_service),
) -> CollectResponse:
    """Collect today's stats and send them to the stats API"""
    try:
        stats = await service.collect_stats(body.anr_ids, force=body.force)
    except StatsAlreadyCollectedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except StatsSharingDisabledError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except StatsApiError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return CollectResponse(status="ok", collected=len(stats))


@router.get("/settings", response_model=StatsSettingsBody)
async def get_stats_settings(
    service: StatsSettingsService = Depends(get_stats_settings_service),
) -> StatsSettingsBody:
    settings = await service.get_settings()
    return StatsSettingsBody(is_sharing_enabled=settings.is_sharing_enabled)


@router.patch("/settings", response_model=StatsSettingsBody)
async def update_stats_settings(
    body: StatsSettingsBody,
    service: StatsSettingsService = Depends(get_stats_settings_service),
) -> StatsSettingsBody:
    settings = await service.update_settings(body.is_sharing_enabled)
    return StatsSettingsBody(is_sharing_enabled=settings.is_sharing_enabled)
