"""Activity endpoints for querying stored activities."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from league.activities.service import activity_service
from league.config import get_settings
from league.dependencies import get_session

router = APIRouter(prefix="/activities", tags=["activities"])


class ActivityResponse(BaseModel):
    """Activity response schema."""

    id: int
    athlete_id: int
    athlete_name: Optional[str] = None
    name: Optional[str] = None
    activity_type: Optional[str] = None
    distance: float
    elapsed_time: int
    elevation_gain: Optional[float] = None
    average_heartrate: Optional[float] = None
    total_photo_count: int = 0
    start_date: Optional[datetime] = None
    start_date_local: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


@router.get("/recent", response_model=list[ActivityResponse])
async def get_recent_activities(
    limit: int | None = Query(None, ge=1, le=200),
    db: AsyncSession = Depends(get_session),
):
    """Get recent activities across all athletes, newest local start first.

    Parameters
    ----------
    limit : int | None
        Maximum number of activities (default: ``RECENT_ACTIVITIES_LIMIT``)
    """
    limit = limit or get_settings().RECENT_ACTIVITIES_LIMIT
    return await activity_service.get_recent_activities(db, limit=limit)


@router.get("/athlete/{athlete_id}", response_model=list[ActivityResponse])
async def get_athlete_activities(
    athlete_id: int,
    limit: int = Query(30, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
):
    """Get activities for a specific athlete.

    Parameters
    ----------
    athlete_id : int
        Strava athlete ID
    limit : int
        Maximum number of activities to return (default: 30)
    offset : int
        Number of activities to skip (default: 0)
    """
    return await activity_service.get_athlete_activities(
        db, athlete_id=athlete_id, limit=limit, offset=offset
    )


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(activity_id: int, db: AsyncSession = Depends(get_session)):
    """Get a specific activity by ID.

    Parameters
    ----------
    activity_id : int
        Strava activity ID
    """
    activity = await activity_service.get_activity(db, activity_id)
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")
    return activity
