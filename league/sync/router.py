"""API routes for syncing activities."""

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from league.dependencies import get_session
from league.strava.exceptions import AccessUnauthorized, StravaException
from league.sync.service import sync_service

router = APIRouter(prefix="/sync", tags=["sync"])


class SyncRequest(BaseModel):
    """Request model for syncing activities."""

    access_token: str = Field(
        ...,
        min_length=1,
        description="The athlete's Strava access token",
    )


class SyncResponse(BaseModel):
    """Response model for sync operation."""

    athlete_id: int
    inserted_count: int
    message: str


def _failure(status_code: int, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"message": message, "inserted_count": 0},
    )


@router.post("/activities", response_model=SyncResponse)
async def sync_activities(
    request: SyncRequest,
    db: AsyncSession = Depends(get_session),
):
    """Pull the athlete's most recent activities from Strava and store them.

    Safe to call repeatedly: activities already stored unchanged are not
    counted, changed ones are overwritten.

    Parameters
    ----------
    request : SyncRequest
        Carries the athlete's access token
    db : AsyncSession
        Database session (injected)

    Returns
    -------
    SyncResponse
        Number of new or changed activities and a message for the athlete

    Raises
    ------
    HTTPException
        401 if Strava rejects the token, 502 if Strava fails or returns
        something unexpected, 500 if the activities cannot be stored
    """
    try:
        result = await sync_service.sync_athlete(db, request.access_token)
    except AccessUnauthorized as e:
        logger.warning("Strava rejected access token", error=str(e))
        raise _failure(401, "Strava did not accept the access token.")
    except StravaException as e:
        logger.error("Strava fetch failed", error=str(e), error_type=type(e).__name__)
        raise _failure(502, "Could not fetch activities from Strava. Try again later.")
    except SQLAlchemyError as e:
        logger.opt(exception=e).error("Storing activities failed", error=str(e))
        raise _failure(500, "Failed to store activities.")

    return SyncResponse(
        athlete_id=result.athlete_id,
        inserted_count=result.inserted_count,
        message=result.message,
    )
