"""API endpoints for scoring system."""

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from league.dependencies import get_session
from league.scoring.schemas import AthleteTotals, WeeklyLeaderboard
from league.scoring.service import scoring_service

router = APIRouter(
    prefix="/scoring",
    tags=["scoring"],
)


def parse_reference(value: str) -> date | datetime:
    """Parse ``YYYY-MM-DD`` (local midnight) or a full ISO 8601 timestamp.

    Raises
    ------
    HTTPException
        400 if the value is neither
    """
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid date format: {value}. Expected YYYY-MM-DD",
        )


@router.get("/leaderboard/weekly", response_model=WeeklyLeaderboard)
async def get_weekly_leaderboard(
    week: str | None = Query(
        None,
        description="Any date in the week, YYYY-MM-DD. If not provided, uses current week.",
    ),
    db: AsyncSession = Depends(get_session),
):
    """Get leaderboard for a specific week (or current week if no date).

    Week runs from Monday 00:00 to Sunday 23:59:59 local time. Athletes
    appear once they have any activity in the week, sorted by points
    (descending); rank is the position in ``entries``.

    Parameters
    ----------
    week : str | None
        Date in YYYY-MM-DD format within the week to query.
        If None, uses current date.
    db : AsyncSession
        Database session (injected)

    Returns
    -------
    WeeklyLeaderboard
        Entries plus the week's dates and its neighbours for navigation

    Raises
    ------
    HTTPException
        400 if date format is invalid
    """
    reference = parse_reference(week) if week is not None else None
    return await scoring_service.get_weekly_leaderboard(db, reference)


@router.get("/leaderboard/overall", response_model=list[AthleteTotals])
async def get_overall_leaderboard(db: AsyncSession = Depends(get_session)):
    """Lifetime category totals for every athlete, sorted by points."""
    return await scoring_service.get_overall_totals(db)
