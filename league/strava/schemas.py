"""Pydantic schemas for Strava API responses."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class AthleteSchema(BaseModel):
    """The authenticated athlete (``GET /athlete``)."""

    id: int
    firstname: str = ""
    lastname: str = ""
    profile: Optional[str] = None  # large avatar URL
    profile_medium: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()


class ActivitySchema(BaseModel):
    """Summary activity from ``GET /athlete/activities``.

    Only ``id`` and ``athlete`` are guaranteed; everything the scoring engine
    reads is optional so one odd record does not fail the whole page.
    """

    id: int
    athlete: dict[str, Any]
    name: Optional[str] = None
    type: Optional[str] = None
    sport_type: Optional[str] = None
    distance: float = 0.0
    moving_time: Optional[int] = None
    elapsed_time: int = 0
    total_elevation_gain: Optional[float] = None
    average_heartrate: Optional[float] = None
    total_photo_count: Optional[int] = None
    start_date: Optional[datetime] = None
    start_date_local: Optional[datetime] = None
    timezone: Optional[str] = None

    @property
    def athlete_id(self) -> int:
        return int(self.athlete["id"])


class RateLimitInfo(BaseModel):
    """Rate limit information from response headers."""

    short_usage: int  # 15-minute usage
    long_usage: int  # Daily usage
    short_limit: int  # 15-minute limit
    long_limit: int  # Daily limit

    @property
    def exhausted(self) -> bool:
        return (
            self.short_usage >= self.short_limit or self.long_usage >= self.long_limit
        )
