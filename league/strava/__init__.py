"""Async Strava API client."""

from league.strava.client import AsyncStravaClient
from league.strava.exceptions import StravaException

__all__ = ["AsyncStravaClient", "StravaException"]
