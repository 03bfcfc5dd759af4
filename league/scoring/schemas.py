"""Pydantic schemas for scoring API responses."""

from datetime import date

from pydantic import BaseModel, ConfigDict


class LeaderboardEntry(BaseModel):
    """One athlete's line on the weekly leaderboard.

    Rank is the 1-based position in the list and is not stored.

    Attributes
    ----------
    athlete_id : int
        Strava athlete ID (grouping key)
    athlete_name : str
        Profile name, else the name stored on the activity
    profile_picture_url : str | None
        Avatar URL from the profile
    points : int
        Number of scoring activities in the week
    category_counts : dict[str, int]
        Scoring activities per category; zero categories omitted
    summary : str
        e.g. ``"Walks: 2, Football: 1"``; empty when nothing scored
    """

    athlete_id: int
    athlete_name: str
    profile_picture_url: str | None = None
    points: int
    category_counts: dict[str, int]
    summary: str

    model_config = ConfigDict(from_attributes=True)


class WeeklyLeaderboard(BaseModel):
    """Leaderboard for one week plus navigation to its neighbours.

    Attributes
    ----------
    week_start : date
        Monday of the week
    week_end : date
        Sunday of the week
    previous_week : date
        Monday of the week before
    next_week : date
        Monday of the week after
    next_week_disabled : bool
        True when this week is the current week (or later)
    entries : list[LeaderboardEntry]
        Sorted by points, descending; ties keep encounter order
    """

    week_start: date
    week_end: date
    previous_week: date
    next_week: date
    next_week_disabled: bool
    entries: list[LeaderboardEntry]


class AthleteTotals(BaseModel):
    """Lifetime totals for one athlete.

    Attributes
    ----------
    athlete_id : int
        Strava athlete ID
    athlete_name : str
        Profile name, else the name stored on the activity
    profile_picture_url : str | None
        Avatar URL from the profile
    activities : int
        Number of stored activities, scoring or not
    distance : float
        Summed distance in meters
    elapsed_time : int
        Summed elapsed time in seconds
    points : int
        Lifetime scoring activities
    category_counts : dict[str, int]
        Lifetime scoring activities per category, every category present
    """

    athlete_id: int
    athlete_name: str
    profile_picture_url: str | None = None
    activities: int
    distance: float
    elapsed_time: int
    points: int
    category_counts: dict[str, int]
