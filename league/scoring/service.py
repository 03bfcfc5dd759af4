"""Service layer for scoring calculations."""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncSession

from league.activities.models import Activity
from league.activities.service import activity_service
from league.config import get_settings
from league.profiles.service import profile_service
from league.scoring.aggregator import aggregate, total_by_athlete
from league.scoring.calculator import (
    TimezonePolicy,
    WeekWindow,
    is_current_or_future,
    reference_day,
    week_window,
)
from league.scoring.rules import ScoringRule, rules_from_settings
from league.scoring.schemas import AthleteTotals, WeeklyLeaderboard

# Every window covers the same calendar dates in some zone; two days either
# side of the wall-clock week covers any pair of UTC offsets.
CANDIDATE_PADDING = timedelta(days=2)


class ScoringService:
    """Service for weekly leaderboards and lifetime totals.

    Rules and timezone policy come from settings unless given explicitly.
    """

    def __init__(
        self,
        rules: Optional[Sequence[ScoringRule]] = None,
        policy: Optional[TimezonePolicy] = None,
    ):
        self._rules = rules
        self._policy = policy

    @property
    def rules(self) -> Sequence[ScoringRule]:
        if self._rules is None:
            self._rules = rules_from_settings(get_settings())
        return self._rules

    @property
    def policy(self) -> TimezonePolicy:
        if self._policy is None:
            self._policy = TimezonePolicy.from_settings(get_settings())
        return self._policy

    async def get_weekly_leaderboard(
        self,
        db: AsyncSession,
        reference: Union[date, datetime, None] = None,
        now: Optional[datetime] = None,
    ) -> WeeklyLeaderboard:
        """Calculate the leaderboard for the week containing ``reference``.

        Parameters
        ----------
        db : AsyncSession
            Database session
        reference : date | datetime | None
            Any day or moment within the week. Aware moments are read in
            ``SERVER_TIMEZONE`` (UTC when unset). If None, uses ``now``.
        now : datetime | None
            Current time, for navigation; defaults to the real clock

        Returns
        -------
        WeeklyLeaderboard
            Entries sorted by points (descending) for athletes with at least
            one activity in their week, plus navigation dates. Each athlete's
            week is bounded in the zone chosen by the timezone policy.
        """
        now = now or datetime.now(timezone.utc)
        policy = self.policy

        # One calendar week for everyone; only the zone bounding it differs
        day = reference_day(reference, policy.server_timezone, now)
        display = week_window(day, policy.server_timezone)
        activities = await activity_service.get_activities_between(
            db,
            display.start.replace(tzinfo=None) - CANDIDATE_PADDING,
            display.end.replace(tzinfo=None) + CANDIDATE_PADDING,
        )
        profiles = await profile_service.get_profiles(
            db, {activity.athlete_id for activity in activities}
        )

        windows: dict[Optional[str], WeekWindow] = {}

        def window_for(activity: Activity) -> WeekWindow:
            profile = profiles.get(activity.athlete_id)
            zone = policy.zone_for(
                profile.timezone if profile else None, activity.timezone
            )
            key = zone.key if zone else None
            if key not in windows:
                windows[key] = week_window(day, zone)
            return windows[key]

        entries = aggregate(activities, window_for, self.rules, profiles)

        return WeeklyLeaderboard(
            week_start=display.first_day,
            week_end=display.last_day,
            previous_week=display.previous().first_day,
            next_week=display.next().first_day,
            next_week_disabled=is_current_or_future(display, now),
            entries=entries,
        )

    async def get_overall_totals(self, db: AsyncSession) -> list[AthleteTotals]:
        """Lifetime category sums for every athlete with stored activities.

        Parameters
        ----------
        db : AsyncSession
            Database session

        Returns
        -------
        list[AthleteTotals]
            Sorted by points (descending), ties in first-activity order
        """
        activities = await activity_service.get_all_activities(db)
        profiles = await profile_service.get_all_profiles(db)
        return total_by_athlete(activities, self.rules, profiles)


# Singleton instance
scoring_service = ScoringService()
