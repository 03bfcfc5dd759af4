"""Sync service: pull an athlete's recent activities and reconcile them."""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from league.activities.service import activity_service
from league.config import get_settings
from league.core.request_context import bind_athlete
from league.profiles.service import profile_service
from league.strava.client import AsyncStravaClient
from league.strava.schemas import ActivitySchema, AthleteSchema

logger = logging.getLogger(__name__)

UPLOADED_MESSAGE = "Nice one - you just uploaded {count} activities!"
UP_TO_DATE_MESSAGE = "Everything is up to date! No new activities found to upload."


@dataclass(frozen=True)
class SyncResult:
    athlete_id: int
    inserted_count: int

    @property
    def message(self) -> str:
        if self.inserted_count > 0:
            return UPLOADED_MESSAGE.format(count=self.inserted_count)
        return UP_TO_DATE_MESSAGE


def to_activity_row(activity: ActivitySchema, athlete_name: Optional[str]) -> dict[str, Any]:
    """Map a Strava activity onto ``activities`` columns.

    Strava labels ``start_date_local`` with a ``Z`` although it is the
    athlete's wall-clock time, so its tzinfo is dropped.
    """
    start_date_local = activity.start_date_local
    if start_date_local is not None:
        start_date_local = start_date_local.replace(tzinfo=None)

    return {
        "id": activity.id,
        "athlete_id": activity.athlete_id,
        "athlete_name": athlete_name,
        "name": activity.name,
        "activity_type": activity.type or activity.sport_type,
        "distance": activity.distance or 0.0,
        "elapsed_time": activity.elapsed_time or 0,
        "elevation_gain": activity.total_elevation_gain,
        "average_heartrate": activity.average_heartrate,
        "total_photo_count": activity.total_photo_count or 0,
        "start_date": activity.start_date,
        "start_date_local": start_date_local,
        "timezone": activity.timezone,
        "raw_data": activity.model_dump(mode="json"),
    }


def latest_timezone(activities: Sequence[ActivitySchema]) -> Optional[str]:
    """Timezone of the most recently started activity that has one."""
    dated = [a for a in activities if a.timezone and a.start_date is not None]
    if dated:
        return max(dated, key=lambda a: a.start_date).timezone
    return next((a.timezone for a in activities if a.timezone), None)


class SyncService:
    """Service for pulling activities from Strava into the store."""

    async def reconcile(
        self,
        db: AsyncSession,
        activities: Sequence[ActivitySchema],
        athlete: AthleteSchema,
    ) -> int:
        """Upsert fetched activities for one athlete.

        Parameters
        ----------
        db : AsyncSession
            Database session (not committed here)
        activities : Sequence[ActivitySchema]
            Activities fetched from Strava
        athlete : AthleteSchema
            Athlete whose name is stored on each row

        Returns
        -------
        int
            Rows inserted or changed; 0 means already up to date
        """
        rows = [to_activity_row(activity, athlete.full_name or None) for activity in activities]
        written = await activity_service.upsert_activities(db, rows)
        return len(written)

    async def sync_athlete(
        self,
        db: AsyncSession,
        access_token: str,
        client: Optional[AsyncStravaClient] = None,
    ) -> SyncResult:
        """Fetch the athlete and their recent activities, then store both.

        Nothing is written unless both fetches succeed, and the profile and
        activity upserts are committed together.

        Parameters
        ----------
        db : AsyncSession
            Database session
        access_token : str
            The athlete's Strava access token
        client : AsyncStravaClient, optional
            Pre-built client; one is created from the token otherwise

        Returns
        -------
        SyncResult
            Athlete id and number of new or changed activities

        Raises
        ------
        StravaException
            If Strava is unreachable, rejects the token, or returns a
            malformed payload
        SQLAlchemyError
            If the upserts fail (the session is rolled back)
        """
        settings = get_settings()
        client = client or AsyncStravaClient(access_token=access_token)

        athlete = await client.get_athlete()
        bind_athlete(athlete.id)
        activities = await client.get_activities(page=1, per_page=settings.SYNC_PER_PAGE)

        logger.info(f"Fetched {len(activities)} activities for athlete {athlete.id}")

        try:
            await profile_service.upsert_profile(
                db,
                athlete,
                access_token=access_token,
                timezone_name=latest_timezone(activities),
            )
            inserted_count = await self.reconcile(db, activities, athlete)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            raise

        logger.info(
            f"Activity sync completed for athlete {athlete.id}: "
            f"{inserted_count} new or changed of {len(activities)} fetched"
        )
        return SyncResult(athlete_id=athlete.id, inserted_count=inserted_count)


sync_service = SyncService()
