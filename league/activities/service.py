"""Activity store: atomic upserts and read queries."""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from league.activities.models import Activity
from league.core.database import upsert_insert

logger = logging.getLogger(__name__)

# Columns a re-fetch may correct; a conflicting row is only rewritten (and
# counted) when one of them differs from what is stored.
TRACKED_COLUMNS = (
    "athlete_id",
    "athlete_name",
    "name",
    "activity_type",
    "distance",
    "elapsed_time",
    "elevation_gain",
    "average_heartrate",
    "total_photo_count",
    "start_date",
    "start_date_local",
    "timezone",
)


class ActivityService:
    """Service for reading and writing activities in the database."""

    async def upsert_activities(
        self, db: AsyncSession, rows: Iterable[dict[str, Any]]
    ) -> list[int]:
        """Insert new activities and overwrite changed ones in one statement.

        ``INSERT ... ON CONFLICT (id) DO UPDATE ... WHERE <tracked column
        differs> RETURNING id``: concurrent syncs of the same activity cannot
        race, and rows identical to what is stored are neither rewritten nor
        returned. The caller owns the transaction and must commit.

        Parameters
        ----------
        db : AsyncSession
            Database session
        rows : Iterable[dict]
            Activity column values keyed by column name, each with an ``id``

        Returns
        -------
        list[int]
            IDs of rows inserted or changed
        """
        now = datetime.now(timezone.utc)
        # Last occurrence wins when a batch repeats an id
        by_id = {row["id"]: {**row, "created_at": now, "updated_at": now} for row in rows}
        if not by_id:
            return []

        table = Activity.__table__
        stmt = upsert_insert(db, table).values(list(by_id.values()))
        excluded = stmt.excluded

        update_values = {column: excluded[column] for column in TRACKED_COLUMNS}
        update_values["raw_data"] = excluded.raw_data
        update_values["updated_at"] = excluded.updated_at

        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.id],
            set_=update_values,
            where=or_(
                *(table.c[column].is_distinct_from(excluded[column]) for column in TRACKED_COLUMNS)
            ),
        ).returning(table.c.id)

        result = await db.execute(stmt)
        written = list(result.scalars().all())

        logger.info(f"Upserted {len(by_id)} activities, {len(written)} new or changed")
        return written

    async def get_activity(
        self, db: AsyncSession, activity_id: int
    ) -> Optional[Activity]:
        """Get activity by ID.

        Parameters
        ----------
        db : AsyncSession
            Database session
        activity_id : int
            Strava activity ID

        Returns
        -------
        Activity | None
            Activity if found, None otherwise
        """
        result = await db.execute(select(Activity).filter(Activity.id == activity_id))
        return result.scalar_one_or_none()

    async def get_activities_between(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> list[Activity]:
        """Activities starting in ``[start, end)``.

        Rows are matched on their wall-clock ``start_date_local``; rows
        without one are matched on ``start_date`` with the bounds read as
        UTC. Callers pad the range to cover the zones they bucket in.

        Parameters
        ----------
        db : AsyncSession
            Database session
        start : datetime
            Naive wall-clock lower bound (inclusive)
        end : datetime
            Naive wall-clock upper bound (exclusive)

        Returns
        -------
        list[Activity]
            Ordered by local start time, then id
        """
        utc_start = start.replace(tzinfo=timezone.utc)
        utc_end = end.replace(tzinfo=timezone.utc)
        result = await db.execute(
            select(Activity)
            .filter(
                or_(
                    and_(
                        Activity.start_date_local >= start,
                        Activity.start_date_local < end,
                    ),
                    and_(
                        Activity.start_date_local.is_(None),
                        Activity.start_date >= utc_start,
                        Activity.start_date < utc_end,
                    ),
                )
            )
            .order_by(Activity.start_date_local, Activity.start_date, Activity.id)
        )
        return list(result.scalars().all())

    async def get_all_activities(self, db: AsyncSession) -> list[Activity]:
        """Every stored activity, oldest first."""
        result = await db.execute(
            select(Activity).order_by(Activity.start_date_local, Activity.id)
        )
        return list(result.scalars().all())

    async def get_athlete_activities(
        self,
        db: AsyncSession,
        athlete_id: int,
        limit: int = 30,
        offset: int = 0,
    ) -> list[Activity]:
        """Get activities for a specific athlete, newest first.

        Parameters
        ----------
        db : AsyncSession
            Database session
        athlete_id : int
            Athlete ID
        limit : int
            Max number of activities to return
        offset : int
            Number of activities to skip

        Returns
        -------
        list[Activity]
            List of activities
        """
        result = await db.execute(
            select(Activity)
            .filter(Activity.athlete_id == athlete_id)
            .order_by(Activity.start_date_local.desc(), Activity.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def get_recent_activities(
        self, db: AsyncSession, limit: int = 10
    ) -> list[Activity]:
        """Most recent activities across all athletes by local start time."""
        result = await db.execute(
            select(Activity)
            .order_by(Activity.start_date_local.desc(), Activity.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


activity_service = ActivityService()
