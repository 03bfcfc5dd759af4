from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from league.core.database import upsert_insert
from league.profiles.models import Profile
from league.strava.schemas import AthleteSchema


class ProfileService:
    async def get_profile(
        self, db: AsyncSession, athlete_id: int
    ) -> Optional[Profile]:
        result = await db.execute(select(Profile).filter(Profile.id == athlete_id))
        return result.scalar_one_or_none()

    async def get_profiles(
        self, db: AsyncSession, athlete_ids: Iterable[int]
    ) -> dict[int, Profile]:
        """Profiles for the given athletes, keyed by athlete id."""
        ids = set(athlete_ids)
        if not ids:
            return {}
        result = await db.execute(select(Profile).filter(Profile.id.in_(ids)))
        return {profile.id: profile for profile in result.scalars().all()}

    async def get_all_profiles(self, db: AsyncSession) -> dict[int, Profile]:
        result = await db.execute(select(Profile))
        return {profile.id: profile for profile in result.scalars().all()}

    async def upsert_profile(
        self,
        db: AsyncSession,
        athlete: AthleteSchema,
        access_token: Optional[str] = None,
        timezone_name: Optional[str] = None,
    ) -> None:
        """Create or refresh an athlete's profile in one statement.

        Latest write wins per field, except that a missing timezone, picture
        or token keeps the stored one. The caller commits.
        """
        now = datetime.now(timezone.utc)
        table = Profile.__table__
        stmt = upsert_insert(db, table).values(
            id=athlete.id,
            firstname=athlete.firstname,
            lastname=athlete.lastname,
            profile_picture_url=athlete.profile or athlete.profile_medium,
            timezone=timezone_name,
            access_token=access_token,
            created_at=now,
            updated_at=now,
        )
        excluded = stmt.excluded
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.id],
            set_={
                "firstname": excluded.firstname,
                "lastname": excluded.lastname,
                "profile_picture_url": func.coalesce(
                    excluded.profile_picture_url, table.c.profile_picture_url
                ),
                "timezone": func.coalesce(excluded.timezone, table.c.timezone),
                "access_token": func.coalesce(excluded.access_token, table.c.access_token),
                "updated_at": excluded.updated_at,
            },
        )
        await db.execute(stmt)


profile_service = ProfileService()
