from datetime import datetime, timezone

import pytest

from league.activities.service import activity_service
from league.profiles.service import profile_service
from league.strava.schemas import AthleteSchema


@pytest.mark.asyncio
class TestUpsertActivities:
    async def test_new_rows_are_returned(self, db, activity_row):
        written = await activity_service.upsert_activities(
            db, [activity_row(id=1), activity_row(id=2)]
        )
        await db.commit()

        assert sorted(written) == [1, 2]
        stored = await activity_service.get_activity(db, 1)
        assert stored.activity_type == "Walk"
        assert stored.distance == 5000.0

    async def test_identical_rows_are_not_counted(self, db, activity_row):
        await activity_service.upsert_activities(db, [activity_row(id=1)])
        await db.commit()

        written = await activity_service.upsert_activities(db, [activity_row(id=1)])
        assert written == []

    async def test_changed_row_is_overwritten(self, db, activity_row):
        await activity_service.upsert_activities(db, [activity_row(id=1)])
        await db.commit()

        written = await activity_service.upsert_activities(
            db, [activity_row(id=1, distance=6200.0), activity_row(id=2)]
        )
        await db.commit()
        db.expire_all()

        assert sorted(written) == [1, 2]
        stored = await activity_service.get_activity(db, 1)
        assert stored.distance == 6200.0

    async def test_last_duplicate_in_batch_wins(self, db, activity_row):
        written = await activity_service.upsert_activities(
            db, [activity_row(id=1, name="First"), activity_row(id=1, name="Second")]
        )
        await db.commit()

        assert written == [1]
        assert (await activity_service.get_activity(db, 1)).name == "Second"

    async def test_empty_batch(self, db):
        assert await activity_service.upsert_activities(db, []) == []


@pytest.mark.asyncio
class TestQueries:
    async def test_between_is_half_open(self, db, activity_row):
        await activity_service.upsert_activities(
            db,
            [
                activity_row(id=1, start_date_local=datetime(2025, 11, 9, 23, 59)),
                activity_row(id=2, start_date_local=datetime(2025, 11, 10, 0, 0)),
                activity_row(id=3, start_date_local=datetime(2025, 11, 16, 23, 59)),
                activity_row(id=4, start_date_local=datetime(2025, 11, 17, 0, 0)),
            ],
        )
        await db.commit()

        found = await activity_service.get_activities_between(
            db, datetime(2025, 11, 10), datetime(2025, 11, 17)
        )
        assert [a.id for a in found] == [2, 3]

    async def test_between_falls_back_to_utc_start(self, db, activity_row):
        await activity_service.upsert_activities(
            db,
            [
                activity_row(id=1, start_date_local=None,
                             start_date=datetime(2025, 11, 12, 17, 0, tzinfo=timezone.utc)),
                activity_row(id=2, start_date_local=None,
                             start_date=datetime(2025, 11, 20, 17, 0, tzinfo=timezone.utc)),
                activity_row(id=3, start_date_local=None, start_date=None),
            ],
        )
        await db.commit()

        found = await activity_service.get_activities_between(
            db, datetime(2025, 11, 10), datetime(2025, 11, 17)
        )
        assert [a.id for a in found] == [1]

    async def test_recent_newest_first(self, db, activity_row):
        await activity_service.upsert_activities(
            db,
            [
                activity_row(id=1, start_date_local=datetime(2025, 11, 1, 8, 0)),
                activity_row(id=2, start_date_local=datetime(2025, 11, 3, 8, 0)),
                activity_row(id=3, start_date_local=datetime(2025, 11, 2, 8, 0)),
            ],
        )
        await db.commit()

        recent = await activity_service.get_recent_activities(db, limit=2)
        assert [a.id for a in recent] == [2, 3]

    async def test_athlete_activities(self, db, activity_row):
        await activity_service.upsert_activities(
            db,
            [
                activity_row(id=1, athlete_id=100),
                activity_row(id=2, athlete_id=200, athlete_name="Other Person"),
                activity_row(id=3, athlete_id=100, start_date_local=datetime(2025, 11, 12)),
            ],
        )
        await db.commit()

        mine = await activity_service.get_athlete_activities(db, 100)
        assert [a.id for a in mine] == [3, 1]
        assert await activity_service.get_athlete_activities(db, 100, offset=2) == []

    async def test_missing_activity(self, db):
        assert await activity_service.get_activity(db, 404) is None


@pytest.mark.asyncio
class TestProfiles:
    ATHLETE = AthleteSchema(
        id=100, firstname="Alex", lastname="Walker", profile="https://example.com/a.jpg"
    )

    async def test_create(self, db):
        await profile_service.upsert_profile(
            db, self.ATHLETE, access_token="token", timezone_name="Europe/London"
        )
        await db.commit()

        profile = await profile_service.get_profile(db, 100)
        assert profile.display_name == "Alex Walker"
        assert profile.profile_picture_url == "https://example.com/a.jpg"
        assert profile.timezone == "Europe/London"

    async def test_missing_timezone_keeps_stored_one(self, db):
        await profile_service.upsert_profile(db, self.ATHLETE, timezone_name="Europe/London")
        await db.commit()

        renamed = self.ATHLETE.model_copy(update={"firstname": "Alexandra"})
        await profile_service.upsert_profile(db, renamed, timezone_name=None)
        await db.commit()
        db.expire_all()

        profile = await profile_service.get_profile(db, 100)
        assert profile.firstname == "Alexandra"
        assert profile.timezone == "Europe/London"

    async def test_get_profiles_by_id(self, db):
        await profile_service.upsert_profile(db, self.ATHLETE)
        await db.commit()

        profiles = await profile_service.get_profiles(db, [100, 200])
        assert list(profiles) == [100]
        assert await profile_service.get_profiles(db, []) == {}
