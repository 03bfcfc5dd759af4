from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from league.activities.service import activity_service
from league.profiles.service import profile_service
from league.strava import client as client_module
from league.strava.client import AsyncStravaClient
from league.strava.exceptions import (
    AccessUnauthorized,
    MalformedPayload,
    RateLimitExceeded,
)
from league.strava.rate_limiter import RateLimitTracker
from league.strava.schemas import ActivitySchema, AthleteSchema
from league.sync.service import (
    UP_TO_DATE_MESSAGE,
    SyncResult,
    latest_timezone,
    sync_service,
    to_activity_row,
)


def mock_client(athlete, activities):
    client = AsyncMock(spec=AsyncStravaClient)
    client.get_athlete.return_value = AthleteSchema.model_validate(athlete)
    client.get_activities.return_value = [
        ActivitySchema.model_validate(item) for item in activities
    ]
    return client


class TestToActivityRow:
    def test_maps_strava_fields(self, strava_activity):
        row = to_activity_row(ActivitySchema.model_validate(strava_activity()), "Alex Walker")

        assert row["id"] == 9001
        assert row["athlete_id"] == 100
        assert row["athlete_name"] == "Alex Walker"
        assert row["activity_type"] == "Run"
        assert row["distance"] == 5200.4
        assert row["elevation_gain"] == 31.0
        assert row["start_date"] == datetime(2025, 11, 11, 12, 0, tzinfo=timezone.utc)
        assert row["raw_data"]["id"] == 9001

    def test_local_start_is_wall_clock(self, strava_activity):
        payload = strava_activity(start_date_local="2025-11-11T04:00:00Z")
        row = to_activity_row(ActivitySchema.model_validate(payload), None)
        assert row["start_date_local"] == datetime(2025, 11, 11, 4, 0)

    def test_sport_type_when_type_missing(self, strava_activity):
        payload = strava_activity(type=None, sport_type="Soccer")
        assert to_activity_row(ActivitySchema.model_validate(payload), None)[
            "activity_type"
        ] == "Soccer"

    def test_missing_numbers_default_to_zero(self, strava_activity):
        payload = strava_activity(distance=None, elapsed_time=None, total_photo_count=None)
        payload = {k: v for k, v in payload.items() if v is not None}
        row = to_activity_row(ActivitySchema.model_validate(payload), None)
        assert (row["distance"], row["elapsed_time"], row["total_photo_count"]) == (0.0, 0, 0)


def test_latest_timezone_uses_newest_activity(strava_activity):
    activities = [
        ActivitySchema.model_validate(
            strava_activity(id=1, start_date="2025-11-01T10:00:00Z", timezone="Europe/London")
        ),
        ActivitySchema.model_validate(
            strava_activity(
                id=2, start_date="2025-11-05T10:00:00Z", timezone="America/Los_Angeles"
            )
        ),
        ActivitySchema.model_validate(strava_activity(id=3, timezone=None)),
    ]
    assert latest_timezone(activities) == "America/Los_Angeles"
    assert latest_timezone([]) is None


def test_sync_result_message():
    assert SyncResult(1, 3).message == "Nice one - you just uploaded 3 activities!"
    assert SyncResult(1, 0).message == UP_TO_DATE_MESSAGE


@pytest.mark.asyncio
class TestSyncAthlete:
    async def test_first_sync_inserts(self, db, strava_athlete, strava_activity):
        client = mock_client(strava_athlete, [strava_activity(id=1), strava_activity(id=2)])

        result = await sync_service.sync_athlete(db, "token", client=client)

        assert result.athlete_id == 100
        assert result.inserted_count == 2
        assert result.message.startswith("Nice one")
        client.get_activities.assert_awaited_once_with(page=1, per_page=30)

        profile = await profile_service.get_profile(db, 100)
        assert profile.display_name == "Alex Walker"
        assert profile.timezone == "(GMT+00:00) Europe/London"
        assert (await activity_service.get_activity(db, 1)).athlete_name == "Alex Walker"

    async def test_repeat_sync_is_up_to_date(self, db, strava_athlete, strava_activity):
        payload = [strava_activity(id=1)]
        await sync_service.sync_athlete(db, "token", client=mock_client(strava_athlete, payload))

        result = await sync_service.sync_athlete(
            db, "token", client=mock_client(strava_athlete, payload)
        )

        assert result.inserted_count == 0
        assert result.message == UP_TO_DATE_MESSAGE

    async def test_edited_activity_counts_again(self, db, strava_athlete, strava_activity):
        await sync_service.sync_athlete(
            db, "token", client=mock_client(strava_athlete, [strava_activity(id=1)])
        )

        result = await sync_service.sync_athlete(
            db,
            "token",
            client=mock_client(strava_athlete, [strava_activity(id=1, distance=8000.0)]),
        )

        assert result.inserted_count == 1
        db.expire_all()
        assert (await activity_service.get_activity(db, 1)).distance == 8000.0

    async def test_fetch_failure_writes_nothing(self, db, strava_athlete):
        client = AsyncMock(spec=AsyncStravaClient)
        client.get_athlete.return_value = AthleteSchema.model_validate(strava_athlete)
        client.get_activities.side_effect = MalformedPayload("not a list")

        with pytest.raises(MalformedPayload):
            await sync_service.sync_athlete(db, "token", client=client)

        assert await profile_service.get_profile(db, 100) is None
        assert await activity_service.get_recent_activities(db) == []


def strava_client(handler, rate_limiter=None):
    return AsyncStravaClient(
        access_token="token",
        rate_limiter=rate_limiter or RateLimitTracker(),
        base_url="https://strava.test/api/v3",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
class TestStravaClient:
    async def test_parses_activities(self, strava_activity):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[strava_activity()])

        activities = await strava_client(handler).get_activities(per_page=500)

        assert [a.id for a in activities] == [9001]
        assert seen[0].headers["Authorization"] == "Bearer token"
        assert seen[0].url.params["per_page"] == "200"

    async def test_non_list_payload(self):
        client = strava_client(lambda request: httpx.Response(200, json={"id": 1}))
        with pytest.raises(MalformedPayload):
            await client.get_activities()

    async def test_non_json_body(self):
        client = strava_client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(MalformedPayload):
            await client.get_athlete()

    async def test_rejected_token(self):
        client = strava_client(
            lambda request: httpx.Response(401, json={"message": "Authorization Error"})
        )
        with pytest.raises(AccessUnauthorized):
            await client.get_athlete()

    async def test_spent_budget_stops_further_requests(self, strava_athlete):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(
                200,
                json=strava_athlete,
                headers={"X-RateLimit-Usage": "600,1200", "X-RateLimit-Limit": "600,30000"},
            )

        client = strava_client(handler)
        await client.get_athlete()

        with pytest.raises(RateLimitExceeded):
            await client.get_activities()
        assert len(calls) == 1

    async def test_clients_share_one_budget(self, monkeypatch, strava_athlete):
        monkeypatch.setattr(client_module, "strava_rate_limiter", RateLimitTracker())
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(
                200,
                json=strava_athlete,
                headers={"X-RateLimit-Usage": "600,1200", "X-RateLimit-Limit": "600,30000"},
            )

        first = AsyncStravaClient("token-a", base_url="https://strava.test",
                                  transport=httpx.MockTransport(handler))
        second = AsyncStravaClient("token-b", base_url="https://strava.test",
                                   transport=httpx.MockTransport(handler))
        await first.get_athlete()

        with pytest.raises(RateLimitExceeded):
            await second.get_athlete()
        assert len(calls) == 1


HEADERS_SHORT_SPENT = {"X-RateLimit-Usage": "600,1200", "X-RateLimit-Limit": "600,30000"}
HEADERS_DAY_SPENT = {"X-RateLimit-Usage": "10,30000", "X-RateLimit-Limit": "600,30000"}


class TestRateLimitTracker:
    OBSERVED = datetime(2025, 11, 12, 10, 7, 30, tzinfo=timezone.utc)

    def test_short_window_reopens_on_the_quarter_hour(self):
        tracker = RateLimitTracker()
        tracker.update(HEADERS_SHORT_SPENT, now=self.OBSERVED)

        assert tracker.resets_at() == datetime(2025, 11, 12, 10, 15, tzinfo=timezone.utc)
        with pytest.raises(RateLimitExceeded):
            tracker.check(now=self.OBSERVED + timedelta(minutes=5))

        tracker.check(now=datetime(2025, 11, 12, 10, 15, tzinfo=timezone.utc))
        assert tracker.current_limits is None

    def test_daily_budget_reopens_at_utc_midnight(self):
        tracker = RateLimitTracker()
        tracker.update(HEADERS_DAY_SPENT, now=self.OBSERVED)

        with pytest.raises(RateLimitExceeded):
            tracker.check(now=datetime(2025, 11, 12, 23, 59, tzinfo=timezone.utc))
        tracker.check(now=datetime(2025, 11, 13, 0, 0, tzinfo=timezone.utc))

    def test_budget_left(self):
        tracker = RateLimitTracker()
        tracker.update({"X-RateLimit-Usage": "5,10", "X-RateLimit-Limit": "600,30000"})
        assert tracker.resets_at() is None
        tracker.check()

    def test_unparseable_headers_ignored(self):
        tracker = RateLimitTracker()
        tracker.update({"X-RateLimit-Usage": "lots", "X-RateLimit-Limit": "600,30000"})
        assert tracker.current_limits is None
