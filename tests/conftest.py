import os

# Settings are read on first import of the package
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "local")

from datetime import datetime, timezone  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from league.activities.models import Activity  # noqa: E402,F401
from league.core.database import Base  # noqa: E402
from league.profiles.models import Profile  # noqa: E402,F401


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_activity():
    """Build an in-memory activity with the attributes the engine reads."""

    def _make(**overrides):
        values = {
            "id": 1,
            "athlete_id": 100,
            "athlete_name": "Alex Walker",
            "activity_type": "Walk",
            "distance": 5000.0,
            "elapsed_time": 3600,
            "start_date": datetime(2025, 11, 11, 9, 0, tzinfo=timezone.utc),
            "start_date_local": datetime(2025, 11, 11, 9, 0),
            "timezone": None,
        }
        values.update(overrides)
        return SimpleNamespace(**values)

    return _make


@pytest.fixture
def activity_row():
    """Column values for ``ActivityService.upsert_activities``."""

    def _row(**overrides):
        values = {
            "id": 1,
            "athlete_id": 100,
            "athlete_name": "Alex Walker",
            "name": "Morning Walk",
            "activity_type": "Walk",
            "distance": 5000.0,
            "elapsed_time": 3600,
            "elevation_gain": 12.0,
            "average_heartrate": None,
            "total_photo_count": 0,
            "start_date": datetime(2025, 11, 11, 9, 0, tzinfo=timezone.utc),
            "start_date_local": datetime(2025, 11, 11, 9, 0),
            "timezone": "(GMT+00:00) Europe/London",
            "raw_data": {"id": overrides.get("id", 1)},
        }
        values.update(overrides)
        return values

    return _row


@pytest.fixture
def strava_activity():
    """A ``GET /athlete/activities`` item as Strava returns it."""

    def _payload(**overrides):
        values = {
            "id": 9001,
            "athlete": {"id": 100, "resource_state": 1},
            "name": "Lunch Run",
            "type": "Run",
            "sport_type": "Run",
            "distance": 5200.4,
            "moving_time": 1500,
            "elapsed_time": 1620,
            "total_elevation_gain": 31.0,
            "average_heartrate": 151.2,
            "total_photo_count": 1,
            "start_date": "2025-11-11T12:00:00Z",
            "start_date_local": "2025-11-11T12:00:00Z",
            "timezone": "(GMT+00:00) Europe/London",
        }
        values.update(overrides)
        return values

    return _payload


@pytest.fixture
def strava_athlete():
    return {
        "id": 100,
        "firstname": "Alex",
        "lastname": "Walker",
        "profile": "https://example.com/alex/large.jpg",
        "profile_medium": "https://example.com/alex/medium.jpg",
    }
