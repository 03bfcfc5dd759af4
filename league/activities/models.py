"""Activity database models."""

from datetime import datetime, timezone

from sqlalchemy import JSON, BigInteger, Column, DateTime, Float, Integer, String
from sqlalchemy.dialects.postgresql import JSONB

from league.core.database import Base


class Activity(Base):
    """One workout pulled from Strava.

    ``start_date`` is the UTC instant; ``start_date_local`` is the athlete's
    wall-clock time with no zone attached. Rows are only ever written through
    the upsert in ``ActivityService.upsert_activities``.
    """

    __tablename__ = "activities"

    # Primary key - Strava's activity ID
    id = Column(BigInteger, primary_key=True)

    athlete_id = Column(BigInteger, nullable=False, index=True)
    athlete_name = Column(String, nullable=True)  # denormalized at sync time

    name = Column(String, nullable=True)
    activity_type = Column(String, nullable=True, index=True)  # Walk, Run, Soccer, ...

    # Metrics
    distance = Column(Float, nullable=False, default=0.0)  # meters
    elapsed_time = Column(Integer, nullable=False, default=0)  # seconds
    elevation_gain = Column(Float, nullable=True)  # meters
    average_heartrate = Column(Float, nullable=True)  # bpm
    total_photo_count = Column(Integer, nullable=False, default=0)

    # Dates
    start_date = Column(DateTime(timezone=True), nullable=True, index=True)  # UTC
    start_date_local = Column(DateTime(timezone=False), nullable=True, index=True)
    timezone = Column(String, nullable=True)  # "(GMT-08:00) America/Los_Angeles"

    # Full Strava response
    raw_data = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return (
            f"<Activity(id={self.id}, athlete_id={self.athlete_id}, "
            f"type='{self.activity_type}', distance={self.distance})>"
        )
