from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, String

from league.core.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(BigInteger, primary_key=True)  # Strava athlete ID

    firstname = Column(String, nullable=False, default="")
    lastname = Column(String, nullable=False, default="")
    profile_picture_url = Column(String, nullable=True)
    timezone = Column(String, nullable=True)  # "(GMT+00:00) Europe/London"

    # Opaque to the scoring engine
    access_token = Column(String, nullable=True)

    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def athlete_id(self) -> int:
        """Alias for id to match Strava terminology"""
        return self.id

    @property
    def display_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()
