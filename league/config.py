from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # APP
    APP_NAME: str = "Weekly League"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL

    # DB
    DATABASE_URL: str

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # Strava API
    STRAVA_API_URL: str = "https://www.strava.com/api/v3"
    SYNC_PER_PAGE: int = 30  # most recent N activities pulled per sync

    # Feeds
    RECENT_ACTIVITIES_LIMIT: int = 10

    # Week boundaries
    WEEK_TIMEZONE_MODE: Literal["athlete", "server"] = "athlete"
    SERVER_TIMEZONE: str | None = None  # IANA zone, e.g. "Europe/London"

    # Scoring thresholds (seconds / meters, all strict ">")
    WALK_MIN_ELAPSED_TIME: int = 2700
    WALK_MIN_DISTANCE: float = 3000
    RUN_MIN_DISTANCE: float = 3000
    FOOTBALL_KEYWORDS: list[str] = ["football", "soccer"]
    FOOTBALL_MIN_ELAPSED_TIME: int | None = None
    WEIGHTTRAINING_MIN_ELAPSED_TIME: int | None = 1800  # None disables the rule
    OTHER_MIN_ELAPSED_TIME: int = 1800

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields (like POSTGRES_* used by docker-compose)
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings only loads once"""
    return Settings()
