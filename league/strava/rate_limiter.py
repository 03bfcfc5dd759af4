"""Rate limit tracking for Strava API."""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import Optional

from league.strava.exceptions import RateLimitExceeded
from league.strava.schemas import RateLimitInfo

logger = logging.getLogger(__name__)

USAGE_HEADER = "x-ratelimit-usage"
LIMIT_HEADER = "x-ratelimit-limit"

SHORT_WINDOW = timedelta(minutes=15)


class RateLimitTracker:
    """Remember Strava's last reported budget and refuse to overspend it.

    Strava reports usage as ``"<15-minute>,<daily>"`` in response headers
    (600 per 15 minutes / 30,000 per day by default). The budget belongs to
    the application, not to an athlete, so one tracker is shared by every
    sync (``strava_rate_limiter``). Syncs are triggered by a user waiting on
    the response, so instead of sleeping until the window resets the tracker
    fails fast and the caller retries later.

    The 15-minute window resets at :00, :15, :30 and :45; the daily one at
    midnight UTC. A spent budget is forgotten once its window has reset.
    """

    def __init__(self):
        self.current_limits: Optional[RateLimitInfo] = None
        self.observed_at: Optional[datetime] = None

    def update(self, headers: dict[str, str], now: Optional[datetime] = None) -> None:
        """Update budget from response headers.

        Parameters
        ----------
        headers : dict
            HTTP response headers from Strava API
        now : datetime, optional
            When the response was received; defaults to the current UTC time
        """
        headers_lower = {k.lower(): v for k, v in headers.items()}
        if USAGE_HEADER not in headers_lower or LIMIT_HEADER not in headers_lower:
            logger.debug("No rate limit headers found in response")
            return

        try:
            usage = [int(x) for x in headers_lower[USAGE_HEADER].split(",")]
            limit = [int(x) for x in headers_lower[LIMIT_HEADER].split(",")]
            self.current_limits = RateLimitInfo(
                short_usage=usage[0],
                long_usage=usage[1],
                short_limit=limit[0],
                long_limit=limit[1],
            )
        except (ValueError, IndexError):
            logger.warning(
                f"Unparseable rate limit headers: {headers_lower[USAGE_HEADER]!r} / "
                f"{headers_lower[LIMIT_HEADER]!r}"
            )
            return

        self.observed_at = now or datetime.now(timezone.utc)
        logger.debug(f"Updated rate limits: {self.current_limits}")

    def resets_at(self) -> Optional[datetime]:
        """When the spent window reopens, or None if nothing is spent."""
        limits = self.current_limits
        if limits is None or not limits.exhausted or self.observed_at is None:
            return None

        observed = self.observed_at.astimezone(timezone.utc)
        if limits.long_usage >= limits.long_limit:
            return datetime.combine(
                observed.date() + timedelta(days=1), time.min, tzinfo=timezone.utc
            )
        quarter = observed.replace(
            minute=observed.minute - observed.minute % 15, second=0, microsecond=0
        )
        return quarter + SHORT_WINDOW

    def check(self, now: Optional[datetime] = None) -> None:
        """Raise before a request that Strava would reject anyway.

        Raises
        ------
        RateLimitExceeded
            If the last response showed either budget spent and that
            window has not reset yet
        """
        resets_at = self.resets_at()
        if resets_at is None:
            return

        now = now or datetime.now(timezone.utc)
        if now >= resets_at:
            logger.info(f"Strava rate limit window reset at {resets_at.isoformat()}")
            self.current_limits = None
            return

        limits = self.current_limits
        raise RateLimitExceeded(
            f"Strava budget spent: {limits.short_usage}/{limits.short_limit} "
            f"(15 min), {limits.long_usage}/{limits.long_limit} (daily); "
            f"retry after {resets_at.isoformat()}"
        )


# Shared by every client: Strava counts requests per application
strava_rate_limiter = RateLimitTracker()
