"""Pure functions for week boundaries and timezone resolution.

No database access - these can be tested independently.

A week runs from local Monday 00:00 (inclusive) to the next local Monday
00:00 (exclusive). When a zone is known, windows are timezone-aware and
compared against the UTC ``start_date``; when no zone can be resolved,
windows are naive and compared against the wall-clock ``start_date_local``.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Literal, Optional, Protocol, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)

Reference = Union[date, datetime]


class Timestamped(Protocol):
    start_date: Optional[datetime]
    start_date_local: Optional[datetime]


def parse_timezone(descriptor: Optional[str]) -> Optional[ZoneInfo]:
    """Resolve a Strava timezone descriptor to a zone.

    Parameters
    ----------
    descriptor : str | None
        Either a bare IANA name (``"Europe/London"``) or Strava's descriptive
        form (``"(GMT-08:00) America/Los_Angeles"``)

    Returns
    -------
    ZoneInfo | None
        The zone named by the trailing token, or None if there is none or it
        is not a known zone
    """
    if not descriptor or not descriptor.strip():
        return None

    token = descriptor.split()[-1]
    try:
        return ZoneInfo(token)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug(f"Unrecognised timezone descriptor: {descriptor!r}")
        return None


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo on the way back)."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True)
class TimezonePolicy:
    """Which zone an activity's week is computed in.

    ``athlete`` mode: athlete profile zone, then the activity's own zone,
    then ``server_timezone``. ``server`` mode: ``server_timezone`` only.
    None at the end of either chain means bucket by ``start_date_local``.
    """

    mode: Literal["athlete", "server"] = "athlete"
    server_timezone: Optional[ZoneInfo] = None

    @classmethod
    def from_settings(cls, settings) -> "TimezonePolicy":
        server_zone = parse_timezone(settings.SERVER_TIMEZONE)
        if settings.SERVER_TIMEZONE and server_zone is None:
            logger.warning(
                f"SERVER_TIMEZONE {settings.SERVER_TIMEZONE!r} is not a known zone; "
                "falling back to local activity times"
            )
        return cls(mode=settings.WEEK_TIMEZONE_MODE, server_timezone=server_zone)

    def zone_for(
        self,
        profile_timezone: Optional[str] = None,
        activity_timezone: Optional[str] = None,
    ) -> Optional[ZoneInfo]:
        if self.mode == "athlete":
            zone = parse_timezone(profile_timezone) or parse_timezone(activity_timezone)
            if zone is not None:
                return zone
        return self.server_timezone


@dataclass(frozen=True)
class WeekWindow:
    """Half-open ``[start, end)`` range of one Monday-to-Monday week."""

    start: datetime
    end: datetime
    zone: Optional[ZoneInfo] = None

    @property
    def first_day(self) -> date:
        return self.start.date()

    @property
    def last_day(self) -> date:
        return (self.end - timedelta(days=1)).date()

    def contains(self, moment: datetime) -> bool:
        if self.zone is None or moment.tzinfo is None:
            # Wall-clock comparison: naive local times on both sides
            local = moment.replace(tzinfo=None)
            return self.start.replace(tzinfo=None) <= local < self.end.replace(tzinfo=None)
        return self.start <= moment < self.end

    def previous(self) -> "WeekWindow":
        return week_window(self.first_day - WEEK, self.zone)

    def next(self) -> "WeekWindow":
        return week_window(self.first_day + WEEK, self.zone)


def local_date(reference: Reference, zone: Optional[ZoneInfo]) -> date:
    """Calendar date of ``reference`` as seen in ``zone``.

    A bare date is already a local calendar date. A naive datetime is read as
    local wall-clock time. An aware datetime is converted into the zone (or
    read at its own offset when there is no zone).
    """
    if not isinstance(reference, datetime):
        return reference
    if reference.tzinfo is not None and zone is not None:
        return reference.astimezone(zone).date()
    return reference.date()


def reference_day(
    reference: Optional[Reference],
    zone: Optional[ZoneInfo] = None,
    now: Optional[datetime] = None,
) -> date:
    """The calendar day that names a requested week.

    Resolved once per request so every athlete's window covers the same
    Monday-to-Monday dates, whatever zone it is bounded in.

    Parameters
    ----------
    reference : date | datetime | None
        Requested day or moment; None means ``now``
    zone : ZoneInfo | None
        Zone that aware moments are read in; UTC when None
    now : datetime | None
        Current time; defaults to the real clock

    Returns
    -------
    date
        A bare date as given, a naive datetime's own date, or an aware
        moment's date in ``zone``
    """
    if reference is None:
        reference = now or datetime.now(timezone.utc)
    if not isinstance(reference, datetime):
        return reference
    if reference.tzinfo is not None:
        return reference.astimezone(zone or timezone.utc).date()
    return reference.date()


def start_of_week(reference: Reference, zone: Optional[ZoneInfo] = None) -> datetime:
    """Monday 00:00 local on or before ``reference``.

    Parameters
    ----------
    reference : date | datetime
        Any moment within the week. A date without time-of-day is treated as
        local midnight of that calendar day.
    zone : ZoneInfo | None
        Zone to compute in; None gives a naive wall-clock result

    Returns
    -------
    datetime
        Aware in ``zone`` when given, naive otherwise
    """
    day = local_date(reference, zone)
    monday = day - timedelta(days=day.weekday())  # weekday(): Monday=0, Sunday=6
    return datetime.combine(monday, time.min, tzinfo=zone)


def week_window(reference: Reference, zone: Optional[ZoneInfo] = None) -> WeekWindow:
    """Week window containing ``reference``.

    The end is next Monday 00:00 local, so across a DST change the window is
    seven calendar days rather than exactly 168 hours.
    """
    start = start_of_week(reference, zone)
    end = datetime.combine(start.date() + WEEK, time.min, tzinfo=zone)
    return WeekWindow(start=start, end=end, zone=zone)


def get_week_boundaries(
    reference: Reference, zone: Optional[ZoneInfo] = None
) -> tuple[datetime, datetime]:
    """Get Monday 00:00 and next Monday 00:00 for ``reference``."""
    window = week_window(reference, zone)
    return window.start, window.end


def is_current_or_future(window: WeekWindow, now: Optional[datetime] = None) -> bool:
    """True when ``window`` starts on or after the current real-time week.

    Used to stop clients browsing forward into weeks that have not happened.
    """
    now = now or datetime.now(timezone.utc)
    return window.start >= start_of_week(now, window.zone)


def bucket_timestamp(activity: Timestamped, zone: Optional[ZoneInfo]) -> Optional[datetime]:
    """The moment used to place an activity in a week.

    With a zone, the UTC ``start_date``; without one, or when the UTC value is
    missing, the wall-clock ``start_date_local``. None if neither is stored.
    """
    if zone is not None and activity.start_date is not None:
        return as_utc(activity.start_date)
    if activity.start_date_local is not None:
        return activity.start_date_local.replace(tzinfo=None)
    return None
