"""Fold scored activities into per-athlete totals.

No database access. Accumulators are keyed by athlete id and built fresh on
every call; names can collide, ids cannot.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional, Protocol, Sequence

from loguru import logger

from league.scoring.calculator import Timestamped, WeekWindow, bucket_timestamp
from league.scoring.rules import (
    CATEGORIES,
    DEFAULT_RULES,
    FOOTBALL,
    OTHER,
    RUN,
    WALK,
    WEIGHTTRAINING,
    Classification,
    Scorable,
    ScoringRule,
    classify,
)
from league.scoring.schemas import AthleteTotals, LeaderboardEntry

SUMMARY_LABELS = {
    WALK: "Walks",
    RUN: "Runs",
    FOOTBALL: "Football",
    WEIGHTTRAINING: "Weight Training",
    OTHER: "Other",
}


class StoredActivity(Scorable, Timestamped, Protocol):
    id: int
    athlete_id: int
    athlete_name: Optional[str]
    timezone: Optional[str]


class AthleteProfile(Protocol):
    timezone: Optional[str]
    profile_picture_url: Optional[str]

    @property
    def display_name(self) -> str: ...


WindowResolver = Callable[[StoredActivity], WeekWindow]


def build_summary(counts: Mapping[str, int]) -> str:
    """``"Walks: 2, Football: 1"`` in fixed category order, zeros omitted."""
    return ", ".join(
        f"{SUMMARY_LABELS.get(category, category.title())}: {counts[category]}"
        for category in CATEGORIES
        if counts.get(category, 0) > 0
    )


def display_name(
    athlete_id: int,
    profile: Optional[AthleteProfile],
    activity: Optional[StoredActivity] = None,
) -> str:
    if profile is not None and profile.display_name:
        return profile.display_name
    if activity is not None and activity.athlete_name:
        return activity.athlete_name
    return f"Athlete {athlete_id}"


@dataclass
class AthleteTally:
    athlete_id: int
    athlete_name: str
    profile_picture_url: Optional[str] = None
    points: int = 0
    counts: Counter = field(default_factory=Counter)
    activities: int = 0
    distance: float = 0.0
    elapsed_time: int = 0

    def add(self, activity: StoredActivity, result: Classification) -> None:
        self.activities += 1
        self.distance += activity.distance or 0.0
        self.elapsed_time += activity.elapsed_time or 0
        if result.scored:
            self.points += result.points
            self.counts[result.category] += 1

    def to_entry(self) -> LeaderboardEntry:
        return LeaderboardEntry(
            athlete_id=self.athlete_id,
            athlete_name=self.athlete_name,
            profile_picture_url=self.profile_picture_url,
            points=self.points,
            category_counts={c: n for c, n in self.counts.items() if n > 0},
            summary=build_summary(self.counts),
        )

    def to_totals(self) -> AthleteTotals:
        return AthleteTotals(
            athlete_id=self.athlete_id,
            athlete_name=self.athlete_name,
            profile_picture_url=self.profile_picture_url,
            activities=self.activities,
            distance=self.distance,
            elapsed_time=self.elapsed_time,
            points=self.points,
            category_counts={category: self.counts[category] for category in CATEGORIES},
        )


def _tally_for(
    tallies: dict[int, AthleteTally],
    activity: StoredActivity,
    profiles: Mapping[int, AthleteProfile],
) -> AthleteTally:
    tally = tallies.get(activity.athlete_id)
    if tally is None:
        profile = profiles.get(activity.athlete_id)
        tally = AthleteTally(
            athlete_id=activity.athlete_id,
            athlete_name=display_name(activity.athlete_id, profile, activity),
            profile_picture_url=profile.profile_picture_url if profile else None,
        )
        tallies[activity.athlete_id] = tally
    return tally


def aggregate(
    activities: Iterable[StoredActivity],
    window_for: WindowResolver,
    rules: Sequence[ScoringRule] = DEFAULT_RULES,
    profiles: Optional[Mapping[int, AthleteProfile]] = None,
) -> list[LeaderboardEntry]:
    """Build the weekly leaderboard from candidate activities.

    Parameters
    ----------
    activities : Iterable[StoredActivity]
        Candidates; those outside their athlete's window are ignored
    window_for : WindowResolver
        Week window to test each activity against (per-athlete zone)
    rules : Sequence[ScoringRule]
        Ordered rule table
    profiles : Mapping[int, AthleteProfile] | None
        Profiles by athlete id, for names and pictures

    Returns
    -------
    list[LeaderboardEntry]
        One entry per athlete with at least one activity in the window,
        sorted by points descending. Ties keep encounter order.
    """
    profiles = profiles or {}
    tallies: dict[int, AthleteTally] = {}

    for activity in activities:
        window = window_for(activity)
        moment = bucket_timestamp(activity, window.zone)
        if moment is None:
            logger.warning(
                "Skipping activity without a start time",
                activity_id=activity.id,
                athlete_id=activity.athlete_id,
            )
            continue
        if not window.contains(moment):
            continue

        _tally_for(tallies, activity, profiles).add(activity, classify(activity, rules))

    entries = [tally.to_entry() for tally in tallies.values()]
    # list.sort is stable, also with reverse=True
    entries.sort(key=lambda entry: entry.points, reverse=True)
    return entries


def total_by_athlete(
    activities: Iterable[StoredActivity],
    rules: Sequence[ScoringRule] = DEFAULT_RULES,
    profiles: Optional[Mapping[int, AthleteProfile]] = None,
) -> list[AthleteTotals]:
    """Lifetime category sums per athlete, sorted by points descending."""
    profiles = profiles or {}
    tallies: dict[int, AthleteTally] = {}

    for activity in activities:
        _tally_for(tallies, activity, profiles).add(activity, classify(activity, rules))

    totals = [tally.to_totals() for tally in tallies.values()]
    totals.sort(key=lambda total: total.points, reverse=True)
    return totals
