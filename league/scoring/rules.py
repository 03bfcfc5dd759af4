"""Rule table that turns one activity into a category and points.

Rules are evaluated in order and the first match wins. Every threshold is a
strict ``>``. Activity types are matched case-insensitively; a missing type
never matches a type-specific rule.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol, Sequence

WALK = "walk"
RUN = "run"
FOOTBALL = "football"
WEIGHTTRAINING = "weighttraining"
OTHER = "other"
NONE = "none"

# Fixed order for summaries and totals
CATEGORIES = (WALK, RUN, FOOTBALL, WEIGHTTRAINING, OTHER)


class Scorable(Protocol):
    activity_type: Optional[str]
    distance: Optional[float]
    elapsed_time: Optional[int]


Predicate = Callable[[Scorable], bool]


@dataclass(frozen=True)
class ScoringRule:
    category: str
    predicate: Predicate
    points: int = 1


@dataclass(frozen=True)
class Classification:
    category: str
    points: int

    @property
    def scored(self) -> bool:
        return self.points > 0


def _type(activity: Scorable) -> str:
    return (activity.activity_type or "").strip().lower()


def _elapsed(activity: Scorable) -> int:
    return activity.elapsed_time or 0


def _distance(activity: Scorable) -> float:
    return activity.distance or 0.0


def _longer_than(seconds: Optional[int]) -> Predicate:
    if seconds is None:
        return lambda activity: True
    return lambda activity: _elapsed(activity) > seconds


def build_rules(
    walk_min_elapsed_time: int = 2700,
    walk_min_distance: float = 3000,
    run_min_distance: float = 3000,
    football_keywords: Iterable[str] = ("football", "soccer"),
    football_min_elapsed_time: Optional[int] = None,
    weighttraining_min_elapsed_time: Optional[int] = 1800,
    other_min_elapsed_time: int = 1800,
) -> tuple[ScoringRule, ...]:
    """Build the ordered rule table.

    1. walk longer than 45 min or further than 3 km
    2. run further than 3 km
    3. any football/soccer session (optionally with a minimum duration)
    4. weight training longer than 30 min (omitted when the threshold is None)
    5. any type without a rule of its own, longer than 30 min
    """
    keywords = tuple(keyword.lower() for keyword in football_keywords)
    football_long_enough = _longer_than(football_min_elapsed_time)

    rules = [
        ScoringRule(
            WALK,
            lambda a: _type(a) == "walk"
            and (_elapsed(a) > walk_min_elapsed_time or _distance(a) > walk_min_distance),
        ),
        ScoringRule(RUN, lambda a: _type(a) == "run" and _distance(a) > run_min_distance),
        ScoringRule(
            FOOTBALL,
            lambda a: any(keyword in _type(a) for keyword in keywords)
            and football_long_enough(a),
        ),
    ]
    if weighttraining_min_elapsed_time is not None:
        rules.append(
            ScoringRule(
                WEIGHTTRAINING,
                lambda a: "weighttraining" in _type(a)
                and _elapsed(a) > weighttraining_min_elapsed_time,
            )
        )

    def has_own_rule(a: Scorable) -> bool:
        activity_type = _type(a)
        return (
            activity_type in ("walk", "run")
            or any(keyword in activity_type for keyword in keywords)
            or (
                weighttraining_min_elapsed_time is not None
                and "weighttraining" in activity_type
            )
        )

    # A walk or run that misses its own threshold does not fall through here
    rules.append(
        ScoringRule(
            OTHER,
            lambda a: not has_own_rule(a) and _elapsed(a) > other_min_elapsed_time,
        )
    )
    return tuple(rules)


def rules_from_settings(settings) -> tuple[ScoringRule, ...]:
    return build_rules(
        walk_min_elapsed_time=settings.WALK_MIN_ELAPSED_TIME,
        walk_min_distance=settings.WALK_MIN_DISTANCE,
        run_min_distance=settings.RUN_MIN_DISTANCE,
        football_keywords=settings.FOOTBALL_KEYWORDS,
        football_min_elapsed_time=settings.FOOTBALL_MIN_ELAPSED_TIME,
        weighttraining_min_elapsed_time=settings.WEIGHTTRAINING_MIN_ELAPSED_TIME,
        other_min_elapsed_time=settings.OTHER_MIN_ELAPSED_TIME,
    )


DEFAULT_RULES = build_rules()


def classify(
    activity: Scorable, rules: Sequence[ScoringRule] = DEFAULT_RULES
) -> Classification:
    """Classify one activity with the first matching rule.

    When nothing matches (e.g. a short walk) the category is the activity's
    own lower-cased type, or ``"none"``, and no points are awarded.
    """
    for rule in rules:
        if rule.predicate(activity):
            return Classification(rule.category, rule.points)
    return Classification(_type(activity) or NONE, 0)
