"""
Sport rule catalog.

Every tag the engine understands lives here as an enum member: sports,
outcomes, table metrics and bonus conditions. Each sport declares which
outcomes it can produce and which metrics make sense for it, so an unknown
tag in a league configuration is rejected by a lookup against this catalog
instead of being matched as a free-form string.

The default templates are plain data. ``scoring.default_rules`` turns them
into configuration objects when a league is first created.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from leaguehub.standings_core.errors import UnknownTagError


class SportType(Enum):
    SOCCER = "SOCCER"
    BASKETBALL = "BASKETBALL"
    VOLLEYBALL = "VOLLEYBALL"
    HOCKEY = "HOCKEY"


class ScoreKind(Enum):
    """How a sport's final score is expressed."""

    GOALS = "goals"
    POINTS = "points"
    SETS = "sets"


class Outcome(Enum):
    """One team's result in one match, used as the key into the point rules."""

    WIN = "WIN"
    DRAW = "DRAW"
    LOSS = "LOSS"
    WIN_OVERTIME = "WIN_OVERTIME"
    LOSS_OVERTIME = "LOSS_OVERTIME"
    WIN_FORFEIT = "WIN_FORFEIT"
    LOSS_FORFEIT = "LOSS_FORFEIT"
    WIN_3_0 = "WIN_3_0"
    WIN_3_1 = "WIN_3_1"
    WIN_3_2 = "WIN_3_2"
    LOSS_2_3 = "LOSS_2_3"
    LOSS_1_3 = "LOSS_1_3"
    LOSS_0_3 = "LOSS_0_3"

    @property
    def result(self) -> str:
        """Single-letter W/D/L used by the won/drawn/lost columns and form guide."""
        if self.value.startswith("WIN"):
            return "W"
        if self.value.startswith("LOSS"):
            return "L"
        return "D"

    @property
    def is_forfeit(self) -> bool:
        return self in (Outcome.WIN_FORFEIT, Outcome.LOSS_FORFEIT)


class Metric(Enum):
    """Table metrics that can be displayed or used as tiebreakers."""

    POINTS = "POINTS"
    PLAYED = "PLAYED"
    WINS = "WINS"
    DRAWS = "DRAWS"
    LOSSES = "LOSSES"
    FORFEIT_LOSSES = "FORFEIT_LOSSES"
    MATCH_WIN_RATIO = "MATCH_WIN_RATIO"

    GOALS_SCORED = "GOALS_SCORED"
    GOALS_CONCEDED = "GOALS_CONCEDED"
    GOAL_DIFFERENCE = "GOAL_DIFFERENCE"

    POINTS_SCORED = "POINTS_SCORED"
    POINTS_CONCEDED = "POINTS_CONCEDED"
    POINT_DIFFERENCE = "POINT_DIFFERENCE"

    SETS_WON = "SETS_WON"
    SETS_LOST = "SETS_LOST"
    SET_RATIO = "SET_RATIO"
    POINT_RATIO = "POINT_RATIO"

    HEAD_TO_HEAD_POINTS = "HEAD_TO_HEAD_POINTS"
    HEAD_TO_HEAD_WINS = "HEAD_TO_HEAD_WINS"
    HEAD_TO_HEAD_GOAL_DIFFERENCE = "HEAD_TO_HEAD_GOAL_DIFFERENCE"
    HEAD_TO_HEAD_GOALS_SCORED = "HEAD_TO_HEAD_GOALS_SCORED"
    HEAD_TO_HEAD_POINT_DIFFERENCE = "HEAD_TO_HEAD_POINT_DIFFERENCE"
    HEAD_TO_HEAD_POINTS_SCORED = "HEAD_TO_HEAD_POINTS_SCORED"
    HEAD_TO_HEAD_SET_RATIO = "HEAD_TO_HEAD_SET_RATIO"
    HEAD_TO_HEAD_POINT_RATIO = "HEAD_TO_HEAD_POINT_RATIO"

    @property
    def head_to_head_base(self) -> Optional["Metric"]:
        """The metric a HEAD_TO_HEAD_* tag evaluates on the mini-table, else None."""
        prefix = "HEAD_TO_HEAD_"
        if not self.value.startswith(prefix):
            return None
        return Metric(self.value[len(prefix):])


class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"
    RANDOM = "random"


class BonusKind(Enum):
    CLEAN_SHEET = "CLEAN_SHEET"
    SCORED_AT_LEAST = "SCORED_AT_LEAST"
    WIN_MARGIN_AT_LEAST = "WIN_MARGIN_AT_LEAST"
    LOSS_MARGIN_AT_MOST = "LOSS_MARGIN_AT_MOST"


@dataclass(frozen=True)
class BonusCondition:
    """A parsed bonus condition tag such as ``WIN_MARGIN_AT_LEAST_3``."""

    kind: BonusKind
    threshold: Optional[int] = None

    @property
    def tag(self) -> str:
        if self.threshold is None:
            return self.kind.value
        return f"{self.kind.value}_{self.threshold}"


_THRESHOLD_TAG = re.compile(
    r"^(SCORED_AT_LEAST|WIN_MARGIN_AT_LEAST|LOSS_MARGIN_AT_MOST)_(\d+)$"
)
# Older league configs spell the scoring bonus as SCORED_3_GOALS.
_LEGACY_SCORED_TAG = re.compile(r"^SCORED_(\d+)_GOALS$")


def parse_bonus_condition(tag: str) -> BonusCondition:
    """Parse a bonus condition tag, raising UnknownTagError if it is not recognised."""
    normalized = tag.strip().upper()
    if normalized == BonusKind.CLEAN_SHEET.value:
        return BonusCondition(BonusKind.CLEAN_SHEET)

    match = _THRESHOLD_TAG.match(normalized)
    if match:
        return BonusCondition(BonusKind(match.group(1)), int(match.group(2)))

    match = _LEGACY_SCORED_TAG.match(normalized)
    if match:
        return BonusCondition(BonusKind.SCORED_AT_LEAST, int(match.group(1)))

    raise UnknownTagError("bonus condition", tag)


_COMMON_METRICS = frozenset(
    {
        Metric.POINTS,
        Metric.PLAYED,
        Metric.WINS,
        Metric.DRAWS,
        Metric.LOSSES,
        Metric.FORFEIT_LOSSES,
        Metric.MATCH_WIN_RATIO,
        Metric.HEAD_TO_HEAD_POINTS,
        Metric.HEAD_TO_HEAD_WINS,
    }
)

_GOAL_METRICS = frozenset(
    {
        Metric.GOALS_SCORED,
        Metric.GOALS_CONCEDED,
        Metric.GOAL_DIFFERENCE,
        Metric.HEAD_TO_HEAD_GOAL_DIFFERENCE,
        Metric.HEAD_TO_HEAD_GOALS_SCORED,
    }
)

_POINT_METRICS = frozenset(
    {
        Metric.POINTS_SCORED,
        Metric.POINTS_CONCEDED,
        Metric.POINT_DIFFERENCE,
        Metric.HEAD_TO_HEAD_POINT_DIFFERENCE,
        Metric.HEAD_TO_HEAD_POINTS_SCORED,
    }
)

_SET_METRICS = frozenset(
    {
        Metric.SETS_WON,
        Metric.SETS_LOST,
        Metric.SET_RATIO,
        Metric.POINTS_SCORED,
        Metric.POINTS_CONCEDED,
        Metric.POINT_RATIO,
        Metric.HEAD_TO_HEAD_SET_RATIO,
        Metric.HEAD_TO_HEAD_POINT_RATIO,
        Metric.HEAD_TO_HEAD_POINTS_SCORED,
    }
)


@dataclass(frozen=True)
class SportProfile:
    """Vocabulary and classification parameters for one sport."""

    sport: SportType
    score_kind: ScoreKind
    outcomes: FrozenSet[Outcome]
    metrics: FrozenSet[Metric]
    allows_draws: bool = False
    regulation_periods: Optional[int] = None
    sets_to_win: Optional[int] = None

    def require_outcome(self, outcome: Outcome) -> Outcome:
        if outcome not in self.outcomes:
            raise UnknownTagError("outcome", outcome.value, self.sport.value)
        return outcome

    def require_metric(self, metric: Metric) -> Metric:
        if metric not in self.metrics:
            raise UnknownTagError("metric", metric.value, self.sport.value)
        return metric


SPORT_PROFILES: Dict[SportType, SportProfile] = {
    SportType.SOCCER: SportProfile(
        sport=SportType.SOCCER,
        score_kind=ScoreKind.GOALS,
        outcomes=frozenset(
            {
                Outcome.WIN,
                Outcome.DRAW,
                Outcome.LOSS,
                Outcome.WIN_FORFEIT,
                Outcome.LOSS_FORFEIT,
            }
        ),
        metrics=_COMMON_METRICS | _GOAL_METRICS,
        allows_draws=True,
    ),
    SportType.BASKETBALL: SportProfile(
        sport=SportType.BASKETBALL,
        score_kind=ScoreKind.POINTS,
        outcomes=frozenset(
            {Outcome.WIN, Outcome.LOSS, Outcome.WIN_FORFEIT, Outcome.LOSS_FORFEIT}
        ),
        metrics=_COMMON_METRICS | _POINT_METRICS,
    ),
    SportType.VOLLEYBALL: SportProfile(
        sport=SportType.VOLLEYBALL,
        score_kind=ScoreKind.SETS,
        outcomes=frozenset(
            {
                Outcome.WIN_3_0,
                Outcome.WIN_3_1,
                Outcome.WIN_3_2,
                Outcome.LOSS_2_3,
                Outcome.LOSS_1_3,
                Outcome.LOSS_0_3,
                Outcome.WIN_FORFEIT,
                Outcome.LOSS_FORFEIT,
            }
        ),
        metrics=_COMMON_METRICS | _SET_METRICS,
        sets_to_win=3,
    ),
    SportType.HOCKEY: SportProfile(
        sport=SportType.HOCKEY,
        score_kind=ScoreKind.GOALS,
        outcomes=frozenset(
            {
                Outcome.WIN,
                Outcome.WIN_OVERTIME,
                Outcome.LOSS_OVERTIME,
                Outcome.LOSS,
                Outcome.WIN_FORFEIT,
                Outcome.LOSS_FORFEIT,
            }
        ),
        metrics=_COMMON_METRICS | _GOAL_METRICS,
        regulation_periods=3,
    ),
}


# (outcome, points) and (metric, sort) pairs per sport.
DEFAULT_POINT_TEMPLATES: Dict[SportType, Tuple[Tuple[str, int], ...]] = {
    SportType.SOCCER: (
        ("WIN", 3),
        ("DRAW", 1),
        ("LOSS", 0),
        ("WIN_FORFEIT", 3),
        ("LOSS_FORFEIT", 0),
    ),
    SportType.BASKETBALL: (
        ("WIN", 2),
        # Some basketball leagues give a point for turning up and losing.
        ("LOSS", 1),
        ("WIN_FORFEIT", 2),
        ("LOSS_FORFEIT", 0),
    ),
    SportType.VOLLEYBALL: (
        ("WIN_3_0", 3),
        ("WIN_3_1", 3),
        ("WIN_3_2", 2),
        ("LOSS_2_3", 1),
        ("LOSS_1_3", 0),
        ("LOSS_0_3", 0),
        ("WIN_FORFEIT", 3),
        ("LOSS_FORFEIT", 0),
    ),
    SportType.HOCKEY: (
        ("WIN", 3),
        ("WIN_OVERTIME", 2),
        ("LOSS_OVERTIME", 1),
        ("LOSS", 0),
        ("WIN_FORFEIT", 3),
        ("LOSS_FORFEIT", 0),
    ),
}

DEFAULT_TIEBREAKER_TEMPLATES: Dict[SportType, Tuple[Tuple[str, str], ...]] = {
    SportType.SOCCER: (
        ("HEAD_TO_HEAD_POINTS", "desc"),
        ("GOAL_DIFFERENCE", "desc"),
        ("GOALS_SCORED", "desc"),
    ),
    SportType.BASKETBALL: (
        ("HEAD_TO_HEAD_POINTS", "desc"),
        ("POINT_DIFFERENCE", "desc"),
        ("POINTS_SCORED", "desc"),
    ),
    SportType.VOLLEYBALL: (
        ("MATCH_WIN_RATIO", "desc"),
        ("SET_RATIO", "desc"),
        ("POINT_RATIO", "desc"),
    ),
    SportType.HOCKEY: (
        ("WINS", "desc"),
        ("HEAD_TO_HEAD_POINTS", "desc"),
        ("GOAL_DIFFERENCE", "desc"),
    ),
}


def sport_profile(sport) -> SportProfile:
    """Look up a sport profile by enum member or tag string."""
    if not isinstance(sport, SportType):
        try:
            sport = SportType(str(sport).strip().upper())
        except ValueError:
            raise UnknownTagError("sport", str(sport))
    return SPORT_PROFILES[sport]


def parse_outcome(tag: str, sport: Optional[SportType] = None) -> Outcome:
    """Parse an outcome tag; tags are case-insensitive (legacy configs use WiN_FORFEIT)."""
    try:
        outcome = Outcome(tag.strip().upper())
    except ValueError:
        raise UnknownTagError("outcome", tag, sport.value if sport else None)
    if sport is not None:
        SPORT_PROFILES[sport].require_outcome(outcome)
    return outcome


def parse_metric(tag: str, sport: Optional[SportType] = None) -> Metric:
    try:
        metric = Metric(tag.strip().upper())
    except ValueError:
        raise UnknownTagError("metric", tag, sport.value if sport else None)
    if sport is not None:
        SPORT_PROFILES[sport].require_metric(metric)
    return metric
