"""
Configurable point systems and tiebreaker chains for leagues.

This module defines how outcomes are converted to table points and in which
order tied teams are separated. A league owns exactly one active
``LeagueRules`` at a time; the version number changes whenever an admin edits
it so cached standings computed under an older version are discarded.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from leaguehub.standings_core.catalog import (
    DEFAULT_POINT_TEMPLATES,
    DEFAULT_TIEBREAKER_TEMPLATES,
    SPORT_PROFILES,
    BonusCondition,
    Metric,
    Outcome,
    SortOrder,
    SportType,
    parse_metric,
    parse_outcome,
    sport_profile,
)
from leaguehub.standings_core.errors import (
    ConfigurationError,
    InvalidTieBreakerError,
    MissingPointRuleError,
)


@dataclass(frozen=True)
class PointRule:
    """Points awarded to a team for one outcome."""

    outcome: Outcome
    points: int


@dataclass(frozen=True)
class BonusPointRule:
    """Extra points awarded when a match satisfies a condition.

    With ``outcome`` set, only a team finishing with that outcome earns it.
    """

    condition: BonusCondition
    points: int
    outcome: Optional[Outcome] = None


@dataclass(frozen=True)
class PointSystemConfig:
    """Point rules plus optional bonus rules for one league."""

    rules: Tuple[PointRule, ...] = ()
    bonus_points: Tuple[BonusPointRule, ...] = ()

    def points_by_outcome(self) -> Dict[Outcome, int]:
        """Map outcomes to points, rejecting duplicate outcomes."""
        table = {}
        for rule in self.rules:
            if rule.outcome in table:
                raise ConfigurationError(
                    f"Outcome {rule.outcome.value} has more than one point rule"
                )
            table[rule.outcome] = rule.points
        return table

    def points_for(self, outcome: Outcome) -> int:
        for rule in self.rules:
            if rule.outcome == outcome:
                return rule.points
        raise MissingPointRuleError(outcome.value)

    def validate(self, sport: SportType):
        """Every outcome the sport can produce needs exactly one rule, and no others."""
        profile = SPORT_PROFILES[sport]
        table = self.points_by_outcome()
        for outcome in table:
            profile.require_outcome(outcome)
        for bonus in self.bonus_points:
            if bonus.outcome is not None:
                profile.require_outcome(bonus.outcome)
        missing = sorted(
            (o for o in profile.outcomes if o not in table), key=lambda o: o.value
        )
        if missing:
            raise MissingPointRuleError(missing[0].value, sport.value)


@dataclass(frozen=True)
class TieBreakerRule:
    """One step of the tiebreaker chain.

    ``metric`` is None only for the random draw, which must be the last rule.
    """

    order: int
    metric: Optional[Metric]
    sort: SortOrder = SortOrder.DESC
    description: str = ""

    @property
    def is_random(self) -> bool:
        return self.sort == SortOrder.RANDOM


@dataclass(frozen=True)
class TieBreakerConfig:
    """Ordered tiebreaker chain, applied in ascending ``order``."""

    rules: Tuple[TieBreakerRule, ...] = ()

    def ordered(self) -> List[TieBreakerRule]:
        return sorted(self.rules, key=lambda r: r.order)

    @property
    def ends_with_random(self) -> bool:
        ordered = self.ordered()
        return bool(ordered) and ordered[-1].is_random

    def validate(self, sport: SportType):
        profile = SPORT_PROFILES[sport]
        orders = sorted(rule.order for rule in self.rules)
        if orders != list(range(1, len(orders) + 1)):
            raise InvalidTieBreakerError(
                f"Tiebreaker orders must be unique and contiguous from 1, got {orders}"
            )

        ordered = self.ordered()
        for position, rule in enumerate(ordered, start=1):
            if rule.is_random:
                if position != len(ordered):
                    raise InvalidTieBreakerError(
                        f"Random tiebreaker at order {rule.order} must be the last rule"
                    )
                continue
            if rule.metric is None:
                raise InvalidTieBreakerError(
                    f"Tiebreaker at order {rule.order} has no metric"
                )
            profile.require_metric(rule.metric)


@dataclass(frozen=True)
class LeagueRules:
    """The active, versioned rule set of one league."""

    league_id: str
    sport: SportType
    point_system: PointSystemConfig = field(default_factory=PointSystemConfig)
    tie_breakers: TieBreakerConfig = field(default_factory=TieBreakerConfig)
    version: int = 1

    @property
    def profile(self):
        return SPORT_PROFILES[self.sport]

    def validate(self) -> "LeagueRules":
        """Raise ConfigurationError if the rules cannot be used for this sport."""
        self.point_system.validate(self.sport)
        self.tie_breakers.validate(self.sport)
        return self


def build_point_system(rules, bonus_points=(), sport: Optional[SportType] = None):
    """Build a PointSystemConfig from (outcome, points) pairs.

    Outcomes may be enum members or tags. Bonus rules are (BonusCondition, points).
    """
    point_rules = tuple(
        PointRule(
            outcome if isinstance(outcome, Outcome) else parse_outcome(outcome, sport),
            int(points),
        )
        for outcome, points in rules
    )
    bonus_rules = tuple(BonusPointRule(cond, int(points)) for cond, points in bonus_points)
    return PointSystemConfig(point_rules, bonus_rules)


def build_tie_breakers(chain, sport: Optional[SportType] = None) -> TieBreakerConfig:
    """Build a TieBreakerConfig from (metric, sort) pairs, numbering them from 1."""
    rules = []
    for order, (metric, sort) in enumerate(chain, start=1):
        sort = sort if isinstance(sort, SortOrder) else SortOrder(sort.lower())
        if sort == SortOrder.RANDOM:
            metric = None
        elif not isinstance(metric, Metric):
            metric = parse_metric(metric, sport)
        rules.append(TieBreakerRule(order, metric, sort))
    return TieBreakerConfig(tuple(rules))


def default_rules(sport, league_id: str = "") -> LeagueRules:
    """Return the catalog's default rule set for a sport."""
    profile = sport_profile(sport)
    return LeagueRules(
        league_id=league_id,
        sport=profile.sport,
        point_system=build_point_system(
            DEFAULT_POINT_TEMPLATES[profile.sport], sport=profile.sport
        ),
        tie_breakers=build_tie_breakers(
            DEFAULT_TIEBREAKER_TEMPLATES[profile.sport], sport=profile.sport
        ),
    )
