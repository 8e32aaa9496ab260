"""
Point evaluation for classified matches.

Turns each team's outcome into table points using the league's point rules
and adds every bonus whose condition the match satisfies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple

from leaguehub.standings_core.catalog import Outcome
from leaguehub.standings_core.classifier import (
    ClassifiedMatch,
    TeamPerspective,
    condition_met,
)
from leaguehub.standings_core.errors import MissingPointRuleError
from leaguehub.standings_core.scoring import PointSystemConfig


@dataclass(frozen=True)
class TeamMatchRecord:
    """Points and metric deltas one team collected from one match."""

    match_id: str
    team_id: str
    opponent_id: str
    outcome: Outcome
    base_points: int
    bonus_points: int = 0
    metrics: Dict[str, int] = field(default_factory=dict)
    played_at: Optional[datetime] = None

    @property
    def points(self) -> int:
        return self.base_points + self.bonus_points


class PointEvaluator:
    """Applies one league's point system to classified matches."""

    def __init__(self, point_system: PointSystemConfig):
        self.point_system = point_system
        self._points = point_system.points_by_outcome()

    def base_points(self, outcome: Outcome) -> int:
        try:
            return self._points[outcome]
        except KeyError:
            raise MissingPointRuleError(outcome.value)

    def bonus_points(
        self, classified: ClassifiedMatch, perspective: TeamPerspective
    ) -> int:
        return sum(
            rule.points
            for rule in self.point_system.bonus_points
            if rule.outcome in (None, perspective.outcome)
            and condition_met(classified, perspective, rule.condition)
        )

    def evaluate(
        self, classified: ClassifiedMatch
    ) -> Tuple[TeamMatchRecord, TeamMatchRecord]:
        """Return (home_record, away_record) for a classified match."""
        return tuple(
            TeamMatchRecord(
                match_id=classified.match.match_id,
                team_id=perspective.team_id,
                opponent_id=perspective.opponent_id,
                outcome=perspective.outcome,
                base_points=self.base_points(perspective.outcome),
                bonus_points=self.bonus_points(classified, perspective),
                metrics=dict(perspective.metrics),
                played_at=classified.match.played_at,
            )
            for perspective in classified.perspectives
        )


def evaluate_match(
    classified: ClassifiedMatch, point_system: PointSystemConfig
) -> Tuple[TeamMatchRecord, TeamMatchRecord]:
    """Convenience wrapper around PointEvaluator for a single match."""
    return PointEvaluator(point_system).evaluate(classified)
