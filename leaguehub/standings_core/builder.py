"""
Builder for creating league seasons with a fluent API.

Used by tests and by the management commands to describe a season (rules,
roster, results) without any database, then compute its standings:

    result = (
        SeasonBuilder(SportType.SOCCER)
        .points(WIN=3, DRAW=1, LOSS=0, WIN_FORFEIT=3, LOSS_FORFEIT=0)
        .tiebreakers(("GOAL_DIFFERENCE", "desc"))
        .game("T1", "T2", "3-1")
        .compute()
    )
"""

import random
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Tuple, Union

from leaguehub.standings_core.catalog import SportType, parse_bonus_condition, parse_outcome
from leaguehub.standings_core.engine import StandingsResult, compute_standings
from leaguehub.standings_core.scoring import (
    BonusPointRule,
    LeagueRules,
    build_point_system,
    build_tie_breakers,
    default_rules,
)
from leaguehub.standings_core.structure import MatchResult, MatchStatus, PeriodScore
from leaguehub.standings_core.tiebreaks import RngFactory


def _parse_score(score: str) -> Tuple[int, int]:
    """Parse "3-1" into (3, 1)."""
    try:
        home, away = score.split("-")
        return int(home), int(away)
    except ValueError:
        raise ValueError(f"Invalid score '{score}', expected e.g. '3-1'")


@dataclass
class SeasonFixture:
    """Everything needed to compute one season's standings."""

    rules: LeagueRules
    season_id: str
    team_ids: List[str] = field(default_factory=list)
    matches: List[MatchResult] = field(default_factory=list)

    def compute(self, rng_factory: RngFactory = random.Random) -> StandingsResult:
        return compute_standings(
            self.rules,
            self.season_id,
            self.matches,
            team_ids=self.team_ids,
            rng_factory=rng_factory,
        )


class SeasonBuilder:
    """Builder for season fixtures."""

    def __init__(
        self,
        sport: Union[SportType, str] = SportType.SOCCER,
        league_id: str = "league-1",
        season_id: str = "season-1",
    ):
        self.rules = default_rules(sport, league_id)
        self.season_id = season_id
        self.team_ids: List[str] = []
        self.matches: List[MatchResult] = []
        self._next_match = 1

    # Rules

    def league(self, league_id: str, version: Optional[int] = None) -> "SeasonBuilder":
        self.rules = replace(
            self.rules,
            league_id=league_id,
            version=self.rules.version if version is None else version,
        )
        return self

    def season(self, season_id: str) -> "SeasonBuilder":
        self.season_id = season_id
        return self

    def points(self, **points_by_outcome: int) -> "SeasonBuilder":
        """Replace the point rules, e.g. ``points(WIN=3, DRAW=1, LOSS=0)``."""
        point_system = build_point_system(points_by_outcome.items())
        self.rules = replace(
            self.rules,
            point_system=replace(point_system, bonus_points=self.rules.point_system.bonus_points),
        )
        return self

    def bonus(
        self, condition: str, points: int, outcome: Optional[str] = None
    ) -> "SeasonBuilder":
        """Add a bonus rule such as ``bonus("CLEAN_SHEET", 1, outcome="WIN")``."""
        rule = BonusPointRule(
            parse_bonus_condition(condition),
            points,
            outcome=None if outcome is None else parse_outcome(outcome),
        )
        point_system = self.rules.point_system
        self.rules = replace(
            self.rules,
            point_system=replace(point_system, bonus_points=point_system.bonus_points + (rule,)),
        )
        return self

    def tiebreakers(self, *chain: Tuple[str, str]) -> "SeasonBuilder":
        """Replace the tiebreaker chain with (metric, sort) pairs in order."""
        self.rules = replace(self.rules, tie_breakers=build_tie_breakers(chain))
        return self

    # Roster and results

    def team(self, *team_ids: str) -> "SeasonBuilder":
        for team_id in team_ids:
            if team_id not in self.team_ids:
                self.team_ids.append(team_id)
        return self

    def _new_match_id(self) -> str:
        match_id = f"m{self._next_match:03d}"
        self._next_match += 1
        return match_id

    def add_match(self, match: MatchResult) -> "SeasonBuilder":
        """Add a fully specified match result (low-level API)."""
        self.team(match.home_team_id, match.away_team_id)
        self.matches.append(match)
        return self

    def game(
        self,
        home: str,
        away: str,
        score: str,
        periods: Tuple[str, ...] = (),
        played_at: Optional[datetime] = None,
        status: MatchStatus = MatchStatus.COMPLETED,
        match_id: Optional[str] = None,
    ) -> "SeasonBuilder":
        """Record a game with a final score like "3-1" and optional period scores."""
        home_score, away_score = _parse_score(score)
        return self.add_match(
            MatchResult(
                match_id=match_id or self._new_match_id(),
                season_id=self.season_id,
                league_id=self.rules.league_id,
                home_team_id=home,
                away_team_id=away,
                home_score=home_score,
                away_score=away_score,
                period_breakdown=tuple(PeriodScore(*_parse_score(p)) for p in periods),
                status=status,
                played_at=played_at,
            )
        )

    def sets(
        self, home: str, away: str, *set_scores: str, played_at: Optional[datetime] = None
    ) -> "SeasonBuilder":
        """Record a set-based match from its set scores, e.g. "25-20"."""
        breakdown = tuple(PeriodScore(*_parse_score(s)) for s in set_scores)
        home_sets = sum(1 for p in breakdown if p.home > p.away)
        return self.add_match(
            MatchResult(
                match_id=self._new_match_id(),
                season_id=self.season_id,
                league_id=self.rules.league_id,
                home_team_id=home,
                away_team_id=away,
                home_score=home_sets,
                away_score=len(breakdown) - home_sets,
                period_breakdown=breakdown,
                played_at=played_at,
            )
        )

    def forfeit(
        self, home: str, away: str, forfeited_by: str, score: Optional[str] = None
    ) -> "SeasonBuilder":
        """Record a forfeit; ``score`` is the awarded score if the league records one."""
        home_score, away_score = _parse_score(score) if score else (None, None)
        return self.add_match(
            MatchResult(
                match_id=self._new_match_id(),
                season_id=self.season_id,
                league_id=self.rules.league_id,
                home_team_id=home,
                away_team_id=away,
                home_score=home_score,
                away_score=away_score,
                status=MatchStatus.FORFEIT,
                forfeited_by=forfeited_by,
            )
        )

    # Output

    def build(self) -> SeasonFixture:
        return SeasonFixture(
            rules=self.rules,
            season_id=self.season_id,
            team_ids=list(self.team_ids),
            matches=list(self.matches),
        )

    def compute(self, rng_factory: RngFactory = random.Random) -> StandingsResult:
        return self.build().compute(rng_factory)
