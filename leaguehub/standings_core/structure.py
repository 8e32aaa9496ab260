"""
Data structures for match results and standings tables.

Match results come from the results subsystem and are treated as immutable
inputs. Rows and tables are derived: they are recomputed from match results
and never edited in place.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from leaguehub.standings_core.catalog import SportType


class MatchStatus(Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    POSTPONED = "POSTPONED"
    CANCELLED = "CANCELLED"
    FORFEIT = "FORFEIT"


ELIGIBLE_STATUSES = frozenset({MatchStatus.COMPLETED, MatchStatus.FORFEIT})


@dataclass(frozen=True)
class PeriodScore:
    """Score of one period, quarter or set, from the home team's side first."""

    home: int
    away: int


@dataclass(frozen=True)
class MatchResult:
    """A single match as recorded by the results subsystem."""

    match_id: str
    season_id: str
    league_id: str
    home_team_id: str
    away_team_id: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    period_breakdown: Tuple[PeriodScore, ...] = ()
    status: MatchStatus = MatchStatus.COMPLETED
    forfeited_by: Optional[str] = None
    played_at: Optional[datetime] = None

    @property
    def is_eligible(self) -> bool:
        """Only finished matches count towards the standings."""
        return self.status in ELIGIBLE_STATUSES

    @property
    def team_ids(self) -> Tuple[str, str]:
        return (self.home_team_id, self.away_team_id)


@dataclass(frozen=True)
class TeamStandingRow:
    """One team's line in the standings table."""

    team_id: str
    points: int = 0
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    metrics: Dict[str, float] = field(default_factory=dict)
    rank: int = 0
    form: str = ""

    def metric(self, name: str, default: float = 0) -> float:
        return self.metrics.get(name, default)


@dataclass(frozen=True)
class ExcludedMatch:
    """A match left out of the aggregation, with the reason."""

    match_id: str
    reason: str


@dataclass(frozen=True)
class UnresolvedTie:
    """Teams the whole tiebreaker chain could not separate; they share a rank."""

    team_ids: Tuple[str, ...]
    rank: int


@dataclass(frozen=True)
class StandingsTable:
    """Ranked standings for one league season.

    ``match_count`` is the number of eligible matches the table was computed
    from and ``config_version`` the league rules version; the service compares
    both to decide whether a cached table is stale.
    """

    league_id: str
    season_id: str
    sport: SportType
    rows: Tuple[TeamStandingRow, ...] = ()
    match_count: int = 0
    config_version: int = 1
    excluded_matches: Tuple[ExcludedMatch, ...] = ()
    unresolved_ties: Tuple[UnresolvedTie, ...] = ()

    @property
    def is_partial(self) -> bool:
        return bool(self.excluded_matches)

    @property
    def aggregated_match_count(self) -> int:
        """Matches that actually contributed to the rows."""
        return self.match_count - len(self.excluded_matches)

    def row_for(self, team_id: str) -> Optional[TeamStandingRow]:
        for row in self.rows:
            if row.team_id == team_id:
                return row
        return None

    def ranks(self) -> Dict[str, int]:
        return {row.team_id: row.rank for row in self.rows}

    def team_order(self) -> List[str]:
        return [row.team_id for row in self.rows]
