"""
Fluent assertion interface for testing standings tables.

    assert_standings(result).team("T3").assert_().points(4).rank(1)
    assert_standings(result).order("T3", "T1", "T2")
"""

from dataclasses import dataclass
from typing import Union

from leaguehub.standings_core.engine import StandingsResult
from leaguehub.standings_core.structure import StandingsTable, TeamStandingRow

# Ratios are floats; anything closer than this is considered equal.
TOLERANCE = 0.0001


@dataclass
class StandingsAssertion:
    """Assertions about a whole standings table."""

    table: StandingsTable

    def team(self, team_id: str) -> "TeamAssertion":
        row = self.table.row_for(team_id)
        if row is None:
            raise AssertionError(f"Team '{team_id}' not found in standings")
        return TeamAssertion(self.table, row)

    def order(self, *team_ids: str) -> "StandingsAssertion":
        """Assert the exact row order of the table."""
        actual = self.table.team_order()
        if actual != list(team_ids):
            raise AssertionError(f"Expected order {list(team_ids)}, got {actual}")
        return self

    def tied(self, *team_ids: str, rank: int) -> "StandingsAssertion":
        """Assert the teams share ``rank`` and are reported as an unresolved tie."""
        for team_id in team_ids:
            self.team(team_id).assert_().rank(rank)
        expected = set(team_ids)
        if not any(
            set(t.team_ids) == expected and t.rank == rank
            for t in self.table.unresolved_ties
        ):
            raise AssertionError(
                f"No unresolved tie reported for {sorted(expected)} at rank {rank}"
            )
        return self

    def no_unresolved_ties(self) -> "StandingsAssertion":
        if self.table.unresolved_ties:
            raise AssertionError(
                f"Expected no unresolved ties, got {self.table.unresolved_ties}"
            )
        return self

    def excluded(self, *match_ids: str) -> "StandingsAssertion":
        actual = sorted(m.match_id for m in self.table.excluded_matches)
        if actual != sorted(match_ids):
            raise AssertionError(f"Expected excluded matches {sorted(match_ids)}, got {actual}")
        return self

    def conserves_matches(self) -> "StandingsAssertion":
        """Every aggregated match adds exactly one game played to each side."""
        played = sum(row.played for row in self.table.rows)
        expected = 2 * self.table.aggregated_match_count
        if played != expected:
            raise AssertionError(f"Total games played {played}, expected {expected}")
        return self


@dataclass
class TeamAssertion:
    table: StandingsTable
    row: TeamStandingRow

    def assert_(self) -> "TeamResultAssertion":
        return TeamResultAssertion(self.table, self.row)


class TeamResultAssertion(TeamAssertion):
    """Fluent interface for asserting one team's row."""

    def _check(self, what: str, expected, actual) -> "TeamResultAssertion":
        if expected != actual:
            raise AssertionError(
                f"{self.row.team_id} expected {expected} {what}, got {actual}"
            )
        return self

    def points(self, expected: int) -> "TeamResultAssertion":
        return self._check("points", expected, self.row.points)

    def played(self, expected: int) -> "TeamResultAssertion":
        return self._check("games played", expected, self.row.played)

    def wins(self, expected: int) -> "TeamResultAssertion":
        return self._check("wins", expected, self.row.won)

    def draws(self, expected: int) -> "TeamResultAssertion":
        return self._check("draws", expected, self.row.drawn)

    def losses(self, expected: int) -> "TeamResultAssertion":
        return self._check("losses", expected, self.row.lost)

    def rank(self, expected: int) -> "TeamResultAssertion":
        return self._check("rank", expected, self.row.rank)

    def form(self, expected: str) -> "TeamResultAssertion":
        return self._check("form", expected, self.row.form)

    def metric(self, name: str, expected: Union[int, float]) -> "TeamResultAssertion":
        if name not in self.row.metrics:
            raise AssertionError(f"Metric '{name}' not calculated for {self.row.team_id}")
        actual = self.row.metrics[name]
        if actual == expected:
            return self
        if abs(actual - expected) > TOLERANCE:
            raise AssertionError(
                f"{self.row.team_id} expected {expected} for {name}, got {actual}"
            )
        return self


def assert_standings(result: Union[StandingsResult, StandingsTable]) -> StandingsAssertion:
    """Entry point for standings assertions; fails if the result carries an error."""
    if isinstance(result, StandingsResult):
        if result.error is not None:
            raise AssertionError(f"Standings computation failed: {result.error}")
        result = result.table
    return StandingsAssertion(result)
