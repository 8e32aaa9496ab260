"""
Tests for the fluent assertion interface and the season builder.
"""

import unittest

from leaguehub.standings_core.assertions import assert_standings
from leaguehub.standings_core.builder import SeasonBuilder
from leaguehub.standings_core.catalog import SportType
from leaguehub.standings_core.structure import MatchStatus
from leaguehub.standings_core.tests.test_utils import (
    level_pair_season,
    three_team_soccer_season,
)


class TestStandingsAssertions(unittest.TestCase):
    def test_passing_assertions_chain(self):
        result = three_team_soccer_season().compute()
        assert_standings(result).team("T1").assert_().points(3).played(2).wins(1).losses(
            1
        ).draws(0).rank(2).form("WL")

    def test_wrong_value_fails(self):
        result = three_team_soccer_season().compute()
        with self.assertRaises(AssertionError):
            assert_standings(result).team("T1").assert_().points(4)
        with self.assertRaises(AssertionError):
            assert_standings(result).order("T1", "T2", "T3")
        with self.assertRaises(AssertionError):
            assert_standings(result).team("T9")
        with self.assertRaises(AssertionError):
            assert_standings(result).team("T1").assert_().metric("SET_RATIO", 0)

    def test_tie_assertions(self):
        result = level_pair_season().compute()
        assert_standings(result).tied("T2", "T3", rank=2)
        with self.assertRaises(AssertionError):
            assert_standings(result).no_unresolved_ties()
        with self.assertRaises(AssertionError):
            assert_standings(result).tied("T1", "T2", rank=1)

    def test_failed_computation_fails_assertion(self):
        result = SeasonBuilder(SportType.SOCCER).points(WIN=3).compute()
        with self.assertRaises(AssertionError):
            assert_standings(result)


class TestSeasonBuilder(unittest.TestCase):
    def test_match_ids_and_roster(self):
        fixture = (
            SeasonBuilder(SportType.BASKETBALL, league_id="nba", season_id="2024")
            .team("B0")
            .game("B1", "B2", "90-80")
            .game("B2", "B1", "70-75", status=MatchStatus.POSTPONED)
            .build()
        )
        self.assertEqual([m.match_id for m in fixture.matches], ["m001", "m002"])
        self.assertEqual(fixture.team_ids, ["B0", "B1", "B2"])
        self.assertEqual(fixture.matches[0].league_id, "nba")
        self.assertEqual(fixture.matches[0].season_id, "2024")

        table = fixture.compute().table
        self.assertEqual(table.match_count, 1)
        assert_standings(table).team("B0").assert_().played(0)

    def test_invalid_score(self):
        with self.assertRaises(ValueError):
            SeasonBuilder().game("T1", "T2", "3:1")


if __name__ == "__main__":
    unittest.main()
