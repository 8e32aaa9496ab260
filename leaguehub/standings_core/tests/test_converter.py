"""
Tests for converting API payloads to and from standings structures.
"""

import unittest
from datetime import datetime, timezone

from leaguehub.standings_core.catalog import BonusKind, Metric, Outcome, SortOrder, SportType
from leaguehub.standings_core.converter import (
    league_rules_from_dict,
    league_rules_to_dict,
    match_from_dict,
    match_to_dict,
    table_to_dict,
)
from leaguehub.standings_core.engine import compute_standings
from leaguehub.standings_core.errors import (
    ConfigurationError,
    InvalidTieBreakerError,
    UnknownTagError,
)
from leaguehub.standings_core.scoring import default_rules
from leaguehub.standings_core.structure import MatchStatus, PeriodScore
from leaguehub.standings_core.tests.test_utils import (
    three_team_soccer_season,
    volleyball_season,
)

LEGACY_LEAGUE = {
    "leagueId": "lg-7",
    "sportType": "soccer",
    "version": 3,
    "pointSystemConfig": {
        "rules": [
            {"outcome": "WIN", "points": 3},
            {"outcome": "DRAW", "points": 1},
            {"outcome": "LOSS", "points": 0},
            {"outcome": "WiN_FORFEIT", "points": 3},
            {"outcome": "LOSS_FORFEIT", "points": 0},
        ],
        "bonusPoints": [{"condition": "SCORED_4_GOALS", "points": 1}],
    },
    "tieBreakerConfig": {
        "tieBreakers": [
            {"order": 2, "metric": "GOAL_DIFFERENCE", "sort": "DESC"},
            {"order": 1, "rule": "HEAD_TO_HEAD_POINTS", "sort": "desc"},
            {"order": 3, "rule": "COIN_TOSS", "sort": "random"},
        ]
    },
}


class LeagueRulesConversionTests(unittest.TestCase):
    def test_legacy_payload_is_migrated(self):
        with self.assertLogs("leaguehub.standings_core.converter", level="WARNING") as logs:
            rules = league_rules_from_dict(LEGACY_LEAGUE)

        self.assertEqual(rules.league_id, "lg-7")
        self.assertEqual(rules.sport, SportType.SOCCER)
        self.assertEqual(rules.version, 3)
        self.assertEqual(rules.point_system.points_for(Outcome.WIN_FORFEIT), 3)
        self.assertEqual(
            rules.point_system.bonus_points[0].condition.kind, BonusKind.SCORED_AT_LEAST
        )

        chain = rules.tie_breakers.ordered()
        self.assertEqual(
            [r.metric for r in chain],
            [Metric.HEAD_TO_HEAD_POINTS, Metric.GOAL_DIFFERENCE, None],
        )
        self.assertEqual(chain[2].sort, SortOrder.RANDOM)
        rules.validate()
        self.assertTrue(any("legacy 'metric' key" in line for line in logs.output))
        self.assertTrue(any("not lower-case" in line for line in logs.output))

    def test_canonical_output(self):
        rules = league_rules_from_dict(LEGACY_LEAGUE)
        data = league_rules_to_dict(rules)

        self.assertEqual(data["sportType"], "SOCCER")
        self.assertEqual(
            data["tieBreakerConfig"][1],
            {
                "order": 2,
                "rule": "GOAL_DIFFERENCE",
                "sort": "desc",
                "description": "GOAL_DIFFERENCE",
            },
        )
        self.assertNotIn("metric", data["tieBreakerConfig"][0])
        self.assertEqual(
            data["pointSystemConfig"]["bonusPoints"],
            [{"condition": "SCORED_AT_LEAST_4", "points": 1}],
        )
        self.assertEqual(league_rules_to_dict(league_rules_from_dict(data)), data)

    def test_points_must_be_whole_numbers(self):
        for bad in (2.5, "3", True, None):
            with self.subTest(points=bad):
                data = league_rules_to_dict(league_rules_from_dict(LEGACY_LEAGUE))
                data["pointSystemConfig"]["rules"][0]["points"] = bad
                with self.assertRaises(ConfigurationError):
                    league_rules_from_dict(data)

        data = league_rules_to_dict(league_rules_from_dict(LEGACY_LEAGUE))
        data["pointSystemConfig"]["bonusPoints"][0]["points"] = 0.5
        with self.assertRaises(ConfigurationError):
            league_rules_from_dict(data)

    def test_bonus_outcome(self):
        data = league_rules_to_dict(league_rules_from_dict(LEGACY_LEAGUE))
        data["pointSystemConfig"]["bonusPoints"] = [
            {"condition": "CLEAN_SHEET", "outcome": "win", "points": 1}
        ]
        rules = league_rules_from_dict(data)

        self.assertEqual(rules.point_system.bonus_points[0].outcome, Outcome.WIN)
        self.assertEqual(
            league_rules_to_dict(rules)["pointSystemConfig"]["bonusPoints"],
            [{"condition": "CLEAN_SHEET", "points": 1, "outcome": "WIN"}],
        )

        data["pointSystemConfig"]["bonusPoints"][0]["outcome"] = "WIN_3_0"
        with self.assertRaises(UnknownTagError):
            league_rules_from_dict(data)

    def test_unknown_outcome(self):
        data = {
            "sportType": "BASKETBALL",
            "pointSystemConfig": {"rules": [{"outcome": "DRAW", "points": 1}]},
        }
        with self.assertRaises(UnknownTagError):
            league_rules_from_dict(data, league_id="b1")

    def test_tiebreaker_without_rule(self):
        data = {"sportType": "SOCCER", "tieBreakerConfig": [{"order": 1, "sort": "desc"}]}
        with self.assertRaises(InvalidTieBreakerError):
            league_rules_from_dict(data)

    def test_unknown_sort(self):
        data = {
            "sportType": "SOCCER",
            "tieBreakerConfig": [{"order": 1, "rule": "WINS", "sort": "sideways"}],
        }
        with self.assertRaises(InvalidTieBreakerError):
            league_rules_from_dict(data)

    def test_missing_sport(self):
        with self.assertRaises(ConfigurationError):
            league_rules_from_dict({"leagueId": "x"})


class MatchConversionTests(unittest.TestCase):
    def test_match_payload(self):
        match = match_from_dict(
            {
                "matchId": 17,
                "seasonId": "s1",
                "leagueId": "l1",
                "homeTeamId": "H",
                "awayTeamId": "A",
                "homeScore": 2,
                "awayScore": 1,
                "periodBreakdown": [[1, 0], {"home": 1, "away": 1}],
                "status": "completed",
                "playedAt": "2024-03-01T15:00:00Z",
            }
        )
        self.assertEqual(match.match_id, "17")
        self.assertEqual(match.period_breakdown, (PeriodScore(1, 0), PeriodScore(1, 1)))
        self.assertEqual(match.status, MatchStatus.COMPLETED)
        self.assertEqual(match.played_at, datetime(2024, 3, 1, 15, 0, tzinfo=timezone.utc))
        self.assertEqual(match_from_dict(match_to_dict(match)), match)

    def test_forfeit_payload(self):
        match = match_from_dict(
            {
                "id": "m9",
                "seasonId": "s1",
                "leagueId": "l1",
                "homeTeamId": "H",
                "awayTeamId": "A",
                "status": "FORFEIT",
                "forfeitedBy": "A",
            }
        )
        self.assertIsNone(match.home_score)
        self.assertEqual(match.forfeited_by, "A")
        self.assertEqual(match_to_dict(match)["forfeitedBy"], "A")

    def test_numeric_ids_in_forfeit(self):
        match = match_from_dict(
            {
                "matchId": 1,
                "seasonId": 2024,
                "leagueId": 7,
                "homeTeamId": 10,
                "awayTeamId": 20,
                "status": "FORFEIT",
                "forfeitedBy": 20,
            }
        )
        self.assertEqual(match.forfeited_by, "20")

        rules = default_rules(SportType.SOCCER, league_id="7")
        table = compute_standings(rules, "2024", [match]).unwrap(allow_partial=False)
        self.assertEqual(table.team_order(), ["10", "20"])
        self.assertEqual(table.row_for("20").metric("FORFEIT_LOSSES"), 1)

    def test_missing_field(self):
        with self.assertRaises(ValueError):
            match_from_dict({"matchId": "m1", "seasonId": "s1", "leagueId": "l1"})


class TableConversionTests(unittest.TestCase):
    def test_soccer_table(self):
        data = table_to_dict(three_team_soccer_season().compute().table)

        self.assertEqual(data["sportType"], "SOCCER")
        self.assertEqual(data["matchCount"], 3)
        self.assertFalse(data["partial"])
        first = data["standings"][0]
        self.assertEqual(first["teamId"], "T3")
        self.assertEqual(first["rank"], 1)
        self.assertEqual(first["gamesPlayed"], 2)
        self.assertEqual((first["goalsFor"], first["goalsAgainst"]), (3, 1))
        self.assertEqual(first["goalDifference"], 2)
        self.assertEqual(first["form"], "DW")

    def test_infinite_ratio_renders_as_null(self):
        data = table_to_dict(volleyball_season().compute().table)
        top = data["standings"][0]
        self.assertEqual(top["teamId"], "A")
        self.assertIsNone(top["metrics"]["SET_RATIO"])
        self.assertEqual((top["goalsFor"], top["goalsAgainst"]), (3, 0))

    def test_excluded_matches_listed(self):
        table = three_team_soccer_season().game("T1", "T1", "1-0").compute().table
        data = table_to_dict(table)
        self.assertTrue(data["partial"])
        self.assertEqual(data["excludedMatches"][0]["matchId"], "m004")


if __name__ == "__main__":
    unittest.main()
