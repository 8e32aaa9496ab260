"""
Simple unit tests for tiebreak resolution.
No database, no Django models - just pure function tests.
"""

import unittest

from leaguehub.standings_core.assertions import assert_standings
from leaguehub.standings_core.catalog import SPORT_PROFILES, Metric, SortOrder, SportType
from leaguehub.standings_core.classifier import classify_match
from leaguehub.standings_core.evaluator import PointEvaluator
from leaguehub.standings_core.scoring import TieBreakerConfig
from leaguehub.standings_core.structure import TeamStandingRow
from leaguehub.standings_core.tests.test_utils import (
    head_to_head_season,
    level_pair_season,
)
from leaguehub.standings_core.tiebreaks import (
    TiebreakContext,
    assign_ranks,
    build_pipeline,
    metric_refiner,
    resolve_standings,
    tiebreak_seed,
)


def _row(team_id, points=0, **metrics):
    return TeamStandingRow(
        team_id=team_id, points=points, metrics={"POINTS": points, **metrics}
    )


def _context(records=()):
    return TiebreakContext(
        league_id="league-1",
        season_id="season-1",
        profile=SPORT_PROFILES[SportType.SOCCER],
        records=records,
    )


class HeadToHeadTests(unittest.TestCase):
    def test_head_to_head_beats_goal_difference(self):
        result = head_to_head_season().compute()

        standings = assert_standings(result)
        standings.order("T2", "T1", "T3", "T4").no_unresolved_ties()
        standings.team("T1").assert_().points(6).metric("GOAL_DIFFERENCE", 8)
        standings.team("T2").assert_().points(6).metric("GOAL_DIFFERENCE", 1)

    def test_goal_difference_first(self):
        result = head_to_head_season().tiebreakers(("GOAL_DIFFERENCE", "desc")).compute()

        assert_standings(result).order("T1", "T2", "T3", "T4")

    def test_mini_table_only_counts_matches_among_tied_teams(self):
        fixture = head_to_head_season().build()
        result = fixture.compute()
        records = []
        evaluator = PointEvaluator(fixture.rules.point_system)
        for match in fixture.matches:
            records.extend(evaluator.evaluate(classify_match(match, SportType.SOCCER)))

        mini = _context(records).head_to_head_rows(["T1", "T2"])
        self.assertEqual(mini["T2"].points, 3)
        self.assertEqual(mini["T2"].played, 1)
        self.assertEqual(mini["T1"].points, 0)
        self.assertEqual(mini["T1"].metric("GOALS_CONCEDED"), 1)
        self.assertTrue(result.ok)


class RefinementTests(unittest.TestCase):
    def test_ascending_sort_puts_lowest_first(self):
        refine = metric_refiner(Metric.GOALS_CONCEDED, SortOrder.ASC)
        groups = refine(
            [
                _row("A", GOALS_CONCEDED=4),
                _row("B", GOALS_CONCEDED=1),
                _row("C", GOALS_CONCEDED=4),
            ],
            _context(),
        )
        self.assertEqual([[r.team_id for r in g] for g in groups], [["B"], ["A", "C"]])

    def test_pipeline_without_rules_orders_by_points(self):
        pipeline = build_pipeline(TieBreakerConfig())
        groups = pipeline([[_row("A", 1), _row("B", 6), _row("C", 1)]], _context())
        self.assertEqual([[r.team_id for r in g] for g in groups], [["B"], ["A", "C"]])

    def test_competition_ranking(self):
        ranked, unresolved = assign_ranks(
            [[_row("A")], [_row("B"), _row("C")], [_row("D")]]
        )
        self.assertEqual([r.rank for r in ranked], [1, 2, 2, 4])
        self.assertEqual(len(unresolved), 1)
        self.assertEqual(unresolved[0].team_ids, ("B", "C"))
        self.assertEqual(unresolved[0].rank, 2)

    def test_resolve_empty_table(self):
        self.assertEqual(resolve_standings([], TieBreakerConfig(), _context()), ([], []))

    def test_tied_teams_listed_by_team_id(self):
        result = level_pair_season().compute()
        self.assertEqual(result.table.unresolved_ties[0].team_ids, ("T2", "T3"))


class SeedTests(unittest.TestCase):
    def test_seed_ignores_team_order(self):
        self.assertEqual(
            tiebreak_seed("L", "S", ["B", "A"]), tiebreak_seed("L", "S", ["A", "B"])
        )

    def test_seed_depends_on_season(self):
        self.assertNotEqual(
            tiebreak_seed("L", "S1", ["A", "B"]), tiebreak_seed("L", "S2", ["A", "B"])
        )


if __name__ == "__main__":
    unittest.main()
