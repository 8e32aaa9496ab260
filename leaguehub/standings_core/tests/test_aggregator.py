"""
Tests for point evaluation and row aggregation.
"""

import math
import unittest
from datetime import datetime, timedelta, timezone

from leaguehub.standings_core.aggregator import FORM_LENGTH, aggregate, ratio
from leaguehub.standings_core.assertions import assert_standings
from leaguehub.standings_core.builder import SeasonBuilder
from leaguehub.standings_core.catalog import SPORT_PROFILES, Outcome, SportType
from leaguehub.standings_core.classifier import classify_match
from leaguehub.standings_core.errors import MissingPointRuleError, UnknownTagError
from leaguehub.standings_core.evaluator import PointEvaluator, evaluate_match
from leaguehub.standings_core.scoring import build_point_system, default_rules


def _day(day):
    return datetime(2024, 3, day, 15, 0, tzinfo=timezone.utc)


class PointEvaluatorTests(unittest.TestCase):
    def test_base_points(self):
        fixture = SeasonBuilder(SportType.SOCCER).game("T1", "T2", "2-1").build()
        home, away = evaluate_match(
            classify_match(fixture.matches[0], SportType.SOCCER),
            fixture.rules.point_system,
        )
        self.assertEqual((home.team_id, home.points, home.bonus_points), ("T1", 3, 0))
        self.assertEqual((away.team_id, away.opponent_id, away.points), ("T2", "T1", 0))

    def test_missing_rule(self):
        evaluator = PointEvaluator(build_point_system([("WIN", 3)]))
        with self.assertRaises(MissingPointRuleError):
            evaluator.base_points(Outcome.DRAW)

    def test_bonuses_are_summed(self):
        result = (
            SeasonBuilder(SportType.SOCCER)
            .bonus("CLEAN_SHEET", 1)
            .bonus("SCORED_3_GOALS", 1)
            .bonus("LOSS_MARGIN_AT_MOST_1", 1)
            .game("T1", "T2", "4-0")
            .game("T2", "T3", "1-2")
            .compute()
        )
        standings = assert_standings(result)
        standings.team("T1").assert_().points(5)
        # Lost by one: the losing bonus only.
        standings.team("T2").assert_().points(1)
        standings.team("T3").assert_().points(3)

    def test_bonus_limited_to_an_outcome(self):
        result = (
            SeasonBuilder(SportType.SOCCER)
            .bonus("CLEAN_SHEET", 1, outcome="WIN")
            .game("A", "B", "0-0")
            .game("C", "D", "2-0")
            .compute()
        )
        standings = assert_standings(result)
        standings.team("A").assert_().points(1)
        standings.team("B").assert_().points(1)
        standings.team("C").assert_().points(4)
        standings.team("D").assert_().points(0)

    def test_bonus_outcome_must_fit_sport(self):
        result = (
            SeasonBuilder(SportType.BASKETBALL)
            .bonus("WIN_MARGIN_AT_LEAST_10", 1, outcome="DRAW")
            .game("B1", "B2", "90-70")
            .compute()
        )
        self.assertIsInstance(result.error, UnknownTagError)

    def test_forfeits_earn_no_bonus(self):
        result = (
            SeasonBuilder(SportType.SOCCER)
            .bonus("CLEAN_SHEET", 1)
            .forfeit("T1", "T2", forfeited_by="T2", score="3-0")
            .compute()
        )
        assert_standings(result).team("T1").assert_().points(3).wins(1)
        assert_standings(result).team("T2").assert_().points(0).metric("FORFEIT_LOSSES", 1)

    def test_points_keep_bonus_rules(self):
        builder = SeasonBuilder(SportType.SOCCER).bonus("CLEAN_SHEET", 2)
        builder.points(WIN=2, DRAW=1, LOSS=0, WIN_FORFEIT=2, LOSS_FORFEIT=0)
        self.assertEqual(len(builder.rules.point_system.bonus_points), 1)
        self.assertEqual(builder.rules.point_system.points_for(Outcome.WIN), 2)


class AggregationTests(unittest.TestCase):
    def test_ratio(self):
        self.assertEqual(ratio(6, 3), 2.0)
        self.assertEqual(ratio(3, 0), math.inf)
        self.assertEqual(ratio(0, 0), 0.0)
        self.assertEqual(ratio(0, 3), 0.0)

    def test_match_win_ratio_and_basketball_difference(self):
        result = (
            SeasonBuilder(SportType.BASKETBALL)
            .game("B1", "B2", "90-80")
            .game("B1", "B3", "70-75")
            .game("B2", "B3", "60-61")
            .compute()
        )
        standings = assert_standings(result)
        standings.team("B1").assert_().points(3).metric("MATCH_WIN_RATIO", 0.5).metric(
            "POINT_DIFFERENCE", 5
        )
        standings.team("B3").assert_().points(4).metric("MATCH_WIN_RATIO", 1.0)
        standings.order("B3", "B1", "B2")

    def test_roster_only_team(self):
        rows = aggregate([], SPORT_PROFILES[SportType.VOLLEYBALL], team_ids=["V1"])
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].played, 0)
        self.assertEqual(rows[0].metric("SET_RATIO"), 0.0)
        self.assertEqual(rows[0].metric("MATCH_WIN_RATIO"), 0.0)

    def test_form_follows_play_date(self):
        result = (
            SeasonBuilder(SportType.SOCCER)
            .game("T1", "T2", "2-0", played_at=_day(3))
            .game("T3", "T1", "1-0", played_at=_day(1))
            .game("T1", "T4", "1-1", played_at=_day(2))
            .compute()
        )
        assert_standings(result).team("T1").assert_().form("LDW")

    def test_form_compares_instants_across_offsets(self):
        # 10:00 at UTC+5 is 05:00 UTC, earlier than 08:00 UTC.
        plus_five = timezone(timedelta(hours=5))
        result = (
            SeasonBuilder(SportType.SOCCER)
            .game("T1", "T2", "1-0", played_at=datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc))
            .game("T1", "T3", "0-1", played_at=datetime(2024, 3, 1, 10, 0, tzinfo=plus_five))
            .game("T1", "T4", "2-2", played_at=datetime(2024, 3, 1, 9, 0))
            .compute()
        )
        assert_standings(result).team("T1").assert_().form("LWD")

    def test_form_keeps_last_results_only(self):
        builder = SeasonBuilder(SportType.SOCCER)
        for day in range(1, FORM_LENGTH + 2):
            score = "0-1" if day == 1 else "1-0"
            builder.game("T1", f"X{day}", score, played_at=_day(day))
        result = builder.compute()
        assert_standings(result).team("T1").assert_().form("W" * FORM_LENGTH).played(
            FORM_LENGTH + 1
        )

    def test_forfeit_losses_counted(self):
        result = (
            SeasonBuilder(SportType.HOCKEY)
            .forfeit("H1", "H2", forfeited_by="H1")
            .forfeit("H1", "H3", forfeited_by="H1")
            .compute()
        )
        assert_standings(result).team("H1").assert_().losses(2).metric("FORFEIT_LOSSES", 2)

    def test_record_order_does_not_change_rows(self):
        fixture = (
            SeasonBuilder(SportType.SOCCER)
            .game("T1", "T2", "2-0")
            .game("T2", "T3", "3-3")
            .game("T3", "T1", "1-0")
            .build()
        )
        evaluator = PointEvaluator(default_rules(SportType.SOCCER).point_system)
        records = []
        for match in fixture.matches:
            records.extend(evaluator.evaluate(classify_match(match, SportType.SOCCER)))
        profile = SPORT_PROFILES[SportType.SOCCER]
        self.assertEqual(aggregate(records, profile), aggregate(records[::-1], profile))


if __name__ == "__main__":
    unittest.main()
