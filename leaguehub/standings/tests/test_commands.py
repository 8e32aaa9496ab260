"""
Tests for the compute_standings and simulate_season management commands.
"""

import json
import os
import tempfile
from io import StringIO

from django.core.cache import caches
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase

from leaguehub.standings_core.converter import league_rules_to_dict, match_to_dict
from leaguehub.standings_core.tests.test_utils import (
    level_pair_season,
    three_team_soccer_season,
)


def fixture_dict(builder):
    fixture = builder.build()
    return {
        "league": league_rules_to_dict(fixture.rules),
        "seasonId": fixture.season_id,
        "teams": fixture.team_ids,
        "matches": [match_to_dict(m) for m in fixture.matches],
    }


class CommandTestCase(SimpleTestCase):
    def setUp(self):
        caches["default"].clear()
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def write_fixture(self, data, name="season.json"):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        return path

    def run_command(self, *args):
        out = StringIO()
        call_command(*args, stdout=out)
        return out.getvalue()


class ComputeStandingsCommandTests(CommandTestCase):
    def test_text_table(self):
        path = self.write_fixture(fixture_dict(three_team_soccer_season()))
        output = self.run_command("compute_standings", path)

        lines = output.splitlines()
        self.assertIn("league-1 / season-1 (SOCCER), 3 matches, rules v1", lines[0])
        self.assertEqual(lines[2].split()[:2], ["1", "T3"])
        self.assertIn("✓ All matches aggregated", output)

    def test_json_table(self):
        path = self.write_fixture(fixture_dict(three_team_soccer_season()))
        data = json.loads(self.run_command("compute_standings", path, "--json"))

        self.assertEqual(data["matchCount"], 3)
        self.assertEqual([r["teamId"] for r in data["standings"]], ["T3", "T1", "T2"])
        self.assertEqual([r["points"] for r in data["standings"]], [4, 3, 1])

    def test_partial_table_needs_flag(self):
        builder = three_team_soccer_season().game("T1", "T1", "1-0")
        path = self.write_fixture(fixture_dict(builder))

        with self.assertRaises(CommandError):
            self.run_command("compute_standings", path)

        output = self.run_command("compute_standings", path, "--allow-partial")
        self.assertIn("Excluded m004", output)
        self.assertNotIn("All matches aggregated", output)

    def test_unresolved_tie_is_reported(self):
        path = self.write_fixture(fixture_dict(level_pair_season()))

        output = self.run_command("compute_standings", path)
        self.assertIn("Unresolved tie at rank", output)

    def test_missing_fixture(self):
        with self.assertRaises(CommandError):
            self.run_command("compute_standings", os.path.join(self.tmpdir.name, "nope.json"))

    def test_invalid_rules(self):
        data = fixture_dict(three_team_soccer_season())
        data["league"]["pointSystemConfig"]["rules"] = [{"outcome": "WIN", "points": 3}]
        path = self.write_fixture(data)

        with self.assertRaises(CommandError) as ctx:
            self.run_command("compute_standings", path)
        self.assertIn("Invalid league configuration", str(ctx.exception))

    def test_malformed_fixture(self):
        data = fixture_dict(three_team_soccer_season())
        del data["seasonId"]
        path = self.write_fixture(data)

        with self.assertRaises(CommandError):
            self.run_command("compute_standings", path)


class SimulateSeasonCommandTests(CommandTestCase):
    def test_hockey_season(self):
        data = json.loads(
            self.run_command("simulate_season", "--sport", "hockey", "--teams", "6", "--json")
        )

        self.assertEqual(data["sportType"], "HOCKEY")
        self.assertEqual(data["matchCount"], 30)
        self.assertEqual(sum(r["gamesPlayed"] for r in data["standings"]), 60)
        self.assertFalse(data["partial"])

    def test_seed_determines_season(self):
        args = ("simulate_season", "--teams", "5", "--seed", "7", "--json")
        self.assertEqual(self.run_command(*args), self.run_command(*args))

    def test_text_summary(self):
        output = self.run_command("simulate_season", "--sport", "VOLLEYBALL", "--teams", "4")
        self.assertIn("✓ Simulated 12 volleyball matches between 4 teams (seed 4545)", output)

    def test_written_fixture_recomputes_to_same_table(self):
        path = os.path.join(self.tmpdir.name, "simulated.json")
        simulated = self.run_command(
            "simulate_season",
            "--sport",
            "basketball",
            "--teams",
            "6",
            "--forfeit-rate",
            "0.1",
            "--output",
            path,
            "--json",
        )

        recomputed = self.run_command("compute_standings", path, "--json")
        self.assertEqual(json.loads(simulated), json.loads(recomputed))

    def test_invalid_arguments(self):
        with self.assertRaises(CommandError):
            self.run_command("simulate_season", "--teams", "1")
        with self.assertRaises(CommandError):
            self.run_command("simulate_season", "--legs", "0")
        with self.assertRaises(CommandError):
            self.run_command("simulate_season", "--forfeit-rate", "1.5")
