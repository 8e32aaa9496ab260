"""
Management command to simulate a full season and print its standings.

Generates a double round robin for a number of Faker-named teams, draws a
result for every fixture with the given seed and ranks them with the sport's
default rules. The same seed always produces the same season.
"""

import json

from django.core.management.base import BaseCommand, CommandError

from leaguehub.standings.management.commands.compute_standings import write_table
from leaguehub.standings.service import StandingsService
from leaguehub.standings.simulation import simulate_season
from leaguehub.standings.sources import InMemorySeasonStore
from leaguehub.standings_core.catalog import SportType
from leaguehub.standings_core.converter import league_rules_to_dict, match_to_dict
from leaguehub.standings_core.errors import StandingsError


class Command(BaseCommand):
    help = "Simulate a random season and compute its standings"

    def add_arguments(self, parser):
        parser.add_argument(
            "--sport",
            type=str,
            default=SportType.SOCCER.value,
            choices=[s.value for s in SportType] + [s.value.lower() for s in SportType],
            help="Sport of the simulated league (default: SOCCER)",
        )
        parser.add_argument(
            "--teams",
            type=int,
            default=8,
            help="Number of teams (default: 8)",
        )
        parser.add_argument(
            "--seed",
            type=int,
            default=4545,
            help="Random seed for names, schedule and results (default: 4545)",
        )
        parser.add_argument(
            "--legs",
            type=int,
            default=2,
            help="Times every pair of teams meets (default: 2)",
        )
        parser.add_argument(
            "--forfeit-rate",
            type=float,
            default=0.0,
            help="Probability of a forfeit result (default: 0.0)",
        )
        parser.add_argument(
            "--output",
            type=str,
            help="Write the season as a JSON fixture for compute_standings",
        )
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the table as JSON instead of a text table",
        )

    def handle(self, *args, **options):
        teams = options["teams"]
        legs = options["legs"]
        forfeit_rate = options["forfeit_rate"]
        if teams < 2:
            raise CommandError("A season needs at least two teams")
        if legs < 1:
            raise CommandError("--legs must be at least 1")
        if not 0.0 <= forfeit_rate <= 1.0:
            raise CommandError("--forfeit-rate must be between 0 and 1")

        rules, team_ids, matches = simulate_season(
            options["sport"],
            teams,
            options["seed"],
            legs=legs,
            forfeit_rate=forfeit_rate,
        )
        season_id = matches[0].season_id

        if options.get("output"):
            fixture = {
                "league": league_rules_to_dict(rules),
                "seasonId": season_id,
                "teams": team_ids,
                "matches": [match_to_dict(m) for m in matches],
            }
            with open(options["output"], "w", encoding="utf-8") as f:
                json.dump(fixture, f, indent=2)

        store = InMemorySeasonStore()
        store.set_rules(rules)
        store.add_teams(rules.league_id, season_id, team_ids)
        for match in matches:
            store.add_result(match)

        service = StandingsService(store, store)
        try:
            table = service.refresh(rules.league_id, season_id, allow_partial=True)
        except StandingsError as e:
            raise CommandError(str(e))
        finally:
            service.shutdown()

        if not options["json"]:
            self.stdout.write(
                self.style.SUCCESS(
                    f"✓ Simulated {len(matches)} {rules.sport.value.lower()} matches "
                    f"between {teams} teams (seed {options['seed']})"
                )
            )
            if options.get("output"):
                self.stdout.write(f"Fixture written to {options['output']}")
        write_table(self, table, as_json=options["json"])
