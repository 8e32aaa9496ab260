"""
Management command to compute a standings table from a JSON fixture.

The fixture holds one league's rules, a season roster and its match results
in the API's camelCase shape. Useful for checking a league's configuration
against real results before it goes live.
"""

import json
import os

from django.core.management.base import BaseCommand, CommandError

from leaguehub.standings.service import StandingsService
from leaguehub.standings.sources import load_fixture
from leaguehub.standings_core.catalog import sport_profile
from leaguehub.standings_core.converter import row_to_dict, table_to_dict
from leaguehub.standings_core.errors import ComputationError, ConfigurationError


class Command(BaseCommand):
    help = "Compute the standings table of a season stored in a JSON fixture"

    def add_arguments(self, parser):
        parser.add_argument("fixture", type=str, help="Path to the JSON fixture")
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the table as JSON instead of a text table",
        )
        parser.add_argument(
            "--allow-partial",
            action="store_true",
            help="Print the table even if some matches could not be aggregated",
        )

    def handle(self, *args, **options):
        path = options["fixture"]
        if not os.path.exists(path):
            raise CommandError(f"Fixture file not found: {path}")

        try:
            store, league_id, season_id = load_fixture(path)
        except (ValueError, KeyError, TypeError) as e:
            raise CommandError(f"Invalid fixture {path}: {e}")
        except ConfigurationError as e:
            raise CommandError(f"Invalid league configuration: {e}")

        service = StandingsService(store, store)
        try:
            table = service.refresh(
                league_id, season_id, allow_partial=options["allow_partial"]
            )
        except ConfigurationError as e:
            raise CommandError(f"Invalid league configuration: {e}")
        except ComputationError as e:
            raise CommandError(str(e))
        finally:
            service.shutdown()

        write_table(self, table, as_json=options["json"])


def write_table(command, table, as_json=False):
    """Write a standings table to a command's stdout."""
    if as_json:
        command.stdout.write(json.dumps(table_to_dict(table), indent=2))
        return

    score_kind = sport_profile(table.sport).score_kind
    command.stdout.write(
        f"{table.league_id} / {table.season_id} ({table.sport.value}), "
        f"{table.match_count} matches, rules v{table.config_version}"
    )
    command.stdout.write(
        f"{'#':>3}  {'Team':<28} {'P':>3} {'W':>3} {'D':>3} {'L':>3} "
        f"{'For':>5} {'Agst':>5} {'Diff':>5} {'Pts':>4}  Form"
    )
    for row in table.rows:
        data = row_to_dict(row, score_kind)
        command.stdout.write(
            f"{data['rank']:>3}  {data['teamId']:<28} {data['gamesPlayed']:>3} "
            f"{data['wins']:>3} {data['draws']:>3} {data['losses']:>3} "
            f"{data['goalsFor']:>5} {data['goalsAgainst']:>5} "
            f"{data['goalDifference']:>+5} {data['points']:>4}  {row.form}"
        )

    for tie in table.unresolved_ties:
        command.stdout.write(
            command.style.WARNING(
                f"Unresolved tie at rank {tie.rank}: {', '.join(tie.team_ids)}"
            )
        )
    for excluded in table.excluded_matches:
        command.stdout.write(
            command.style.WARNING(f"Excluded {excluded.match_id}: {excluded.reason}")
        )
    if not table.excluded_matches:
        command.stdout.write(command.style.SUCCESS("✓ All matches aggregated"))
