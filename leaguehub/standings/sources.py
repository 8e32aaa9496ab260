"""
Contracts for the collaborators the standings service reads from.

League configuration is owned by the league CRUD layer and match results by
the results subsystem; neither lives in this project. The service only needs
the small read interfaces below. ``InMemorySeasonStore`` implements both and
backs the tests and the management commands.
"""

import json
import threading
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from leaguehub.standings_core.converter import league_rules_from_dict, matches_from_list
from leaguehub.standings_core.errors import ConfigurationError
from leaguehub.standings_core.scoring import LeagueRules
from leaguehub.standings_core.structure import MatchResult


class LeagueRulesSource(Protocol):
    def get_rules(self, league_id: str) -> LeagueRules:
        """Return the league's active rules; raise ConfigurationError if it has none."""


class SeasonDataSource(Protocol):
    def list_results(self, league_id: str, season_id: str) -> List[MatchResult]:
        ...

    def list_team_ids(self, league_id: str, season_id: str) -> List[str]:
        ...


class InMemorySeasonStore:
    """Thread-safe in-memory rules and results store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rules: Dict[str, LeagueRules] = {}
        self._teams: Dict[Tuple[str, str], List[str]] = {}
        self._results: Dict[Tuple[str, str], Dict[str, MatchResult]] = {}

    def set_rules(self, rules: LeagueRules) -> None:
        with self._lock:
            self._rules[rules.league_id] = rules

    def get_rules(self, league_id: str) -> LeagueRules:
        with self._lock:
            rules = self._rules.get(league_id)
        if rules is None:
            raise ConfigurationError(f"League {league_id} has no active rules")
        return rules

    def add_teams(self, league_id: str, season_id: str, team_ids: Iterable[str]) -> None:
        with self._lock:
            roster = self._teams.setdefault((league_id, season_id), [])
            for team_id in team_ids:
                if team_id not in roster:
                    roster.append(team_id)

    def add_result(self, match: MatchResult) -> None:
        """Store a result, replacing any earlier record with the same match ID."""
        with self._lock:
            season = self._results.setdefault((match.league_id, match.season_id), {})
            season[match.match_id] = match

    def list_results(self, league_id: str, season_id: str) -> List[MatchResult]:
        with self._lock:
            return list(self._results.get((league_id, season_id), {}).values())

    def list_team_ids(self, league_id: str, season_id: str) -> List[str]:
        with self._lock:
            return list(self._teams.get((league_id, season_id), []))


def store_from_fixture(data: Dict, store: Optional[InMemorySeasonStore] = None):
    """Load a fixture dict into a store.

    Expected shape::

        {"league": {...league payload...}, "seasonId": "...",
         "teams": ["..."], "matches": [{...match payload...}]}

    Returns:
        Tuple of (store, league_id, season_id)
    """
    store = store or InMemorySeasonStore()
    rules = league_rules_from_dict(data["league"])
    season_id = str(data["seasonId"])
    store.set_rules(rules)
    store.add_teams(rules.league_id, season_id, [str(t) for t in data.get("teams", [])])
    for match in matches_from_list(data.get("matches", [])):
        store.add_result(match)
    return store, rules.league_id, season_id


def load_fixture(path: str):
    """Read a JSON fixture file; see store_from_fixture for the shape."""
    with open(path, "r", encoding="utf-8") as f:
        return store_from_fixture(json.load(f))
