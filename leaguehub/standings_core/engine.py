"""
Standings computation for one league season.

``compute_standings`` runs the whole pipeline: classify every eligible match,
evaluate points, aggregate rows and resolve ties. It is pure and synchronous
and never raises for domain problems; the outcome is a ``StandingsResult``
carrying either a table or the configuration error that prevented one.
"""

import logging
import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from leaguehub.standings_core.aggregator import aggregate
from leaguehub.standings_core.classifier import classify_match
from leaguehub.standings_core.errors import (
    ConfigurationError,
    IncompleteStandingsError,
    StandingsError,
    UnclassifiableResultError,
)
from leaguehub.standings_core.evaluator import PointEvaluator, TeamMatchRecord
from leaguehub.standings_core.scoring import LeagueRules
from leaguehub.standings_core.structure import (
    ExcludedMatch,
    MatchResult,
    StandingsTable,
)
from leaguehub.standings_core.tiebreaks import (
    RngFactory,
    TiebreakContext,
    resolve_standings,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StandingsResult:
    """Either a computed table or the error that prevented it."""

    table: Optional[StandingsTable] = None
    error: Optional[StandingsError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self, allow_partial: bool = True) -> StandingsTable:
        """Return the table, raising the stored error if there is none.

        With ``allow_partial=False`` a table that had to leave matches out
        raises IncompleteStandingsError instead of being returned.
        """
        if self.error is not None:
            raise self.error
        if not allow_partial and self.table.is_partial:
            raise IncompleteStandingsError(
                m.match_id for m in self.table.excluded_matches
            )
        return self.table


def select_matches(
    matches: Iterable[MatchResult], league_id: str, season_id: str
) -> Tuple[List[MatchResult], List[ExcludedMatch], int]:
    """Pick the matches that belong in this season's table.

    Returns:
        Tuple of (matches to classify sorted by match ID, excluded matches,
        number of distinct eligible match IDs)
    """
    by_id: Dict[str, set] = {}
    for match in matches:
        if not match.is_eligible:
            continue
        by_id.setdefault(match.match_id, set()).add(match)

    selected = []
    excluded = []
    for match_id in sorted(by_id):
        records = by_id[match_id]
        if len(records) > 1:
            excluded.append(
                ExcludedMatch(match_id, "conflicting results recorded for this match")
            )
            continue
        match = next(iter(records))
        if match.league_id != league_id or match.season_id != season_id:
            excluded.append(
                ExcludedMatch(
                    match_id,
                    f"belongs to {match.league_id}/{match.season_id}, "
                    f"not {league_id}/{season_id}",
                )
            )
            continue
        selected.append(match)
    return selected, excluded, len(by_id)


def compute_standings(
    rules: LeagueRules,
    season_id: str,
    matches: Iterable[MatchResult],
    team_ids: Iterable[str] = (),
    rng_factory: RngFactory = random.Random,
) -> StandingsResult:
    """
    Compute the standings table of one league season.

    Args:
        rules: The league's active rules; validated before anything else
        season_id: Season the table is computed for
        matches: Match results of the season, in any order
        team_ids: Season roster, so teams without matches still get a row
        rng_factory: Builds the PRNG used by a random final tiebreaker

    Returns:
        StandingsResult with the table, or with the ConfigurationError that
        made the rules unusable
    """
    league_id = rules.league_id
    try:
        rules.validate()
        profile = rules.profile
        evaluator = PointEvaluator(rules.point_system)

        selected, excluded, match_count = select_matches(matches, league_id, season_id)
        records: List[TeamMatchRecord] = []
        for match in selected:
            try:
                classified = classify_match(match, profile)
            except UnclassifiableResultError as e:
                logger.warning("Excluding match from %s/%s: %s", league_id, season_id, e)
                excluded.append(ExcludedMatch(e.match_id, e.reason))
                continue
            records.extend(evaluator.evaluate(classified))

        rows = aggregate(records, profile, team_ids=team_ids)
        context = TiebreakContext(
            league_id=league_id,
            season_id=season_id,
            profile=profile,
            records=records,
            rng_factory=rng_factory,
        )
        ranked, unresolved = resolve_standings(rows, rules.tie_breakers, context)
    except ConfigurationError as e:
        logger.error("Cannot compute standings for %s/%s: %s", league_id, season_id, e)
        return StandingsResult(error=e)

    table = StandingsTable(
        league_id=league_id,
        season_id=season_id,
        sport=rules.sport,
        rows=tuple(ranked),
        match_count=match_count,
        config_version=rules.version,
        excluded_matches=tuple(sorted(excluded, key=lambda m: m.match_id)),
        unresolved_ties=tuple(unresolved),
    )
    logger.debug(
        "Computed standings for %s/%s: %d teams, %d matches, %d excluded",
        league_id,
        season_id,
        len(table.rows),
        match_count,
        len(table.excluded_matches),
    )
    return StandingsResult(table=table)
