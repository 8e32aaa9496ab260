"""
Tiebreak resolution for standings tables.

Rows start in a single tied group. Each tiebreaker rule is a refinement step
that splits every still-tied group into ordered sub-groups; the league's
chain is folded into one pipeline of such steps, preceded by the implicit
ordering on table points. Groups of one are final and skipped by later steps.

Head-to-head metrics are computed on a mini-table built only from the
matches played among the teams of the group being split. The random draw
uses a PRNG seeded from the league, the season and the tied team IDs, so the
same tie is always broken the same way.
"""

import hashlib
import logging
import random
from dataclasses import dataclass, field, replace
from functools import reduce
from typing import Callable, Dict, FrozenSet, Iterable, List, Sequence, Tuple

from leaguehub.standings_core.aggregator import aggregate
from leaguehub.standings_core.catalog import Metric, SortOrder, SportProfile
from leaguehub.standings_core.evaluator import TeamMatchRecord
from leaguehub.standings_core.scoring import TieBreakerConfig, TieBreakerRule
from leaguehub.standings_core.structure import TeamStandingRow, UnresolvedTie

logger = logging.getLogger(__name__)

RngFactory = Callable[[int], random.Random]
Group = List[TeamStandingRow]
Refiner = Callable[[Group, "TiebreakContext"], List[Group]]


def tiebreak_seed(league_id: str, season_id: str, team_ids: Iterable[str]) -> int:
    """Stable seed for a random draw between the given teams."""
    payload = "|".join([league_id, season_id, *sorted(team_ids)])
    digest = hashlib.sha256(payload.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


@dataclass
class TiebreakContext:
    """Everything a refinement step may need besides the group itself."""

    league_id: str
    season_id: str
    profile: SportProfile
    records: Sequence[TeamMatchRecord] = ()
    rng_factory: RngFactory = random.Random
    _mini_tables: Dict[FrozenSet[str], Dict[str, TeamStandingRow]] = field(
        default_factory=dict, repr=False
    )

    def head_to_head_rows(self, team_ids: Iterable[str]) -> Dict[str, TeamStandingRow]:
        """Aggregate only the matches played among ``team_ids``."""
        key = frozenset(team_ids)
        if key not in self._mini_tables:
            among = [
                r for r in self.records if r.team_id in key and r.opponent_id in key
            ]
            rows = aggregate(among, self.profile, team_ids=sorted(key))
            self._mini_tables[key] = {row.team_id: row for row in rows}
        return self._mini_tables[key]

    def metric_value(self, row: TeamStandingRow, metric: Metric, group: Group) -> float:
        base = metric.head_to_head_base
        if base is None:
            return row.metric(metric.value)
        mini = self.head_to_head_rows(r.team_id for r in group)
        return mini[row.team_id].metric(base.value)


def metric_refiner(metric: Metric, sort: SortOrder) -> Refiner:
    """Split a group by the value of one metric, best value first."""

    def refine(group: Group, context: TiebreakContext) -> List[Group]:
        values = {row.team_id: context.metric_value(row, metric, group) for row in group}
        distinct = sorted(set(values.values()), reverse=sort == SortOrder.DESC)
        return [[row for row in group if values[row.team_id] == v] for v in distinct]

    return refine


def random_refiner(group: Group, context: TiebreakContext) -> List[Group]:
    """Draw lots between the tied teams with a deterministic seed."""
    team_ids = sorted(row.team_id for row in group)
    rng = context.rng_factory(
        tiebreak_seed(context.league_id, context.season_id, team_ids)
    )
    rng.shuffle(team_ids)
    by_id = {row.team_id: row for row in group}
    logger.info(
        "Random draw for %s/%s between %s: %s",
        context.league_id,
        context.season_id,
        sorted(by_id),
        team_ids,
    )
    return [[by_id[team_id]] for team_id in team_ids]


def refiner_for(rule: TieBreakerRule) -> Refiner:
    if rule.is_random:
        return random_refiner
    return metric_refiner(rule.metric, rule.sort)


def refine_groups(
    groups: List[Group], refiner: Refiner, context: TiebreakContext
) -> List[Group]:
    """Apply one refinement step to every group that is still tied."""
    refined = []
    for group in groups:
        if len(group) == 1:
            refined.append(group)
        else:
            refined.extend(refiner(group, context))
    return refined


def build_pipeline(config: TieBreakerConfig) -> Callable[[List[Group], TiebreakContext], List[Group]]:
    """Fold the tiebreaker chain into a single group-refining function."""
    steps = [metric_refiner(Metric.POINTS, SortOrder.DESC)]
    steps.extend(refiner_for(rule) for rule in config.ordered())

    def pipeline(groups: List[Group], context: TiebreakContext) -> List[Group]:
        return reduce(
            lambda current, step: refine_groups(current, step, context), steps, groups
        )

    return pipeline


def assign_ranks(groups: List[Group]) -> Tuple[List[TeamStandingRow], List[UnresolvedTie]]:
    """Standard competition ranking: tied teams share a rank and the next rank skips."""
    ranked = []
    unresolved = []
    position = 1
    for group in groups:
        for row in group:
            ranked.append(replace(row, rank=position))
        if len(group) > 1:
            unresolved.append(
                UnresolvedTie(tuple(row.team_id for row in group), position)
            )
        position += len(group)
    return ranked, unresolved


def resolve_standings(
    rows: Iterable[TeamStandingRow],
    config: TieBreakerConfig,
    context: TiebreakContext,
) -> Tuple[List[TeamStandingRow], List[UnresolvedTie]]:
    """
    Order rows using table points and then the tiebreaker chain.

    Args:
        rows: Aggregated, unranked rows
        config: The league's tiebreaker chain
        context: League/season identity, match records and PRNG factory

    Returns:
        Tuple of (ranked rows in final order, ties left unresolved)
    """
    start = sorted(rows, key=lambda row: row.team_id)
    if not start:
        return [], []
    groups = build_pipeline(config)([start], context)
    ranked, unresolved = assign_ranks(groups)
    for tie in unresolved:
        logger.warning(
            "Unresolved tie in %s/%s at rank %d between %s",
            context.league_id,
            context.season_id,
            tie.rank,
            ", ".join(tie.team_ids),
        )
    return ranked, unresolved
