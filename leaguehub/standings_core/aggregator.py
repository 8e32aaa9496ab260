"""
Aggregation of per-match records into standings rows.

Folding is a plain sum, so the totals do not depend on the order in which
matches are processed. Differences and ratios are derived only after all
records have been added, because ratios do not add up.
"""

import math
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from leaguehub.standings_core.catalog import Metric, ScoreKind, SportProfile
from leaguehub.standings_core.evaluator import TeamMatchRecord
from leaguehub.standings_core.structure import TeamStandingRow

FORM_LENGTH = 5

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)

_RAW_METRICS = {
    ScoreKind.GOALS: (Metric.GOALS_SCORED, Metric.GOALS_CONCEDED),
    ScoreKind.POINTS: (Metric.POINTS_SCORED, Metric.POINTS_CONCEDED),
    ScoreKind.SETS: (
        Metric.SETS_WON,
        Metric.SETS_LOST,
        Metric.POINTS_SCORED,
        Metric.POINTS_CONCEDED,
    ),
}


def ratio(won: float, lost: float) -> float:
    """won/lost, infinite for an unbeaten record and 0 when nothing was played."""
    if lost == 0:
        return math.inf if won > 0 else 0.0
    return won / lost


def _as_utc(played_at: datetime) -> datetime:
    # Naive timestamps are read as UTC.
    if played_at.tzinfo is None:
        return played_at.replace(tzinfo=timezone.utc)
    return played_at.astimezone(timezone.utc)


def _form_key(record: TeamMatchRecord):
    if record.played_at is None:
        return (False, _UNDATED, record.match_id)
    return (True, _as_utc(record.played_at), record.match_id)


def _derive_metrics(profile: SportProfile, totals: Counter, row_counts: Dict[str, int]):
    metrics = {m.value: totals.get(m.value, 0) for m in _RAW_METRICS[profile.score_kind]}
    metrics[Metric.POINTS.value] = row_counts["points"]
    metrics[Metric.PLAYED.value] = row_counts["played"]
    metrics[Metric.WINS.value] = row_counts["won"]
    metrics[Metric.DRAWS.value] = row_counts["drawn"]
    metrics[Metric.LOSSES.value] = row_counts["lost"]
    metrics[Metric.FORFEIT_LOSSES.value] = row_counts["forfeit_losses"]
    played = row_counts["played"]
    metrics[Metric.MATCH_WIN_RATIO.value] = row_counts["won"] / played if played else 0.0

    if profile.score_kind == ScoreKind.GOALS:
        metrics[Metric.GOAL_DIFFERENCE.value] = (
            metrics[Metric.GOALS_SCORED.value] - metrics[Metric.GOALS_CONCEDED.value]
        )
    elif profile.score_kind == ScoreKind.POINTS:
        metrics[Metric.POINT_DIFFERENCE.value] = (
            metrics[Metric.POINTS_SCORED.value] - metrics[Metric.POINTS_CONCEDED.value]
        )
    else:
        metrics[Metric.SET_RATIO.value] = ratio(
            metrics[Metric.SETS_WON.value], metrics[Metric.SETS_LOST.value]
        )
        metrics[Metric.POINT_RATIO.value] = ratio(
            metrics[Metric.POINTS_SCORED.value], metrics[Metric.POINTS_CONCEDED.value]
        )
    return metrics


def aggregate(
    records: Iterable[TeamMatchRecord],
    profile: SportProfile,
    team_ids: Iterable[str] = (),
) -> List[TeamStandingRow]:
    """Fold match records into one unranked row per team, sorted by team ID.

    Args:
        records: Per-team, per-match records from the point evaluator
        profile: Sport profile, used to pick the metrics to derive
        team_ids: Roster of the season; teams without matches get a zero row

    Returns:
        List of TeamStandingRow with ``rank`` left at 0
    """
    by_team: Dict[str, List[TeamMatchRecord]] = {team_id: [] for team_id in team_ids}
    for record in records:
        by_team.setdefault(record.team_id, []).append(record)

    rows = []
    for team_id in sorted(by_team):
        team_records = by_team[team_id]
        totals = Counter()
        counts = {
            "points": 0,
            "played": 0,
            "won": 0,
            "drawn": 0,
            "lost": 0,
            "forfeit_losses": 0,
        }
        for record in team_records:
            totals.update(record.metrics)
            counts["points"] += record.points
            counts["played"] += 1
            result = record.outcome.result
            if result == "W":
                counts["won"] += 1
            elif result == "D":
                counts["drawn"] += 1
            else:
                counts["lost"] += 1
                if record.outcome.is_forfeit:
                    counts["forfeit_losses"] += 1

        recent = sorted(team_records, key=_form_key)[-FORM_LENGTH:]
        rows.append(
            TeamStandingRow(
                team_id=team_id,
                points=counts["points"],
                played=counts["played"],
                won=counts["won"],
                drawn=counts["drawn"],
                lost=counts["lost"],
                metrics=_derive_metrics(profile, totals, counts),
                form="".join(r.outcome.result for r in recent),
            )
        )
    return rows
