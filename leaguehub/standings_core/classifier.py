"""
Classification of match results into per-team outcomes.

A match is looked at from both sides: each team gets a symbolic outcome from
its sport's vocabulary (``WIN``, ``DRAW``, ``WIN_3_1``, ...) together with the
raw metric deltas the match contributes to its table row. Bonus conditions
are evaluated here too, since they need the same match detail.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union

from leaguehub.standings_core.catalog import (
    SPORT_PROFILES,
    BonusCondition,
    BonusKind,
    Metric,
    Outcome,
    ScoreKind,
    SportProfile,
    SportType,
)
from leaguehub.standings_core.errors import UnclassifiableResultError
from leaguehub.standings_core.structure import MatchResult, MatchStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamPerspective:
    """One team's view of a classified match.

    ``score_for``/``score_against`` are in the sport's primary unit: goals,
    points, or sets for volleyball.
    """

    team_id: str
    opponent_id: str
    outcome: Outcome
    score_for: int
    score_against: int
    metrics: Dict[str, int] = field(default_factory=dict)

    @property
    def margin(self) -> int:
        return self.score_for - self.score_against


@dataclass(frozen=True)
class ClassifiedMatch:
    match: MatchResult
    home: TeamPerspective
    away: TeamPerspective

    @property
    def is_forfeit(self) -> bool:
        return self.match.status == MatchStatus.FORFEIT

    @property
    def perspectives(self) -> Tuple[TeamPerspective, TeamPerspective]:
        return (self.home, self.away)


def _profile(sport: Union[SportType, SportProfile]) -> SportProfile:
    if isinstance(sport, SportProfile):
        return sport
    return SPORT_PROFILES[sport]


def _forfeit_loser(match: MatchResult, home_for: int, away_for: int) -> str:
    """Work out which team forfeited, from ``forfeited_by`` or the awarded score."""
    if match.forfeited_by is not None:
        if match.forfeited_by not in match.team_ids:
            raise UnclassifiableResultError(
                match.match_id,
                f"forfeiting team {match.forfeited_by} did not play in this match",
            )
        loser = match.forfeited_by
        loser_score = home_for if loser == match.home_team_id else away_for
        winner_score = away_for if loser == match.home_team_id else home_for
        if loser_score > winner_score:
            raise UnclassifiableResultError(
                match.match_id, "forfeiting team is ahead on the recorded score"
            )
        return loser
    if home_for == away_for:
        raise UnclassifiableResultError(
            match.match_id, "forfeit without a forfeiting team or a deciding score"
        )
    return match.home_team_id if home_for < away_for else match.away_team_id


def _check_score(match: MatchResult, value: Optional[int], side: str) -> int:
    if value is None:
        raise UnclassifiableResultError(match.match_id, f"{side} score is missing")
    if value < 0:
        raise UnclassifiableResultError(match.match_id, f"{side} score is negative")
    return int(value)


def _classify_scored(match: MatchResult, profile: SportProfile):
    """Goal and point sports: the final score decides the outcome."""
    forfeit = match.status == MatchStatus.FORFEIT
    if forfeit and match.home_score is None and match.away_score is None:
        home_for, away_for = 0, 0
    else:
        home_for = _check_score(match, match.home_score, "home")
        away_for = _check_score(match, match.away_score, "away")

    if match.period_breakdown and not forfeit:
        for number, period in enumerate(match.period_breakdown, start=1):
            if period.home < 0 or period.away < 0:
                raise UnclassifiableResultError(
                    match.match_id, f"period {number} has a negative score"
                )
        home_sum = sum(p.home for p in match.period_breakdown)
        away_sum = sum(p.away for p in match.period_breakdown)
        if (home_sum, away_sum) != (home_for, away_for):
            raise UnclassifiableResultError(
                match.match_id,
                f"period breakdown {home_sum}-{away_sum} does not add up to "
                f"the final score {home_for}-{away_for}",
            )

    if forfeit:
        loser = _forfeit_loser(match, home_for, away_for)
        if loser == match.home_team_id:
            outcomes = (Outcome.LOSS_FORFEIT, Outcome.WIN_FORFEIT)
        else:
            outcomes = (Outcome.WIN_FORFEIT, Outcome.LOSS_FORFEIT)
    elif home_for == away_for:
        if not profile.allows_draws:
            raise UnclassifiableResultError(
                match.match_id,
                f"{profile.sport.value} matches cannot end level ({home_for}-{away_for})",
            )
        outcomes = (Outcome.DRAW, Outcome.DRAW)
    else:
        overtime = (
            profile.regulation_periods is not None
            and len(match.period_breakdown) > profile.regulation_periods
        )
        win, loss = (
            (Outcome.WIN_OVERTIME, Outcome.LOSS_OVERTIME)
            if overtime
            else (Outcome.WIN, Outcome.LOSS)
        )
        outcomes = (win, loss) if home_for > away_for else (loss, win)

    if profile.score_kind == ScoreKind.GOALS:
        scored, conceded = Metric.GOALS_SCORED.value, Metric.GOALS_CONCEDED.value
    else:
        scored, conceded = Metric.POINTS_SCORED.value, Metric.POINTS_CONCEDED.value

    home_metrics = {scored: home_for, conceded: away_for}
    away_metrics = {scored: away_for, conceded: home_for}
    return outcomes, (home_for, away_for), (home_metrics, away_metrics)


def _classify_sets(match: MatchResult, profile: SportProfile):
    """Set sports: the set breakdown decides the outcome, e.g. WIN_3_1."""
    forfeit = match.status == MatchStatus.FORFEIT
    sets_to_win = profile.sets_to_win
    breakdown = match.period_breakdown

    for number, period in enumerate(breakdown, start=1):
        if period.home < 0 or period.away < 0:
            raise UnclassifiableResultError(
                match.match_id, f"set {number} has a negative score"
            )
        if period.home == period.away and not forfeit:
            raise UnclassifiableResultError(
                match.match_id, f"set {number} ended level at {period.home}"
            )
    rally_home = sum(p.home for p in breakdown)
    rally_away = sum(p.away for p in breakdown)

    if forfeit:
        if match.home_score is None and match.away_score is None:
            home_sets, away_sets = 0, 0
        else:
            home_sets = _check_score(match, match.home_score, "home")
            away_sets = _check_score(match, match.away_score, "away")
        loser = _forfeit_loser(match, home_sets, away_sets)
        if home_sets == away_sets:
            # Nothing recorded: the winner is awarded the minimum winning score.
            home_sets, away_sets = (
                (0, sets_to_win) if loser == match.home_team_id else (sets_to_win, 0)
            )
        if loser == match.home_team_id:
            outcomes = (Outcome.LOSS_FORFEIT, Outcome.WIN_FORFEIT)
        else:
            outcomes = (Outcome.WIN_FORFEIT, Outcome.LOSS_FORFEIT)
    else:
        if not breakdown:
            raise UnclassifiableResultError(
                match.match_id, f"{profile.sport.value} result has no set breakdown"
            )
        home_sets = sum(1 for p in breakdown if p.home > p.away)
        away_sets = len(breakdown) - home_sets
        winner_sets, loser_sets = max(home_sets, away_sets), min(home_sets, away_sets)
        if winner_sets != sets_to_win or loser_sets >= sets_to_win:
            raise UnclassifiableResultError(
                match.match_id,
                f"set score {home_sets}-{away_sets} is not a finished best-of-"
                f"{2 * sets_to_win - 1} match",
            )
        last = breakdown[-1]
        if (last.home > last.away) != (home_sets > away_sets):
            raise UnclassifiableResultError(
                match.match_id, "sets were recorded after the match was decided"
            )
        if match.home_score is not None or match.away_score is not None:
            if (match.home_score, match.away_score) != (home_sets, away_sets):
                raise UnclassifiableResultError(
                    match.match_id,
                    f"final score {match.home_score}-{match.away_score} does not "
                    f"match the set breakdown {home_sets}-{away_sets}",
                )
        if home_sets > away_sets:
            outcomes = (
                Outcome(f"WIN_{home_sets}_{away_sets}"),
                Outcome(f"LOSS_{away_sets}_{home_sets}"),
            )
        else:
            outcomes = (
                Outcome(f"LOSS_{home_sets}_{away_sets}"),
                Outcome(f"WIN_{away_sets}_{home_sets}"),
            )

    home_metrics = {
        Metric.SETS_WON.value: home_sets,
        Metric.SETS_LOST.value: away_sets,
        Metric.POINTS_SCORED.value: rally_home,
        Metric.POINTS_CONCEDED.value: rally_away,
    }
    away_metrics = {
        Metric.SETS_WON.value: away_sets,
        Metric.SETS_LOST.value: home_sets,
        Metric.POINTS_SCORED.value: rally_away,
        Metric.POINTS_CONCEDED.value: rally_home,
    }
    return outcomes, (home_sets, away_sets), (home_metrics, away_metrics)


def classify_match(match: MatchResult, sport) -> ClassifiedMatch:
    """Classify a match from both teams' perspectives.

    Args:
        match: The match result to classify
        sport: SportType or SportProfile of the league

    Raises:
        UnclassifiableResultError: if the match is not final or its scores
            are inconsistent with the sport's rules
    """
    profile = _profile(sport)
    if not match.is_eligible:
        raise UnclassifiableResultError(
            match.match_id, f"status {match.status.value} is not a final result"
        )
    if match.home_team_id == match.away_team_id:
        raise UnclassifiableResultError(
            match.match_id, f"team {match.home_team_id} cannot play itself"
        )

    if profile.score_kind == ScoreKind.SETS:
        outcomes, scores, metrics = _classify_sets(match, profile)
    else:
        outcomes, scores, metrics = _classify_scored(match, profile)

    for outcome in outcomes:
        profile.require_outcome(outcome)

    home = TeamPerspective(
        team_id=match.home_team_id,
        opponent_id=match.away_team_id,
        outcome=outcomes[0],
        score_for=scores[0],
        score_against=scores[1],
        metrics=metrics[0],
    )
    away = TeamPerspective(
        team_id=match.away_team_id,
        opponent_id=match.home_team_id,
        outcome=outcomes[1],
        score_for=scores[1],
        score_against=scores[0],
        metrics=metrics[1],
    )
    logger.debug(
        "Classified match %s: %s %s, %s %s",
        match.match_id,
        home.team_id,
        home.outcome.value,
        away.team_id,
        away.outcome.value,
    )
    return ClassifiedMatch(match=match, home=home, away=away)


def condition_met(
    classified: ClassifiedMatch, perspective: TeamPerspective, condition: BonusCondition
) -> bool:
    """Test a bonus condition for one team. Forfeits never earn bonuses."""
    if classified.is_forfeit:
        return False

    kind = condition.kind
    if kind == BonusKind.CLEAN_SHEET:
        return perspective.score_against == 0
    if kind == BonusKind.SCORED_AT_LEAST:
        return perspective.score_for >= condition.threshold
    if kind == BonusKind.WIN_MARGIN_AT_LEAST:
        return perspective.outcome.result == "W" and perspective.margin >= condition.threshold
    if kind == BonusKind.LOSS_MARGIN_AT_MOST:
        return perspective.outcome.result == "L" and -perspective.margin <= condition.threshold
    return False
