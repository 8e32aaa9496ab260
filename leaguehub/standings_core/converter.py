"""
Conversion between API-shaped dictionaries and standings structures.

League configuration arrives in the camelCase shape the admin forms submit;
tiebreakers are identified by ``rule``. Older configs used ``metric`` for the
same field and upper-case sort directions; both are migrated on the way in
and logged so they can be rewritten, but are never written back out.
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from leaguehub.standings_core.catalog import (
    Metric,
    ScoreKind,
    SortOrder,
    SportType,
    parse_bonus_condition,
    parse_metric,
    parse_outcome,
    sport_profile,
)
from leaguehub.standings_core.errors import ConfigurationError, InvalidTieBreakerError
from leaguehub.standings_core.scoring import (
    BonusPointRule,
    LeagueRules,
    PointRule,
    PointSystemConfig,
    TieBreakerConfig,
    TieBreakerRule,
)
from leaguehub.standings_core.structure import (
    MatchResult,
    MatchStatus,
    PeriodScore,
    StandingsTable,
    TeamStandingRow,
)

logger = logging.getLogger(__name__)


def _points_value(value: Any, item: Any) -> int:
    """Point values must be whole numbers; 2.5 or "3" is rejected, not rounded."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"Points must be an integer, got {value!r} in {item!r}")
    return value


def point_system_from_dict(data: Dict[str, Any], sport: SportType) -> PointSystemConfig:
    if not isinstance(data, dict):
        raise ConfigurationError("pointSystemConfig must be an object")
    rules = []
    for item in data.get("rules") or []:
        try:
            outcome, points = item["outcome"], item["points"]
        except (KeyError, TypeError):
            raise ConfigurationError(f"Malformed point rule: {item!r}")
        rules.append(PointRule(parse_outcome(outcome, sport), _points_value(points, item)))

    bonus_rules = []
    for item in data.get("bonusPoints") or []:
        try:
            condition, points = item["condition"], item["points"]
        except (KeyError, TypeError):
            raise ConfigurationError(f"Malformed bonus rule: {item!r}")
        outcome = item.get("outcome")
        bonus_rules.append(
            BonusPointRule(
                parse_bonus_condition(condition),
                _points_value(points, item),
                outcome=None if outcome is None else parse_outcome(outcome, sport),
            )
        )
    return PointSystemConfig(tuple(rules), tuple(bonus_rules))


def _parse_sort(value: Any) -> SortOrder:
    text = str(value).strip()
    try:
        sort = SortOrder(text.lower())
    except ValueError:
        raise InvalidTieBreakerError(f"Unknown tiebreaker sort '{value}'")
    if text != sort.value:
        logger.warning("Tiebreaker sort '%s' is not lower-case; read as '%s'", text, sort.value)
    return sort


def tie_breaker_from_dict(item: Dict[str, Any], sport: SportType) -> TieBreakerRule:
    if not isinstance(item, dict):
        raise InvalidTieBreakerError(f"Malformed tiebreaker: {item!r}")
    tag = item.get("rule")
    if tag is None and "metric" in item:
        logger.warning(
            "Tiebreaker %r uses the legacy 'metric' key; migrate it to 'rule'", item
        )
        tag = item["metric"]

    sort = _parse_sort(item.get("sort", SortOrder.DESC.value))
    try:
        order = int(item["order"])
    except (KeyError, TypeError, ValueError):
        raise InvalidTieBreakerError(f"Tiebreaker without a valid order: {item!r}")

    if sort == SortOrder.RANDOM:
        metric = None
    elif not tag:
        raise InvalidTieBreakerError(f"Tiebreaker at order {order} has no rule")
    else:
        metric = parse_metric(tag, sport)
    return TieBreakerRule(
        order=order,
        metric=metric,
        sort=sort,
        description=item.get("description") or (tag or ""),
    )


def tie_breakers_from_data(data: Any, sport: SportType) -> TieBreakerConfig:
    """Accept either a bare list or the ``{"tieBreakers": [...]}`` form shape."""
    if isinstance(data, dict):
        data = data.get("tieBreakers", [])
    if data is None:
        data = []
    if not isinstance(data, list):
        raise InvalidTieBreakerError("tieBreakerConfig must be a list")
    return TieBreakerConfig(tuple(tie_breaker_from_dict(item, sport) for item in data))


def league_rules_from_dict(data: Dict[str, Any], league_id: Optional[str] = None) -> LeagueRules:
    """Build LeagueRules from a league payload; raises ConfigurationError if malformed."""
    sport_tag = data.get("sportType") or data.get("sport")
    if not sport_tag:
        raise ConfigurationError("League configuration has no sportType")
    sport = sport_profile(sport_tag).sport
    return LeagueRules(
        league_id=league_id or str(data.get("leagueId") or data.get("id") or ""),
        sport=sport,
        point_system=point_system_from_dict(data.get("pointSystemConfig") or {}, sport),
        tie_breakers=tie_breakers_from_data(data.get("tieBreakerConfig"), sport),
        version=int(data.get("version", 1)),
    )


def _bonus_to_dict(rule: BonusPointRule) -> Dict[str, Any]:
    data = {"condition": rule.condition.tag, "points": rule.points}
    if rule.outcome is not None:
        data["outcome"] = rule.outcome.value
    return data


def league_rules_to_dict(rules: LeagueRules) -> Dict[str, Any]:
    """Render rules in the canonical shape (``rule`` keys, lower-case sorts)."""
    return {
        "leagueId": rules.league_id,
        "sportType": rules.sport.value,
        "version": rules.version,
        "pointSystemConfig": {
            "rules": [
                {"outcome": r.outcome.value, "points": r.points}
                for r in rules.point_system.rules
            ],
            "bonusPoints": [_bonus_to_dict(b) for b in rules.point_system.bonus_points],
        },
        "tieBreakerConfig": [
            {
                "order": t.order,
                "rule": t.metric.value if t.metric else "RANDOM_DRAW",
                "sort": t.sort.value,
                "description": t.description,
            }
            for t in rules.tie_breakers.ordered()
        ],
    }


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _parse_period(item: Any) -> PeriodScore:
    if isinstance(item, dict):
        return PeriodScore(int(item["home"]), int(item["away"]))
    home, away = item
    return PeriodScore(int(home), int(away))


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def match_from_dict(data: Dict[str, Any]) -> MatchResult:
    """Build a MatchResult from the results API shape. Raises ValueError if malformed."""
    try:
        return MatchResult(
            match_id=str(data.get("matchId") or data["id"]),
            season_id=str(data["seasonId"]),
            league_id=str(data["leagueId"]),
            home_team_id=str(data["homeTeamId"]),
            away_team_id=str(data["awayTeamId"]),
            home_score=_optional_int(data.get("homeScore")),
            away_score=_optional_int(data.get("awayScore")),
            period_breakdown=tuple(
                _parse_period(p) for p in data.get("periodBreakdown") or ()
            ),
            status=MatchStatus(str(data.get("status", "COMPLETED")).upper()),
            forfeited_by=_optional_str(data.get("forfeitedBy")),
            played_at=_parse_datetime(data.get("playedAt")),
        )
    except KeyError as e:
        raise ValueError(f"Match result is missing {e.args[0]}: {data!r}")


def matches_from_list(items: Iterable[Dict[str, Any]]) -> List[MatchResult]:
    return [match_from_dict(item) for item in items]


def match_to_dict(match: MatchResult) -> Dict[str, Any]:
    data = {
        "matchId": match.match_id,
        "seasonId": match.season_id,
        "leagueId": match.league_id,
        "homeTeamId": match.home_team_id,
        "awayTeamId": match.away_team_id,
        "homeScore": match.home_score,
        "awayScore": match.away_score,
        "periodBreakdown": [
            {"home": p.home, "away": p.away} for p in match.period_breakdown
        ],
        "status": match.status.value,
    }
    if match.forfeited_by is not None:
        data["forfeitedBy"] = match.forfeited_by
    if match.played_at is not None:
        data["playedAt"] = match.played_at.isoformat()
    return data


_SCORE_COLUMNS = {
    ScoreKind.GOALS: (Metric.GOALS_SCORED, Metric.GOALS_CONCEDED),
    ScoreKind.POINTS: (Metric.POINTS_SCORED, Metric.POINTS_CONCEDED),
    ScoreKind.SETS: (Metric.SETS_WON, Metric.SETS_LOST),
}


def _json_number(value: float):
    if isinstance(value, float) and math.isinf(value):
        return None
    return value


def row_to_dict(row: TeamStandingRow, score_kind: ScoreKind) -> Dict[str, Any]:
    scored, conceded = _SCORE_COLUMNS[score_kind]
    goals_for = row.metric(scored.value)
    goals_against = row.metric(conceded.value)
    return {
        "rank": row.rank,
        "teamId": row.team_id,
        "points": row.points,
        "gamesPlayed": row.played,
        "wins": row.won,
        "draws": row.drawn,
        "losses": row.lost,
        "goalsFor": goals_for,
        "goalsAgainst": goals_against,
        "goalDifference": goals_for - goals_against,
        "form": row.form or None,
        "metrics": {k: _json_number(v) for k, v in sorted(row.metrics.items())},
    }


def table_to_dict(table: StandingsTable) -> Dict[str, Any]:
    """Render a table in the shape the standings UI consumes."""
    score_kind = sport_profile(table.sport).score_kind
    return {
        "leagueId": table.league_id,
        "seasonId": table.season_id,
        "sportType": table.sport.value,
        "matchCount": table.match_count,
        "configVersion": table.config_version,
        "partial": table.is_partial,
        "standings": [row_to_dict(row, score_kind) for row in table.rows],
        "excludedMatches": [
            {"matchId": m.match_id, "reason": m.reason} for m in table.excluded_matches
        ],
        "unresolvedTies": [
            {"teamIds": list(t.team_ids), "rank": t.rank} for t in table.unresolved_ties
        ],
    }
