"""
Random season generation for demos, load tests and manual checks.

Schedules are double round robins built with the circle method. Results are
drawn from a seeded ``random.Random`` so a seed always yields the same
season, and team names come from Faker seeded the same way.
"""

from datetime import datetime, timedelta, timezone
from random import Random
from typing import List, Optional, Sequence, Tuple

from faker import Faker

from leaguehub.standings_core.catalog import SportType, sport_profile
from leaguehub.standings_core.scoring import LeagueRules, default_rules
from leaguehub.standings_core.structure import MatchResult, MatchStatus, PeriodScore

SEASON_START = datetime(2024, 9, 7, 15, 0, tzinfo=timezone.utc)

TEAM_SUFFIXES = {
    SportType.SOCCER: ("FC", "United", "City", "Athletic", "Rovers"),
    SportType.BASKETBALL: ("Hoopers", "Rockets", "Giants", "Flyers", "Stars"),
    SportType.VOLLEYBALL: ("Spikers", "Blockers", "Aces", "Waves", "Smash"),
    SportType.HOCKEY: ("Blades", "Pucks", "Wolves", "Storm", "Ice"),
}


def round_robin_schedule(
    team_ids: Sequence[str], legs: int = 2, shuffle_seed: Optional[int] = None
) -> List[Tuple[int, str, str]]:
    """
    Build a round robin with the circle method.

    Each leg is n-1 weeks (n rounded up to even, the odd team out rests).
    Home and away swap on alternate legs.

    Returns:
        List of (week, home_team_id, away_team_id), weeks 0-based
    """
    ids: List[Optional[str]] = list(team_ids)
    if len(ids) < 2:
        raise ValueError("A round robin needs at least two teams")
    if len(ids) % 2 == 1:
        ids.append(None)
    n = len(ids)

    fixed, rotating = ids[0], ids[1:]
    if shuffle_seed is not None:
        Random(shuffle_seed).shuffle(rotating)

    weeks = []
    for _ in range(n - 1):
        left = [fixed] + rotating[: n // 2 - 1]
        right = list(reversed(rotating[n // 2 - 1 :]))
        weeks.append(list(zip(left, right)))
        rotating = [rotating[-1]] + rotating[:-1]

    fixtures = []
    for leg in range(legs):
        for w, pairs in enumerate(weeks):
            week = leg * (n - 1) + w
            for a, b in pairs:
                if a is None or b is None:
                    continue
                # The fixed team would otherwise always be at home in a leg.
                if (w + leg) % 2 == 0:
                    fixtures.append((week, a, b))
                else:
                    fixtures.append((week, b, a))
    return fixtures


def _split(rng: Random, total: int, parts: int) -> List[int]:
    counts = [0] * parts
    for _ in range(total):
        counts[rng.randrange(parts)] += 1
    return counts


def _goal_periods(rng: Random, periods: int, max_per_period: int):
    home = [rng.randint(0, max_per_period) for _ in range(periods)]
    away = [rng.randint(0, max_per_period) for _ in range(periods)]
    return home, away


def simulate_scores(rng: Random, sport: SportType) -> Tuple[PeriodScore, ...]:
    """Draw a plausible period or set breakdown for a finished match."""
    if sport == SportType.SOCCER:
        home_goals = rng.choices(range(6), weights=(25, 33, 22, 12, 6, 2))[0]
        away_goals = rng.choices(range(6), weights=(32, 33, 19, 10, 4, 2))[0]
        home, away = _split(rng, home_goals, 2), _split(rng, away_goals, 2)
        return tuple(PeriodScore(h, a) for h, a in zip(home, away))

    if sport == SportType.BASKETBALL:
        periods = [PeriodScore(rng.randint(15, 32), rng.randint(14, 31)) for _ in range(4)]
        while sum(p.home for p in periods) == sum(p.away for p in periods):
            periods.append(PeriodScore(rng.randint(4, 16), rng.randint(4, 16)))
        return tuple(periods)

    if sport == SportType.HOCKEY:
        home, away = _goal_periods(rng, 3, 2)
        periods = [PeriodScore(h, a) for h, a in zip(home, away)]
        if sum(home) == sum(away):
            # Sudden-death overtime: one goal decides it.
            periods.append(PeriodScore(1, 0) if rng.random() < 0.5 else PeriodScore(0, 1))
        return tuple(periods)

    sets_to_win = sport_profile(sport).sets_to_win
    home_sets = away_sets = 0
    sets = []
    while home_sets < sets_to_win and away_sets < sets_to_win:
        deciding = home_sets == away_sets == sets_to_win - 1
        target = 15 if deciding else 25
        loser_points = rng.randint(target - 12, target - 2)
        if rng.random() < 0.5:
            sets.append(PeriodScore(target, loser_points))
            home_sets += 1
        else:
            sets.append(PeriodScore(loser_points, target))
            away_sets += 1
    return tuple(sets)


def simulate_match(
    rng: Random,
    sport: SportType,
    match_id: str,
    league_id: str,
    season_id: str,
    home_team_id: str,
    away_team_id: str,
    played_at: Optional[datetime] = None,
    forfeit_rate: float = 0.0,
) -> MatchResult:
    if rng.random() < forfeit_rate:
        return MatchResult(
            match_id=match_id,
            season_id=season_id,
            league_id=league_id,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            status=MatchStatus.FORFEIT,
            forfeited_by=rng.choice((home_team_id, away_team_id)),
            played_at=played_at,
        )

    breakdown = simulate_scores(rng, sport)
    if sport_profile(sport).sets_to_win is not None:
        home_score = sum(1 for p in breakdown if p.home > p.away)
        away_score = len(breakdown) - home_score
    else:
        home_score = sum(p.home for p in breakdown)
        away_score = sum(p.away for p in breakdown)
    return MatchResult(
        match_id=match_id,
        season_id=season_id,
        league_id=league_id,
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        home_score=home_score,
        away_score=away_score,
        period_breakdown=breakdown,
        status=MatchStatus.COMPLETED,
        played_at=played_at,
    )


def team_names(sport: SportType, count: int, seed: int) -> List[str]:
    fake = Faker()
    fake.seed_instance(seed)
    suffixes = TEAM_SUFFIXES[sport]
    names: List[str] = []
    while len(names) < count:
        name = f"{fake.city()} {suffixes[len(names) % len(suffixes)]}"
        if name not in names:
            names.append(name)
    return names


def simulate_season(
    sport,
    team_count: int,
    seed: int,
    legs: int = 2,
    forfeit_rate: float = 0.0,
    league_id: str = "simulated-league",
    season_id: str = "simulated-season",
) -> Tuple[LeagueRules, List[str], List[MatchResult]]:
    """
    Generate a complete season with the sport's default rules.

    Returns:
        Tuple of (rules, team IDs, match results)
    """
    sport = sport_profile(sport).sport
    rng = Random(seed)
    rules = default_rules(sport, league_id=league_id)
    team_ids = team_names(sport, team_count, seed)

    matches = []
    for number, (week, home, away) in enumerate(
        round_robin_schedule(team_ids, legs=legs, shuffle_seed=seed), start=1
    ):
        matches.append(
            simulate_match(
                rng,
                sport,
                match_id=f"{season_id}-m{number:03d}",
                league_id=league_id,
                season_id=season_id,
                home_team_id=home,
                away_team_id=away,
                played_at=SEASON_START + timedelta(weeks=week, minutes=number),
                forfeit_rate=forfeit_rate,
            )
        )
    return rules, team_ids, matches
