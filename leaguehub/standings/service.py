"""
Standings service: cached, on-demand standings for league seasons.

Tables are computed by the pure engine and stored in the Django cache as
immutable snapshots. Reads never take a lock. A miss or a stale snapshot is
recomputed under a per-season lock with a re-check, so concurrent readers of
the same season share one computation. Invalidation bumps a per-season
generation counter; a computation that started before the bump does not
write its result back.
"""

import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Dict, Iterable, Optional, Tuple, Union

from django.core.cache import caches

from leaguehub.standings.conf import standings_setting
from leaguehub.standings.sources import LeagueRulesSource, SeasonDataSource
from leaguehub.standings_core.engine import compute_standings
from leaguehub.standings_core.errors import (
    IncompleteStandingsError,
    SourceUnavailableError,
    StandingsError,
    StandingsTimeoutError,
)
from leaguehub.standings_core.structure import MatchResult, StandingsTable
from leaguehub.standings_core.tiebreaks import RngFactory

logger = logging.getLogger(__name__)

SeasonKey = Tuple[str, str]


def cache_key(league_id: str, season_id: str) -> str:
    return f"leaguehub:standings:{league_id}:{season_id}"


class StandingsService:
    def __init__(
        self,
        rules_source: LeagueRulesSource,
        season_source: SeasonDataSource,
        cache=None,
        rng_factory: RngFactory = random.Random,
    ):
        self.rules_source = rules_source
        self.season_source = season_source
        self.rng_factory = rng_factory
        self._cache = cache
        self._guard = threading.Lock()
        self._locks: Dict[SeasonKey, threading.Lock] = {}
        self._generations: Dict[SeasonKey, int] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        self.computations = 0

    @property
    def cache(self):
        if self._cache is None:
            return caches[standings_setting("CACHE_ALIAS")]
        return self._cache

    # Public API

    def get_standings(
        self,
        league_id: str,
        season_id: str,
        expected_match_count: Optional[int] = None,
        allow_partial: Optional[bool] = None,
    ) -> StandingsTable:
        """
        Return the standings of one season, computing them if needed.

        Args:
            expected_match_count: Number of eligible matches the caller knows
                about; a cached table built from a different count is stale
            allow_partial: Serve tables with excluded matches; defaults to
                the SERVE_PARTIAL setting

        Raises:
            ConfigurationError: The league's rules are unusable
            ComputationError: Sources unavailable, timeout or refused partial table
        """
        key = (league_id, season_id)
        table = self._fresh_snapshot(key, expected_match_count)
        if table is None:
            with self._lock_for(key):
                table = self._fresh_snapshot(key, expected_match_count)
                if table is None:
                    table = self._recompute(key)
        return self._serve(table, allow_partial)

    def invalidate(self, league_id: str, season_id: str) -> None:
        """Drop the cached table of one season; other seasons are untouched."""
        key = (league_id, season_id)
        with self._guard:
            self._generations[key] = self._generations.get(key, 0) + 1
            self.cache.delete(cache_key(league_id, season_id))
        logger.debug("Invalidated standings for %s/%s", league_id, season_id)

    def record_result(self, match: MatchResult) -> Optional[StandingsTable]:
        """React to a result recorded by the results subsystem.

        Returns the recomputed table when EAGER_RECOMPUTE is on, else None.
        """
        self.invalidate(match.league_id, match.season_id)
        if standings_setting("EAGER_RECOMPUTE"):
            return self.refresh(match.league_id, match.season_id)
        return None

    def refresh(
        self, league_id: str, season_id: str, allow_partial: Optional[bool] = None
    ) -> StandingsTable:
        """Recompute a season's table regardless of what is cached."""
        key = (league_id, season_id)
        with self._lock_for(key):
            table = self._recompute(key)
        return self._serve(table, allow_partial)

    def warm(
        self, seasons: Iterable[SeasonKey]
    ) -> Dict[SeasonKey, Union[StandingsTable, StandingsError]]:
        """Compute several seasons in parallel.

        Returns a dict keyed by (league_id, season_id) holding each table, or
        the error that season failed with.
        """
        seasons = list(dict.fromkeys(seasons))
        results: Dict[SeasonKey, Union[StandingsTable, StandingsError]] = {}
        if not seasons:
            return results

        workers = min(standings_setting("MAX_WORKERS"), len(seasons))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                key: executor.submit(self.get_standings, key[0], key[1], None, True)
                for key in seasons
            }
            for key, future in futures.items():
                try:
                    results[key] = future.result()
                except StandingsError as e:
                    logger.warning(
                        "Could not warm standings for %s/%s: %s", key[0], key[1], e
                    )
                    results[key] = e
        return results

    # Internals

    def _lock_for(self, key: SeasonKey) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def _generation(self, key: SeasonKey) -> int:
        with self._guard:
            return self._generations.get(key, 0)

    def _fresh_snapshot(
        self, key: SeasonKey, expected_match_count: Optional[int]
    ) -> Optional[StandingsTable]:
        table = self.cache.get(cache_key(*key))
        if table is None:
            return None
        if expected_match_count is not None and table.match_count != expected_match_count:
            logger.info(
                "Cached standings for %s/%s are stale: %d matches, expected %d",
                key[0],
                key[1],
                table.match_count,
                expected_match_count,
            )
            return None
        rules = self._load(self.rules_source.get_rules, key[0])
        if rules.version != table.config_version:
            logger.info(
                "Cached standings for %s/%s are stale: rules version %d, current %d",
                key[0],
                key[1],
                table.config_version,
                rules.version,
            )
            return None
        return table

    def _recompute(self, key: SeasonKey) -> StandingsTable:
        league_id, season_id = key
        generation = self._generation(key)

        rules = self._load(self.rules_source.get_rules, league_id)
        matches = self._load(self.season_source.list_results, league_id, season_id)
        team_ids = self._load(self.season_source.list_team_ids, league_id, season_id)

        with self._guard:
            self.computations += 1
        result = self._run_with_timeout(
            compute_standings, rules, season_id, matches, team_ids, self.rng_factory
        )
        table = result.unwrap(allow_partial=True)

        with self._guard:
            if self._generations.get(key, 0) == generation:
                self.cache.set(
                    cache_key(league_id, season_id),
                    table,
                    standings_setting("CACHE_TIMEOUT"),
                )
            else:
                logger.info(
                    "Standings for %s/%s were invalidated while computing; not caching",
                    league_id,
                    season_id,
                )
        return table

    def _load(self, fn, *args):
        retries = standings_setting("LOAD_RETRIES")
        attempt = 0
        while True:
            try:
                return fn(*args)
            except SourceUnavailableError as e:
                if attempt >= retries:
                    logger.error(
                        "Giving up on %s%s after %d attempts: %s",
                        fn.__name__,
                        args,
                        attempt + 1,
                        e,
                    )
                    raise
                attempt += 1
                logger.warning(
                    "Retrying %s%s (attempt %d): %s", fn.__name__, args, attempt + 1, e
                )

    def _run_with_timeout(self, fn, *args):
        timeout = standings_setting("COMPUTE_TIMEOUT")
        if timeout is None:
            return fn(*args)
        future = self._get_executor().submit(fn, *args)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            future.cancel()
            raise StandingsTimeoutError(
                f"Standings computation did not finish within {timeout} seconds"
            )

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._guard:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=standings_setting("MAX_WORKERS"),
                    thread_name_prefix="standings",
                )
            return self._executor

    def _serve(self, table: StandingsTable, allow_partial: Optional[bool]) -> StandingsTable:
        if allow_partial is None:
            allow_partial = standings_setting("SERVE_PARTIAL")
        if table.is_partial and not allow_partial:
            raise IncompleteStandingsError(m.match_id for m in table.excluded_matches)
        return table

    def shutdown(self) -> None:
        with self._guard:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)
