"""
Error taxonomy for the standings engine.

Configuration errors are fatal for a computation and are surfaced to league
admins unchanged. Unclassifiable results only exclude the offending match.
Ties that survive the whole tiebreaker chain are not errors at all; they are
reported as ``UnresolvedTie`` records (see ``structure.py``).
"""

from typing import Optional


class StandingsError(Exception):
    """Base class for every error raised by the standings engine."""


class ConfigurationError(StandingsError):
    """A league's point system or tiebreaker chain cannot be used as-is."""


class MissingPointRuleError(ConfigurationError):
    """An outcome the sport can produce has no matching point rule."""

    def __init__(self, outcome: str, sport: Optional[str] = None):
        self.outcome = outcome
        self.sport = sport
        where = f" for {sport}" if sport else ""
        super().__init__(f"No point rule configured for outcome {outcome}{where}")


class InvalidTieBreakerError(ConfigurationError):
    """The tiebreaker chain is malformed (order gaps, misplaced random, ...)."""


class UnknownTagError(ConfigurationError):
    """An outcome, metric or bonus condition tag is not in the sport's vocabulary."""

    def __init__(self, kind: str, tag: str, sport: Optional[str] = None):
        self.kind = kind
        self.tag = tag
        self.sport = sport
        where = f" for {sport}" if sport else ""
        super().__init__(f"Unknown {kind} '{tag}'{where}")


class UnclassifiableResultError(StandingsError):
    """A match result is malformed and cannot be turned into outcomes."""

    def __init__(self, match_id: str, reason: str):
        self.match_id = match_id
        self.reason = reason
        super().__init__(f"Match {match_id}: {reason}")


class ComputationError(StandingsError):
    """Base class for errors surfaced by the standings service."""


class IncompleteStandingsError(ComputationError):
    """Matches were excluded and the caller refuses partial tables."""

    def __init__(self, excluded_match_ids):
        self.excluded_match_ids = tuple(excluded_match_ids)
        super().__init__(
            f"{len(self.excluded_match_ids)} match(es) could not be aggregated: "
            + ", ".join(self.excluded_match_ids)
        )


class StandingsTimeoutError(ComputationError):
    """The computation did not finish within the configured time budget."""


class SourceUnavailableError(ComputationError):
    """A collaborator (rules or results store) could not be reached."""
