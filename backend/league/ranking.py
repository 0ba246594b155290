"""
Ranking validation for submitted session results.

Pointing sessions must carry a complete competition ranking ("1224"):
tied players share a rank and the next rank skips by the size of the tie.
Winner-takes-all sessions only need exactly one first place.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from league.scoring import resolve_mode
from league.types import RankingValidation
from shared.dal.models import ScoringMode

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from league.types import PlayerResult


class InvalidRankingError(ValueError):
    """Submitted rankings are malformed for the session's scoring mode."""


def _invalid(reason: str) -> RankingValidation:
    return RankingValidation(valid=False, error=reason)


def _check_rank_values(results: Sequence[PlayerResult]) -> RankingValidation | None:
    for result in results:
        rank = result.rank
        if isinstance(rank, bool) or not isinstance(rank, int):
            return _invalid(f"Rank for player {result.player_id} must be a whole number, got {rank!r}")
        if rank < 1:
            return _invalid(f"Rank for player {result.player_id} must be at least 1, got {rank}")
    return None


def validate_rankings(results: Sequence[PlayerResult]) -> RankingValidation:
    """Check that results form a valid competition ranking for a pointing session."""
    if not results:
        return _invalid("No results provided")

    bad_value = _check_rank_values(results)
    if bad_value is not None:
        return bad_value

    counts = Counter(r.rank for r in results)
    expected = 1
    for rank in sorted(counts):
        if rank != expected:
            if expected == 1:
                return _invalid("Rankings must start at 1")
            return _invalid(
                f"Invalid rankings: expected rank {expected} after {expected - 1} placed players, got {rank}",
            )
        expected = rank + counts[rank]
    return RankingValidation(valid=True)


def validate_winner_takes_all(results: Sequence[PlayerResult]) -> RankingValidation:
    """Check that a winner-takes-all session has exactly one first place."""
    if not results:
        return _invalid("No results provided")

    bad_value = _check_rank_values(results)
    if bad_value is not None:
        return bad_value

    winners = sum(1 for r in results if r.rank == 1)
    if winners != 1:
        return _invalid(f"Winner Takes All mode requires exactly 1 player with rank 1, got {winners}")
    return RankingValidation(valid=True)


_VALIDATORS: dict[ScoringMode, Callable[[Sequence[PlayerResult]], RankingValidation]] = {
    ScoringMode.POINTING: validate_rankings,
    ScoringMode.WINNER_TAKES_ALL: validate_winner_takes_all,
}


def check_rankings(mode: ScoringMode | str, results: Sequence[PlayerResult]) -> None:
    """Validate results for the given mode, raising InvalidRankingError with the reason."""
    validation = _VALIDATORS[resolve_mode(mode)](results)
    if not validation.valid:
        raise InvalidRankingError(validation.error)
