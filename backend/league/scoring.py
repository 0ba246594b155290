"""
Point allocation for recorded sessions.

Every session distributes a pool of player_count * points_per_player points.

Pointing: finishing position p of N carries weight N - p + 1. The pool is
apportioned over positions by those weights with the largest-remainder
method, so position points are whole numbers that sum to the pool exactly.
Tied players share the positions they occupy and each receive the exact
average of those positions' points.

Winner-takes-all: the rank-1 group splits the whole pool evenly; everyone
else receives 0.

Shares are exact: a split that is not a whole number stays a Fraction, so
the points of a fully ranked session always sum to the pool.
"""

from __future__ import annotations

from fractions import Fraction
from itertools import groupby
from typing import TYPE_CHECKING

from shared.dal.models import ScoringMode, SessionResult

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from league.types import NamedPlayerResult


class InvalidModeError(ValueError):
    """Scoring mode is not one of the supported modes."""


def resolve_mode(mode: ScoringMode | str) -> ScoringMode:
    try:
        return ScoringMode(mode)
    except ValueError as e:
        raise InvalidModeError(f"Unknown scoring mode: {mode!r}") from e


def get_total_points_pool(player_count: int, points_per_player: int) -> int:
    """Return the number of points a session of this table size distributes."""
    if player_count < 1:
        raise ValueError(f"player_count must be at least 1, got {player_count}")
    if points_per_player < 0:
        raise ValueError(f"points_per_player must not be negative, got {points_per_player}")
    return player_count * points_per_player


def position_points(player_count: int, pool: int) -> list[int]:
    """Split the pool over positions 1..player_count proportionally to N - p + 1."""
    total_weight = player_count * (player_count + 1) // 2
    shares = [divmod(pool * (player_count - i), total_weight) for i in range(player_count)]
    points = [whole for whole, _ in shares]
    leftover = pool - sum(points)
    # Larger remainders first; equal remainders favour the better position.
    by_remainder = sorted(range(player_count), key=lambda i: (-shares[i][1], i))
    for i in by_remainder[:leftover]:
        points[i] += 1
    return points


def _allocate_pointing(pool: int, player_count: int, ranked: Sequence[NamedPlayerResult]) -> list[Fraction]:
    table = position_points(player_count, pool)
    awards: list[Fraction] = []
    position = 0
    for _, group in groupby(ranked, key=lambda r: r.rank):
        size = len(list(group))
        occupied = table[position : position + size]  # positions past the table are worth 0
        share = Fraction(sum(occupied), size)
        awards.extend([share] * size)
        position += size
    return awards


def _allocate_winner_takes_all(pool: int, _player_count: int, ranked: Sequence[NamedPlayerResult]) -> list[Fraction]:
    winners = sum(1 for r in ranked if r.rank == 1)
    share = Fraction(pool, winners) if winners else Fraction(0)
    return [share if r.rank == 1 else Fraction(0) for r in ranked]


_ALLOCATORS: dict[ScoringMode, Callable[[int, int, Sequence[NamedPlayerResult]], list[Fraction]]] = {
    ScoringMode.POINTING: _allocate_pointing,
    ScoringMode.WINNER_TAKES_ALL: _allocate_winner_takes_all,
}


def calculate_scores(
    mode: ScoringMode | str,
    player_count: int,
    points_per_player: int,
    results: Sequence[NamedPlayerResult],
) -> list[SessionResult]:
    """Score one session. Returns one SessionResult per input result, best rank first.

    Pure: no I/O, no mutation of the inputs.
    """
    allocate = _ALLOCATORS[resolve_mode(mode)]
    pool = get_total_points_pool(player_count, points_per_player)
    ranked = sorted(results, key=lambda r: r.rank)
    awards = allocate(pool, player_count, ranked)
    return [
        SessionResult(
            player_id=r.player_id,
            player_name=r.player_name,
            rank=r.rank,
            score=r.score,
            points_earned=award,
        )
        for r, award in zip(ranked, awards, strict=True)
    ]
