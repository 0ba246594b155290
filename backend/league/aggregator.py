"""
Player statistics aggregation.

PlayerStats is a cache over the session history. It is only ever produced
by folding every session a player appears in from scratch and written over
whatever was stored before; nothing here updates stats incrementally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from league.types import RecalculationSummary
from shared.dal.models import GameStats, OverallStats, PlayerStats, TableSizeStats

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shared.dal.models import GameSession, Points, SessionResult
    from shared.dal.player_repository import PlayerRepository
    from shared.dal.session_repository import SessionRepository
    from shared.dal.stats_repository import StatsRepository

logger = structlog.get_logger()

PODIUM_RANK = 3


def rate(part: Points, whole: int) -> float:
    """part / whole as a float, or 0.0 when whole is 0."""
    return float(part / whole) if whole else 0.0


@dataclass
class _Tally:
    games: int = 0
    wins: int = 0
    podiums: int = 0
    points: Points = 0

    def add(self, result: SessionResult) -> None:
        self.games += 1
        self.points += result.points_earned
        if result.rank == 1:
            self.wins += 1
        if result.rank <= PODIUM_RANK:
            self.podiums += 1


@dataclass
class _GameTally:
    game_name: str
    tally: _Tally = field(default_factory=_Tally)
    by_player_count: dict[int, _Tally] = field(default_factory=dict)


def _table_size_stats(tally: _Tally) -> TableSizeStats:
    return TableSizeStats(
        total_games=tally.games,
        wins=tally.wins,
        podiums=tally.podiums,
        total_points=tally.points,
        average_points=rate(tally.points, tally.games),
    )


def fold_player_stats(player_id: str, sessions: Iterable[GameSession]) -> PlayerStats | None:
    """Build a player's stats from the sessions they appear in. Returns None without history.

    Sessions not referencing the player are ignored. Folding order is
    (played_at, session_id), so the output depends only on the set of sessions.
    """
    played = sorted(
        ((s, r) for s in sessions if (r := s.result_for(player_id)) is not None),
        key=lambda pair: (pair[0].played_at, pair[0].session_id),
    )
    if not played:
        return None

    overall = _Tally()
    games: dict[str, _GameTally] = {}
    for session, result in played:
        overall.add(result)
        game = games.setdefault(session.game_id, _GameTally(game_name=session.game_name))
        game.game_name = session.game_name  # latest name wins
        game.tally.add(result)
        game.by_player_count.setdefault(session.player_count, _Tally()).add(result)

    game_stats = [
        GameStats(
            game_id=game_id,
            game_name=game.game_name,
            total_games=game.tally.games,
            wins=game.tally.wins,
            podiums=game.tally.podiums,
            win_rate=rate(game.tally.wins, game.tally.games),
            total_points=game.tally.points,
            average_points=rate(game.tally.points, game.tally.games),
            by_player_count={size: _table_size_stats(t) for size, t in sorted(game.by_player_count.items())},
        )
        for game_id, game in games.items()
    ]
    game_stats.sort(key=lambda gs: (gs.game_name, gs.game_id))

    latest_session, latest_result = played[-1]
    return PlayerStats(
        player_id=player_id,
        player_name=latest_result.player_name,
        overall=OverallStats(
            total_games=overall.games,
            wins=overall.wins,
            podiums=overall.podiums,
            win_rate=rate(overall.wins, overall.games),
            total_points=overall.points,
            average_points=rate(overall.points, overall.games),
        ),
        game_stats=game_stats,
        last_played_at=latest_session.played_at,
    )


class StatsAggregator:
    """Recompute and store PlayerStats from the session history."""

    def __init__(
        self,
        session_repo: SessionRepository,
        stats_repo: StatsRepository,
        player_repo: PlayerRepository,
    ) -> None:
        self._session_repo = session_repo
        self._stats_repo = stats_repo
        self._player_repo = player_repo

    async def recalculate_player_stats(self, player_id: str) -> PlayerStats | None:
        """Fold the player's full history and overwrite their stored stats.

        Without any history the stale stats row, if any, is removed and None is returned.
        """
        sessions = await self._session_repo.find_sessions_referencing_player(player_id)
        stats = fold_player_stats(player_id, sessions)
        if stats is None:
            if await self._stats_repo.delete_player_stats(player_id):
                logger.info("removed stats for player without history", player_id=player_id)
            return None

        await self._stats_repo.upsert_player_stats(stats)
        logger.debug(
            "recalculated player stats",
            player_id=player_id,
            total_games=stats.overall.total_games,
            total_points=stats.overall.total_points,
        )
        return stats

    async def recalculate_all_stats(self) -> RecalculationSummary:
        """Rebuild stats for every known player, collecting per-player failures.

        Known players are the roster (archived included), everyone referenced by a
        session, and everyone with a stored stats row, so orphaned rows get cleared.
        """
        player_ids: set[str] = {p.player_id for p in await self._player_repo.get_players(include_inactive=True)}
        player_ids.update(await self._session_repo.find_player_ids())
        player_ids.update(s.player_id for s in await self._stats_repo.get_all_player_stats())

        processed = 0
        errors: list[str] = []
        for player_id in sorted(player_ids):
            try:
                await self.recalculate_player_stats(player_id)
            except Exception as e:
                logger.exception("failed to recalculate player stats", player_id=player_id)
                errors.append(f"{player_id}: {e}")
            else:
                processed += 1

        logger.info("recalculated all stats", players_processed=processed, failed=len(errors))
        return RecalculationSummary(players_processed=processed, errors=errors)
