"""
Leaderboards and awards.

All-time boards read the stored PlayerStats. Windowed boards (a calendar
month, the trailing week or month) cannot be answered from all-time stats,
so they fold the raw sessions inside the window from scratch.

Ordering is always deterministic:
- stored stats: points desc, win rate desc, player id asc
- windowed folds: points desc, earliest time the final total was reached,
  player id asc
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, tzinfo
from typing import TYPE_CHECKING

import structlog

from league.aggregator import PODIUM_RANK, rate
from league.types import GameChampion, PlayerAward, PlayerAwards, RankedPlayer

if TYPE_CHECKING:
    from collections.abc import Iterable

    from league.settings import LeagueSettings
    from shared.dal.game_repository import GameRepository
    from shared.dal.models import GameSession, PlayerStats, Points
    from shared.dal.player_repository import PlayerRepository
    from shared.dal.session_repository import SessionRepository
    from shared.dal.stats_repository import StatsRepository

logger = structlog.get_logger()


@dataclass
class WindowTally:
    """One player's totals inside a time window."""

    player_id: str
    player_name: str
    first_seen: datetime
    reached_at: datetime | None = None  # played_at of the last session that added points
    games: int = 0
    wins: int = 0
    podiums: int = 0
    points: Points = 0

    @property
    def sort_key(self) -> tuple[float, datetime, str]:
        return (-self.points, self.reached_at or self.first_seen, self.player_id)


def fold_window(sessions: Iterable[GameSession]) -> list[WindowTally]:
    """Fold sessions into per-player window totals, best first. Anonymized results are skipped."""
    tallies: dict[str, WindowTally] = {}
    for session in sorted(sessions, key=lambda s: (s.played_at, s.session_id)):
        for result in session.results:
            if result.player_id is None:
                continue
            tally = tallies.get(result.player_id)
            if tally is None:
                tally = WindowTally(
                    player_id=result.player_id,
                    player_name=result.player_name,
                    first_seen=session.played_at,
                )
                tallies[result.player_id] = tally
            tally.player_name = result.player_name
            tally.games += 1
            tally.points += result.points_earned
            if result.points_earned > 0:
                tally.reached_at = session.played_at
            if result.rank == 1:
                tally.wins += 1
            if result.rank <= PODIUM_RANK:
                tally.podiums += 1
    return sorted(tallies.values(), key=lambda t: t.sort_key)


def month_bounds(month: int, year: int, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Return the first and last instants of a calendar month in the given zone (UTC by default)."""
    if not 1 <= month <= 12:  # noqa: PLR2004
        raise ValueError(f"Invalid month: {month}")
    zone = tz or UTC
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=zone)
    end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=zone)
    return start, end


def _stats_sort_key(points: Points, win_rate: float, player_id: str) -> tuple[Points, float, str]:
    return (-points, -win_rate, player_id)


class LeaderboardService:
    """Ranked views over stored stats and over raw session history."""

    def __init__(
        self,
        session_repo: SessionRepository,
        stats_repo: StatsRepository,
        game_repo: GameRepository,
        player_repo: PlayerRepository,
        settings: LeagueSettings,
    ) -> None:
        self._session_repo = session_repo
        self._stats_repo = stats_repo
        self._game_repo = game_repo
        self._player_repo = player_repo
        self._settings = settings

    def _resolve_limit(self, limit: int | None) -> int:
        if limit is None:
            return self._settings.leaderboard_limit
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        return limit

    async def get_overall_leaderboard(self, limit: int | None = None) -> list[RankedPlayer]:
        all_stats = await self._stats_repo.get_all_player_stats()
        all_stats.sort(key=lambda s: _stats_sort_key(s.overall.total_points, s.overall.win_rate, s.player_id))
        return await self._decorate(
            [
                RankedPlayer(
                    position=position,
                    player_id=stats.player_id,
                    player_name=stats.player_name,
                    total_games=stats.overall.total_games,
                    wins=stats.overall.wins,
                    podiums=stats.overall.podiums,
                    win_rate=stats.overall.win_rate,
                    total_points=stats.overall.total_points,
                    average_points=stats.overall.average_points,
                )
                for position, stats in enumerate(all_stats[: self._resolve_limit(limit)], start=1)
            ],
        )

    async def get_game_leaderboard(
        self,
        game_id: str,
        player_count: int | None = None,
        limit: int | None = None,
    ) -> list[RankedPlayer]:
        """Rank players of one game, optionally counting only sessions at one table size."""
        all_stats = await self._stats_repo.get_all_player_stats()
        rows = self._game_rows(all_stats, game_id, player_count=player_count)
        return await self._decorate(rows[: self._resolve_limit(limit)])

    async def get_monthly_leaderboard(
        self,
        month: int,
        year: int,
        limit: int | None = None,
    ) -> list[RankedPlayer]:
        start, end = month_bounds(month, year, self._settings.tzinfo)
        sessions = await self._session_repo.find_sessions_in_range(start, end)
        logger.debug("folding monthly window", month=month, year=year, sessions=len(sessions))
        tallies = fold_window(sessions)[: self._resolve_limit(limit)]
        return await self._decorate(
            [
                RankedPlayer(
                    position=position,
                    player_id=t.player_id,
                    player_name=t.player_name,
                    total_games=t.games,
                    wins=t.wins,
                    podiums=t.podiums,
                    win_rate=rate(t.wins, t.games),
                    total_points=t.points,
                    average_points=rate(t.points, t.games),
                )
                for position, t in enumerate(tallies, start=1)
            ],
        )

    async def get_awards(self, now: datetime | None = None) -> PlayerAwards:
        """Player of the week and of the month over trailing windows ending at now."""
        now = now or datetime.now(UTC)
        week = await self._top_of_window(now - timedelta(days=self._settings.week_window_days), now)
        month = await self._top_of_window(now - timedelta(days=self._settings.month_window_days), now)
        return PlayerAwards(player_of_week=week, player_of_month=month)

    async def get_best_player_per_game(self) -> list[GameChampion]:
        """Champion of each active game; games without a qualifying player are left out."""
        games = await self._game_repo.get_active_games()
        if not games:
            return []
        all_stats = await self._stats_repo.get_all_player_stats()
        min_games = self._settings.best_player_min_games

        champions = []
        for game in games:
            rows = [r for r in self._game_rows(all_stats, game.game_id) if r.total_games >= min_games]
            if not rows:
                continue
            best = rows[0].model_copy(update={"position": 1})
            [best] = await self._decorate([best])
            champions.append(
                GameChampion(game_id=game.game_id, game_name=game.name, game_image=game.image_url, best_player=best),
            )
        return champions

    def _game_rows(
        self,
        all_stats: list[PlayerStats],
        game_id: str,
        *,
        player_count: int | None = None,
    ) -> list[RankedPlayer]:
        entries = []
        for stats in all_stats:
            game_stats = stats.stats_for_game(game_id)
            if game_stats is None:
                continue
            record = game_stats if player_count is None else game_stats.by_player_count.get(player_count)
            if record is None:
                continue
            entries.append((stats, record))

        entries.sort(
            key=lambda e: _stats_sort_key(e[1].total_points, rate(e[1].wins, e[1].total_games), e[0].player_id),
        )
        return [
            RankedPlayer(
                position=position,
                player_id=stats.player_id,
                player_name=stats.player_name,
                total_games=record.total_games,
                wins=record.wins,
                podiums=record.podiums,
                win_rate=rate(record.wins, record.total_games),
                total_points=record.total_points,
                average_points=record.average_points,
            )
            for position, (stats, record) in enumerate(entries, start=1)
        ]

    async def _decorate(self, rows: list[RankedPlayer]) -> list[RankedPlayer]:
        return [
            row.model_copy(update={"player_photo": await self._player_repo.get_player_photo(row.player_id)})
            for row in rows
        ]

    async def _top_of_window(self, start: datetime, end: datetime) -> PlayerAward | None:
        sessions = await self._session_repo.find_sessions_in_range(start, end)
        tallies = fold_window(sessions)
        if not tallies:
            return None
        top = tallies[0]
        return PlayerAward(
            player_id=top.player_id,
            player_name=top.player_name,
            player_photo=await self._player_repo.get_player_photo(top.player_id),
            total_points=top.points,
            games_played=top.games,
        )
