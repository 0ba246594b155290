"""SQLite-backed player statistics repository."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

from shared.dal.models import PlayerStats
from shared.dal.stats_repository import StatsRepository

if TYPE_CHECKING:
    from shared.db.connection import Database


class SqliteStatsRepository(StatsRepository):
    """SQLite implementation of StatsRepository.

    Each row holds the complete stats document; upserts replace it wholesale.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def get_player_stats(self, player_id: str) -> PlayerStats | None:
        row = self._db.connection.execute(
            "SELECT data FROM player_stats WHERE player_id = ?",
            (player_id,),
        ).fetchone()
        if row is None:
            return None
        return PlayerStats.model_validate(json.loads(row[0]))

    async def get_all_player_stats(self) -> list[PlayerStats]:
        """Return all stats rows, highest total points first."""
        rows = self._db.connection.execute(
            "SELECT data FROM player_stats ORDER BY total_points DESC, player_id",
        ).fetchall()
        return [PlayerStats.model_validate(json.loads(row[0])) for row in rows]

    async def upsert_player_stats(self, stats: PlayerStats) -> None:
        async with self._lock:
            self._db.connection.execute(
                "INSERT INTO player_stats (player_id, total_points, data) VALUES (?, ?, ?) "
                "ON CONFLICT(player_id) DO UPDATE SET total_points = excluded.total_points, data = excluded.data",
                (stats.player_id, float(stats.overall.total_points), stats.model_dump_json()),
            )
            self._db.connection.commit()

    async def delete_player_stats(self, player_id: str) -> bool:
        async with self._lock:
            cursor = self._db.connection.execute("DELETE FROM player_stats WHERE player_id = ?", (player_id,))
            self._db.connection.commit()
        return cursor.rowcount > 0
