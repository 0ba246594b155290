"""SQLite-backed player repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING

import structlog

from shared.dal.models import Player
from shared.dal.player_repository import PlayerRepository

if TYPE_CHECKING:
    from shared.db.connection import Database

logger = structlog.get_logger()


class SqlitePlayerRepository(PlayerRepository):
    """SQLite implementation of PlayerRepository.

    Uses a single INSERT under an asyncio lock and relies on the primary key
    constraint, mapping IntegrityError to domain ValueError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_player(self, player: Player) -> None:
        """Insert a player. Raises ValueError on duplicate id."""
        async with self._lock:
            try:
                self._db.connection.execute(
                    "INSERT INTO players (id, name, is_active, data) VALUES (?, ?, ?, ?)",
                    (player.player_id, player.name, int(player.is_active), player.model_dump_json()),
                )
                self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                raise ValueError(f"Player with id '{player.player_id}' already exists") from exc

    async def get_player(self, player_id: str) -> Player | None:
        row = self._db.connection.execute(
            "SELECT data FROM players WHERE id = ?",
            (player_id,),
        ).fetchone()
        if row is None:
            return None
        return Player.model_validate(json.loads(row[0]))

    async def get_players(self, *, include_inactive: bool = False) -> list[Player]:
        """Return the roster ordered by name, active players only unless asked otherwise."""
        query = "SELECT data FROM players"
        if not include_inactive:
            query += " WHERE is_active = 1"
        rows = self._db.connection.execute(query + " ORDER BY name COLLATE NOCASE, id").fetchall()
        return [Player.model_validate(json.loads(row[0])) for row in rows]

    async def get_player_photo(self, player_id: str) -> str | None:
        row = self._db.connection.execute(
            "SELECT json_extract(data, '$.photo_url') FROM players WHERE id = ?",
            (player_id,),
        ).fetchone()
        if row is None:
            return None
        return row[0]

    async def delete_player(self, player_id: str) -> bool:
        """Permanently remove a player. Returns False when the id is unknown."""
        async with self._lock:
            cursor = self._db.connection.execute("DELETE FROM players WHERE id = ?", (player_id,))
            self._db.connection.commit()
        if cursor.rowcount == 0:
            return False
        logger.info("deleted player", player_id=player_id)
        return True
