"""SQLite-backed game definition repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING

from shared.dal.game_repository import GameRepository
from shared.dal.models import GameDefinition

if TYPE_CHECKING:
    from shared.db.connection import Database


class SqliteGameRepository(GameRepository):
    """SQLite implementation of GameRepository. Game names are unique, case-insensitively."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_game(self, game: GameDefinition) -> None:
        """Insert a game definition. Raises ValueError on duplicate id or name."""
        async with self._lock:
            try:
                self._db.connection.execute(
                    "INSERT INTO games (id, name, is_active, data) VALUES (?, ?, ?, ?)",
                    (game.game_id, game.name, int(game.is_active), game.model_dump_json()),
                )
                self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                error_msg = str(exc).lower()
                if "games.id" in error_msg:
                    raise ValueError(f"Game with id '{game.game_id}' already exists") from exc
                raise ValueError(f"Game name '{game.name}' already taken") from exc

    async def get_game(self, game_id: str) -> GameDefinition | None:
        row = self._db.connection.execute(
            "SELECT data FROM games WHERE id = ?",
            (game_id,),
        ).fetchone()
        if row is None:
            return None
        return GameDefinition.model_validate(json.loads(row[0]))

    async def get_active_games(self) -> list[GameDefinition]:
        """Return active games ordered by name."""
        rows = self._db.connection.execute(
            "SELECT data FROM games WHERE is_active = 1 ORDER BY name COLLATE NOCASE, id",
        ).fetchall()
        return [GameDefinition.model_validate(json.loads(row[0])) for row in rows]
