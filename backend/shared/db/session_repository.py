"""SQLite-backed game session repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING

import structlog

from shared.dal.models import GameSession
from shared.dal.session_repository import SessionRepository
from shared.db.connection import to_sql_timestamp

if TYPE_CHECKING:
    from datetime import datetime

    from shared.db.connection import Database

logger = structlog.get_logger()

_REFERENCES_PLAYER = (
    "EXISTS (SELECT 1 FROM json_each(game_sessions.data, '$.results') AS r "
    "WHERE json_extract(r.value, '$.player_id') = ?)"
)


class SqliteSessionRepository(SessionRepository):
    """SQLite implementation of SessionRepository.

    Stores full session snapshots as JSON with indexed columns for queries.
    Uses json_each for player-based lookups.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_session(self, session: GameSession) -> None:
        """Insert a session record. Raises ValueError on duplicate session_id."""
        async with self._lock:
            try:
                self._db.connection.execute(
                    "INSERT INTO game_sessions (id, game_id, played_at, data) VALUES (?, ?, ?, ?)",
                    (
                        session.session_id,
                        session.game_id,
                        to_sql_timestamp(session.played_at),
                        session.model_dump_json(),
                    ),
                )
                self._db.connection.commit()
            except sqlite3.IntegrityError as exc:
                self._db.connection.rollback()
                raise ValueError(f"Session with id '{session.session_id}' already exists") from exc

    async def get_session(self, session_id: str) -> GameSession | None:
        row = self._db.connection.execute(
            "SELECT data FROM game_sessions WHERE id = ?",
            (session_id,),
        ).fetchone()
        if row is None:
            return None
        return GameSession.model_validate(json.loads(row[0]))

    async def replace_session(self, session: GameSession) -> None:
        """Overwrite an existing session. Raises ValueError when it does not exist."""
        async with self._lock:
            self._write_session(session)

    async def delete_session(self, session_id: str) -> GameSession | None:
        """Remove a session and return what was removed, or None if it did not exist."""
        async with self._lock:
            existing = await self.get_session(session_id)
            if existing is None:
                return None
            self._db.connection.execute("DELETE FROM game_sessions WHERE id = ?", (session_id,))
            self._db.connection.commit()
            return existing

    async def find_sessions_referencing_player(self, player_id: str) -> list[GameSession]:
        rows = self._db.connection.execute(
            f"SELECT data FROM game_sessions WHERE {_REFERENCES_PLAYER} ORDER BY played_at, id",  # noqa: S608
            (player_id,),
        ).fetchall()
        return [GameSession.model_validate(json.loads(row[0])) for row in rows]

    async def find_sessions_in_range(self, start: datetime, end: datetime) -> list[GameSession]:
        """Return sessions with start <= played_at <= end."""
        rows = self._db.connection.execute(
            "SELECT data FROM game_sessions WHERE played_at >= ? AND played_at <= ? ORDER BY played_at, id",
            (to_sql_timestamp(start), to_sql_timestamp(end)),
        ).fetchall()
        return [GameSession.model_validate(json.loads(row[0])) for row in rows]

    async def find_player_ids(self) -> list[str]:
        """Return every player id referenced by at least one session."""
        rows = self._db.connection.execute(
            "SELECT DISTINCT json_extract(r.value, '$.player_id') AS player_id "
            "FROM game_sessions, json_each(game_sessions.data, '$.results') AS r "
            "WHERE json_extract(r.value, '$.player_id') IS NOT NULL ORDER BY player_id",
        ).fetchall()
        return [row[0] for row in rows]

    async def anonymize_player(self, player_id: str) -> int:
        """Detach a player from every session they appear in. Returns the number of sessions changed.

        Points stay on the anonymized results so each session still sums to its pool.
        """
        async with self._lock:
            sessions = await self.find_sessions_referencing_player(player_id)
            for session in sessions:
                results = [
                    r.model_copy(update={"player_id": None}) if r.player_id == player_id else r
                    for r in session.results
                ]
                self._write_session(session.model_copy(update={"results": results}), commit=False)
            self._db.connection.commit()
        if sessions:
            logger.info("anonymized player in sessions", player_id=player_id, count=len(sessions))
        return len(sessions)

    def _write_session(self, session: GameSession, *, commit: bool = True) -> None:
        cursor = self._db.connection.execute(
            "UPDATE game_sessions SET game_id = ?, played_at = ?, data = ? WHERE id = ?",
            (
                session.game_id,
                to_sql_timestamp(session.played_at),
                session.model_dump_json(),
                session.session_id,
            ),
        )
        if cursor.rowcount == 0:
            self._db.connection.rollback()
            raise ValueError(f"Session with id '{session.session_id}' does not exist")
        if commit:
            self._db.connection.commit()
