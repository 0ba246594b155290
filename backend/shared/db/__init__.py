"""SQLite database layer: connection management and repository implementations."""

from shared.db.connection import Database
from shared.db.game_repository import SqliteGameRepository
from shared.db.player_repository import SqlitePlayerRepository
from shared.db.session_repository import SqliteSessionRepository
from shared.db.stats_repository import SqliteStatsRepository

__all__ = [
    "Database",
    "SqliteGameRepository",
    "SqlitePlayerRepository",
    "SqliteSessionRepository",
    "SqliteStatsRepository",
]
