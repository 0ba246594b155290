"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.game_repository import GameRepository
from shared.dal.models import (
    GameDefinition,
    GameSession,
    GameStats,
    OverallStats,
    Player,
    PlayerStats,
    Points,
    ScoringMode,
    SessionResult,
    TableSizeStats,
)
from shared.dal.player_repository import PlayerRepository
from shared.dal.session_repository import SessionRepository
from shared.dal.stats_repository import StatsRepository

__all__ = [
    "GameDefinition",
    "GameRepository",
    "GameSession",
    "GameStats",
    "OverallStats",
    "Player",
    "PlayerRepository",
    "PlayerStats",
    "Points",
    "ScoringMode",
    "SessionRepository",
    "SessionResult",
    "StatsRepository",
    "TableSizeStats",
]
