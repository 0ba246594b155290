"""
Pydantic models crossing the league API boundary.

Inputs (submitted rankings) and read models (leaderboard rows, awards,
champions, rebuild summaries). Persisted documents live in shared.dal.models.
"""

from pydantic import BaseModel, Field

from shared.dal.models import Points


class PlayerResult(BaseModel, frozen=True):
    """A submitted finishing position, before scoring."""

    player_id: str
    rank: int
    score: int | None = None


class NamedPlayerResult(PlayerResult, frozen=True):
    """A submitted result with the player's display name attached."""

    player_name: str


class RankingValidation(BaseModel, frozen=True):
    valid: bool
    error: str | None = None


class RankedPlayer(BaseModel, frozen=True):
    """One leaderboard row."""

    position: int = Field(ge=1)
    player_id: str
    player_name: str
    player_photo: str | None = None
    total_games: int
    wins: int
    podiums: int = 0
    win_rate: float
    total_points: Points
    average_points: float


class PlayerAward(BaseModel, frozen=True):
    player_id: str
    player_name: str
    player_photo: str | None = None
    total_points: Points
    games_played: int


class PlayerAwards(BaseModel, frozen=True):
    player_of_week: PlayerAward | None = None
    player_of_month: PlayerAward | None = None


class GameChampion(BaseModel, frozen=True):
    """The best qualifying player of one game."""

    game_id: str
    game_name: str
    game_image: str | None = None
    best_player: RankedPlayer


class RecalculationSummary(BaseModel, frozen=True):
    players_processed: int
    errors: list[str] = Field(default_factory=list)
