"""Persistence models for the data access layer."""

from datetime import UTC, datetime
from enum import StrEnum
from fractions import Fraction
from typing import Annotated, Any, Self

from pydantic import BaseModel, BeforeValidator, Field, PlainSerializer, field_validator, model_validator


def _exact_points(value: Any) -> Any:  # noqa: ANN401
    """Coerce ints, floats, Fractions and "n/d" strings to an exact value.

    Whole values become int so the common case serializes as a plain number.
    """
    if isinstance(value, bool) or not isinstance(value, int | float | str | Fraction):
        return value
    try:
        exact = Fraction(str(value)) if isinstance(value, float) else Fraction(value)
    except (ValueError, ZeroDivisionError) as e:
        raise ValueError(f"Invalid points value: {value!r}") from e
    if exact < 0:
        raise ValueError(f"Points must not be negative, got {value!r}")
    return exact.numerator if exact.denominator == 1 else exact


def _points_json(value: int | Fraction) -> int | str:
    return value if isinstance(value, int) else str(value)


# Points are integral unless an even split of a pool is not; then they are an
# exact fraction, stored as "n/d" so sums over sessions stay exact.
Points = Annotated[int | Fraction, BeforeValidator(_exact_points), PlainSerializer(_points_json, when_used="json")]

DEFAULT_POINTING_POINTS_PER_PLAYER = 5
DEFAULT_WINNER_TAKES_ALL_POINTS_PER_PLAYER = 3


class ScoringMode(StrEnum):
    POINTING = "pointing"
    WINNER_TAKES_ALL = "winner-takes-all"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Player(BaseModel, frozen=True):
    """Roster entry for someone who takes part in game nights."""

    player_id: str
    name: str
    photo_url: str | None = None
    is_active: bool = True


class GameDefinition(BaseModel, frozen=True):
    """A game in the catalogue and the scoring policy sessions of it use."""

    game_id: str
    name: str
    scoring_mode: ScoringMode = ScoringMode.POINTING
    points_per_player: int = Field(ge=0)
    image_url: str | None = None
    is_active: bool = True

    @model_validator(mode="before")
    @classmethod
    def _default_points_per_player(cls, data: Any) -> Any:  # noqa: ANN401
        """Fill points_per_player from the scoring mode when it is omitted."""
        if isinstance(data, dict) and data.get("points_per_player") is None:
            mode = data.get("scoring_mode", ScoringMode.POINTING)
            data = {
                **data,
                "points_per_player": (
                    DEFAULT_WINNER_TAKES_ALL_POINTS_PER_PLAYER
                    if mode == ScoringMode.WINNER_TAKES_ALL
                    else DEFAULT_POINTING_POINTS_PER_PLAYER
                ),
            }
        return data


class SessionResult(BaseModel, frozen=True):
    """One participant's scored outcome in a recorded session."""

    player_id: str | None  # None once the player has been permanently deleted
    player_name: str
    rank: int = Field(ge=1)
    score: int | None = None  # raw in-game score, informational only
    points_earned: Points = 0


class GameSession(BaseModel, frozen=True):
    """Record of one play of a game, with the scoring policy snapshotted at creation."""

    session_id: str
    game_id: str
    game_name: str
    scoring_mode: ScoringMode
    points_per_player: int = Field(ge=0)
    player_count: int = Field(ge=1)
    played_at: datetime
    results: list[SessionResult] = Field(default_factory=list)
    total_points_pool: int = Field(ge=0)

    @field_validator("played_at")
    @classmethod
    def _normalize_played_at(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="after")
    def _check_pool(self) -> Self:
        """The pool matches the table, and results never hand out more than it.

        With every seat ranked the pool is distributed exactly. Seats left
        out of the results keep their share unawarded.
        """
        expected = self.player_count * self.points_per_player
        if self.total_points_pool != expected:
            raise ValueError(
                f"total_points_pool must be {expected} for {self.player_count} players, got {self.total_points_pool}",
            )
        awarded = sum((r.points_earned for r in self.results), Fraction(0))
        if awarded > self.total_points_pool:
            raise ValueError(f"Results award {awarded} points from a pool of {self.total_points_pool}")
        if len(self.results) == self.player_count and awarded != self.total_points_pool:
            raise ValueError(f"Results award {awarded} points, pool is {self.total_points_pool}")
        return self

    def participant_ids(self) -> list[str]:
        """Distinct non-anonymized player ids, in result order."""
        seen: dict[str, None] = {}
        for result in self.results:
            if result.player_id is not None:
                seen.setdefault(result.player_id, None)
        return list(seen)

    def result_for(self, player_id: str) -> SessionResult | None:
        return next((r for r in self.results if r.player_id == player_id), None)


class TableSizeStats(BaseModel, frozen=True):
    """A player's record in one game at one table size."""

    total_games: int = 0
    wins: int = 0
    podiums: int = 0
    total_points: Points = 0
    average_points: float = 0.0


class GameStats(BaseModel, frozen=True):
    """A player's record in one game."""

    game_id: str
    game_name: str
    total_games: int = 0
    wins: int = 0
    podiums: int = 0
    win_rate: float = 0.0
    total_points: Points = 0
    average_points: float = 0.0
    by_player_count: dict[int, TableSizeStats] = Field(default_factory=dict)


class OverallStats(BaseModel, frozen=True):
    total_games: int = 0
    wins: int = 0
    podiums: int = 0
    win_rate: float = 0.0
    total_points: Points = 0
    average_points: float = 0.0


class PlayerStats(BaseModel, frozen=True):
    """Derived summary of a player's whole history.

    A cache over the session history: always rebuilt by a full fold and
    written over any previous value, never patched field by field.
    """

    player_id: str
    player_name: str
    overall: OverallStats = Field(default_factory=OverallStats)
    game_stats: list[GameStats] = Field(default_factory=list)
    last_played_at: datetime | None = None

    def stats_for_game(self, game_id: str) -> GameStats | None:
        return next((gs for gs in self.game_stats if gs.game_id == game_id), None)
