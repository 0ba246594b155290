"""League configuration via environment variables."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class LeagueSettings(BaseSettings):
    model_config = {"env_prefix": "LEAGUE_"}

    database_path: str = Field(default="backend/league.db", min_length=1)
    log_dir: str = Field(default="backend/logs/league", min_length=1)

    leaderboard_limit: int = Field(default=10, ge=1)
    # Plays of a game needed before a player can be its champion.
    best_player_min_games: int = Field(default=2, ge=1)
    week_window_days: int = Field(default=7, ge=1)
    month_window_days: int = Field(default=30, ge=1)
    # Calendar months for the monthly leaderboard are cut in this zone.
    timezone: str = "UTC"

    recalculation_workers: int = Field(default=4, ge=1)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v!r}") from e
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
