"""Abstract interface for game definition persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import GameDefinition


class GameRepository(ABC):
    """Abstract interface for game definition persistence."""

    @abstractmethod
    async def create_game(self, game: GameDefinition) -> None: ...

    @abstractmethod
    async def get_game(self, game_id: str) -> GameDefinition | None: ...

    @abstractmethod
    async def get_active_games(self) -> list[GameDefinition]: ...
