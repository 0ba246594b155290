"""Abstract interface for derived player statistics."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import PlayerStats


class StatsRepository(ABC):
    """Abstract interface for the player statistics cache."""

    @abstractmethod
    async def get_player_stats(self, player_id: str) -> PlayerStats | None: ...

    @abstractmethod
    async def get_all_player_stats(self) -> list[PlayerStats]: ...

    @abstractmethod
    async def upsert_player_stats(self, stats: PlayerStats) -> None: ...

    @abstractmethod
    async def delete_player_stats(self, player_id: str) -> bool: ...
