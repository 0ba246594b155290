"""Abstract interface for game session persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from shared.dal.models import GameSession


class SessionRepository(ABC):
    """Abstract interface for game session persistence.

    Sessions are the source of truth for scoring history. Query methods
    return sessions ordered by played_at ascending.
    """

    @abstractmethod
    async def create_session(self, session: GameSession) -> None: ...

    @abstractmethod
    async def get_session(self, session_id: str) -> GameSession | None: ...

    @abstractmethod
    async def replace_session(self, session: GameSession) -> None: ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> GameSession | None: ...

    @abstractmethod
    async def find_sessions_referencing_player(self, player_id: str) -> list[GameSession]: ...

    @abstractmethod
    async def find_sessions_in_range(self, start: datetime, end: datetime) -> list[GameSession]: ...

    @abstractmethod
    async def find_player_ids(self) -> list[str]: ...

    @abstractmethod
    async def anonymize_player(self, player_id: str) -> int: ...
