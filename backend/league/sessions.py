"""
Recording, correcting and deleting game sessions.

A session write is the durable event. Stats for every affected player are
recomputed afterwards through the background worker, so a slow or failing
recompute never fails the write itself.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from league.ranking import InvalidRankingError, check_rankings
from league.scoring import calculate_scores, get_total_points_pool
from league.types import NamedPlayerResult
from shared.dal.models import GameSession

if TYPE_CHECKING:
    from collections.abc import Sequence

    from league.types import PlayerResult
    from league.worker import StatsRecalculationWorker
    from shared.dal.game_repository import GameRepository
    from shared.dal.models import ScoringMode, SessionResult
    from shared.dal.player_repository import PlayerRepository
    from shared.dal.session_repository import SessionRepository
    from shared.dal.stats_repository import StatsRepository

logger = structlog.get_logger()


class GameNotFoundError(LookupError):
    pass


class PlayerNotFoundError(LookupError):
    pass


class SessionNotFoundError(LookupError):
    pass


def _check_table(results: Sequence[PlayerResult], player_count: int) -> None:
    seen: set[str] = set()
    for result in results:
        if result.player_id in seen:
            raise InvalidRankingError(f"Player {result.player_id} appears more than once")
        seen.add(result.player_id)
    if player_count < len(results):
        raise InvalidRankingError(f"player_count {player_count} is smaller than the {len(results)} submitted results")


class SessionService:
    def __init__(
        self,
        game_repo: GameRepository,
        player_repo: PlayerRepository,
        session_repo: SessionRepository,
        stats_repo: StatsRepository,
        worker: StatsRecalculationWorker,
    ) -> None:
        self._game_repo = game_repo
        self._player_repo = player_repo
        self._session_repo = session_repo
        self._stats_repo = stats_repo
        self._worker = worker

    async def record_session(
        self,
        game_id: str,
        results: Sequence[PlayerResult],
        *,
        played_at: datetime | None = None,
        player_count: int | None = None,
    ) -> GameSession:
        """Validate, score and store a new session of a catalogued game.

        The game's current scoring mode and points per player are copied onto
        the session, so later catalogue edits never change its points.
        """
        game = await self._game_repo.get_game(game_id)
        if game is None:
            raise GameNotFoundError(f"Game {game_id} not found")

        scored, count = await self._score(game.scoring_mode, game.points_per_player, results, player_count)
        session = GameSession(
            session_id=str(uuid.uuid4()),
            game_id=game.game_id,
            game_name=game.name,
            scoring_mode=game.scoring_mode,
            points_per_player=game.points_per_player,
            player_count=count,
            played_at=played_at or datetime.now(UTC),
            results=scored,
            total_points_pool=get_total_points_pool(count, game.points_per_player),
        )
        await self._session_repo.create_session(session)
        logger.info(
            "recorded session",
            session_id=session.session_id,
            game_id=game_id,
            player_count=count,
            pool=session.total_points_pool,
        )
        self._worker.submit(session.participant_ids())
        return session

    async def update_session(
        self,
        session_id: str,
        *,
        results: Sequence[PlayerResult] | None = None,
        played_at: datetime | None = None,
        player_count: int | None = None,
    ) -> GameSession:
        """Correct a recorded session, re-scoring it with its own snapshotted policy.

        Omitted arguments keep their stored values. Everyone who appeared in
        either the old or the new version gets their stats recomputed.
        """
        existing = await self._session_repo.get_session(session_id)
        if existing is None:
            raise SessionNotFoundError(f"Session {session_id} not found")

        changes: dict[str, object] = {"played_at": played_at or existing.played_at}
        if results is not None or player_count is not None:
            if results is None:
                results = self._resubmitted(existing)
            if player_count is None:
                player_count = max(existing.player_count, len(results))
            scored, count = await self._score(existing.scoring_mode, existing.points_per_player, results, player_count)
            changes.update(
                results=scored,
                player_count=count,
                total_points_pool=get_total_points_pool(count, existing.points_per_player),
            )

        # Rebuilt through validation so a caller-supplied timestamp is normalized.
        updated = GameSession.model_validate({**existing.model_dump(), **changes})
        await self._session_repo.replace_session(updated)
        logger.info("updated session", session_id=session_id, player_count=updated.player_count)

        affected = list(dict.fromkeys([*existing.participant_ids(), *updated.participant_ids()]))
        self._worker.submit(affected)
        return updated

    async def delete_session(self, session_id: str) -> GameSession:
        removed = await self._session_repo.delete_session(session_id)
        if removed is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        logger.info("deleted session", session_id=session_id)
        self._worker.submit(removed.participant_ids())
        return removed

    async def forget_player(self, player_id: str) -> int:
        """Permanently remove a player. Returns the number of sessions anonymized.

        Their results stay in place with no player id, so the points other
        players earned in those sessions are untouched.
        """
        touched = await self._session_repo.anonymize_player(player_id)
        had_stats = await self._stats_repo.delete_player_stats(player_id)
        deleted = await self._player_repo.delete_player(player_id)
        if not (touched or had_stats or deleted):
            raise PlayerNotFoundError(f"Player {player_id} not found")
        logger.info("forgot player", player_id=player_id, sessions=touched)
        return touched

    async def _score(
        self,
        mode: ScoringMode,
        points_per_player: int,
        results: Sequence[PlayerResult],
        player_count: int | None,
    ) -> tuple[list[SessionResult], int]:
        count = len(results) if player_count is None else player_count
        _check_table(results, count)
        check_rankings(mode, results)
        named = [await self._with_name(r) for r in results]
        return calculate_scores(mode, count, points_per_player, named), count

    async def _with_name(self, result: PlayerResult) -> NamedPlayerResult:
        if isinstance(result, NamedPlayerResult):
            return result
        player = await self._player_repo.get_player(result.player_id)
        if player is None:
            raise PlayerNotFoundError(f"Player {result.player_id} not found")
        return NamedPlayerResult(
            player_id=result.player_id,
            rank=result.rank,
            score=result.score,
            player_name=player.name,
        )

    @staticmethod
    def _resubmitted(session: GameSession) -> list[NamedPlayerResult]:
        if any(r.player_id is None for r in session.results):
            raise InvalidRankingError(f"Session {session.session_id} has anonymized results and cannot be re-scored")
        return [
            NamedPlayerResult(player_id=r.player_id, rank=r.rank, score=r.score, player_name=r.player_name)
            for r in session.results
        ]
