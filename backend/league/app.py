"""Wiring of the league components over one SQLite database."""

from __future__ import annotations

import structlog

from league.aggregator import StatsAggregator
from league.leaderboard import LeaderboardService
from league.sessions import SessionService
from league.settings import LeagueSettings
from league.worker import StatsRecalculationWorker
from shared.db import (
    Database,
    SqliteGameRepository,
    SqlitePlayerRepository,
    SqliteSessionRepository,
    SqliteStatsRepository,
)

logger = structlog.get_logger()


class League:
    """Repositories and services sharing one database and one stats worker.

    Call start() before recording sessions so stats catch up in the
    background, and stop() on shutdown.
    """

    def __init__(self, settings: LeagueSettings, db: Database) -> None:
        self.settings = settings
        self.db = db
        self.players = SqlitePlayerRepository(db)
        self.games = SqliteGameRepository(db)
        self.session_repo = SqliteSessionRepository(db)
        self.stats_repo = SqliteStatsRepository(db)

        self.aggregator = StatsAggregator(self.session_repo, self.stats_repo, self.players)
        self.worker = StatsRecalculationWorker(self.aggregator, concurrency=settings.recalculation_workers)
        self.sessions = SessionService(self.games, self.players, self.session_repo, self.stats_repo, self.worker)
        self.leaderboards = LeaderboardService(self.session_repo, self.stats_repo, self.games, self.players, settings)

    def start(self) -> None:
        self.worker.start()
        logger.info("league ready", workers=self.settings.recalculation_workers)

    async def stop(self) -> None:
        """Let queued recomputes finish, then stop the worker and close the database."""
        if self.worker.running:
            await self.worker.join()
        await self.worker.stop()
        self.db.close()


def create_league(settings: LeagueSettings | None = None) -> League:
    if settings is None:  # pragma: no cover
        settings = LeagueSettings()
    db = Database(settings.database_path)
    db.connect()
    return League(settings, db)
