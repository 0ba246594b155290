"""Shared fixtures for league tests: one SQLite database per test with every repository on it."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from league.aggregator import StatsAggregator
from league.settings import LeagueSettings
from shared.db import (
    Database,
    SqliteGameRepository,
    SqlitePlayerRepository,
    SqliteSessionRepository,
    SqliteStatsRepository,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def db(tmp_path: Path):
    database = Database(tmp_path / "league.db")
    database.connect()
    yield database
    database.close()


@pytest.fixture
def player_repo(db: Database) -> SqlitePlayerRepository:
    return SqlitePlayerRepository(db)


@pytest.fixture
def game_repo(db: Database) -> SqliteGameRepository:
    return SqliteGameRepository(db)


@pytest.fixture
def session_repo(db: Database) -> SqliteSessionRepository:
    return SqliteSessionRepository(db)


@pytest.fixture
def stats_repo(db: Database) -> SqliteStatsRepository:
    return SqliteStatsRepository(db)


@pytest.fixture
def aggregator(session_repo, stats_repo, player_repo) -> StatsAggregator:
    return StatsAggregator(session_repo, stats_repo, player_repo)


@pytest.fixture
def settings(tmp_path: Path) -> LeagueSettings:
    return LeagueSettings(database_path=str(tmp_path / "league.db"), log_dir=str(tmp_path / "logs"))
