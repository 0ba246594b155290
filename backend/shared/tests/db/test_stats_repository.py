"""Tests for SqliteStatsRepository."""

from __future__ import annotations

from fractions import Fraction
from typing import TYPE_CHECKING

import pytest

from shared.dal.models import OverallStats, PlayerStats
from shared.db.connection import Database
from shared.db.stats_repository import SqliteStatsRepository

if TYPE_CHECKING:
    from pathlib import Path


def _stats(player_id: str, total_points: int | Fraction, total_games: int = 2) -> PlayerStats:
    return PlayerStats(
        player_id=player_id,
        player_name=player_id.title(),
        overall=OverallStats(
            total_games=total_games,
            total_points=total_points,
            average_points=float(total_points) / total_games,
        ),
    )


@pytest.fixture
def repo(tmp_path: Path):
    db = Database(tmp_path / "test.db")
    db.connect()
    yield SqliteStatsRepository(db)
    db.close()


class TestStats:
    async def test_upsert_and_get(self, repo: SqliteStatsRepository) -> None:
        await repo.upsert_player_stats(_stats("alice", 10))
        assert await repo.get_player_stats("alice") == _stats("alice", 10)

    async def test_get_unknown_returns_none(self, repo: SqliteStatsRepository) -> None:
        assert await repo.get_player_stats("nobody") is None

    async def test_upsert_replaces_whole_document(self, repo: SqliteStatsRepository) -> None:
        await repo.upsert_player_stats(_stats("alice", 10))
        await repo.upsert_player_stats(_stats("alice", 3, total_games=1))

        stored = await repo.get_player_stats("alice")
        assert stored is not None
        assert stored.overall.total_points == 3
        assert stored.overall.total_games == 1

    async def test_all_stats_highest_points_first(self, repo: SqliteStatsRepository) -> None:
        await repo.upsert_player_stats(_stats("bob", 4))
        await repo.upsert_player_stats(_stats("carol", Fraction(25, 2)))
        await repo.upsert_player_stats(_stats("alice", 4))

        assert [s.player_id for s in await repo.get_all_player_stats()] == ["carol", "alice", "bob"]

    async def test_fractional_total_is_kept_exactly(self, repo: SqliteStatsRepository) -> None:
        await repo.upsert_player_stats(_stats("alice", Fraction(29, 3), total_games=3))

        stored = await repo.get_player_stats("alice")
        assert stored is not None
        assert stored.overall.total_points == Fraction(29, 3)

    async def test_delete(self, repo: SqliteStatsRepository) -> None:
        await repo.upsert_player_stats(_stats("alice", 10))
        assert await repo.delete_player_stats("alice") is True
        assert await repo.delete_player_stats("alice") is False
        assert await repo.get_player_stats("alice") is None
