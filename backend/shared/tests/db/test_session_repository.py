"""Tests for SqliteSessionRepository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest

from shared.dal.models import GameSession, ScoringMode, SessionResult
from shared.db.connection import Database
from shared.db.session_repository import SqliteSessionRepository

if TYPE_CHECKING:
    from pathlib import Path

_DAY = datetime(2025, 3, 1, 20, 0, tzinfo=UTC)


def _session(
    session_id: str = "s1",
    player_ids: tuple[str, ...] = ("alice", "bob"),
    played_at: datetime = _DAY,
    game_id: str = "catan",
) -> GameSession:
    results = [
        SessionResult(player_id=pid, player_name=pid.title(), rank=i, points_earned=2 * (len(player_ids) - i + 1))
        for i, pid in enumerate(player_ids, start=1)
    ]
    return GameSession(
        session_id=session_id,
        game_id=game_id,
        game_name=game_id.title(),
        scoring_mode=ScoringMode.POINTING,
        points_per_player=len(player_ids) + 1,
        player_count=len(player_ids),
        played_at=played_at,
        results=results,
        total_points_pool=len(player_ids) * (len(player_ids) + 1),
    )


@pytest.fixture
def repo(tmp_path: Path):
    db = Database(tmp_path / "test.db")
    db.connect()
    yield SqliteSessionRepository(db)
    db.close()


class TestCreateAndGet:
    async def test_create_and_get(self, repo: SqliteSessionRepository) -> None:
        session = _session()
        await repo.create_session(session)
        assert await repo.get_session("s1") == session

    async def test_get_unknown_returns_none(self, repo: SqliteSessionRepository) -> None:
        assert await repo.get_session("missing") is None

    async def test_duplicate_id(self, repo: SqliteSessionRepository) -> None:
        await repo.create_session(_session())
        with pytest.raises(ValueError, match="already exists"):
            await repo.create_session(_session())


class TestReplaceAndDelete:
    async def test_replace_overwrites(self, repo: SqliteSessionRepository) -> None:
        await repo.create_session(_session())
        await repo.replace_session(_session(player_ids=("bob", "alice")))

        stored = await repo.get_session("s1")
        assert stored is not None
        assert stored.results[0].player_id == "bob"

    async def test_replace_unknown_raises(self, repo: SqliteSessionRepository) -> None:
        with pytest.raises(ValueError, match="does not exist"):
            await repo.replace_session(_session())

    async def test_delete_returns_removed_session(self, repo: SqliteSessionRepository) -> None:
        session = _session()
        await repo.create_session(session)

        assert await repo.delete_session("s1") == session
        assert await repo.get_session("s1") is None

    async def test_delete_unknown_returns_none(self, repo: SqliteSessionRepository) -> None:
        assert await repo.delete_session("missing") is None


class TestQueries:
    async def test_sessions_referencing_player_in_time_order(self, repo: SqliteSessionRepository) -> None:
        await repo.create_session(_session("late", ("alice", "bob"), _DAY + timedelta(days=2)))
        await repo.create_session(_session("early", ("carol", "alice"), _DAY))
        await repo.create_session(_session("other", ("bob", "carol"), _DAY + timedelta(days=1)))

        sessions = await repo.find_sessions_referencing_player("alice")
        assert [s.session_id for s in sessions] == ["early", "late"]

    async def test_player_id_match_is_exact(self, repo: SqliteSessionRepository) -> None:
        await repo.create_session(_session(player_ids=("alice2", "bob")))
        assert await repo.find_sessions_referencing_player("alice") == []

    async def test_range_is_inclusive(self, repo: SqliteSessionRepository) -> None:
        await repo.create_session(_session("start", played_at=_DAY))
        await repo.create_session(_session("end", played_at=_DAY + timedelta(hours=1)))
        await repo.create_session(_session("after", played_at=_DAY + timedelta(hours=1, microseconds=1)))

        sessions = await repo.find_sessions_in_range(_DAY, _DAY + timedelta(hours=1))
        assert [s.session_id for s in sessions] == ["start", "end"]

    async def test_range_bounds_in_other_zones(self, repo: SqliteSessionRepository) -> None:
        await repo.create_session(_session(played_at=_DAY))
        plus_two = timezone(timedelta(hours=2))

        sessions = await repo.find_sessions_in_range(
            datetime(2025, 3, 1, 22, 0, tzinfo=plus_two),
            datetime(2025, 3, 1, 22, 0, tzinfo=plus_two),
        )
        assert [s.session_id for s in sessions] == ["s1"]

    async def test_find_player_ids(self, repo: SqliteSessionRepository) -> None:
        await repo.create_session(_session("s1", ("bob", "alice")))
        await repo.create_session(_session("s2", ("carol", "alice")))
        assert await repo.find_player_ids() == ["alice", "bob", "carol"]


class TestAnonymize:
    async def test_anonymize_keeps_points(self, repo: SqliteSessionRepository) -> None:
        await repo.create_session(_session("s1", ("alice", "bob")))
        await repo.create_session(_session("s2", ("bob", "carol")))

        assert await repo.anonymize_player("bob") == 2

        s1 = await repo.get_session("s1")
        assert s1 is not None
        assert [r.player_id for r in s1.results] == ["alice", None]
        assert sum(r.points_earned for r in s1.results) == 6
        assert s1.results[1].player_name == "Bob"
        assert await repo.find_sessions_referencing_player("bob") == []
        assert await repo.find_player_ids() == ["alice", "carol"]

    async def test_anonymize_unknown_player(self, repo: SqliteSessionRepository) -> None:
        await repo.create_session(_session())
        assert await repo.anonymize_player("nobody") == 0
