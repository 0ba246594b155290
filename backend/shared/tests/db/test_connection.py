"""Tests for Database connection and schema."""

from __future__ import annotations

import sqlite3
import sys
from datetime import UTC, datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest

from shared.db.connection import Database, to_sql_timestamp

if TYPE_CHECKING:
    from pathlib import Path

_TABLES = {"players", "games", "game_sessions", "player_stats"}


def _table_names(db: Database) -> set[str]:
    rows = db.connection.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    return {row[0] for row in rows}


class TestConnect:
    def test_creates_schema_and_connects(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        assert _TABLES <= _table_names(db)
        db.close()

    def test_reconnect_keeps_data(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.connection.execute("INSERT INTO players (id, name, data) VALUES ('p1', 'Alice', '{}')")
        db.connection.commit()
        db.close()

        db.connect()
        assert db.connection.execute("SELECT COUNT(*) FROM players").fetchone()[0] == 1
        db.close()

    def test_connection_raises_when_disconnected(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.connection

    def test_connection_raises_after_close(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.close()
        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.connection

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "nested" / "dir" / "test.db")
        db.connect()
        assert (tmp_path / "nested" / "dir" / "test.db").exists()
        db.close()

    def test_uses_wal_journal(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        assert db.connection.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        db.close()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
    def test_database_file_is_owner_only(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        assert (tmp_path / "test.db").stat().st_mode & 0o777 == 0o600
        db.close()

    def test_game_names_unique_case_insensitively(self, tmp_path: Path) -> None:
        db = Database(tmp_path / "test.db")
        db.connect()
        db.connection.execute("INSERT INTO games (id, name, data) VALUES ('g1', 'Catan', '{}')")
        with pytest.raises(sqlite3.IntegrityError):
            db.connection.execute("INSERT INTO games (id, name, data) VALUES ('g2', 'CATAN', '{}')")
        db.close()


class TestToSqlTimestamp:
    def test_renders_utc_with_microseconds(self) -> None:
        assert to_sql_timestamp(datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)) == "2025-01-02T03:04:05.000000+00:00"

    def test_converts_other_zones_to_utc(self) -> None:
        value = datetime(2025, 1, 2, 5, 0, tzinfo=timezone(timedelta(hours=2)))
        assert to_sql_timestamp(value) == "2025-01-02T03:00:00.000000+00:00"

    def test_naive_values_are_utc(self) -> None:
        assert to_sql_timestamp(datetime(2025, 1, 2)) == "2025-01-02T00:00:00.000000+00:00"  # noqa: DTZ001

    def test_text_order_matches_time_order(self) -> None:
        earlier = datetime(2025, 1, 2, 23, 59, 59, 999999, tzinfo=UTC)
        later = datetime(2025, 1, 3, tzinfo=UTC)
        assert to_sql_timestamp(earlier) < to_sql_timestamp(later)
