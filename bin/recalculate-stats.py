"""Rebuild player stats from the recorded session history.

Usage: uv run python bin/recalculate-stats.py [player_id]

Without a player id every known player is rebuilt. Safe to run at any
time: stats are a cache over the sessions and each row is recomputed
from scratch.
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from league.app import create_league
from league.settings import LeagueSettings
from shared.logging import setup_logging


async def main() -> None:
    if len(sys.argv) > 2:
        print(f"Usage: {sys.argv[0]} [player_id]")
        sys.exit(1)

    settings = LeagueSettings()
    setup_logging(log_dir=settings.log_dir, prefix="recalculate")
    league = create_league(settings)

    try:
        if len(sys.argv) == 2:
            player_id = sys.argv[1]
            stats = await league.aggregator.recalculate_player_stats(player_id)
            if stats is None:
                print(f"{player_id}: no sessions, stats cleared")
            else:
                print(f"{player_id}: {stats.overall.total_games} games, {stats.overall.total_points:g} points")
            return

        summary = await league.aggregator.recalculate_all_stats()
        print(f"Players processed: {summary.players_processed}")
        for error in summary.errors:
            print(f"  failed: {error}")
        if summary.errors:
            sys.exit(1)
    finally:
        await league.stop()


if __name__ == "__main__":
    asyncio.run(main())
