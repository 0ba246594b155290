"""Print a leaderboard, the current awards, or the champion of each game.

Usage:
    uv run python bin/show-leaderboard.py [--limit K]
    uv run python bin/show-leaderboard.py --game GAME_ID [--players N] [--limit K]
    uv run python bin/show-leaderboard.py --month M --year Y [--limit K]
    uv run python bin/show-leaderboard.py --awards
    uv run python bin/show-leaderboard.py --champions
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from league.app import League, create_league
from league.types import PlayerAward, RankedPlayer


def _print_rows(rows: list[RankedPlayer]) -> None:
    if not rows:
        print("No results.")
        return
    for row in rows:
        print(
            f"{row.position:>3}. {row.player_name:<20} {row.total_points:>8g} pts  "
            f"{row.total_games:>3} games  {row.wins:>3} wins  {row.win_rate:6.1%}",
        )


def _print_award(title: str, award: PlayerAward | None) -> None:
    if award is None:
        print(f"{title}: -")
        return
    print(f"{title}: {award.player_name} ({award.total_points:g} pts in {award.games_played} games)")


async def _show(league: League, args: argparse.Namespace) -> None:
    boards = league.leaderboards
    if args.awards:
        awards = await boards.get_awards()
        _print_award("Player of the week", awards.player_of_week)
        _print_award("Player of the month", awards.player_of_month)
    elif args.champions:
        for champion in await boards.get_best_player_per_game():
            best = champion.best_player
            print(f"{champion.game_name}: {best.player_name} ({best.total_points:g} pts in {best.total_games} games)")
    elif args.game is not None:
        _print_rows(await boards.get_game_leaderboard(args.game, player_count=args.players, limit=args.limit))
    elif args.month is not None:
        _print_rows(await boards.get_monthly_leaderboard(args.month, args.year, limit=args.limit))
    else:
        _print_rows(await boards.get_overall_leaderboard(limit=args.limit))


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Print league leaderboards")
    view = parser.add_mutually_exclusive_group()
    view.add_argument("--game", metavar="GAME_ID", help="rank players of one game")
    view.add_argument("--month", type=int, metavar="M", help="rank players over a calendar month (needs --year)")
    view.add_argument("--awards", action="store_true", help="player of the week and of the month")
    view.add_argument("--champions", action="store_true", help="best player of each active game")
    parser.add_argument("--players", type=int, metavar="N", help="with --game: only sessions with N players")
    parser.add_argument("--year", type=int, metavar="Y", help="year for --month")
    parser.add_argument("--limit", type=int, metavar="K", help="number of rows (default: LEAGUE_LEADERBOARD_LIMIT)")
    args = parser.parse_args()

    if args.month is not None and args.year is None:
        parser.error("--month needs --year")
    if args.players is not None and args.game is None:
        parser.error("--players needs --game")
    return args


async def main() -> None:
    args = _parse_args()
    league = create_league()
    try:
        await _show(league, args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await league.stop()


if __name__ == "__main__":
    asyncio.run(main())
