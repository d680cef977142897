"""Maintenance commands for a SQLite game database.

Usage:
    goban-admin purge --db games.db [--days 365]
    goban-admin verify --db games.db --game-id <id> [--verbose]
    goban-admin show --db games.db --game-id <id> [--step N]
"""

from __future__ import annotations

import argparse
import sys

from .auth import HmacAuthorizer
from .config import ServiceSettings
from .core.logging_config import LogContext, get_logger, setup_logging
from .db import SqliteGameStore
from .errors import GobanError
from .game_engine import GameEngine
from .models import BoardState
from .service import GameService

_SYMBOLS = "XO#@%&*+"


def render_board(board: BoardState) -> str:
    """Plain-text board: ``.`` for empty, one symbol per colour."""
    return "\n".join(
        " ".join("." if cell is None else _SYMBOLS[cell] for cell in row)
        for row in board.cells
    )


def cmd_purge(args) -> int:
    settings = ServiceSettings.from_env()
    service = GameService(
        SqliteGameStore(args.db), HmacAuthorizer(settings.secret_key), settings
    )
    days = settings.retention_days if args.days is None else args.days
    purged = service.purge_expired(retention_days=days)
    print(f"Purged {purged} games idle for more than {days} days")
    return 0


def cmd_verify(args) -> int:
    """Replay the log and compare it with the cached state."""
    store = SqliteGameStore(args.db)
    record = store.load(args.game_id)
    actions = store.list_actions(args.game_id)
    level = "DEBUG" if args.verbose else "WARNING"
    with LogContext(get_logger("goban"), level):
        rebuilt = GameEngine.reconstruct(record.state.config, record.seed, actions)
    if rebuilt == record.state:
        print(f"OK: {len(actions)} actions replay to the cached state")
        return 0
    print("MISMATCH: cached state differs from replayed log")
    print("cached:\n" + render_board(record.state.board))
    print("replayed:\n" + render_board(rebuilt.board))
    return 1


def cmd_show(args) -> int:
    store = SqliteGameStore(args.db)
    record = store.load(args.game_id)
    actions = store.list_actions(args.game_id)
    state = GameEngine.reconstruct(
        record.state.config, record.seed, actions, upto=args.step
    )
    print(f"{record.state.config.variant.value} game {record.id}, "
          f"move {state.move_number} of {len(actions)}")
    print(render_board(state.board))
    for color, pot in enumerate(state.pots):
        print(
            f"  {_SYMBOLS[color]}: pot={pot.pot_count} onBoard={pot.on_board} "
            f"captured={pot.captured} exploded={pot.exploded} droned={pot.droned}"
        )
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Maintain a shared goban game database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    p_purge = subparsers.add_parser("purge", help="Delete idle games")
    p_purge.add_argument("--db", required=True, help="Path to game database")
    p_purge.add_argument(
        "--days", type=int, help="Retention window in days (default: GOBAN_RETENTION_DAYS)"
    )
    p_purge.set_defaults(func=cmd_purge)

    p_verify = subparsers.add_parser("verify", help="Check a game's cache against its log")
    p_verify.add_argument("--db", required=True, help="Path to game database")
    p_verify.add_argument("--game-id", required=True, help="Game ID to verify")
    p_verify.add_argument(
        "--verbose", action="store_true", help="Log engine debug output during replay"
    )
    p_verify.set_defaults(func=cmd_verify)

    p_show = subparsers.add_parser("show", help="Print a game's board")
    p_show.add_argument("--db", required=True, help="Path to game database")
    p_show.add_argument("--game-id", required=True, help="Game ID to show")
    p_show.add_argument("--step", type=int, help="Show the board after N actions")
    p_show.set_defaults(func=cmd_show)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging("goban", level="WARNING")
    try:
        return args.func(args)
    except GobanError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
