"""
Post-placement effects for the bang variant: hidden mines and drone strikes.

Mines are drawn once per game from the game's private seed, so replaying
the log from the same seed detonates the same cells. Drone strikes are
random at play time; the action records the strike and replay re-applies
the record without drawing randomness.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from ..board_manager import BoardManager
from ..errors import InvalidStateError
from ..models import (
    BoardState,
    DroneStrikeInfo,
    ExplosionInfo,
    GameState,
    Position,
    VariantConfig,
)

logger = logging.getLogger(__name__)


class MineField:
    """Mine planting and detonation."""

    @staticmethod
    def plant(config: VariantConfig, rng: random.Random) -> list[Position]:
        """Choose ``floor(width * height * density)`` distinct mine cells."""
        if config.mine_density <= 0:
            return []
        area = config.width * config.height
        count = int(area * config.mine_density)
        cells = rng.sample(range(area), count)
        return [
            Position(x=cell % config.width, y=cell // config.width)
            for cell in sorted(cells)
        ]

    @staticmethod
    def detonate(
        state: GameState, trigger: Position
    ) -> Optional[ExplosionInfo]:
        """
        Explode the mine at ``trigger`` if there is one, in place.

        The trigger stone and every stone in its Moore neighbourhood are
        destroyed and counted as ``exploded`` for their colour. The mine is
        consumed.
        """
        if trigger not in state.mines:
            return None

        board = state.board
        removed: list[Position] = []
        removed_colors: list[int] = []
        for pos in [trigger] + BoardManager.get_surrounding(trigger, board):
            color = board.at(pos)
            if color is None:
                continue
            removed.append(pos)
            removed_colors.append(color)
            state.pots[color].exploded += 1
            state.pots[color].on_board -= 1

        state.board = BoardManager.remove_stones(board, set(removed))
        state.mines = [m for m in state.mines if m != trigger]
        logger.debug("Mine at %s destroyed %d stones", trigger.to_key(), len(removed))
        return ExplosionInfo(
            center=trigger, removed=removed, removed_colors=removed_colors
        )


class DroneStrike:
    """Random removal of one of the mover's stones."""

    @staticmethod
    def roll(
        state: GameState, mover_color: int, rng: random.Random
    ) -> Optional[DroneStrikeInfo]:
        """
        Decide whether a drone strikes after the mover's action.

        Requires every colour to have a stone on the board; then strikes with
        probability ``drone_strike_chance`` at a uniformly chosen stone of
        the mover's colour, launched from just outside a random edge.
        """
        config = state.config
        if config.drone_strike_chance <= 0:
            return None
        if any(
            state.board.count_stones(color) == 0
            for color in range(config.color_count)
        ):
            return None
        if rng.random() >= config.drone_strike_chance:
            return None

        targets = state.board.stone_positions(mover_color)
        if not targets:
            return None
        target = rng.choice(targets)
        return DroneStrikeInfo(
            target=target,
            color=mover_color,
            start=DroneStrike._launch_point(state.board, rng),
        )

    @staticmethod
    def _launch_point(board: BoardState, rng: random.Random) -> Position:
        edge = rng.randrange(4)
        if edge == 0:
            return Position(x=rng.randrange(board.width), y=-1)
        if edge == 1:
            return Position(x=board.width, y=rng.randrange(board.height))
        if edge == 2:
            return Position(x=rng.randrange(board.width), y=board.height)
        return Position(x=-1, y=rng.randrange(board.height))

    @staticmethod
    def strike(state: GameState, info: DroneStrikeInfo) -> None:
        """Apply a drone strike in place."""
        if not state.board.in_bounds(info.target) or (
            state.board.at(info.target) != info.color
        ):
            raise InvalidStateError(
                "Recorded drone strike does not hit a stone of its color",
                context={"target": info.target.to_key(), "color": info.color},
            )
        state.board = state.board.with_cell(info.target, None)
        state.pots[info.color].droned += 1
        state.pots[info.color].on_board -= 1
