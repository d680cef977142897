"""Capture resolution after a stone lands on the board."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..board_manager import BoardManager
from ..models import BoardState, Position


@dataclass(frozen=True)
class CaptureResult:
    """Outcome of :func:`resolve_captures`.

    Attributes:
        board: Board with every zero-liberty group removed.
        captured_by_color: Number of removed stones per colour.
        captured_positions: Every removed position.
        ko_point: Cell that may not be played by the next action, if any.
    """
    board: BoardState
    captured_by_color: dict[int, int] = field(default_factory=dict)
    captured_positions: frozenset[Position] = frozenset()
    ko_point: Optional[Position] = None

    @property
    def total_captured(self) -> int:
        return sum(self.captured_by_color.values())


def _remove_dead_groups(board, mover_color, opponents):
    captured: dict[int, int] = {}
    removed: set[Position] = set()
    for color, group in BoardManager.find_groups(board):
        if (color != mover_color) != opponents:
            continue
        if BoardManager.count_liberties(board, group) == 0:
            captured[color] = captured.get(color, 0) + len(group)
            removed |= group
    return BoardManager.remove_stones(board, removed), captured, removed


def resolve_captures(board: BoardState, played: Position) -> CaptureResult:
    """
    Remove every group left without liberties after a stone landed on
    ``played``.

    Groups of colours other than the played stone are judged first, against
    the board as it stands after placement; the mover's own colour is judged
    only after those captures are applied. A group that is a neighbour of a
    capture therefore never dies with it.

    Ko: exactly one stone removed in total, and the played stone forms a
    single-stone group with exactly one liberty afterwards. The ko point is
    the removed stone's cell.
    """
    mover_color = board.at(played)
    if mover_color is None:
        return CaptureResult(board=board)

    board, captured, removed = _remove_dead_groups(board, mover_color, True)
    board, own_captured, own_removed = _remove_dead_groups(
        board, mover_color, False
    )
    for color, count in own_captured.items():
        captured[color] = captured.get(color, 0) + count
    removed |= own_removed

    ko_point = None
    if len(removed) == 1 and board.at(played) == mover_color:
        played_group = BoardManager.get_group(board, played)
        if (
            len(played_group) == 1
            and BoardManager.count_liberties(board, played_group) == 1
        ):
            ko_point = next(iter(removed))

    return CaptureResult(
        board=board,
        captured_by_color=captured,
        captured_positions=frozenset(removed),
        ko_point=ko_point,
    )


def would_be_suicide(board: BoardState, target: Position, color: int) -> bool:
    """
    True when placing ``color`` at ``target`` leaves the placed group with no
    liberties even after adjacent opponent groups without liberties are
    removed. ``board`` must have ``target`` empty.
    """
    placed = board.with_cell(target, color)
    own_group = BoardManager.get_group(placed, target)
    if BoardManager.count_liberties(placed, own_group) > 0:
        return False

    dead: set[Position] = set()
    for neighbor in BoardManager.get_neighbors(target, placed):
        neighbor_color = placed.at(neighbor)
        if neighbor_color is None or neighbor_color == color or neighbor in dead:
            continue
        group = BoardManager.get_group(placed, neighbor)
        if BoardManager.count_liberties(placed, group) == 0:
            dead |= group
    if not dead:
        return True

    cleared = BoardManager.remove_stones(placed, dead)
    return BoardManager.count_liberties(cleared, own_group) == 0
