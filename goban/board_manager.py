"""Board-level helpers: adjacency, group discovery and liberty counting.

Everything here is a pure function of the board passed in. Groups use
4-adjacency (Von Neumann); the 8-adjacency helper exists only for mine
explosions, which destroy the full Moore neighbourhood.
"""
from __future__ import annotations

from .models import BoardState, Position

__all__ = ["BoardManager"]


_ORTHOGONAL = ((0, -1), (1, 0), (0, 1), (-1, 0))
_SURROUNDING = tuple(
    (dx, dy)
    for dy in (-1, 0, 1)
    for dx in (-1, 0, 1)
    if (dx, dy) != (0, 0)
)


class BoardManager:
    """Stateless group/liberty analysis over a :class:`BoardState`."""

    @staticmethod
    def get_neighbors(position: Position, board: BoardState) -> list[Position]:
        """In-bounds orthogonal neighbours of ``position``."""
        return BoardManager._offsets(position, board, _ORTHOGONAL)

    @staticmethod
    def get_surrounding(position: Position, board: BoardState) -> list[Position]:
        """In-bounds Moore neighbourhood (up to 8 cells) of ``position``."""
        return BoardManager._offsets(position, board, _SURROUNDING)

    @staticmethod
    def _offsets(position, board, deltas) -> list[Position]:
        result = []
        for dx, dy in deltas:
            x, y = position.x + dx, position.y + dy
            if 0 <= x < board.width and 0 <= y < board.height:
                result.append(Position(x=x, y=y))
        return result

    @staticmethod
    def get_group(board: BoardState, seed: Position) -> set[Position]:
        """
        Flood-fill the maximal same-colour, orthogonally connected group
        containing ``seed``.

        An empty (or out-of-bounds) seed yields an empty set.
        """
        if not board.in_bounds(seed):
            return set()
        color = board.at(seed)
        if color is None:
            return set()

        group: set[Position] = set()
        queue: list[Position] = [seed]
        while queue:
            current = queue.pop()
            if current in group:
                continue
            group.add(current)
            for neighbor in BoardManager.get_neighbors(current, board):
                if neighbor not in group and board.at(neighbor) == color:
                    queue.append(neighbor)
        return group

    @staticmethod
    def get_liberties(
        board: BoardState, group: set[Position]
    ) -> set[Position]:
        """Distinct empty cells orthogonally adjacent to any stone of ``group``."""
        liberties: set[Position] = set()
        for stone in group:
            for neighbor in BoardManager.get_neighbors(stone, board):
                if board.at(neighbor) is None:
                    liberties.add(neighbor)
        return liberties

    @staticmethod
    def count_liberties(board: BoardState, group: set[Position]) -> int:
        """
        Number of distinct liberties of ``group``.

        A cell shared by several stones of the group counts once.
        """
        return len(BoardManager.get_liberties(board, group))

    @staticmethod
    def find_groups(
        board: BoardState, color: int | None = None
    ) -> list[tuple[int, set[Position]]]:
        """
        All groups on the board as ``(color, positions)`` in row-major order
        of their first stone. ``color`` restricts the scan to one colour.
        """
        groups: list[tuple[int, set[Position]]] = []
        visited: set[Position] = set()
        for y, row in enumerate(board.cells):
            for x, cell in enumerate(row):
                if cell is None or (color is not None and cell != color):
                    continue
                pos = Position(x=x, y=y)
                if pos in visited:
                    continue
                group = BoardManager.get_group(board, pos)
                visited |= group
                groups.append((cell, group))
        return groups

    @staticmethod
    def remove_stones(
        board: BoardState, positions: set[Position]
    ) -> BoardState:
        """Return a copy of ``board`` with ``positions`` emptied."""
        if not positions:
            return board
        return board.with_cells({(p.x, p.y): None for p in positions})
