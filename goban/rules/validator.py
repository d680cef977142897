"""
Action validation.

Validation is strictly prior to mutation: every check here reads the
current state and raises a :class:`~goban.errors.RulesViolationError`
subclass without touching it.
"""

from __future__ import annotations

from typing import Optional

from ..errors import (
    CellEmpty,
    CellOccupied,
    InvalidCoordinates,
    KoViolation,
    PotExhausted,
    SuicideMove,
    UnknownActionType,
)
from ..models import Action, ActionType, BoardState, GameState, Position
from .captures import would_be_suicide
from .policies import TurnPolicy


def _require_in_bounds(board: BoardState, pos: Optional[Position], field: str) -> Position:
    if pos is None:
        raise InvalidCoordinates(f"Missing '{field}' position")
    if not board.in_bounds(pos):
        raise InvalidCoordinates(
            f"Position {pos.to_key()} is off the board",
            context={"width": board.width, "height": board.height},
        )
    return pos


def _check_ko(state: GameState, target: Position) -> None:
    if state.ko_point is not None and state.ko_point == target:
        raise KoViolation(
            "Immediate recapture at the ko point is forbidden",
            rule_ref="ko",
            context={"position": target.to_key()},
        )


def validate_place(state: GameState, action: Action) -> int:
    """
    Check a placement and return the colour it will use.

    Order: turn, bounds, occupancy, pot, suicide, ko.
    """
    color = TurnPolicy.resolve_color(state, action.color)
    board = state.board
    target = _require_in_bounds(board, action.to, "to")
    if board.at(target) is not None:
        raise CellOccupied(f"Cell {target.to_key()} is occupied")

    if state.config.uses_shared_pot:
        if not state.shared_pot:
            raise PotExhausted("The shared pot is empty")
    elif state.pots[color].pot_count <= 0:
        raise PotExhausted(
            f"Color {color} has no stones left", context={"color": color}
        )

    if would_be_suicide(board, target, color):
        raise SuicideMove(
            f"Placing at {target.to_key()} would be suicide",
            rule_ref="suicide",
        )
    _check_ko(state, target)
    return color


def validate_move(state: GameState, action: Action) -> int:
    """
    Check relocating a stone and return its colour.

    The source cell is vacated before the suicide test, so a stone may not
    escape into a cell that only had liberties through itself.
    """
    board = state.board
    source = _require_in_bounds(board, action.from_pos, "from")
    target = _require_in_bounds(board, action.to, "to")
    if source == target:
        raise InvalidCoordinates("Source and target are the same cell")

    color = board.at(source)
    if color is None:
        raise CellEmpty(f"No stone at {source.to_key()}")
    if board.at(target) is not None:
        raise CellOccupied(f"Cell {target.to_key()} is occupied")

    if would_be_suicide(board.with_cell(source, None), target, color):
        raise SuicideMove(
            f"Moving to {target.to_key()} would be suicide",
            rule_ref="suicide",
        )
    _check_ko(state, target)
    return color


def validate_remove(state: GameState, action: Action) -> int:
    """Check removing a stone and return its colour. Always legal otherwise."""
    board = state.board
    source = _require_in_bounds(board, action.from_pos, "from")
    color = board.at(source)
    if color is None:
        raise CellEmpty(f"No stone at {source.to_key()}")
    return color


def validate_eat(state: GameState, action: Action) -> int:
    if not state.config.pacman_mode:
        raise UnknownActionType("Eat actions require pac-man mode")
    return validate_remove(state, action)


VALIDATORS = {
    ActionType.PLACE: validate_place,
    ActionType.MOVE: validate_move,
    ActionType.REMOVE: validate_remove,
    ActionType.EAT: validate_eat,
}


def validate_action(state: GameState, action: Action) -> int:
    """Dispatch on action type; returns the colour the action concerns."""
    validator = VALIDATORS.get(action.action_type)
    if validator is None:
        raise UnknownActionType(f"Unknown action type: {action.action_type}")
    return validator(state, action)
