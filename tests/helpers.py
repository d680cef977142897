"""Board and action builders shared by the rule-engine tests."""

from __future__ import annotations

from typing import Iterable, Optional

from goban.game_engine import GameEngine
from goban.models import (
    Action,
    ActionType,
    BoardState,
    GameState,
    Position,
    VariantConfig,
    VariantType,
)

# "." empty, then one symbol per colour id
SYMBOLS = {".": None, "X": 0, "O": 1, "#": 2, "@": 3}


def parse_board(rows: Iterable[str]) -> BoardState:
    """Build a board from rows like ``". X O"`` (spaces optional)."""
    cells = [[SYMBOLS[ch] for ch in row.replace(" ", "")] for row in rows]
    return BoardState(width=len(cells[0]), height=len(cells), cells=cells)


def padded(rows: Iterable[str], width: int, height: int) -> list[str]:
    """Pad partial rows with empty cells up to ``width`` x ``height``."""
    rows = [row.replace(" ", "") for row in rows]
    rows += [""] * (height - len(rows))
    return [row.ljust(width, ".") for row in rows]


def free_config(
    width: int = 5,
    height: int = 5,
    colors: int = 2,
    variant: VariantType = VariantType.CLASSIC,
    **overrides,
) -> VariantConfig:
    """Small board without turn order, crediting the capturer."""
    area = width * height
    fields = dict(
        variant=variant,
        width=width,
        height=height,
        color_count=colors,
        player_count=colors,
        initial_pots=[area + 1] + [area] * (colors - 1),
    )
    fields.update(overrides)
    return VariantConfig(**fields)


def make_state(
    config: VariantConfig,
    rows: Optional[Iterable[str]] = None,
    mines: Iterable[Position] = (),
    **updates,
) -> GameState:
    """
    Initial state for ``config`` with an optional pre-set board. Stones on
    the board are taken from their pots so the counters stay consistent.
    """
    state = GameEngine.initial_state(config, seed=0)
    state = state.model_copy(update={"mines": list(mines)}, deep=True)
    if rows is not None:
        board = parse_board(rows)
        state.board = board
        for color, pot in enumerate(state.pots):
            count = board.count_stones(color)
            pot.on_board = count
            if config.uses_shared_pot:
                state.shared_pot -= count
            else:
                pot.pot_count -= count
    for key, value in updates.items():
        setattr(state, key, value)
    return state


def place(x: int, y: int, color: Optional[int] = None) -> Action:
    return Action(action_type=ActionType.PLACE, color=color, to=Position(x=x, y=y))


def move(fx: int, fy: int, tx: int, ty: int) -> Action:
    return Action(
        action_type=ActionType.MOVE,
        from_pos=Position(x=fx, y=fy),
        to=Position(x=tx, y=ty),
    )


def remove(x: int, y: int) -> Action:
    return Action(action_type=ActionType.REMOVE, from_pos=Position(x=x, y=y))


def eat(x: int, y: int) -> Action:
    return Action(action_type=ActionType.EAT, from_pos=Position(x=x, y=y))


def play(state: GameState, *actions: Action, rng=None) -> GameState:
    for action in actions:
        state, _ = GameEngine.apply_action(state, action, rng=rng)
    return state


def play_logged(state: GameState, *actions: Action, rng=None):
    """Apply actions and return ``(state, resolved_log)``."""
    log = []
    for action in actions:
        state, resolved = GameEngine.apply_action(state, action, rng=rng)
        log.append(resolved)
    return state, log


class ScriptedRandom:
    """Deterministic stand-in for ``random.Random`` in drone tests.

    ``random()`` returns the scripted rolls in order; ``choice`` and
    ``randrange`` pick the first option.
    """

    def __init__(self, rolls: Iterable[float]):
        self._rolls = list(rolls)

    def random(self) -> float:
        return self._rolls.pop(0) if self._rolls else 0.99

    def choice(self, seq):
        return seq[0]

    def randrange(self, stop):
        return 0
