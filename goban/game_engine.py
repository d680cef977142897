"""Core game engine: the single action reducer and log replay.

``GameEngine.apply_action`` is the only function that turns a state plus an
action into the next state. Live play, undo and spectator replay all fold
it over the stored action log, so the cached state of a game is always
``reconstruct(log)``.

The reducer is pure apart from the optional ``rng`` used to roll drone
strikes during live play. Replay passes no ``rng`` and re-applies the
strikes recorded on the log instead.
"""

from __future__ import annotations

import logging
import os
import random
from typing import Iterator, Optional, Sequence

from .errors import InvalidStateError, RulesViolationError
from .models import (
    Action,
    ActionType,
    BoardState,
    GameState,
    StonePot,
    VariantConfig,
)
from .rules.captures import resolve_captures
from .rules.effects import DroneStrike, MineField
from .rules.policies import TurnPolicy, get_crediting_policy
from .rules.validator import validate_action

logger = logging.getLogger(__name__)

# Set to "1" to verify per-colour onBoard counters against the board after
# every action. Used by tests and when debugging stored logs.
STRICT_ACCOUNTING = os.environ.get(
    "GOBAN_STRICT_ACCOUNTING",
    "0",
) in {"1", "true", "yes", "on"}


class GameEngine:
    """Stateless rule engine over :class:`GameState` values."""

    @staticmethod
    def initial_state(config: VariantConfig, seed: Optional[int] = None) -> GameState:
        """
        Empty board, full pots, and (for mined variants) the hidden mine
        layout drawn from ``seed``.
        """
        mines = MineField.plant(config, random.Random(seed))
        return GameState(
            config=config,
            board=BoardState.empty(config.width, config.height),
            pots=[StonePot(pot_count=count) for count in config.initial_pots],
            shared_pot=config.shared_pot_size,
            player_captures=[0] * config.player_count,
            mines=mines,
        )

    @staticmethod
    def apply_action(
        game_state: GameState,
        action: Action,
        rng: Optional[random.Random] = None,
    ) -> tuple[GameState, Action]:
        """
        Validate and apply one action.

        Args:
            game_state: State before the action. Never mutated.
            action: The action to apply. ``move_number``, ``player`` and
                effect payloads are filled in on the returned copy.
            rng: Source of randomness for live drone strikes. ``None`` means
                replay: recorded strikes are re-applied instead of rolled.

        Returns:
            ``(new_state, resolved_action)``.

        Raises:
            RulesViolationError: if the action is illegal; nothing changes.
        """
        color = validate_action(game_state, action)
        config = game_state.config

        new_state = game_state.model_copy(deep=True)
        # Ko never carries past the action that follows it
        new_state.ko_point = None
        new_state.last_explosion = None
        new_state.last_drone_strike = None

        action_type = action.action_type
        update: dict = {"color": color, "move_number": game_state.move_number + 1}

        if action_type in (ActionType.REMOVE, ActionType.EAT):
            GameEngine._lift_stone(new_state, action, color)
            new_state.last_move = None
            update["player"] = TurnPolicy.acting_player(game_state, color)
        else:
            player = TurnPolicy.acting_player(game_state, color)
            update["player"] = player
            landed = action.to
            if action_type == ActionType.PLACE:
                new_state.board = new_state.board.with_cell(landed, color)
                if config.uses_shared_pot:
                    new_state.shared_pot -= 1
                else:
                    new_state.pots[color].pot_count -= 1
                new_state.pots[color].on_board += 1
            else:
                new_state.board = new_state.board.with_cells({
                    (action.from_pos.x, action.from_pos.y): None,
                    (landed.x, landed.y): color,
                })

            explosion = MineField.detonate(new_state, landed) if new_state.mines else None
            if explosion is not None:
                new_state.last_explosion = explosion
                update["explosion"] = explosion
            else:
                if rng is None and action.explosion is not None:
                    raise InvalidStateError(
                        "Recorded explosion has no mine under it",
                        context={"position": landed.to_key()},
                    )
                capture = resolve_captures(new_state.board, landed)
                new_state.board = capture.board
                get_crediting_policy(config).apply(
                    new_state, color, player, action_type, capture
                )
                new_state.ko_point = capture.ko_point

                if rng is not None:
                    strike = DroneStrike.roll(new_state, color, rng)
                else:
                    strike = action.drone_strike
                if strike is not None:
                    DroneStrike.strike(new_state, strike)
                    new_state.last_drone_strike = strike
                update["drone_strike"] = strike

            new_state.last_move = landed
            if action_type == ActionType.PLACE:
                TurnPolicy.advance(new_state)

        new_state.move_number += 1
        if STRICT_ACCOUNTING:
            GameEngine._assert_accounting(new_state)
        return new_state, action.model_copy(update=update)

    @staticmethod
    def _lift_stone(state: GameState, action: Action, color: int) -> None:
        """Take a stone off the board and return it to its pot."""
        state.board = state.board.with_cell(action.from_pos, None)
        state.pots[color].on_board -= 1
        if state.config.uses_shared_pot:
            state.shared_pot += 1
        else:
            state.pots[color].pot_count += 1

    @staticmethod
    def _assert_accounting(state: GameState) -> None:
        for color, pot in enumerate(state.pots):
            actual = state.board.count_stones(color)
            if pot.on_board != actual:
                raise InvalidStateError(
                    "onBoard counter disagrees with the board",
                    context={
                        "color": color,
                        "counter": pot.on_board,
                        "board": actual,
                    },
                )

    @staticmethod
    def iter_replay(
        config: VariantConfig,
        seed: Optional[int],
        actions: Sequence[Action],
    ) -> Iterator[tuple[Action, GameState]]:
        """
        Yield ``(action, state_after_action)`` for every entry of the log.

        Raises:
            InvalidStateError: if a stored action no longer validates.
        """
        state = GameEngine.initial_state(config, seed)
        for index, action in enumerate(actions):
            try:
                state, resolved = GameEngine.apply_action(state, action)
            except RulesViolationError as e:
                logger.error(
                    "Stored action %d failed to replay: %s", index, e
                )
                raise InvalidStateError(
                    f"Action {index} of the log cannot be replayed: {e.message}",
                    context={"index": index, "cause": e.code},
                ) from e
            yield resolved, state

    @staticmethod
    def reconstruct(
        config: VariantConfig,
        seed: Optional[int],
        actions: Sequence[Action],
        upto: Optional[int] = None,
    ) -> GameState:
        """State after the first ``upto`` actions (all of them by default)."""
        prefix = actions if upto is None else actions[:upto]
        state = GameEngine.initial_state(config, seed)
        for _, state in GameEngine.iter_replay(config, seed, prefix):
            pass
        return state

    @staticmethod
    def undo_cut_index(actions: Sequence[Action]) -> Optional[int]:
        """
        Index of the most recent player action; undo keeps ``actions[:index]``.

        Maintenance entries logged after that action are stripped with it.
        Returns ``None`` when the log holds no player action.
        """
        for index in range(len(actions) - 1, -1, -1):
            if not actions[index].is_maintenance:
                return index
        return None
