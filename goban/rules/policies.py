"""
Variant policies: turn order and capture crediting.

A variant is a :class:`~goban.models.VariantConfig`; these helpers read the
config and never branch on the variant name. Crediting policies mutate the
pots of a state the engine has already copied.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..errors import OutOfTurn, ValidationError
from ..models import ActionType, CreditPolicy, GameState, VariantConfig
from .captures import CaptureResult


class TurnPolicy:
    """Who may act, with which colour, and how the turn advances."""

    @staticmethod
    def resolve_color(state: GameState, requested: Optional[int]) -> int:
        """
        Colour a placement will use.

        Shared-colour rotation dictates the colour; strict variants require
        the colour whose turn it is (defaulting to it when omitted); free
        variants require an explicit colour.
        """
        config = state.config
        if config.shared_color_rotation:
            if requested is not None and requested != state.next_color:
                raise OutOfTurn(
                    f"Color {requested} is not the next stone color",
                    rule_ref="turn-order",
                    context={"expected": state.next_color},
                )
            return state.next_color
        if config.strict_turns:
            if requested is None:
                return state.current_turn
            if requested != state.current_turn:
                raise OutOfTurn(
                    f"It is not color {requested}'s turn",
                    rule_ref="turn-order",
                    context={"expected": state.current_turn},
                )
            return requested
        if requested is None:
            raise ValidationError("A color is required for this variant")
        TurnPolicy.check_color_range(config, requested)
        return requested

    @staticmethod
    def check_color_range(config: VariantConfig, color: int) -> None:
        if not (0 <= color < config.color_count):
            raise ValidationError(
                f"Color {color} is not in this game",
                context={"color_count": config.color_count},
            )

    @staticmethod
    def acting_player(state: GameState, color: int) -> int:
        """Player index recorded on an action."""
        config = state.config
        if config.strict_turns or config.shared_color_rotation:
            return state.current_turn
        return color

    @staticmethod
    def advance(state: GameState) -> None:
        """Advance turn (and shared colour) after a placement, in place."""
        config = state.config
        if config.strict_turns or config.shared_color_rotation:
            state.current_turn = (state.current_turn + 1) % config.player_count
        if config.shared_color_rotation:
            state.next_color = (state.next_color + 1) % config.color_count


class CreditingPolicy(ABC):
    """Strategy applied to the pots after captures were resolved."""

    def apply(
        self,
        state: GameState,
        mover_color: int,
        player: int,
        action_type: ActionType,
        capture: CaptureResult,
    ) -> None:
        for color, count in capture.captured_by_color.items():
            state.pots[color].on_board -= count
        if capture.total_captured:
            self.credit(state, mover_color, player, action_type, capture)

    @abstractmethod
    def credit(
        self,
        state: GameState,
        mover_color: int,
        player: int,
        action_type: ActionType,
        capture: CaptureResult,
    ) -> None:
        ...


class CreditCapturer(CreditingPolicy):
    """The capturing colour's ``captured`` counter receives every stone."""

    def credit(self, state, mover_color, player, action_type, capture):
        state.pots[mover_color].captured += capture.total_captured


class ReturnToOwner(CreditingPolicy):
    """Captured stones go back to their own colour's pot."""

    def credit(self, state, mover_color, player, action_type, capture):
        for color, count in capture.captured_by_color.items():
            state.pots[color].pot_count += count


class CreditMovingPlayer(CreditingPolicy):
    """
    Captures made by a placement are credited to the player who placed.

    The turn advances after crediting, so this is the player preceding the
    new current turn. Captures caused by moving a stone credit nobody.
    """

    def credit(self, state, mover_color, player, action_type, capture):
        if action_type == ActionType.PLACE:
            state.player_captures[player] += capture.total_captured


_CREDITING = {
    CreditPolicy.CAPTURER: CreditCapturer(),
    CreditPolicy.RETURN_TO_OWNER: ReturnToOwner(),
    CreditPolicy.MOVING_PLAYER: CreditMovingPlayer(),
}


def get_crediting_policy(config: VariantConfig) -> CreditingPolicy:
    return _CREDITING[config.credit_policy]
