"""Tests for goban/rules/validator.py: legality checks and their order."""

import pytest

from goban.errors import (
    CellEmpty,
    CellOccupied,
    InvalidCoordinates,
    KoViolation,
    OutOfTurn,
    PotExhausted,
    SuicideMove,
    UnknownActionType,
    ValidationError,
)
from goban.models import Position, VariantType
from goban.rules.validator import validate_action
from goban.rules.variants import build_config
from tests.helpers import eat, free_config, make_state, move, place, remove


CORNER = [
    ".X...",
    "X....",
    ".....",
    ".....",
    ".....",
]


class TestPlace:
    def test_legal_placement_returns_color(self):
        state = make_state(free_config())
        assert validate_action(state, place(2, 2, 1)) == 1

    def test_corner_suicide_rejected(self):
        state = make_state(free_config(), CORNER)
        with pytest.raises(SuicideMove) as exc_info:
            validate_action(state, place(0, 0, 1))
        assert exc_info.value.rule_ref == "suicide"

    def test_off_board(self):
        state = make_state(free_config())
        with pytest.raises(InvalidCoordinates):
            validate_action(state, place(5, 0, 0))
        with pytest.raises(InvalidCoordinates):
            validate_action(state, place(0, -1, 0))

    def test_missing_target(self):
        state = make_state(free_config())
        with pytest.raises(InvalidCoordinates):
            validate_action(state, place(0, 0, 0).model_copy(update={"to": None}))

    def test_occupied(self):
        state = make_state(free_config(), CORNER)
        with pytest.raises(CellOccupied):
            validate_action(state, place(1, 0, 1))

    def test_pot_exhausted(self):
        state = make_state(free_config())
        state.pots[1].pot_count = 0
        with pytest.raises(PotExhausted):
            validate_action(state, place(2, 2, 1))

    def test_pot_checked_before_suicide(self):
        state = make_state(free_config(), CORNER)
        state.pots[1].pot_count = 0
        with pytest.raises(PotExhausted):
            validate_action(state, place(0, 0, 1))

    def test_ko_point_rejected(self):
        state = make_state(free_config(), ko_point=Position(x=3, y=3))
        with pytest.raises(KoViolation):
            validate_action(state, place(3, 3, 1))

    def test_free_variant_requires_color(self):
        state = make_state(free_config())
        with pytest.raises(ValidationError):
            validate_action(state, place(1, 1))

    def test_color_outside_game(self):
        state = make_state(free_config())
        with pytest.raises(ValidationError):
            validate_action(state, place(1, 1, 2))


class TestTurnOrder:
    def test_strict_turn_rejects_other_color(self):
        state = make_state(build_config(VariantType.WILDE, width=5, height=5, player_count=3))
        with pytest.raises(OutOfTurn):
            validate_action(state, place(0, 0, 1))

    def test_strict_turn_defaults_to_current(self):
        state = make_state(
            build_config(VariantType.WILDE, width=5, height=5, player_count=3),
            current_turn=2,
        )
        assert validate_action(state, place(0, 0)) == 2

    def test_turn_checked_before_occupancy(self):
        state = make_state(
            build_config(VariantType.WILDE, width=5, height=5), CORNER
        )
        with pytest.raises(OutOfTurn):
            validate_action(state, place(1, 0, 1))

    def test_rotation_dictates_color(self):
        state = make_state(build_config(VariantType.ZEN, board_size=9), next_color=1)
        assert validate_action(state, place(4, 4)) == 1
        with pytest.raises(OutOfTurn):
            validate_action(state, place(4, 4, 0))

    def test_shared_pot_exhausted(self):
        state = make_state(build_config(VariantType.ZEN, board_size=9), shared_pot=0)
        with pytest.raises(PotExhausted):
            validate_action(state, place(4, 4))


class TestMove:
    def test_legal_move(self):
        state = make_state(free_config(), CORNER)
        assert validate_action(state, move(1, 0, 3, 3)) == 0

    def test_same_cell(self):
        state = make_state(free_config(), CORNER)
        with pytest.raises(InvalidCoordinates):
            validate_action(state, move(1, 0, 1, 0))

    def test_empty_source(self):
        state = make_state(free_config(), CORNER)
        with pytest.raises(CellEmpty):
            validate_action(state, move(2, 2, 3, 3))

    def test_occupied_target(self):
        state = make_state(free_config(), CORNER)
        with pytest.raises(CellOccupied):
            validate_action(state, move(1, 0, 0, 1))

    def test_vacated_source_counts_as_liberty(self):
        # (1,0) touches only X stones and the cell the O stone leaves
        state = make_state(free_config(), [
            "X.OX.",
            ".XX..",
            ".....",
            ".....",
            ".....",
        ])
        assert validate_action(state, move(2, 0, 1, 0)) == 1

    def test_move_into_suicide(self):
        rows = list(CORNER)
        rows[4] = "....O"
        state = make_state(free_config(), rows)
        with pytest.raises(SuicideMove):
            validate_action(state, move(4, 4, 0, 0))

    def test_move_onto_ko_point(self):
        state = make_state(free_config(), CORNER, ko_point=Position(x=4, y=4))
        with pytest.raises(KoViolation):
            validate_action(state, move(1, 0, 4, 4))


class TestRemoveAndEat:
    def test_remove_returns_color(self):
        state = make_state(free_config(), CORNER)
        assert validate_action(state, remove(0, 1)) == 0

    def test_remove_empty(self):
        state = make_state(free_config())
        with pytest.raises(CellEmpty):
            validate_action(state, remove(0, 0))

    def test_remove_off_board(self):
        state = make_state(free_config())
        with pytest.raises(InvalidCoordinates):
            validate_action(state, remove(9, 9))

    def test_eat_requires_pacman_mode(self):
        state = make_state(free_config(), CORNER)
        with pytest.raises(UnknownActionType):
            validate_action(state, eat(0, 1))

    def test_eat_in_pacman_mode(self):
        config = build_config(VariantType.WILDE, width=5, height=5, pacman_mode=True)
        state = make_state(config, CORNER)
        assert validate_action(state, eat(1, 0)) == 0
