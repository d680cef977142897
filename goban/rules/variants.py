"""
Variant presets.

Each variant is a :class:`VariantConfig`; there is no per-variant engine
code. ``build_config`` turns creation parameters into a validated config.
"""

from __future__ import annotations

from typing import Optional

from ..errors import ConfigurationError
from ..models import (
    MAX_BOARD_DIMENSION,
    MAX_COLORS,
    MIN_BOARD_DIMENSION,
    CreditPolicy,
    VariantConfig,
    VariantType,
)

SQUARE_BOARD_SIZES = (9, 13, 19)
DEFAULT_BOARD_SIZE = 19
DEFAULT_MINE_DENSITY = 0.10
DEFAULT_DRONE_STRIKE_CHANCE = 0.10
ZEN_PLAYER_COUNT = 3


def two_color_pots(area: int) -> list[int]:
    """Black (first to move) gets one extra stone."""
    return [area + 1, area]


def split_pots(area: int, colors: int) -> list[int]:
    """Split ``area`` stones evenly; the first ``area % colors`` get one more."""
    base, extra = divmod(area, colors)
    return [base + (1 if i < extra else 0) for i in range(colors)]


def starter_bonus_pots(per_player: int, colors: int) -> list[int]:
    """Equal pots with one extra stone for the starting colour."""
    return [per_player + (1 if i == 0 else 0) for i in range(colors)]


def _square_size(board_size: Optional[int]) -> int:
    size = DEFAULT_BOARD_SIZE if board_size is None else board_size
    if size not in SQUARE_BOARD_SIZES:
        raise ConfigurationError(
            f"Board size must be one of {SQUARE_BOARD_SIZES}",
            context={"board_size": size},
        )
    return size


def _check_dimension(name: str, value: int) -> None:
    if not (MIN_BOARD_DIMENSION <= value <= MAX_BOARD_DIMENSION):
        raise ConfigurationError(
            f"{name} must be between {MIN_BOARD_DIMENSION} and "
            f"{MAX_BOARD_DIMENSION}",
            context={name: value},
        )


def build_config(
    variant: VariantType,
    *,
    board_size: Optional[int] = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
    player_count: Optional[int] = None,
    stones_per_player: Optional[int] = None,
    pacman_mode: bool = False,
    mine_density: float = DEFAULT_MINE_DENSITY,
    drone_strike_chance: float = DEFAULT_DRONE_STRIKE_CHANCE,
) -> VariantConfig:
    """Build the configuration for a new game of ``variant``."""
    variant = VariantType(variant)

    if variant == VariantType.WILDE:
        width = width if width is not None else board_size or DEFAULT_BOARD_SIZE
        height = height if height is not None else board_size or DEFAULT_BOARD_SIZE
        _check_dimension("width", width)
        _check_dimension("height", height)
        players = 2 if player_count is None else player_count
        if not (2 <= players <= MAX_COLORS):
            raise ConfigurationError(
                f"Wilde supports 2 to {MAX_COLORS} players",
                context={"player_count": players},
            )
        if stones_per_player is not None and stones_per_player < 1:
            raise ConfigurationError(
                "stonesPerPlayer must be positive",
                context={"stones_per_player": stones_per_player},
            )
        per_player = stones_per_player or width * height
        return VariantConfig(
            variant=variant,
            width=width,
            height=height,
            color_count=players,
            player_count=players,
            strict_turns=True,
            initial_pots=starter_bonus_pots(per_player, players),
            credit_policy=CreditPolicy.CAPTURER,
            pacman_mode=pacman_mode,
        )

    if pacman_mode:
        raise ConfigurationError("Pac-man mode is only available in wilde")

    size = _square_size(board_size)
    area = size * size

    if variant == VariantType.CLASSIC:
        return VariantConfig(
            variant=variant,
            width=size,
            height=size,
            color_count=2,
            player_count=2,
            initial_pots=two_color_pots(area),
        )
    if variant == VariantType.CRAZY:
        return VariantConfig(
            variant=variant,
            width=size,
            height=size,
            color_count=4,
            player_count=4,
            initial_pots=split_pots(area, 4),
            credit_policy=CreditPolicy.RETURN_TO_OWNER,
        )
    if variant == VariantType.ZEN:
        return VariantConfig(
            variant=variant,
            width=size,
            height=size,
            color_count=2,
            player_count=ZEN_PLAYER_COUNT,
            shared_color_rotation=True,
            initial_pots=[0, 0],
            shared_pot_size=area + 1,
            credit_policy=CreditPolicy.MOVING_PLAYER,
        )
    # bang
    return VariantConfig(
        variant=variant,
        width=size,
        height=size,
        color_count=2,
        player_count=2,
        strict_turns=True,
        initial_pots=two_color_pots(area),
        mine_density=mine_density,
        drone_strike_chance=drone_strike_chance,
    )
