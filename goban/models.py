"""
Pydantic Models for Shared Goban Game State
Field aliases match the camelCase JSON exchanged with browser clients.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from enum import Enum
from datetime import datetime

from .errors import UnknownActionType


MIN_BOARD_DIMENSION = 3
MAX_BOARD_DIMENSION = 20
MAX_COLORS = 8


class VariantType(str, Enum):
    """Named rule configurations"""
    CLASSIC = "classic"
    CRAZY = "crazy"
    WILDE = "wilde"
    ZEN = "zen"
    BANG = "bang"


class ActionType(str, Enum):
    """Action log entry types"""
    PLACE = "place"
    REMOVE = "remove"
    MOVE = "move"
    # Auto-generated maintenance entry (wilde pac-man mode)
    EAT = "eat"


class CreditPolicy(str, Enum):
    """Who is credited when stones are captured"""
    CAPTURER = "capturer"
    RETURN_TO_OWNER = "return_to_owner"
    MOVING_PLAYER = "moving_player"


class Position(BaseModel):
    """Board position, 0-indexed from the top-left corner"""
    x: int
    y: int

    class Config:
        frozen = True

    def to_key(self) -> str:
        """Convert position to string key"""
        return f"{self.x},{self.y}"

    @classmethod
    def from_key(cls, key: str) -> "Position":
        x, y = key.split(",")
        return cls(x=int(x), y=int(y))


class BoardState(BaseModel):
    """Rectangular grid of optional color ids, indexed ``cells[y][x]``.

    Boards are treated as immutable values: every change goes through
    :meth:`with_cell`, which returns a new board.
    """
    width: int
    height: int
    cells: List[List[Optional[int]]]

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def _check_shape(self) -> "BoardState":
        if not (MIN_BOARD_DIMENSION <= self.width <= MAX_BOARD_DIMENSION):
            raise ValueError(f"width must be in [3, 20], got {self.width}")
        if not (MIN_BOARD_DIMENSION <= self.height <= MAX_BOARD_DIMENSION):
            raise ValueError(f"height must be in [3, 20], got {self.height}")
        if len(self.cells) != self.height:
            raise ValueError(
                f"expected {self.height} rows, got {len(self.cells)}"
            )
        for y, row in enumerate(self.cells):
            if len(row) != self.width:
                raise ValueError(
                    f"row {y} has {len(row)} cells, expected {self.width}"
                )
            for color in row:
                if color is not None and not (0 <= color < MAX_COLORS):
                    raise ValueError(f"color id out of range: {color}")
        return self

    @classmethod
    def empty(cls, width: int, height: int) -> "BoardState":
        return cls(
            width=width,
            height=height,
            cells=[[None] * width for _ in range(height)],
        )

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def at(self, pos: Position) -> Optional[int]:
        """Color at ``pos``; the position must be in bounds."""
        return self.cells[pos.y][pos.x]

    def with_cell(self, pos: Position, color: Optional[int]) -> "BoardState":
        """Return a copy of the board with one cell replaced."""
        return self.with_cells({(pos.x, pos.y): color})

    def with_cells(self, changes: dict) -> "BoardState":
        """Return a copy with several ``(x, y) -> color`` replacements.

        Only the touched rows are copied; the model is rebuilt without
        re-running validation.
        """
        rows = list(self.cells)
        copied = set()
        for (x, y), color in changes.items():
            if y not in copied:
                rows[y] = list(rows[y])
                copied.add(y)
            rows[y][x] = color
        return self.model_copy(update={"cells": rows})

    def count_stones(self, color: int) -> int:
        return sum(row.count(color) for row in self.cells)

    def stone_positions(self, color: int) -> List[Position]:
        """Positions holding ``color`` in row-major order."""
        return [
            Position(x=x, y=y)
            for y, row in enumerate(self.cells)
            for x, cell in enumerate(row)
            if cell == color
        ]


class StonePot(BaseModel):
    """Per-color stone accounting"""
    pot_count: int = Field(alias="potCount")
    captured: int = 0
    on_board: int = Field(default=0, alias="onBoard")
    exploded: int = 0
    droned: int = 0

    class Config:
        populate_by_name = True


class VariantConfig(BaseModel):
    """Rule configuration fixed at game creation.

    ``initial_pots`` holds one allocation per color; shared-pot variants
    leave it zeroed and set ``shared_pot_size`` instead.
    """
    variant: VariantType
    width: int
    height: int
    color_count: int = Field(alias="colorCount")
    player_count: int = Field(alias="playerCount")
    strict_turns: bool = Field(default=False, alias="strictTurns")
    shared_color_rotation: bool = Field(
        default=False, alias="sharedColorRotation"
    )
    initial_pots: List[int] = Field(alias="initialPots")
    shared_pot_size: Optional[int] = Field(default=None, alias="sharedPotSize")
    credit_policy: CreditPolicy = Field(
        default=CreditPolicy.CAPTURER, alias="creditPolicy"
    )
    mine_density: float = Field(default=0.0, alias="mineDensity")
    drone_strike_chance: float = Field(default=0.0, alias="droneStrikeChance")
    pacman_mode: bool = Field(default=False, alias="pacmanMode")

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def uses_shared_pot(self) -> bool:
        return self.shared_pot_size is not None


class ExplosionInfo(BaseModel):
    """Mine detonation recorded on the triggering action"""
    center: Position
    removed: List[Position]
    removed_colors: List[int] = Field(alias="removedColors")

    class Config:
        populate_by_name = True


class DroneStrikeInfo(BaseModel):
    """Drone strike recorded on the action that provoked it"""
    target: Position
    color: int
    start: Position

    class Config:
        populate_by_name = True


class Action(BaseModel):
    """One entry of a game's action log"""
    id: Optional[int] = None
    move_number: int = Field(default=0, alias="moveNumber")
    action_type: ActionType = Field(alias="actionType")
    color: Optional[int] = None
    player: Optional[int] = None
    from_pos: Optional[Position] = Field(default=None, alias="from")
    to: Optional[Position] = None
    explosion: Optional[ExplosionInfo] = None
    drone_strike: Optional[DroneStrikeInfo] = Field(
        default=None, alias="droneStrike"
    )
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    class Config:
        populate_by_name = True

    @property
    def is_maintenance(self) -> bool:
        return self.action_type == ActionType.EAT


class GameState(BaseModel):
    """Derived state of one game; a cache of its replayed action log"""
    config: VariantConfig
    board: BoardState
    pots: List[StonePot]
    shared_pot: Optional[int] = Field(default=None, alias="sharedPot")
    player_captures: List[int] = Field(alias="playerCaptures")
    current_turn: int = Field(default=0, alias="currentTurn")
    next_color: int = Field(default=0, alias="nextColor")
    move_number: int = Field(default=0, alias="moveNumber")
    last_move: Optional[Position] = Field(default=None, alias="lastMove")
    ko_point: Optional[Position] = Field(default=None, alias="koPoint")
    last_explosion: Optional[ExplosionInfo] = Field(
        default=None, alias="lastExplosion"
    )
    last_drone_strike: Optional[DroneStrikeInfo] = Field(
        default=None, alias="lastDroneStrike"
    )
    # Hidden mine cells; never serialized to clients
    mines: List[Position] = Field(default_factory=list, exclude=True)

    class Config:
        populate_by_name = True


class ActionRequest(BaseModel):
    """Client-submitted action before the engine resolves it.

    ``action_type`` stays a plain string here so that unsupported types
    surface as ``UnknownActionType`` rather than a schema error.
    """
    action_type: str = Field(alias="actionType")
    color: Optional[int] = None
    from_pos: Optional[Position] = Field(default=None, alias="from")
    to: Optional[Position] = None

    class Config:
        populate_by_name = True

    def to_action(self) -> Action:
        try:
            action_type = ActionType(self.action_type)
        except ValueError as e:
            raise UnknownActionType(
                f"Unknown action type: {self.action_type}"
            ) from e
        return Action(
            action_type=action_type,
            color=self.color,
            from_pos=self.from_pos,
            to=self.to,
        )


class CreateGameRequest(BaseModel):
    """Parameters accepted when creating a game"""
    variant: VariantType = VariantType.CLASSIC
    board_size: Optional[int] = Field(default=None, alias="boardSize")
    width: Optional[int] = None
    height: Optional[int] = None
    player_count: Optional[int] = Field(default=None, alias="playerCount")
    stones_per_player: Optional[int] = Field(
        default=None, alias="stonesPerPlayer"
    )
    pacman_mode: bool = Field(default=False, alias="pacmanMode")

    class Config:
        populate_by_name = True


class GameView(BaseModel):
    """Public projection of a stored game"""
    id: str
    version: int
    state: GameState
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    class Config:
        populate_by_name = True


class CreateGameResponse(BaseModel):
    game: GameView
    credential: str


class ActionResponse(BaseModel):
    game: GameView
    action: Action


class HistoryResponse(BaseModel):
    game_id: str = Field(alias="gameId")
    actions: List[Action]

    class Config:
        populate_by_name = True


class ReplayFrame(BaseModel):
    """State after the first ``step`` actions of a log"""
    game_id: str = Field(alias="gameId")
    step: int
    total_steps: int = Field(alias="totalSteps")
    action: Optional[Action] = None
    state: GameState

    class Config:
        populate_by_name = True
