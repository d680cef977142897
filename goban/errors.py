"""
Goban Error Hierarchy

Unified exception hierarchy for the rule engine, the game service and the
HTTP layer. All custom exceptions inherit from GobanError so routes can
translate them uniformly into HTTP responses.

Usage:
    from goban.errors import RulesViolationError, GobanError

    try:
        state, action = GameEngine.apply_action(state, request)
    except RulesViolationError as e:
        logger.info("Rejected action: %s", e.message)
"""

from typing import Any

__all__ = [
    # Access errors
    "AccessError",
    "AuthenticationInvalid",
    "AuthenticationRequired",
    "CellEmpty",
    "CellOccupied",
    "ConfigurationError",
    "GameNotFound",
    # Base error
    "GobanError",
    "InvalidCoordinates",
    "InvalidStateError",
    "KoViolation",
    "NoHistoryToReplay",
    "NoHistoryToUndo",
    "OutOfTurn",
    "PotExhausted",
    # Retry/recovery errors
    "RetryableError",
    # Game rules errors
    "RulesViolationError",
    # Infrastructure errors
    "StorageError",
    "SuicideMove",
    "UnknownActionType",
    "ValidationError",
    "VersionConflictError",
]


class GobanError(Exception):
    """Base exception for all Goban errors.

    Attributes:
        code: Machine-readable error code for categorization
        http_status: Status code used when the error reaches the HTTP layer
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "GOBAN_ERROR"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Access Errors
# =============================================================================


class AccessError(GobanError):
    """Base class for identity and lookup failures."""
    code: str = "ACCESS_ERROR"
    http_status: int = 400


class AuthenticationRequired(AccessError):
    """A mutation was attempted without any credential."""
    code: str = "AUTHENTICATION_REQUIRED"
    http_status: int = 400


class AuthenticationInvalid(AccessError):
    """The supplied credential does not authorize this game."""
    code: str = "AUTHENTICATION_INVALID"
    http_status: int = 401


class GameNotFound(AccessError):
    """No game exists with the requested id."""
    code: str = "GAME_NOT_FOUND"
    http_status: int = 404

    def __init__(self, game_id: str, context: dict[str, Any] | None = None):
        super().__init__(f"Game {game_id} not found", context=context)
        self.game_id = game_id
        self.context["game_id"] = game_id


# =============================================================================
# Game Rules Errors
# =============================================================================


class RulesViolationError(GobanError):
    """Action rejected by the rules.

    Raised before any state is mutated. The rule_ref field names the rule
    that was broken (e.g., "suicide", "ko").

    Attributes:
        rule_ref: Short reference to the violated rule
    """
    code: str = "RULES_VIOLATION"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        rule_ref: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.rule_ref = rule_ref
        if rule_ref:
            self.context["rule_ref"] = rule_ref


class OutOfTurn(RulesViolationError):
    """Color does not match the color whose turn it is."""
    code: str = "OUT_OF_TURN"


class InvalidCoordinates(RulesViolationError):
    """Position outside the board, missing, or a move onto itself."""
    code: str = "INVALID_COORDINATES"


class CellOccupied(RulesViolationError):
    """Target cell already holds a stone."""
    code: str = "CELL_OCCUPIED"


class CellEmpty(RulesViolationError):
    """Source cell holds no stone."""
    code: str = "CELL_EMPTY"


class PotExhausted(RulesViolationError):
    """The color (or the shared pot) has no stones left to place."""
    code: str = "POT_EXHAUSTED"


class SuicideMove(RulesViolationError):
    """Placement would leave the mover's group without liberties."""
    code: str = "SUICIDE_MOVE"


class KoViolation(RulesViolationError):
    """Immediate recapture at the current ko point."""
    code: str = "KO_VIOLATION"


class UnknownActionType(RulesViolationError):
    """Action type not supported by this variant."""
    code: str = "UNKNOWN_ACTION_TYPE"


class NoHistoryToUndo(RulesViolationError):
    """Undo requested on a game without player actions."""
    code: str = "NO_HISTORY_TO_UNDO"


class NoHistoryToReplay(RulesViolationError):
    """Replay requested on a game without actions."""
    code: str = "NO_HISTORY_TO_REPLAY"


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(GobanError):
    """Base class for validation errors."""
    code: str = "VALIDATION_ERROR"
    http_status: int = 400


class ConfigurationError(ValidationError):
    """Invalid variant or service configuration."""
    code: str = "CONFIGURATION_ERROR"


class InvalidStateError(GobanError):
    """Corrupted or unexpected game state.

    Raised when a stored action log cannot be replayed, which should not be
    possible for logs written through the engine.
    """
    code: str = "INVALID_STATE"


# =============================================================================
# Retry/Recovery Errors
# =============================================================================


class RetryableError(GobanError):
    """Error that can be retried by the caller."""
    code: str = "RETRYABLE_ERROR"
    http_status: int = 503


class VersionConflictError(RetryableError):
    """Concurrent mutation committed first; reload and retry.

    Attributes:
        expected_version: Version the writer read before validating
    """
    code: str = "VERSION_CONFLICT"
    http_status: int = 409

    def __init__(
        self,
        message: str,
        expected_version: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.expected_version = expected_version
        if expected_version is not None:
            self.context["expected_version"] = expected_version


# =============================================================================
# Infrastructure Errors
# =============================================================================


class StorageError(GobanError):
    """Error accessing the game store.

    Attributes:
        db_path: Path of the database involved, when there is one
    """
    code: str = "STORAGE_ERROR"

    def __init__(
        self,
        message: str,
        db_path: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.db_path = db_path
        if db_path:
            self.context["db_path"] = db_path
