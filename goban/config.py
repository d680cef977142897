"""Service configuration read from environment variables."""

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, field
from typing import Optional

from .errors import ConfigurationError
from .rules.variants import DEFAULT_DRONE_STRIKE_CHANCE, DEFAULT_MINE_DENSITY

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float, low: float, high: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a number", context={"value": raw}
        ) from e
    if not (low <= value <= high):
        raise ConfigurationError(
            f"{name} must be between {low} and {high}", context={"value": value}
        )
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer", context={"value": raw}
        ) from e


@dataclass(frozen=True)
class ServiceSettings:
    """Settings for one service process.

    Attributes:
        db_path: SQLite file; ``None`` keeps games in memory.
        secret_key: HMAC key for game credentials.
        cors_origins: Allowed browser origins.
        log_level: Root level for the ``goban`` logger.
        log_format: One of default/compact/detailed/structured.
        mine_density: Fraction of cells mined in bang games.
        drone_strike_chance: Per-action drone probability in bang games.
        retention_days: Idle games older than this are purged.
        port: Port used by ``python -m goban.main``.
    """
    db_path: Optional[str] = None
    secret_key: str = field(default_factory=lambda: secrets.token_hex(32), repr=False)
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)
    log_level: str = "INFO"
    log_format: str = "default"
    mine_density: float = DEFAULT_MINE_DENSITY
    drone_strike_chance: float = DEFAULT_DRONE_STRIKE_CHANCE
    retention_days: int = 365
    port: int = 8002

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        secret_key = os.getenv("GOBAN_SECRET_KEY")
        if not secret_key:
            logger.warning(
                "GOBAN_SECRET_KEY not set; credentials will not survive a restart"
            )
            secret_key = secrets.token_hex(32)

        origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
        retention_days = _env_int("GOBAN_RETENTION_DAYS", 365)
        if retention_days < 1:
            raise ConfigurationError(
                "GOBAN_RETENTION_DAYS must be positive",
                context={"value": retention_days},
            )

        return cls(
            db_path=os.getenv("GOBAN_DB_PATH") or None,
            secret_key=secret_key,
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            log_level=os.getenv("GOBAN_LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("GOBAN_LOG_FORMAT", "default").lower(),
            mine_density=_env_float(
                "GOBAN_MINE_DENSITY", DEFAULT_MINE_DENSITY, 0.0, 0.5
            ),
            drone_strike_chance=_env_float(
                "GOBAN_DRONE_STRIKE_CHANCE", DEFAULT_DRONE_STRIKE_CHANCE, 0.0, 1.0
            ),
            retention_days=retention_days,
            port=_env_int("GOBAN_SERVICE_PORT", 8002),
        )
