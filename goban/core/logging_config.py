"""
Unified logging configuration for the Goban service.

Usage:
    from goban.core.logging_config import setup_logging

    logger = setup_logging("goban", level="DEBUG", format_style="compact")

Modules keep using ``logging.getLogger(__name__)``; configuring the
``goban`` logger once at startup covers all of them.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

__all__ = [
    "COMPACT_FORMAT",
    "DEFAULT_FORMAT",
    "DETAILED_FORMAT",
    "STRUCTURED_FORMAT",
    "LogContext",
    "configure_third_party_loggers",
    "get_logger",
    "setup_logging",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
COMPACT_FORMAT = "%(asctime)s %(levelname).1s %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(filename)s:%(lineno)d - %(message)s"
)
STRUCTURED_FORMAT = (
    '{"time": "%(asctime)s", "logger": "%(name)s", '
    '"level": "%(levelname)s", "message": "%(message)s"}'
)

_FORMATS = {
    "default": DEFAULT_FORMAT,
    "compact": COMPACT_FORMAT,
    "detailed": DETAILED_FORMAT,
    "structured": STRUCTURED_FORMAT,
}

# Libraries that log request-level noise at INFO
NOISY_PACKAGES = (
    "urllib3",
    "httpx",
    "httpcore",
    "uvicorn.access",
    "multipart",
)


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logging(
    name: str = "goban",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    log_dir: Optional[Union[str, Path]] = None,
    console: bool = True,
    propagate: bool = False,
    format_style: str = "default",
) -> logging.Logger:
    """Configure and return the logger ``name``.

    Handlers are attached only once per logger, so calling this again (for
    example from tests) just updates the level.

    Args:
        name: Logger name.
        level: Level as int or name ("DEBUG", "INFO", ...).
        log_file: Explicit file to log to.
        log_dir: Directory in which ``<name>.log`` is created.
        console: Attach a stderr handler.
        propagate: Let records reach ancestor loggers.
        format_style: default, compact, detailed or structured; unknown
            styles fall back to default.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))
    logger.propagate = propagate

    if getattr(logger, "_goban_configured", False):
        return logger

    formatter = logging.Formatter(_FORMATS.get(format_style, DEFAULT_FORMAT))

    if console:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_file is None and log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"{name}.log"
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger._goban_configured = True
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_third_party_loggers(
    quiet: bool = True,
    verbose_packages: Optional[Iterable[str]] = None,
) -> None:
    """Raise noisy third-party loggers to WARNING unless listed as verbose."""
    if not quiet:
        return
    verbose = set(verbose_packages or ())
    for package in NOISY_PACKAGES:
        if package not in verbose:
            logging.getLogger(package).setLevel(logging.WARNING)


class LogContext:
    """Temporarily change a logger's level.

    Example:
        with LogContext(logger, logging.DEBUG):
            engine_call()
    """

    def __init__(self, logger: logging.Logger, level: Union[int, str]):
        self.logger = logger
        self.level = _resolve_level(level)
        self._previous: Optional[int] = None

    def __enter__(self) -> logging.Logger:
        self._previous = self.logger.level
        self.logger.setLevel(self.level)
        return self.logger

    def __exit__(self, exc_type, exc, tb) -> None:
        self.logger.setLevel(self._previous)
