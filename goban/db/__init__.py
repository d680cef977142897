"""Game storage backends."""

from .sqlite_store import SqliteGameStore
from .store import GameRecord, GameStore, InMemoryGameStore

__all__ = ["GameRecord", "GameStore", "InMemoryGameStore", "SqliteGameStore"]
