"""Game storage interface and the in-memory implementation.

A store keeps, per game, the cached derived state, the private mine seed,
an optimistic ``version`` and the ordered action log. Every ``commit_*``
call is atomic: either the log change and the new cached state are both
written and the version bumps, or nothing changes and
:class:`~goban.errors.VersionConflictError` is raised.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from ..errors import GameNotFound, VersionConflictError
from ..models import Action, GameState, GameView


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class GameRecord:
    """One stored game. ``seed`` never leaves the service."""
    id: str
    state: GameState
    seed: int
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_view(self) -> GameView:
        return GameView(
            id=self.id,
            version=self.version,
            state=self.state,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class GameStore(ABC):
    """Persistence for game records and their action logs."""

    @abstractmethod
    def create(self, record: GameRecord) -> GameRecord:
        ...

    @abstractmethod
    def load(self, game_id: str) -> GameRecord:
        """Raises GameNotFound."""

    @abstractmethod
    def list_actions(self, game_id: str) -> list[Action]:
        """Action log in move order. Raises GameNotFound."""

    @abstractmethod
    def commit_action(
        self,
        game_id: str,
        action: Action,
        state: GameState,
        expected_version: int,
    ) -> tuple[GameRecord, Action]:
        """Append ``action`` and replace the cached state."""

    @abstractmethod
    def commit_undo(
        self,
        game_id: str,
        remove_count: int,
        state: GameState,
        expected_version: int,
    ) -> GameRecord:
        """Delete the ``remove_count`` most recent actions and replace the state."""

    @abstractmethod
    def commit_reset(
        self, game_id: str, state: GameState, expected_version: int
    ) -> GameRecord:
        """Delete the whole log and replace the state."""

    @abstractmethod
    def delete(self, game_id: str) -> None:
        ...

    @abstractmethod
    def purge_older_than(self, cutoff: datetime) -> int:
        """Delete games last updated before ``cutoff``; returns the count."""


class InMemoryGameStore(GameStore):
    """Dict-backed store for tests and single-process deployments."""

    def __init__(self):
        self._records: dict[str, GameRecord] = {}
        self._actions: dict[str, list[Action]] = {}
        self._next_action_id = 1
        self._lock = threading.Lock()

    def _get(self, game_id: str) -> GameRecord:
        record = self._records.get(game_id)
        if record is None:
            raise GameNotFound(game_id)
        return record

    def _check_version(self, record: GameRecord, expected_version: int) -> None:
        if record.version != expected_version:
            raise VersionConflictError(
                f"Game {record.id} changed concurrently",
                expected_version=expected_version,
                context={"actual_version": record.version},
            )

    def _bump(self, record: GameRecord, state: GameState) -> GameRecord:
        updated = replace(
            record,
            state=state,
            version=record.version + 1,
            updated_at=utcnow(),
        )
        self._records[record.id] = updated
        return updated

    def create(self, record: GameRecord) -> GameRecord:
        now = utcnow()
        record = replace(
            record,
            created_at=record.created_at or now,
            updated_at=record.updated_at or now,
        )
        with self._lock:
            self._records[record.id] = record
            self._actions[record.id] = []
        return record

    def load(self, game_id: str) -> GameRecord:
        with self._lock:
            return self._get(game_id)

    def list_actions(self, game_id: str) -> list[Action]:
        with self._lock:
            self._get(game_id)
            return list(self._actions[game_id])

    def commit_action(self, game_id, action, state, expected_version):
        with self._lock:
            record = self._get(game_id)
            self._check_version(record, expected_version)
            stored = action.model_copy(
                update={
                    "id": self._next_action_id,
                    "created_at": action.created_at or utcnow(),
                }
            )
            self._next_action_id += 1
            self._actions[game_id].append(stored)
            return self._bump(record, state), stored

    def commit_undo(self, game_id, remove_count, state, expected_version):
        with self._lock:
            record = self._get(game_id)
            self._check_version(record, expected_version)
            if remove_count:
                del self._actions[game_id][-remove_count:]
            return self._bump(record, state)

    def commit_reset(self, game_id, state, expected_version):
        with self._lock:
            record = self._get(game_id)
            self._check_version(record, expected_version)
            self._actions[game_id] = []
            return self._bump(record, state)

    def delete(self, game_id: str) -> None:
        with self._lock:
            self._get(game_id)
            del self._records[game_id]
            del self._actions[game_id]

    def purge_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            stale = [
                game_id
                for game_id, record in self._records.items()
                if record.updated_at < cutoff
            ]
            for game_id in stale:
                del self._records[game_id]
                del self._actions[game_id]
        return len(stale)
