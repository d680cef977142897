"""Game service: authorization, serialized mutation and persistence.

The service owns no rules. It loads a game, runs the engine against the
cached state, and commits the resulting log change together with the new
state under the version it read. Mutations of one game are serialized by a
per-game lock inside the process and by the store's version check across
processes.
"""

from __future__ import annotations

import logging
import random
import secrets
import threading
import time
import uuid
from datetime import datetime, timedelta
from typing import Optional

from .auth import HmacAuthorizer
from .config import ServiceSettings
from .db.store import GameRecord, GameStore, utcnow
from .errors import (
    GameNotFound,
    NoHistoryToReplay,
    NoHistoryToUndo,
    RulesViolationError,
    ValidationError,
    VersionConflictError,
)
from .game_engine import GameEngine
from .metrics import (
    EFFECTS_TRIGGERED,
    GAMES_CREATED,
    GAMES_PURGED,
    REPLAY_LENGTH,
    UNDOS,
    VERSION_CONFLICTS,
    observe_action,
)
from .models import Action, CreateGameRequest, GameState
from .rules.variants import build_config

logger = logging.getLogger(__name__)


class GameService:
    """Entry point for every game operation."""

    def __init__(
        self,
        store: GameStore,
        authorizer: HmacAuthorizer,
        settings: Optional[ServiceSettings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.authorizer = authorizer
        self.settings = settings or ServiceSettings()
        self._rng = rng or random.SystemRandom()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _game_lock(self, game_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(game_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[game_id] = lock
            return lock

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_game(self, request: CreateGameRequest) -> tuple[GameRecord, str]:
        """Create a game and return it with its mutation credential."""
        config = build_config(
            request.variant,
            board_size=request.board_size,
            width=request.width,
            height=request.height,
            player_count=request.player_count,
            stones_per_player=request.stones_per_player,
            pacman_mode=request.pacman_mode,
            mine_density=self.settings.mine_density,
            drone_strike_chance=self.settings.drone_strike_chance,
        )
        seed = secrets.randbits(63)
        record = GameRecord(
            id=uuid.uuid4().hex,
            state=GameEngine.initial_state(config, seed),
            seed=seed,
        )
        record = self.store.create(record)
        GAMES_CREATED.labels(config.variant.value).inc()
        logger.info(
            "Created %s game %s (%dx%d)",
            config.variant.value, record.id, config.width, config.height,
        )
        return record, self.authorizer.issue(record.id)

    def get_game(self, game_id: str) -> GameRecord:
        return self.store.load(game_id)

    def get_history(self, game_id: str) -> list[Action]:
        return self.store.list_actions(game_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def apply_action(
        self, game_id: str, action: Action, credential: Optional[str]
    ) -> tuple[GameRecord, Action]:
        """Validate ``action`` against the current state and commit it."""
        self.authorizer.require(game_id, credential)
        with self._game_lock(game_id):
            record = self.store.load(game_id)
            variant = record.state.config.variant.value
            action_type = action.action_type.value
            start = time.perf_counter()
            try:
                new_state, resolved = GameEngine.apply_action(
                    record.state, action, rng=self._rng
                )
            except RulesViolationError as e:
                observe_action(
                    variant, action_type, "rejected", time.perf_counter() - start
                )
                logger.info("Rejected %s on game %s: %s", action_type, game_id, e)
                raise

            record, stored = self._commit(
                lambda: self.store.commit_action(
                    game_id, resolved, new_state, record.version
                )
            )
            observe_action(variant, action_type, "ok", time.perf_counter() - start)
            if stored.explosion is not None:
                EFFECTS_TRIGGERED.labels("explosion").inc()
            if stored.drone_strike is not None:
                EFFECTS_TRIGGERED.labels("drone_strike").inc()
            return record, stored

    def undo(self, game_id: str, credential: Optional[str]) -> GameRecord:
        """
        Remove the most recent player action, plus maintenance entries
        logged after it, and rebuild the state by replaying the rest.
        """
        self.authorizer.require(game_id, credential)
        with self._game_lock(game_id):
            record = self.store.load(game_id)
            actions = self.store.list_actions(game_id)
            cut = GameEngine.undo_cut_index(actions)
            if cut is None:
                raise NoHistoryToUndo("Nothing to undo")

            state = GameEngine.reconstruct(
                record.state.config, record.seed, actions[:cut]
            )
            REPLAY_LENGTH.labels("undo").observe(cut)
            record = self._commit(
                lambda: self.store.commit_undo(
                    game_id, len(actions) - cut, state, record.version
                )
            )
            UNDOS.labels(state.config.variant.value).inc()
            logger.info(
                "Undid %d entries on game %s", len(actions) - cut, game_id
            )
            return record

    def clear(self, game_id: str, credential: Optional[str]) -> GameRecord:
        """Drop the whole log and reset the board, pots and mines."""
        self.authorizer.require(game_id, credential)
        with self._game_lock(game_id):
            record = self.store.load(game_id)
            state = GameEngine.initial_state(record.state.config, record.seed)
            record = self._commit(
                lambda: self.store.commit_reset(game_id, state, record.version)
            )
            logger.info("Cleared game %s", game_id)
            return record

    def _commit(self, commit):
        try:
            return commit()
        except VersionConflictError:
            VERSION_CONFLICTS.inc()
            logger.warning("Version conflict while committing", exc_info=True)
            raise

    # ------------------------------------------------------------------
    # Spectator replay
    # ------------------------------------------------------------------

    def replay_frame(
        self, game_id: str, step: int
    ) -> tuple[int, Optional[Action], GameState]:
        """
        State after the first ``step`` actions of the log.

        Returns ``(total_steps, action_at_step, state)``; step 0 is the empty
        board and has no action.
        """
        record = self.store.load(game_id)
        actions = self.store.list_actions(game_id)
        if not actions:
            raise NoHistoryToReplay("This game has no actions to replay")
        if not (0 <= step <= len(actions)):
            raise ValidationError(
                f"Step must be between 0 and {len(actions)}",
                context={"step": step},
            )
        state = GameEngine.reconstruct(
            record.state.config, record.seed, actions, upto=step
        )
        REPLAY_LENGTH.labels("spectator").observe(step)
        action = actions[step - 1] if step else None
        return len(actions), action, state

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def delete_game(self, game_id: str, credential: Optional[str]) -> None:
        """Delete a game with its log and forget its lock."""
        self.authorizer.require(game_id, credential)
        with self._game_lock(game_id):
            self.store.delete(game_id)
        with self._locks_guard:
            self._locks.pop(game_id, None)
        logger.info("Deleted game %s", game_id)

    def purge_expired(
        self,
        now: Optional[datetime] = None,
        retention_days: Optional[int] = None,
    ) -> int:
        """
        Delete games idle for longer than the retention window.

        ``retention_days`` overrides ``settings.retention_days``. Locks of
        games that no longer exist are dropped.
        """
        days = self.settings.retention_days if retention_days is None else retention_days
        cutoff = (now or utcnow()) - timedelta(days=days)
        purged = self.store.purge_older_than(cutoff)
        GAMES_PURGED.set(purged)
        with self._locks_guard:
            for game_id in list(self._locks):
                try:
                    self.store.load(game_id)
                except GameNotFound:
                    del self._locks[game_id]
        logger.info("Purged %d games idle since %s", purged, cutoff.isoformat())
        return purged
