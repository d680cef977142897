"""SQLite-backed game store.

Each commit runs in one ``BEGIN IMMEDIATE`` transaction: the game row is
updated with ``WHERE version = ?`` first, so a writer that lost the race
changes nothing. Mine layouts are kept in their own column because the
serialized state deliberately omits them.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from ..errors import GameNotFound, StorageError, VersionConflictError
from ..models import Action, GameState, Position
from .store import GameRecord, GameStore, utcnow

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_SCHEMA = """
CREATE TABLE IF NOT EXISTS games (
    id TEXT PRIMARY KEY,
    state TEXT NOT NULL,
    mines TEXT NOT NULL,
    seed INTEGER NOT NULL,
    version INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS actions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    game_id TEXT NOT NULL REFERENCES games(id) ON DELETE CASCADE,
    move_number INTEGER NOT NULL,
    payload TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_actions_game ON actions(game_id, id);
CREATE INDEX IF NOT EXISTS idx_games_updated ON games(updated_at);
"""


class SqliteGameStore(GameStore):
    """Game store persisted to a SQLite file."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        try:
            with self._connect() as conn:
                conn.executescript(_SCHEMA)
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        except sqlite3.Error as e:
            raise StorageError(
                f"Cannot initialise game database: {e}", db_path=self.db_path
            ) from e
        logger.info("Game store ready at %s", self.db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._connect() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                conn.execute("ROLLBACK")
                raise StorageError(str(e), db_path=self.db_path) from e
            except Exception:
                conn.execute("ROLLBACK")
                raise

    # ------------------------------------------------------------------
    # Row conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> GameRecord:
        mines = [Position.from_key(key) for key in json.loads(row["mines"])]
        state = GameState.model_validate_json(row["state"])
        return GameRecord(
            id=row["id"],
            state=state.model_copy(update={"mines": mines}),
            seed=row["seed"],
            version=row["version"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _state_columns(state: GameState) -> tuple[str, str]:
        return (
            state.model_dump_json(by_alias=True),
            json.dumps([mine.to_key() for mine in state.mines]),
        )

    def _fetch(self, conn: sqlite3.Connection, game_id: str) -> GameRecord:
        row = conn.execute(
            "SELECT * FROM games WHERE id = ?", (game_id,)
        ).fetchone()
        if row is None:
            raise GameNotFound(game_id)
        return self._row_to_record(row)

    def _update_versioned(
        self,
        conn: sqlite3.Connection,
        game_id: str,
        state: GameState,
        expected_version: int,
    ) -> None:
        state_json, mines_json = self._state_columns(state)
        cursor = conn.execute(
            """
            UPDATE games
               SET state = ?, mines = ?, version = version + 1, updated_at = ?
             WHERE id = ? AND version = ?
            """,
            (state_json, mines_json, utcnow().isoformat(), game_id, expected_version),
        )
        if cursor.rowcount == 0:
            current = self._fetch(conn, game_id)
            raise VersionConflictError(
                f"Game {game_id} changed concurrently",
                expected_version=expected_version,
                context={"actual_version": current.version},
            )

    # ------------------------------------------------------------------
    # GameStore
    # ------------------------------------------------------------------

    def create(self, record: GameRecord) -> GameRecord:
        now = utcnow()
        created = record.created_at or now
        updated = record.updated_at or now
        state_json, mines_json = self._state_columns(record.state)
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO games (id, state, mines, seed, version, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    state_json,
                    mines_json,
                    record.seed,
                    record.version,
                    created.isoformat(),
                    updated.isoformat(),
                ),
            )
            return self._fetch(conn, record.id)

    def load(self, game_id: str) -> GameRecord:
        with self._connect() as conn:
            return self._fetch(conn, game_id)

    def list_actions(self, game_id: str) -> list[Action]:
        with self._connect() as conn:
            self._fetch(conn, game_id)
            rows = conn.execute(
                "SELECT id, payload FROM actions WHERE game_id = ? ORDER BY id",
                (game_id,),
            ).fetchall()
        return [
            Action.model_validate_json(row["payload"]).model_copy(
                update={"id": row["id"]}
            )
            for row in rows
        ]

    def commit_action(self, game_id, action, state, expected_version):
        stored = action.model_copy(
            update={"created_at": action.created_at or utcnow()}
        )
        with self._transaction() as conn:
            self._update_versioned(conn, game_id, state, expected_version)
            cursor = conn.execute(
                """
                INSERT INTO actions (game_id, move_number, payload, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    game_id,
                    stored.move_number,
                    stored.model_dump_json(by_alias=True, exclude={"id"}),
                    stored.created_at.isoformat(),
                ),
            )
            stored = stored.model_copy(update={"id": cursor.lastrowid})
            return self._fetch(conn, game_id), stored

    def commit_undo(self, game_id, remove_count, state, expected_version):
        with self._transaction() as conn:
            self._update_versioned(conn, game_id, state, expected_version)
            if remove_count:
                conn.execute(
                    """
                    DELETE FROM actions WHERE id IN (
                        SELECT id FROM actions WHERE game_id = ?
                        ORDER BY id DESC LIMIT ?
                    )
                    """,
                    (game_id, remove_count),
                )
            return self._fetch(conn, game_id)

    def commit_reset(self, game_id, state, expected_version):
        with self._transaction() as conn:
            self._update_versioned(conn, game_id, state, expected_version)
            conn.execute("DELETE FROM actions WHERE game_id = ?", (game_id,))
            return self._fetch(conn, game_id)

    def delete(self, game_id: str) -> None:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM games WHERE id = ?", (game_id,))
            if cursor.rowcount == 0:
                raise GameNotFound(game_id)

    def purge_older_than(self, cutoff: datetime) -> int:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM games WHERE updated_at < ?", (cutoff.isoformat(),)
            )
            purged = cursor.rowcount
        if purged:
            logger.info("Purged %d games idle since %s", purged, cutoff.isoformat())
        return purged
