"""Tests for goban/service.py against every store implementation."""

from datetime import timedelta

import pytest

from goban.db.store import GameRecord, utcnow
from goban.errors import (
    AuthenticationInvalid,
    AuthenticationRequired,
    CellOccupied,
    GameNotFound,
    NoHistoryToReplay,
    NoHistoryToUndo,
    ValidationError,
    VersionConflictError,
)
from goban.game_engine import GameEngine
from goban.models import CreateGameRequest, Position, VariantType
from tests.helpers import eat, place, remove


def P(x, y):
    return Position(x=x, y=y)


def new_game(service, variant=VariantType.CLASSIC, **kwargs):
    kwargs.setdefault("board_size", 9)
    record, credential = service.create_game(
        CreateGameRequest(variant=variant, **kwargs)
    )
    return record.id, credential


class TestCreate:
    def test_create_classic(self, service):
        record, credential = service.create_game(
            CreateGameRequest(variant=VariantType.CLASSIC, board_size=9)
        )
        assert record.version == 0
        assert record.state.pots[0].pot_count == 82
        assert service.authorizer.is_authorized(record.id, credential)
        assert service.get_game(record.id).state == record.state

    def test_create_wilde_rectangle(self, service):
        game_id, _ = new_game(
            service, VariantType.WILDE, board_size=None, width=10, height=4, player_count=4
        )
        state = service.get_game(game_id).state
        assert (state.board.width, state.board.height) == (10, 4)
        assert len(state.pots) == 4

    def test_unknown_game(self, service):
        with pytest.raises(GameNotFound):
            service.get_game("missing")


class TestActions:
    def test_apply_persists_state_and_log(self, service):
        game_id, key = new_game(service)
        record, action = service.apply_action(game_id, place(3, 3, 0), key)
        assert record.version == 1
        assert action.id is not None
        assert action.move_number == 1
        assert action.created_at is not None

        reloaded = service.get_game(game_id)
        assert reloaded.state.board.at(P(3, 3)) == 0
        history = service.get_history(game_id)
        assert [a.move_number for a in history] == [1]
        assert history[0].to == P(3, 3)

    def test_rejected_action_writes_nothing(self, service):
        game_id, key = new_game(service)
        service.apply_action(game_id, place(3, 3, 0), key)
        with pytest.raises(CellOccupied):
            service.apply_action(game_id, place(3, 3, 1), key)
        assert service.get_game(game_id).version == 1
        assert len(service.get_history(game_id)) == 1

    def test_missing_credential(self, service):
        game_id, _ = new_game(service)
        with pytest.raises(AuthenticationRequired):
            service.apply_action(game_id, place(0, 0, 0), None)

    def test_wrong_credential(self, service):
        game_id, _ = new_game(service)
        other_id, other_key = new_game(service)
        with pytest.raises(AuthenticationInvalid):
            service.apply_action(game_id, place(0, 0, 0), other_key)

    def test_cached_state_equals_replay(self, service):
        game_id, key = new_game(service)
        for action in [place(1, 0, 0), place(0, 1, 0), place(1, 2, 0),
                       place(1, 1, 1), place(2, 1, 0), remove(1, 0)]:
            service.apply_action(game_id, action, key)
        record = service.get_game(game_id)
        rebuilt = GameEngine.reconstruct(
            record.state.config, record.seed, service.get_history(game_id)
        )
        assert rebuilt == record.state


class TestUndo:
    def test_undo_restores_previous_state(self, service):
        game_id, key = new_game(service)
        service.apply_action(game_id, place(0, 0, 0), key)
        before = service.get_game(game_id).state
        service.apply_action(game_id, place(1, 1, 1), key)

        record = service.undo(game_id, key)
        assert record.state == before
        assert len(service.get_history(game_id)) == 1

    def test_undo_strips_maintenance_entries(self, service):
        game_id, key = new_game(
            service, VariantType.WILDE, board_size=None, width=5, height=5, pacman_mode=True
        )
        service.apply_action(game_id, place(2, 2), key)
        service.apply_action(game_id, place(3, 3, 1), key)
        service.apply_action(game_id, eat(3, 3), key)

        record = service.undo(game_id, key)
        history = service.get_history(game_id)
        assert len(history) == 1
        assert record.state.current_turn == 1
        assert record.state.board.at(P(3, 3)) is None
        assert record.state.pots[1].pot_count == 25

    def test_undo_empty_history(self, service):
        game_id, key = new_game(service)
        with pytest.raises(NoHistoryToUndo):
            service.undo(game_id, key)

    def test_undo_requires_credential(self, service):
        game_id, key = new_game(service)
        service.apply_action(game_id, place(0, 0, 0), key)
        with pytest.raises(AuthenticationRequired):
            service.undo(game_id, "")


class TestClear:
    def test_clear_resets_board_and_log(self, service):
        game_id, key = new_game(service)
        service.apply_action(game_id, place(0, 0, 0), key)
        service.apply_action(game_id, place(1, 1, 1), key)
        record = service.clear(game_id, key)
        assert record.state.move_number == 0
        assert record.state.pots[0].pot_count == 82
        assert service.get_history(game_id) == []

    def test_clear_restores_mines(self, store, settings):
        from goban.auth import HmacAuthorizer
        from goban.config import ServiceSettings
        from goban.service import GameService

        mined = GameService(
            store,
            HmacAuthorizer(settings.secret_key),
            ServiceSettings(secret_key=settings.secret_key, drone_strike_chance=0.0),
        )
        game_id, key = new_game(mined, VariantType.BANG)
        original = mined.get_game(game_id).state.mines
        assert len(original) == 8
        mine = original[0]
        mined.apply_action(game_id, place(mine.x, mine.y), key)
        assert mine not in mined.get_game(game_id).state.mines
        record = mined.clear(game_id, key)
        assert record.state.mines == original


class TestReplayFrames:
    def test_frames(self, service):
        game_id, key = new_game(service)
        service.apply_action(game_id, place(0, 0, 0), key)
        service.apply_action(game_id, place(1, 1, 1), key)

        total, action, state = service.replay_frame(game_id, 0)
        assert total == 2
        assert action is None
        assert state.move_number == 0

        total, action, state = service.replay_frame(game_id, 1)
        assert action.move_number == 1
        assert state.board.at(P(0, 0)) == 0
        assert state.board.at(P(1, 1)) is None

        _, _, state = service.replay_frame(game_id, 2)
        assert state == service.get_game(game_id).state

    def test_no_history(self, service):
        game_id, _ = new_game(service)
        with pytest.raises(NoHistoryToReplay):
            service.replay_frame(game_id, 0)

    def test_step_out_of_range(self, service):
        game_id, key = new_game(service)
        service.apply_action(game_id, place(0, 0, 0), key)
        with pytest.raises(ValidationError):
            service.replay_frame(game_id, 5)


class TestStore:
    def test_stale_version_rejected(self, service, store):
        game_id, key = new_game(service)
        record = store.load(game_id)
        state, action = GameEngine.apply_action(record.state, place(0, 0, 0))
        store.commit_action(game_id, action, state, record.version)
        with pytest.raises(VersionConflictError) as exc_info:
            store.commit_action(game_id, action, state, record.version)
        assert exc_info.value.http_status == 409
        assert len(store.list_actions(game_id)) == 1

    def test_stale_version_on_undo_and_reset(self, service, store):
        game_id, key = new_game(service)
        service.apply_action(game_id, place(0, 0, 0), key)
        record = store.load(game_id)
        with pytest.raises(VersionConflictError):
            store.commit_undo(game_id, 1, record.state, record.version - 1)
        with pytest.raises(VersionConflictError):
            store.commit_reset(game_id, record.state, record.version + 5)

    def test_mines_survive_reload(self, store):
        from goban.rules.variants import build_config

        config = build_config(VariantType.BANG, board_size=9)
        state = GameEngine.initial_state(config, seed=99)
        store.create(GameRecord(id="bang-1", state=state, seed=99))
        assert store.load("bang-1").state.mines == state.mines

    def test_delete(self, service, store):
        game_id, _ = new_game(service)
        store.delete(game_id)
        with pytest.raises(GameNotFound):
            store.load(game_id)
        with pytest.raises(GameNotFound):
            store.delete(game_id)

    def test_purge_expired(self, service, store):
        old_id, _ = new_game(service)
        fresh_id, _ = new_game(service)
        # Age one game past the retention window.
        record = store.load(old_id)
        store.delete(old_id)
        aged = utcnow() - timedelta(days=400)
        store.create(GameRecord(
            id=old_id, state=record.state, seed=record.seed,
            created_at=aged, updated_at=aged,
        ))

        assert service.purge_expired() == 1
        with pytest.raises(GameNotFound):
            store.load(old_id)
        assert store.load(fresh_id).id == fresh_id


class TestLockLifecycle:
    def test_delete_game_releases_lock(self, service):
        games = [new_game(service) for _ in range(20)]
        for game_id, key in games:
            service.apply_action(game_id, place(0, 0, 0), key)
        assert len(service._locks) == 20

        for game_id, key in games:
            service.delete_game(game_id, key)
        assert service._locks == {}
        with pytest.raises(GameNotFound):
            service.get_game(games[0][0])

    def test_delete_game_requires_credential(self, service):
        game_id, _ = new_game(service)
        with pytest.raises(AuthenticationRequired):
            service.delete_game(game_id, None)
        assert service.get_game(game_id).id == game_id

    def test_purge_releases_locks_of_purged_games(self, service):
        game_id, key = new_game(service)
        service.apply_action(game_id, place(0, 0, 0), key)
        assert game_id in service._locks

        assert service.purge_expired(now=utcnow() + timedelta(days=400)) == 1
        assert game_id not in service._locks

    def test_purge_retention_override(self, service):
        new_game(service)
        later = utcnow() + timedelta(days=10)
        assert service.purge_expired(now=later, retention_days=30) == 0
        assert service.purge_expired(now=later, retention_days=5) == 1
