"""Spectator replay endpoint.

Frames are rebuilt from the action log with the same reducer used for
live play, one request per step.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..errors import GobanError
from ..models import ReplayFrame
from ..service import GameService
from .games import _unexpected, get_service, to_http_error

router = APIRouter(prefix="/games", tags=["replay"])


@router.get("/{game_id}/replay", response_model=ReplayFrame)
def get_replay_frame(
    game_id: str,
    step: int = Query(..., ge=0, description="Number of actions applied"),
    service: GameService = Depends(get_service),
):
    try:
        total, action, state = service.replay_frame(game_id, step)
        return ReplayFrame(
            game_id=game_id,
            step=step,
            total_steps=total,
            action=action,
            state=state,
        )
    except GobanError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _unexpected("get_replay_frame", e)
