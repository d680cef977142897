"""Game lifecycle and action endpoints.

Reading a game is public. Every mutation requires the credential returned
at creation in the ``X-Game-Key`` header.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from ..errors import GobanError
from ..models import (
    ActionRequest,
    ActionResponse,
    CreateGameRequest,
    CreateGameResponse,
    GameView,
    HistoryResponse,
)
from ..service import GameService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["games"])

CREDENTIAL_HEADER = "X-Game-Key"


def get_service(request: Request) -> GameService:
    return request.app.state.service


def to_http_error(err: GobanError) -> HTTPException:
    return HTTPException(status_code=err.http_status, detail=err.to_dict())


def _unexpected(operation: str, err: Exception) -> HTTPException:
    logger.error("Error in %s: %s", operation, err, exc_info=True)
    return HTTPException(status_code=500, detail=str(err))


@router.post("", response_model=CreateGameResponse, status_code=201)
def create_game(
    request: CreateGameRequest,
    service: GameService = Depends(get_service),
):
    """Create a game; the response carries its mutation credential."""
    try:
        record, credential = service.create_game(request)
        return CreateGameResponse(game=record.to_view(), credential=credential)
    except GobanError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _unexpected("create_game", e)


@router.get("/{game_id}", response_model=GameView)
def get_game(game_id: str, service: GameService = Depends(get_service)):
    try:
        return service.get_game(game_id).to_view()
    except GobanError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _unexpected("get_game", e)


@router.delete("/{game_id}", status_code=204, response_class=Response)
def delete_game(
    game_id: str,
    credential: Optional[str] = Header(default=None, alias=CREDENTIAL_HEADER),
    service: GameService = Depends(get_service),
):
    try:
        service.delete_game(game_id, credential)
        return Response(status_code=204)
    except GobanError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _unexpected("delete_game", e)


@router.post("/{game_id}/action", response_model=ActionResponse)
def submit_action(
    game_id: str,
    request: ActionRequest,
    credential: Optional[str] = Header(default=None, alias=CREDENTIAL_HEADER),
    service: GameService = Depends(get_service),
):
    """Validate and apply one place/move/remove (or eat) action."""
    try:
        record, action = service.apply_action(
            game_id, request.to_action(), credential
        )
        return ActionResponse(game=record.to_view(), action=action)
    except GobanError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _unexpected("submit_action", e)


@router.post("/{game_id}/undo", response_model=GameView)
def undo(
    game_id: str,
    credential: Optional[str] = Header(default=None, alias=CREDENTIAL_HEADER),
    service: GameService = Depends(get_service),
):
    try:
        return service.undo(game_id, credential).to_view()
    except GobanError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _unexpected("undo", e)


@router.post("/{game_id}/clear", response_model=GameView)
def clear(
    game_id: str,
    credential: Optional[str] = Header(default=None, alias=CREDENTIAL_HEADER),
    service: GameService = Depends(get_service),
):
    try:
        return service.clear(game_id, credential).to_view()
    except GobanError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _unexpected("clear", e)


@router.get("/{game_id}/history", response_model=HistoryResponse)
def get_history(game_id: str, service: GameService = Depends(get_service)):
    try:
        return HistoryResponse(game_id=game_id, actions=service.get_history(game_id))
    except GobanError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _unexpected("get_history", e)
