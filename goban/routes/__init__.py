"""HTTP routers."""

from .games import router as games_router
from .replay import router as replay_router

__all__ = ["games_router", "replay_router"]
