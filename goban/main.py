"""
Shared Goban Service - FastAPI Application
Hosts the game, action, undo and replay endpoints for every variant.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from . import __version__
from .auth import HmacAuthorizer
from .config import ServiceSettings
from .core.logging_config import configure_third_party_loggers, setup_logging
from .db import InMemoryGameStore, SqliteGameStore
from .routes import games_router, replay_router
from .service import GameService

logger = logging.getLogger(__name__)


def build_service(settings: ServiceSettings) -> GameService:
    """Wire the store and authorizer selected by ``settings``."""
    if settings.db_path:
        store = SqliteGameStore(settings.db_path)
    else:
        logger.warning("GOBAN_DB_PATH not set; games are kept in memory only")
        store = InMemoryGameStore()
    return GameService(store, HmacAuthorizer(settings.secret_key), settings)


def create_app(
    settings: Optional[ServiceSettings] = None,
    service: Optional[GameService] = None,
) -> FastAPI:
    settings = settings or ServiceSettings.from_env()
    setup_logging("goban", level=settings.log_level, format_style=settings.log_format)
    configure_third_party_loggers()

    app = FastAPI(
        title="Shared Goban Service",
        description="Shared-board Go variants with replayable action logs",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.service = service or build_service(settings)

    app.include_router(games_router)
    app.include_router(replay_router)

    @app.get("/")
    async def root():
        """Service banner"""
        return {
            "service": "Shared Goban Service",
            "status": "running",
            "version": __version__,
        }

    @app.get("/health")
    async def health_check():
        """Health check for container orchestration"""
        return {"status": "healthy"}

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics in the text exposition format."""
        data = generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # `python -m goban.main` binds to 0.0.0.0 on GOBAN_SERVICE_PORT.
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
