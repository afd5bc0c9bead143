from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Sequence

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.routers.commute import router as commute_router
from app.services.commute_cache_purge_scheduler import (
    shutdown_commute_cache_purge_scheduler,
    start_commute_cache_purge_scheduler,
)
from app.services.commute_service import CommuteService
from core.settings import get_settings
from db.session import AsyncSessionLocal, engine


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Load destinations and transit stops before serving requests
    app.state.commute_service = await CommuteService.create(
        settings, session_factory=AsyncSessionLocal
    )
    start_commute_cache_purge_scheduler(app.state.commute_service, settings)
    yield
    shutdown_commute_cache_purge_scheduler()
    # Ensure DB connections are cleanly closed on shutdown
    await engine.dispose()


def create_app(allowed_origins: Sequence[str] | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        allowed_origins: Optional list of CORS origins to allow. If not provided,
            permissive defaults will be used for local development.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

    cors_origins = list(
        allowed_origins
        or [
            "http://localhost",
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(commute_router, prefix="/commute", tags=["commute"])

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
