"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tipleague.api import admin, health, scores, tokens
from tipleague.config import Settings, get_settings
from tipleague.database import Store
from tipleague.log import configure_logging

logger = structlog.get_logger()


def create_app(settings: Settings | None = None, store: Store | None = None) -> FastAPI:
    """Build the app; the store lives for the app lifespan unless one is injected."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = store is None
        app.state.store = store or Store.from_settings(settings)
        logger.info("Starting TipLeague API", environment=settings.environment)

        yield

        logger.info("Shutting down TipLeague API")
        if owned:
            await app.state.store.dispose()

    app = FastAPI(
        title="TipLeague API",
        description="Prediction leagues: leaderboards and one-click re-bets",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(tokens.router, tags=["Bets"])
    app.include_router(scores.router, prefix=settings.api_v1_prefix, tags=["Scores"])
    app.include_router(admin.router, prefix=settings.api_v1_prefix, tags=["Admin"])

    return app


_settings = get_settings()
configure_logging(_settings)
app = create_app(_settings)
