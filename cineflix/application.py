"""
Application factory for the CineFlix API.

All process-wide resources (settings, engine, session factory, TMDB client,
access service, rate limiter) are built once here and hung off
``app.state``; request handlers reach them through ``cineflix.api.deps``.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Callable, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cineflix.api.errors import register_error_handlers
from cineflix.api.middleware import register_request_logging
from cineflix.api.routes_auth import router as auth_router
from cineflix.api.routes_health import router as health_router
from cineflix.api.routes_movies import router as movies_router
from cineflix.core.config import Settings
from cineflix.core.db import create_engine, create_sessionmaker, utcnow
from cineflix.core.init_db import ensure_schema, wait_for_database
from cineflix.core.logging_setup import configure_logging
from cineflix.core.rate_limit import SimpleRateLimiter
from cineflix.services.access_service import AccessService
from cineflix.services.tmdb import TMDBClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    await wait_for_database(app.state.engine, max_retries=settings.DB_CONNECT_RETRIES)
    await ensure_schema(app.state.engine)
    logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)

    yield

    await app.state.tmdb.close()
    await app.state.engine.dispose()
    logger.info("%s stopped", settings.APP_NAME)


def create_app(
    settings: Settings,
    clock: Callable[[], datetime] = utcnow,
    tmdb_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    engine = create_engine(settings.DATABASE_URL)
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = create_sessionmaker(engine)
    app.state.rate_limiter = SimpleRateLimiter()
    app.state.access_service = AccessService(
        secret=settings.JWT_SECRET,
        alg=settings.JWT_ALG,
        session_ttl=timedelta(hours=settings.SESSION_TTL_HOURS),
        clock=clock,
    )
    app.state.tmdb = TMDBClient(
        api_key=settings.TMDB_API_KEY,
        base_url=settings.TMDB_BASE_URL,
        timeout=settings.TMDB_TIMEOUT_SEC,
        max_retries=settings.TMDB_MAX_RETRIES,
        backoff_sec=settings.TMDB_BACKOFF_SEC,
        transport=tmdb_transport,
    )

    origins = settings.cors_origins
    # If CORS_ALLOW_ORIGINS is empty or "*", allow any origin.
    if not origins or origins == ["*"]:
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=".*",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_request_logging(app)
    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(movies_router)

    return app
