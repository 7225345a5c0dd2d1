"""
FastAPI application entry point for the leaderboard backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from leaderboard.client_assets import setup_client_assets
from leaderboard.config import Settings, get_settings
from leaderboard.db import Store
from leaderboard.dependencies import build_store
from leaderboard.errors import install_error_handlers
from leaderboard.request_log import RequestLogMiddleware
from leaderboard.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    logger.info("Closing store")
    app.state.store.close()


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[Store] = None,
    *,
    serve_client: bool = True,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Leaderboard Backend", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store if store is not None else build_store(settings)

    install_error_handlers(app)
    app.add_middleware(RequestLogMiddleware, path_prefix=settings.api_prefix)
    app.include_router(router, prefix=settings.api_prefix)
    if serve_client:
        setup_client_assets(app, settings)
    return app
