"""
Dependency wiring for the FastAPI app.

The store is owned by the application instance (``app.state.store``) rather
than a module global, so each app built by ``create_app`` gets its own.
"""

from __future__ import annotations

import logging

from fastapi import Request

from leaderboard.config import Settings
from leaderboard.db import InMemoryStore, SqlStore, Store

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> Store:
    """Pick a store backend from settings."""
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory store")
        return InMemoryStore()
    logger.info("Using SQL store")
    return SqlStore(settings.database_url)


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
