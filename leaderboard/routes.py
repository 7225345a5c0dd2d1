"""
HTTP routes for the leaderboard API.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from leaderboard.config import Settings
from leaderboard.db import Store
from leaderboard.dependencies import get_app_settings, get_store
from leaderboard.schemas import (
    ErrorResponse,
    NoteResponse,
    ScoreResponse,
    ScoreSubmission,
    ValidationErrorResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def coerce_limit(raw: Optional[str], default: int) -> Optional[int]:
    """
    Turn the ``limit`` query value into a row count.

    Missing, non-numeric, zero and negative values fall back to ``default``.
    Positive fractions are truncated toward zero, so ``0.5`` selects nothing.
    Infinity returns None, meaning no limit.
    """
    if raw is None:
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        return default
    if math.isnan(value) or value <= 0:
        return default
    if math.isinf(value):
        return None
    return int(value)


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + (
        f"{now.microsecond // 1000:03d}Z"
    )


@router.get(
    "/notes",
    response_model=list[NoteResponse],
    responses={500: {"model": ErrorResponse}},
)
def list_notes(store: Store = Depends(get_store)):
    try:
        notes = store.get_all_notes()
    except Exception:
        logger.exception("Failed to fetch notes")
        raise HTTPException(status_code=500, detail="Failed to fetch notes")
    return [NoteResponse(**note.as_dict()) for note in notes]


@router.get(
    "/scores",
    response_model=list[ScoreResponse],
    responses={500: {"model": ErrorResponse}},
)
def top_scores(
    limit: Optional[str] = Query(None, description="Number of scores to return"),
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    count = coerce_limit(limit, settings.default_score_limit)
    try:
        scores = store.get_top_scores(count)
    except Exception:
        logger.exception("Failed to fetch scores")
        raise HTTPException(status_code=500, detail="Failed to fetch scores")
    return [ScoreResponse(**entry.as_dict()) for entry in scores]


@router.post(
    "/scores",
    response_model=ScoreResponse,
    status_code=201,
    responses={
        400: {"model": ValidationErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def submit_score(payload: ScoreSubmission, store: Store = Depends(get_store)):
    """
    Record a score. ``createdAt`` is always stamped by the server.
    """
    try:
        entry = store.add_score(
            wallet_address=payload.walletAddress,
            score=payload.score,
            created_at=utc_timestamp(),
        )
    except Exception:
        logger.exception("Failed to add score")
        raise HTTPException(status_code=500, detail="Failed to add score")
    return ScoreResponse(**entry.as_dict())


@router.api_route(
    "/{full_path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
def unknown_api_path(full_path: str):
    # Must stay the last route on this router.
    raise HTTPException(status_code=404, detail="Not Found")
