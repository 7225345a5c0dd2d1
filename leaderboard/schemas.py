"""
Pydantic schemas for the leaderboard HTTP API.

Field names follow the JSON wire format used by the web client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, StrictInt, StrictStr


class ScoreSubmission(BaseModel):
    walletAddress: StrictStr
    score: StrictInt


class ScoreResponse(BaseModel):
    id: int
    walletAddress: str
    score: int
    createdAt: str


class NoteResponse(BaseModel):
    id: int
    date: str
    content: str
    isHighlighted: int = 0


class ValidationIssue(BaseModel):
    code: str
    path: list[Any]
    message: str


class ErrorResponse(BaseModel):
    message: str


class ValidationErrorResponse(BaseModel):
    message: str
    errors: list[ValidationIssue]
