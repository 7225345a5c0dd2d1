"""
Leaderboard backend package.

This package provides a FastAPI application serving leaderboard scores and
notes from a pluggable store, plus the client asset server used during
development and in production.
"""
