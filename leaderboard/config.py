"""
Configuration and settings for the leaderboard backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # "development" serves the live client template; anything else serves
    # the prebuilt bundle from static_dir.
    app_env: str = Field(default="development")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    log_level: str = Field(default="INFO")

    # Store selection. Without a database URL the in-memory store is used.
    database_url: Optional[str] = Field(default=None)
    use_in_memory_backends: bool = Field(default=False)

    # Client assets
    client_dir: str = Field(default="client")
    static_dir: str = Field(default="dist/public")

    default_score_limit: int = Field(default=10, ge=1)

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
