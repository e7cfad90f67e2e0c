"""
Configuration settings for bqwrite-test.

Uses Pydantic Settings to load environment variables for logging, provisioning
and streaming defaults. CLI flags override these where both exist.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Provisioning
    settle_seconds: float = Field(600.0, ge=0, alias="BQWRITE_SETTLE_SECONDS")

    # Streaming
    progress_interval: int = Field(2000, ge=1, alias="BQWRITE_PROGRESS_INTERVAL")
    max_batch_delay: float = Field(5.0, gt=0, alias="BQWRITE_MAX_BATCH_DELAY")

    # Reporting
    results_dir: Optional[str] = Field(None, alias="BQWRITE_RESULTS_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
