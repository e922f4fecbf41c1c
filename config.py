"""
Configuration settings for the pagecards review tool.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///data/pagecards.db",
        description="SQLAlchemy connection string for the card store",
    )

    # ========================================
    # Content Source
    # ========================================
    default_source_url: str = Field(
        default="https://pollen-jewel-bec.notion.site/1-c-8ec04abc8dba4cebbad42125cde3dba9",
        description="Public page imported by `pagecards reset`",
    )
    child_host_pattern: str = Field(
        default=r"notion\.(site|so)$",
        description="Regex (case-insensitive) matched against child link hostnames",
    )
    default_topic_title: str = Field(
        default="Notion",
        description="Topic name used when a page has no usable title",
    )
    imported_topic_description: str = Field(
        default="Imported from Notion",
        description="Description attached to every imported topic",
    )

    # ========================================
    # Fetching
    # ========================================
    fetch_timeout_seconds: float = Field(
        default=20.0,
        description="Per-request timeout; a timeout counts as a failed route",
    )
    text_proxy_base: str = Field(
        default="https://r.jina.ai/http://",
        description="Text-extraction proxy prefix (URL appended without scheme)",
    )
    raw_proxy_base: str = Field(
        default="https://api.allorigins.win/raw?url=",
        description="Raw pass-through proxy prefix (percent-encoded URL appended)",
    )
    fetch_reject_blank: bool = Field(
        default=False,
        description="Treat a 2xx response with a blank body as a failed route",
    )
    user_agent: str = Field(
        default="pagecards/1.0",
        description="User-Agent header sent on every route",
    )

    # ========================================
    # Spaced Repetition
    # ========================================
    srs_max_level: int = Field(
        default=10,
        ge=0,
        le=10,
        description="Mastery level cap (interval = 2^level days, at most 10)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
