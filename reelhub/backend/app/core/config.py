"""
Reelhub Core Settings.

Engagement & aggregation backend for the Reelhub social-video platform:
likes, views and subscriptions recorded under database-level uniqueness,
and enriched, paginated, viewer-relative listings built on top of them.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8",
        env_prefix="REELHUB_", case_sensitive=False,
    )

    # ── App ──────────────────────────────────────────────────────────────
    app_name: str = "Reelhub"
    app_version: str = "1.2.0"
    debug: bool = False
    log_level: str = "INFO"
    secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = ["*"]
    metrics_enabled: bool = True

    # ── PostgreSQL ───────────────────────────────────────────────────────
    db_host: str = "postgres"
    db_port: int = 5432
    db_user: str = "reelhub"
    db_password: str = "reelhub_secret"
    db_name: str = "reelhub"
    db_echo: bool = False
    db_pool_size: int = 10
    # Full URL override, e.g. sqlite+aiosqlite:// for local runs and tests
    database_url_override: Optional[str] = None

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Pagination ───────────────────────────────────────────────────────
    default_page: int = 1
    default_page_size: int = 10
    max_page_size: int = 50

    # ── Viewer identity / view sessions ──────────────────────────────────
    access_token_cookie: str = "accessToken"
    session_cookie: str = "sessionId"
    # Only behind a proxy that overwrites X-Forwarded-For
    trust_forwarded_for: bool = False

    # ── Listings ─────────────────────────────────────────────────────────
    video_sort_keys: List[str] = ["created_at", "views", "title", "duration_seconds"]

    # ── Search ───────────────────────────────────────────────────────────
    search_video_limit: int = 20
    search_user_limit: int = 10
    search_tweet_limit: int = 10

    # ── Maintenance ──────────────────────────────────────────────────────
    reconcile_views_on_startup: bool = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
