"""Application settings loaded from environment variables."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogProvider(str, Enum):
    OPENLIBRARY = "openlibrary"
    MOCK = "mock"


class Settings(BaseSettings):
    """
    Runtime configuration for shelfmatch.

    Every field can be overridden with a SHELFMATCH_ prefixed environment
    variable, e.g. SHELFMATCH_AUTHOR_CONCURRENCY=5.
    """

    # ── Catalog ─────────────────────────────────────
    catalog_provider: CatalogProvider = CatalogProvider.OPENLIBRARY
    catalog_base_url: str = "https://openlibrary.org"
    catalog_timeout_seconds: float = Field(default=10.0, gt=0)
    catalog_retries: int = Field(default=2, ge=0)
    catalog_max_connections: int = Field(default=100, ge=1)
    catalog_user_agent: str = "shelfmatch/1.0"

    # ── Fan-out limits ──────────────────────────────
    author_concurrency: int = Field(default=10, ge=1)
    subject_concurrency: int = Field(default=20, ge=1)
    book_concurrency: int = Field(default=10, ge=1)

    # ── Sampling bounds ─────────────────────────────
    works_per_author: int = Field(default=100, ge=1)
    subject_works_limit: int = Field(default=50, ge=1)
    editions_limit: int = Field(default=50, ge=1)
    recency_window_years: int = Field(default=2, ge=0)
    max_recommendations: int = Field(default=3, ge=1)
    max_favorite_authors: int = Field(default=5, ge=1)

    # ── Request ─────────────────────────────────────
    request_deadline_seconds: float = Field(default=30.0, gt=0)

    # ── Profile store ───────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./users.db"
    seed_sample_users: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SHELFMATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
