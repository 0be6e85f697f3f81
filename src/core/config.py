"""Application configuration using pydantic-settings."""
from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    # Redis - backs the rendered page artifact store
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")
    redis_pool_size: int = Field(default=20, validation_alias="REDIS_POOL_SIZE")

    # Visitor cookies are marked Secure unless explicitly disabled for local http
    secure_cookies: bool = Field(default=True, validation_alias="SECURE_COOKIES")

    # Onward recycle bin: how long a deleted note can still be restored
    onward_restore_window_seconds: int = Field(
        default=7 * 24 * 60 * 60,
        validation_alias="ONWARD_RESTORE_WINDOW_SECONDS",
        gt=0,
    )

    # Article catalog
    articles_dir: Path = Field(default=Path("articles"), validation_alias="ARTICLES_DIR")
    article_list_freshness_seconds: int = Field(
        default=300,
        validation_alias="ARTICLE_LIST_FRESHNESS_SECONDS",
        ge=0,
    )

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def onward_restore_window(self) -> timedelta:
        """Restore window for soft-deleted onward notes."""
        return timedelta(seconds=self.onward_restore_window_seconds)

    @property
    def article_list_freshness(self) -> timedelta:
        """Maximum age of a cached article list page."""
        return timedelta(seconds=self.article_list_freshness_seconds)

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite (local development and tests)."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
