"""
Newsroom Editorial Workflow - Configuration Module
==================================================
All configuration is loaded from environment variables.
No secrets are hardcoded; the JWT key and database password must be provided.
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    # App
    app_name: str = "Newsroom Editorial Workflow"
    app_env: str = "development"
    app_debug: bool = False
    app_secret_key: str = Field(default="change-me-change-me-change-me-change-me", min_length=32)
    app_port: int = 8000

    @property
    def secret_key(self) -> str:
        return self.app_secret_key

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "newsroom_db"
    postgres_user: str = "newsroom"
    postgres_password: str = Field(default="newsroom-dev", min_length=8)
    database_isolation_level: str = "SERIALIZABLE"
    database_pool_size: int = 20
    database_max_overflow: int = 10

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def database_url_sync(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Workflow side effects
    side_effect_timeout_seconds: float = 5.0
    outbox_drain_batch_size: int = 100

    # Notifications
    notification_webhook_url: str = ""
    notification_webhook_timeout_seconds: float = 10.0

    # Review queue
    review_queue_default_limit: int = 20
    review_queue_max_limit: int = 100

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        env_prefix = "NEWSROOM_"


def _load_dotenv_pairs(dotenv_path: str = ".env") -> dict[str, str]:
    path = Path(dotenv_path)
    if not path.exists():
        return {}

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            values[key] = value
    return values


def _bootstrap_prefixed_env() -> None:
    """Accept the database variables under their unprefixed docker-compose names."""
    legacy_pairs = _load_dotenv_pairs(".env")
    prefix = "NEWSROOM_"

    for field_name in Settings.model_fields.keys():
        if not field_name.startswith("postgres_"):
            continue
        legacy_key = field_name.upper()
        prefixed_key = f"{prefix}{legacy_key}"

        if os.getenv(prefixed_key):
            continue

        legacy_value = os.getenv(legacy_key)
        if legacy_value is not None:
            os.environ[prefixed_key] = legacy_value
            continue

        if legacy_key in legacy_pairs:
            os.environ[prefixed_key] = legacy_pairs[legacy_key]


_bootstrap_prefixed_env()


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
