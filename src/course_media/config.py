"""Centralized application configuration via environment variables."""

from enum import StrEnum
from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

MS_PER_HOUR = 60 * 60 * 1000


class Environment(StrEnum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Signing secrets use SecretStr to prevent accidental logging.
    Database URL is assembled from individual components to match
    the official PostgreSQL Docker image environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App ---
    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "DEBUG"
    # --- CORS ---
    cors_allowed_origins: list[str] = []
    cors_allow_credentials: bool = False
    cors_allowed_methods: list[str] = ["GET", "PATCH", "DELETE"]
    cors_allowed_headers: list[str] = ["Content-Type", "Range"]

    # --- PostgreSQL ---
    postgres_user: str = "course_media"
    postgres_password: SecretStr = SecretStr("secret")
    postgres_db: str = "course_media"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Assemble database URL from components.

        Uses psycopg v3 driver which supports both sync (create_engine)
        and async (create_async_engine) modes natively.
        """
        password = self.postgres_password.get_secret_value()
        return (
            f"postgresql+psycopg://{self.postgres_user}:{password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # --- Signing ---
    # The auth signer's secret doubles as the video signing key unless
    # a dedicated one is configured.
    jwt_secret: SecretStr = SecretStr("change-me")
    video_token_secret: SecretStr | None = None
    video_token_expiry_hours: float = 2

    # --- Local media ---
    static_url_prefix: str = "/static/"
    public_dir: Path = Path("public")
    stream_chunk_bytes: int = 1024 * 1024

    @property
    def video_token_ttl_ms(self) -> int:
        return int(self.video_token_expiry_hours * MS_PER_HOUR)

    @property
    def video_signing_secret(self) -> str:
        secret = self.video_token_secret or self.jwt_secret
        return secret.get_secret_value()

    # --- Convenience properties ---
    @property
    def is_dev(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton.

    Usage::

        from course_media.config import get_settings
        settings = get_settings()
    """
    return Settings()


settings = get_settings()
