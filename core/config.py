"""
Settings for the issue tracker, read from the environment and ``.env``.

Usage:
    from core.config import get_settings
    settings = get_settings()

Fixed values (sort keys, export layout, attachment containers) live in
``core.constants``.
"""

import warnings
from functools import lru_cache
from typing import List, Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION_ENVS = ("production", "prod")

# Placeholder secrets that must never sign tokens in production.
WEAK_SECRETS = frozenset(
    {"change_me", "changeme", "secret", "your-secret-key", "jwt-secret", "test", "development"}
)
MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """
    Application settings.

    Production requires ``JWT_SECRET_KEY`` (at least 32 characters, not a
    placeholder) and a real ``DATABASE_URL``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Issue Tracker"
    env: str = Field(default="development", validation_alias="ENV")
    debug: bool = Field(default=False, validation_alias="DEBUG")
    api_prefix: str = Field(default="", validation_alias="API_PREFIX")
    max_request_size_mb: int = Field(default=10, ge=1, validation_alias="MAX_REQUEST_SIZE_MB")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: Literal["console", "json"] = Field(default="console", validation_alias="LOG_FORMAT")

    database_url: str = Field(default="sqlite:///issue_tracker.db", validation_alias="DATABASE_URL")
    db_echo: bool = Field(default=False, validation_alias="DB_ECHO")
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, validation_alias="DB_MAX_OVERFLOW")
    db_pool_pre_ping: bool = Field(default=True, validation_alias="DB_POOL_PRE_PING")
    auto_create_tables: bool = Field(default=True, validation_alias="AUTO_CREATE_TABLES")

    jwt_secret_key: str = Field(default="CHANGE_ME", validation_alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24, ge=1, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    items_per_page: int = Field(default=15, ge=1, validation_alias="ITEMS_PER_PAGE")
    export_max_rows: int = Field(default=10000, ge=1, validation_alias="EXPORT_MAX_ROWS")
    templates_dir: str | None = Field(default=None, validation_alias="TEMPLATES_DIR")

    cors_allowed_origins: str = Field(
        default="http://localhost:9000", validation_alias="CORS_ALLOWED_ORIGINS"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL '{v}'")
        return level

    @field_validator("jwt_secret_key")
    @classmethod
    def check_jwt_secret(cls, v: str, info: ValidationInfo) -> str:
        """Reject weak secrets in production, warn about them elsewhere."""
        weak = v.lower() in WEAK_SECRETS
        if str(info.data.get("env", "")).lower() in PRODUCTION_ENVS:
            if weak:
                raise ValueError("JWT_SECRET_KEY cannot be a placeholder value in production")
            if len(v) < MIN_SECRET_LENGTH:
                raise ValueError(
                    f"JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters in production"
                )
        elif weak:
            warnings.warn(
                "JWT_SECRET_KEY is a placeholder value; set a real key before deploying.",
                UserWarning,
                stacklevel=2,
            )
        return v

    @property
    def is_production(self) -> bool:
        return self.env.lower() in PRODUCTION_ENVS

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    def validate_production_config(self) -> tuple[List[str], List[str]]:
        """
        Check the settings a deployment depends on.

        Returns:
            ``(errors, warnings)``; errors stop a production start-up.
        """
        errors: List[str] = []
        advisories: List[str] = []

        if self.jwt_secret_key.lower() in WEAK_SECRETS:
            errors.append("JWT_SECRET_KEY must be set for production")
        elif len(self.jwt_secret_key) < MIN_SECRET_LENGTH:
            errors.append(f"JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters")

        if self.database_url.startswith("sqlite"):
            advisories.append("DATABASE_URL points at SQLite; use PostgreSQL in production.")
        if self.auto_create_tables:
            advisories.append("AUTO_CREATE_TABLES is on; run `alembic upgrade head` instead.")
        if self.debug:
            advisories.append("DEBUG is on.")

        return errors, advisories


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
