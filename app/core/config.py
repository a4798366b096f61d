"""Application configuration using Pydantic Settings.

This project loads configuration from environment variables.

Optionally, you may point `ENV_FILE` at a local env file (for development).
When `ENV_FILE` is unset no env file is read, so deployment-injected
environment variables are the single source of truth.
"""

import os
from enum import Enum

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "default-secret"


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class Settings(BaseSettings):
    """
    Application settings with type validation.

    Configuration is loaded from environment variables, with support
    for an explicitly selected env file in development.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "shipment-tracking-api"
    app_log_level: str = "INFO"

    # Observability
    observability_enabled: bool = True
    observability_structured_logs: bool = True

    # Metrics token for protecting /metrics endpoint
    metrics_token: str | None = None

    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017/tms"
    mongodb_database: str = "tms"
    mongodb_server_selection_timeout_ms: int = 5000

    # Access tokens
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 7 * 24 * 60

    # GraphQL
    graphql_introspection: bool = True

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Validate and parse app_env to AppEnvironment enum."""
        if isinstance(v, AppEnvironment):
            return v
        try:
            return AppEnvironment(v.lower())
        except ValueError:
            raise ValueError(
                f"app_env must be one of {[e.value for e in AppEnvironment]}, got '{v}'"
            )

    @field_validator("jwt_expires_minutes")
    @classmethod
    def validate_jwt_expiry(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("jwt_expires_minutes must be positive")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """
        Validate production-specific settings.

        These checks prevent insecure configurations from being deployed to production.
        """
        if self.app_env == AppEnvironment.PROD:
            # JWT_SECRET must be set and sufficiently long
            if self.jwt_secret == DEFAULT_JWT_SECRET or len(self.jwt_secret) < 32:
                raise ValueError("JWT_SECRET must be set and at least 32 characters in production")

            if "localhost" in self.mongodb_uri or "127.0.0.1" in self.mongodb_uri:
                raise ValueError("MONGODB_URI must not point at localhost in production")

        return self


settings = Settings()
