"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_llm_settings() -> "LLMSettings":
    """Build LLM settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return LLMSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    See _build_llm_settings() for rationale about the type ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_auth_settings() -> "AuthSettings":
    return AuthSettings()  # type: ignore[call-arg]


def _build_store_settings() -> "StoreSettings":
    return StoreSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class LLMSettings(BaseSettings):
    """LLM provider configuration used by the product detail enhancer.

    ``none`` keeps enhancement local (heuristic); ``openai`` calls the
    OpenAI API. Provider-specific requirements are checked in the factory.
    """

    provider: str = Field(
        "none",
        description="LLM provider name (none, openai)",
    )
    model: str = Field(
        "gpt-4o-mini",
        description="Model name (e.g., gpt-4o, gpt-4o-mini)",
    )
    api_key: str | None = Field(
        None,
        description="API key for cloud providers (required for OpenAI)",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    version: str = Field(
        "0.1.0",
        description="Version reported by the health endpoint",
    )
    cors_origins: str = Field(
        "http://localhost:3000",
        description="Comma-separated list of origins allowed to send credentials",
    )
    cron_secret: str | None = Field(
        None,
        description="Bearer token required by the recurring-orders cron endpoint",
    )

    free_shipping_threshold: float = Field(
        50.0,
        description="Orders with a subtotal above this amount ship for free",
        ge=0,
    )
    flat_shipping_fee: float = Field(
        5.0,
        description="Shipping fee applied below the free shipping threshold",
        ge=0,
    )
    default_page_size: int = Field(
        12,
        description="Default page size for catalog listings",
        ge=1,
    )
    max_page_size: int = Field(
        100,
        description="Upper bound accepted for the limit query parameter",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting",
    )
    rate_limit_requests: int = Field(
        100,
        description="Maximum number of requests allowed per window (general policy)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds (general policy)",
        ge=1,
    )
    auth_rate_limit_requests: int = Field(
        50,
        description="Maximum number of signup/login attempts per window",
        ge=1,
    )
    auth_rate_limit_window_seconds: int = Field(
        300,
        description="Rate limit window size in seconds for signup/login",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class AuthSettings(BaseSettings):
    """JWT, cookie and password hashing configuration."""

    jwt_secret: str = Field(
        ...,
        description="Secret used to sign access and refresh tokens",
        min_length=16,
    )
    jwt_algorithm: str = Field("HS256", description="JWT signing algorithm")
    access_token_ttl_minutes: int = Field(15, ge=1)
    refresh_token_ttl_days: int = Field(30, ge=1)
    access_cookie_max_age_seconds: int = Field(7 * 24 * 60 * 60, ge=1)
    refresh_cookie_max_age_seconds: int = Field(30 * 24 * 60 * 60, ge=1)
    cookie_secure: bool = Field(
        APP_ENV != "development",
        description="Mark auth cookies Secure (defaults to true outside development)",
    )
    cookie_samesite: str = Field("lax", description="SameSite attribute for auth cookies")
    bcrypt_rounds: int = Field(12, ge=4, le=31)

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Document store configuration."""

    backend: str = Field(
        "memory",
        description="Document store backend (memory, mongo)",
    )
    url: str | None = Field(
        None,
        description="MongoDB connection string (required for the mongo backend)",
    )
    database: str = Field("freshpick", description="Database name")
    timeout_ms: int = Field(5000, ge=1, description="Server selection timeout")

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, ge=0, description="Rotate after this size (0 disables)")
    backup_count: int = Field(5, ge=0)
    request_id_header: str = Field("X-Request-ID")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    auth: AuthSettings = Field(default_factory=_build_auth_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
