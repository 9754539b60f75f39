"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Settings are grouped by concern (app, rate limiting, upstream services,
logging), each group reading its own environment prefix.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

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

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    network: Literal["mainnet", "testnet"] = Field(
        "mainnet",
        description="Blockchain network served by this deployment",
    )
    validate_bulk_max_txids: int = Field(
        20,
        description="Maximum number of txids accepted by one bulk validation request",
        ge=1,
    )
    validation_concurrency: int = Field(
        10,
        description="Maximum number of in-flight validator calls per bulk request",
        ge=1,
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of trusted API keys (relaxed rate limit)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Per-route admission control configuration."""

    enabled: bool = Field(
        True,
        description="Enable per-client, per-route rate limiting",
    )
    requests: int = Field(
        60,
        description="Maximum number of requests allowed per window (per client and route)",
        ge=1,
    )
    window_seconds: int = Field(
        60,
        description="Rate limit window length in seconds",
        ge=1,
    )
    trusted_requests: int = Field(
        600,
        description="Ceiling applied to callers presenting a trusted API key",
        ge=1,
    )
    route_overrides: dict[str, int] = Field(
        default_factory=dict,
        description='Per-route ceilings, e.g. {"POST /v2/slp/validateTxid": 20}',
    )
    max_keys: int = Field(
        10000,
        description="Maximum number of tracked (client, route) windows before LRU eviction",
        ge=1,
    )
    fail_open: bool = Field(
        False,
        description="Admit requests whose client identity cannot be determined",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class UpstreamSettings(BaseSettings):
    """Downstream index service and full node endpoints."""

    index_url: str = Field(
        "http://localhost:12300/",
        description="Base URL of the SLP index query service (SLPDB compatible)",
    )
    rpc_url: str = Field(
        "http://localhost:8332/",
        description="Full node JSON-RPC endpoint",
    )
    rpc_username: str | None = Field(
        None,
        description="Full node RPC username",
    )
    rpc_password: str | None = Field(
        None,
        description="Full node RPC password",
    )
    validator_url: str | None = Field(
        None,
        description="SLP validator JSON-RPC endpoint (defaults to rpc_url)",
    )
    validator_method: str = Field(
        "validateslptxid",
        description="JSON-RPC method answering whether a txid is a valid SLP transaction",
    )
    timeout_seconds: float = Field(
        15.0,
        description="Timeout applied to every upstream call",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="UPSTREAM_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field("json", description="Log line format")
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
