"""Library configuration using Pydantic Settings.

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

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (deployments may inject env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


SUPPORTED_MARKETS = ("usdm", "coinm")


def _build_binance_settings() -> "BinanceSettings":
    """Build exchange settings from environment.

    BaseSettings is populated from environment variables, which static type
    checkers don't see, hence the type ignore.
    """

    return BinanceSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()  # type: ignore[call-arg]


class BinanceSettings(BaseSettings):
    """Exchange endpoints and credentials."""

    api_key: str = Field(
        "",
        description="API key sent as X-MBX-APIKEY on authenticated endpoints",
    )
    secret_key: str = Field(
        "",
        description="Secret used to HMAC-sign SIGNED endpoints",
    )
    market: str = Field(
        "usdm",
        description="Default futures market: usdm (USDT-margined) or coinm (coin-margined)",
    )
    usdm_base_url: str = Field(
        "https://fapi.binance.com",
        description="Base URL of the USDT-margined futures REST API",
    )
    coinm_base_url: str = Field(
        "https://dapi.binance.com",
        description="Base URL of the coin-margined futures REST API",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Request timeout in seconds",
        gt=0,
    )
    recv_window_ms: int = Field(
        5000,
        description="recvWindow sent with SIGNED requests, in milliseconds",
        ge=1,
        le=60000,
    )

    model_config = SettingsConfigDict(
        env_prefix="BINANCE_",
        case_sensitive=False,
    )

    def base_url_for(self, market: str) -> str:
        """Return the REST base URL for ``market`` (``usdm`` or ``coinm``)."""

        if market.lower() == "coinm":
            return self.coinm_base_url
        return self.usdm_base_url


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(3, description="Rotated files to keep", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    """

    app_env: str = APP_ENV
    binance: BinanceSettings = Field(default_factory=_build_binance_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
