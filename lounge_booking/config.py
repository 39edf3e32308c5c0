"""
Centralized configuration with environment variable overrides.

Provider credentials, endpoints, and server settings are configurable
here. Nothing provider-specific is hardcoded in resolver or submitter logic.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _optional_int(env_var: str) -> Optional[int]:
    """Parse an optional integer; empty or unset means None."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return None
    return _safe_int(env_var, raw)


@dataclass(frozen=True)
class CalConfig:
    """Cal.com provider settings."""

    api_key: Optional[str] = os.getenv("CAL_API_KEY") or None
    base_url: str = os.getenv("CAL_API_BASE_URL", "https://api.cal.com")
    api_version: str = os.getenv("CAL_API_VERSION", "2024-08-13")
    timezone: str = os.getenv("CAL_TIMEZONE", "Africa/Johannesburg")
    request_timeout_sec: float = _safe_float("CAL_REQUEST_TIMEOUT", "15.0")
    mobile_event_type_id: Optional[int] = _optional_int("MOBILE_EVENT_TYPE_ID")


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server settings."""

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = _safe_int("PORT", "8000")
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")


@dataclass(frozen=True)
class BookingConfig:
    """Booking form limits."""

    default_seats: int = _safe_int("DEFAULT_SEATS", "1")
    max_people: int = _safe_int("MAX_PEOPLE", "10")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    cal: CalConfig = field(default_factory=CalConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "lounge-booking")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not config.cal.base_url.startswith(("http://", "https://")):
        raise ValueError(
            f"CAL_API_BASE_URL must be an http(s) URL, got {config.cal.base_url!r}"
        )
    if config.cal.request_timeout_sec <= 0:
        raise ValueError(
            f"CAL_REQUEST_TIMEOUT must be > 0, got {config.cal.request_timeout_sec}"
        )
    if not 1 <= config.server.port <= 65535:
        raise ValueError(f"PORT must be between 1 and 65535, got {config.server.port}")
    if config.booking.default_seats < 1:
        raise ValueError(
            f"DEFAULT_SEATS must be >= 1, got {config.booking.default_seats}"
        )
    if config.booking.max_people < 1:
        raise ValueError(f"MAX_PEOPLE must be >= 1, got {config.booking.max_people}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    if not config.cal.api_key:
        logger.warning("CAL_API_KEY is not set; provider calls will be rejected")
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
