"""
Configuration management for SkyTrack.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_optional_float(value: str) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _parse_region(value: str) -> Optional[Tuple[float, float, float, float]]:
    """Parse 'lamin,lomin,lamax,lomax' string into tuple, or None if empty/invalid."""
    if not value:
        return None
    try:
        lamin, lomin, lamax, lomax = (float(part.strip()) for part in value.split(','))
        return (lamin, lomin, lamax, lomax)
    except (ValueError, AttributeError):
        return None


@dataclass(frozen=True)
class OpenSkyConfig:
    """OpenSky API configuration."""
    base_url: str = os.getenv('OPENSKY_BASE_URL', 'https://opensky-network.org/api')
    timeout_seconds: float = float(os.getenv('OPENSKY_TIMEOUT_SECONDS', '30'))
    connectivity_timeout_seconds: float = float(os.getenv('CONNECTIVITY_TIMEOUT_SECONDS', '3'))
    log_body_limit: int = int(os.getenv('LOG_BODY_LIMIT', '2048'))


@dataclass(frozen=True)
class RefreshConfig:
    """Polling cadence and suspension policy."""
    poll_interval: float = float(os.getenv('POLL_INTERVAL_SECONDS', '5'))

    # Policies that varied between releases of the mobile client
    suspend_on_error: bool = _parse_bool(os.getenv('SUSPEND_ON_ERROR', '0'))
    fetch_on_resume: bool = _parse_bool(os.getenv('FETCH_ON_RESUME', '0'))
    refresh_on_country_change: bool = _parse_bool(os.getenv('REFRESH_ON_COUNTRY_CHANGE', '1'))


@dataclass(frozen=True)
class CacheConfig:
    """Snapshot cache settings."""
    database_url: str = os.getenv('CACHE_DATABASE_URL', 'sqlite:///skytrack_cache.db')
    max_age_seconds: Optional[float] = _parse_optional_float(os.getenv('CACHE_MAX_AGE_SECONDS', ''))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    opensky: OpenSkyConfig
    refresh: RefreshConfig
    cache: CacheConfig

    # Region watched at startup (None = wait for POST /api/watch)
    default_region: Optional[Tuple[float, float, float, float]]

    # Flask settings
    secret_key: str
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        opensky=OpenSkyConfig(),
        refresh=RefreshConfig(),
        cache=CacheConfig(),
        default_region=_parse_region(os.getenv('DEFAULT_REGION', '')),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
