"""
Environment configuration — single source of truth for all settings.

Uses pydantic-settings for type-safe config with .env file support.
All values have sensible defaults for local development.

The Settings instance is built once at startup and handed explicitly to
the services that need it (aggregator, text-generation client). Only the
application edge calls get_settings().

Usage:
    from livability.app.core.config import get_settings
    settings = get_settings()
    print(settings.VISUAL_CROSSING_BASE_URL)
"""

from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from livability.app.scoring.comfort_index import ComfortMode


class Settings(BaseSettings):
    """
    Application-wide settings loaded from environment variables or .env file.

    Precedence: env var > .env file > default value
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ──
    APP_NAME: str = "City Livability Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | staging | production
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR | CRITICAL

    # ── Server ──
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # ── CORS ──
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]
    CORS_ALLOW_ALL: bool = True  # False in production

    # ── Credentials ──
    VISUAL_CROSSING_KEY: str = ""
    GEMINI_API_KEY: str = ""

    # ── External APIs ──
    VISUAL_CROSSING_BASE_URL: str = (
        "https://weather.visualcrossing.com/VisualCrossingWebServices/rest/services/timeline"
    )
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_MODEL: str = "gemini-2.0-flash"
    REST_COUNTRIES_URL: str = "https://restcountries.com/v3.1"
    WORLD_BANK_URL: str = "https://api.worldbank.org/v2"
    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org"
    NOMINATIM_USER_AGENT: str = "city-livability/1.0"
    USGS_EARTHQUAKE_URL: str = "https://earthquake.usgs.gov/fdsnws/event/1"

    # ── Timeouts (seconds) ──
    WEATHER_FETCH_TIMEOUT: float = 15.0
    GEO_TIMEOUT: float = 10.0
    STATS_TIMEOUT: float = 10.0
    SEISMIC_TIMEOUT: float = 15.0
    GENERATION_TIMEOUT: float = 15.0

    # ── Scoring ──
    SEISMIC_RADIUS_KM: float = 300.0
    SEISMIC_PERIOD_YEARS: int = 5
    COMFORT_INDEX_MODE: ComfortMode = ComfortMode.AUTO
    ADVICE_WORD_LIMIT: int = 50

    # ── Caching ──
    REDIS_URL: str = "redis://localhost:6379/0"
    REPORT_CACHE_TTL: int = 0  # seconds; 0 disables the report cache

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def has_generation_credentials(self) -> bool:
        return bool(self.GEMINI_API_KEY)


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
