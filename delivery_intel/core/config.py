"""
Settings and environment management module for the Delivery Intelligence service.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for local analysis runs
- Singleton pattern via @lru_cache for efficient access
- Analysis threshold defaults used by the API when a request omits them

Environment Variables:
- APP_NAME: Display name for the API (default: Delivery Intelligence API)
- LOG_LEVEL: Root logging level (default: INFO)
- CORS_ORIGINS: Allowed browser origins for the local UI
- CSV_CHUNK_SIZE: Rows per chunk when streaming uploaded CSV files
- MAX_UPLOAD_BYTES: Largest accepted CSV body

Analysis Defaults:
- min_consec_unsuccessful: 4 (Minimum run length for the consecutive-failure table)
- min_run_span_days: 30 (Minimum day span for a run to be reported)
- recent_success_window_days: 14 (Trailing window for the "recent success" flag)
- allow_generic_numbers: False (Accept >=7 digit identifiers that are not 10-digit US numbers)

Usage:
    from delivery_intel.core.config import get_settings

    settings = get_settings()
    min_consec = settings.min_consec_unsuccessful
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The class inherits from pydantic-settings BaseSettings which provides:
    - Automatic loading from environment variables (case-insensitive)
    - Support for .env file loading
    - Type validation and coercion
    - Default values for optional settings

    Attributes:
        app_name: Display name used by the FastAPI application.
        log_level: Root logging level name.
        cors_origins: Origins allowed to call the API from a browser.
        csv_chunk_size: Number of CSV rows parsed per pandas chunk.
        max_upload_bytes: Maximum accepted size of an uploaded CSV body.
        min_consec_unsuccessful: Default minimum consecutive failures for a run.
        min_run_span_days: Default minimum span in days for a run.
        recent_success_window_days: Trailing window for the recent-success flag.
        allow_generic_numbers: Accept generic >=7 digit identifiers.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Service Settings
    # =========================================================================

    app_name: str = 'Delivery Intelligence API'

    log_level: str = 'INFO'

    # Local UI dev servers
    cors_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ]

    # =========================================================================
    # Ingestion Limits
    # =========================================================================

    # Bounded memory for the raw-text parse stage: pandas reads this many
    # rows at a time and hands them to the normalizer as dicts.
    csv_chunk_size: int = 50_000

    max_upload_bytes: int = 200 * 1024 * 1024

    # =========================================================================
    # Analysis Defaults
    # These are request defaults only. The engine itself takes explicit
    # parameters so that a run is reproducible from its inputs.
    # =========================================================================

    min_consec_unsuccessful: int = 4

    min_run_span_days: int = 30

    recent_success_window_days: int = 14

    # Strict 10-digit US numbers unless explicitly loosened
    allow_generic_numbers: bool = False


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The application settings instance with all configuration values.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
