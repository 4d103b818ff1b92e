"""
Core infrastructure package for the Delivery Intelligence service.

Provides:
- Configuration management via pydantic-settings
- Exception hierarchy for the analysis engine
- FastAPI dependency injection utilities

This module re-exports key components from submodules for convenient importing:

    from delivery_intel.core import get_settings, NoAnalyzableDataError
"""

# =============================================================================
# Re-exports from delivery_intel.core.config
# =============================================================================
from delivery_intel.core.config import Settings, get_settings

# =============================================================================
# Re-exports from delivery_intel.core.exceptions
# =============================================================================
from delivery_intel.core.exceptions import (
    DeliveryIntelError,
    NoAnalyzableDataError,
    NoDataReason,
    CsvIngestionError,
)

# =============================================================================
# Re-exports from delivery_intel.core.dependencies
# =============================================================================
from delivery_intel.core.dependencies import get_settings_dependency, SettingsDep


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Errors (from exceptions.py)
    'DeliveryIntelError',
    'NoAnalyzableDataError',
    'NoDataReason',
    'CsvIngestionError',
    # FastAPI dependency injection (from dependencies.py)
    'get_settings_dependency',
    'SettingsDep',
]
