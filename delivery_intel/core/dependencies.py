"""
FastAPI dependency injection module for the Delivery Intelligence service.

Provides reusable FastAPI dependencies for configuration access, enabling loose
coupling between endpoint handlers and the settings singleton.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- SettingsDep: Type alias for injecting Settings into endpoints

Usage Examples:
    @router.post("/analysis/csv")
    async def analyze_csv(settings: SettingsDep):
        chunk_size = settings.csv_chunk_size
"""

from typing import Annotated

from fastapi import Depends

from delivery_intel.core.config import Settings, get_settings


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    This is a thin wrapper around get_settings() to enable FastAPI's
    dependency override mechanism for testing:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings

    Returns:
        Settings: The cached Settings instance with all configuration values.
    """
    return get_settings()


# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]
