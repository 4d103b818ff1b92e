"""
Delivery Intelligence Package.

Analysis engine and service layer for phone-campaign delivery records.
Turns per-attempt delivery rows into per-number health classifications,
retry-decay statistics, consecutive-failure runs and entity rollups.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, exceptions, and dependencies
    - models: Pydantic schemas and enums
    - services: Analysis engine, CSV ingestion, and report assembly
"""

__version__ = "1.0.0"
