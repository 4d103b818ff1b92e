"""
Delivery Intelligence API package initialization.

This package contains FastAPI router modules:
- analysis: JSON and CSV analysis endpoints plus the .xlsx report download
"""

from fastapi import APIRouter

from delivery_intel.api.analysis import router as analysis_router

# Create main API router
api_router = APIRouter()

# analysis router carries its own /analysis prefix
api_router.include_router(analysis_router)

__all__ = [
    "api_router",
    "analysis_router",
]
