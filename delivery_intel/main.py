"""
FastAPI application entry point for the Delivery Intelligence API.

This module wires the analysis engine to HTTP: it configures logging and
CORS, registers the analysis router, and starts the ASGI server when run
directly.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from delivery_intel import __version__
from delivery_intel.api import api_router
from delivery_intel.core.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    The engine holds no shared resources, so startup and shutdown only log.
    """
    logger.info(
        f"{settings.app_name} starting (min_consec_unsuccessful={settings.min_consec_unsuccessful}, "
        f"min_run_span_days={settings.min_run_span_days})"
    )
    yield
    logger.info(f"{settings.app_name} shutting down")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description=(
        "Delivery intelligence for voice-drop campaign exports. "
        "Classifies destination numbers as Healthy / Degrading / Toxic, "
        "detects consecutive-failure runs, builds the retry decay curve "
        "and rolls results up by account, message and caller."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "delivery_intel.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
