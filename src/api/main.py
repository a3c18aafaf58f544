"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routes and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.registrar.memory import InMemoryRegistrarClient
from src.adapters.registrar.vercel import VercelRegistrarClient, create_http_client
from src.adapters.repository.postgres import run_migrations
from src.api.v1 import router as v1_router
from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Custom Domain API v1 - Attach, verify and remove workspace custom domains",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Creates the registrar client (HTTP or in-memory)
    - Closes the pool and HTTP client on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    # Run migrations
    logger.info("Running database migrations...")
    run_migrations(pool)

    http_client = None
    if settings.registrar_api_token:
        http_client = create_http_client(
            settings.registrar_api_url,
            settings.registrar_api_token,
            settings.registrar_timeout_seconds,
        )
        app.state.registrar = VercelRegistrarClient(
            http_client,
            project_id=settings.registrar_project_id,
            team_id=settings.registrar_team_id,
        )
    else:
        logger.warning("REGISTRAR_API_TOKEN not set - using in-memory registrar")
        app.state.registrar = InMemoryRegistrarClient()

    # Store pool in app state for dependency injection
    app.state.pool = pool

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if http_client is not None:
        http_client.close()
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="custom-domains",
    description="Custom Domain API - Provision, verify and remove tenant subdomains through a registrar",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    # Validate database connectivity
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
