"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config import get_settings
from modules.auth.routes import router as auth_router

from .dependencies import get_container
from .errors import register_exception_handlers
from .middleware.rate_limit import enforce_api_rate_limit
from .routes import health, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Starts the background sweeps on startup and stops them on shutdown.
    """
    container = get_container()
    settings = container.settings
    logger.info(
        "Starting %s on %s:%s (storage=%s)",
        settings.app_name,
        settings.host,
        settings.port,
        settings.storage_backend,
    )
    container.start()
    yield
    await container.shutdown()
    logger.info("Shut down %s", settings.app_name)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Authentication and rate limiting for the Progressor learning tracker",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_exception_handlers(app)

    # Register routes
    rate_limited = [Depends(enforce_api_rate_limit)]
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(
        users.router, prefix="/api/users", tags=["users"], dependencies=rate_limited
    )

    return app


# Application instance for uvicorn
app = create_app()
