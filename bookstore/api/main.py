"""
Bookstore API

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI, Request
from loguru import logger

from bookstore import __version__
from bookstore.storage.models import UserRole

from .dependencies import ServiceContainer, Settings, get_settings, init_services
from .middleware import (
    LoggingConfig,
    configure_log_sinks,
    get_cors_config,
    setup_cors,
    setup_exception_handlers,
    setup_logging,
)
from .routes import auth_router, books_router, orders_router
from .schemas import HealthResponse


def bootstrap_admin(services: ServiceContainer, settings: Settings) -> bool:
    """
    Create the configured administrator if it does not exist yet.

    Returns:
        True if an account was created.
    """
    if not settings.admin_username or not settings.admin_password:
        return False

    users = services.user_service
    if users.find_by_username(settings.admin_username) is not None:
        return False

    users.register(
        username=settings.admin_username,
        email=settings.admin_email or f"{settings.admin_username}@localhost.localdomain",
        password=settings.admin_password,
        address="N/A",
        role=UserRole.ADMIN,
    )
    logger.info(f"Created administrator account: {settings.admin_username}")
    return True


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup: open the database (creating tables) and seed the admin.
    Shutdown: release database connections.
    """
    settings: Settings = app.state.settings
    services: ServiceContainer = app.state.services
    logger.info(f"Starting bookstore API in {settings.environment} mode")

    try:
        _ = services.database
        bootstrap_admin(services, settings)
        logger.info("Bookstore API started successfully")

        yield

    finally:
        logger.info("Shutting down bookstore API...")
        services.close()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    configure_log_sinks(
        level="DEBUG" if settings.debug else "INFO",
        structured=settings.environment not in ("development", "test"),
    )

    app = FastAPI(
        title="Bookstore Orders",
        description="Order management backend for the online bookstore.",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.services = init_services(settings)

    # ==========================================================================
    # Middleware (last added = outermost)
    # ==========================================================================

    setup_exception_handlers(app)

    setup_logging(
        app,
        config=LoggingConfig(
            enabled=True,
            log_request_body=settings.debug,
        ),
    )

    setup_cors(app, config=get_cors_config(settings.frontend_origin))

    # ==========================================================================
    # Routers
    # ==========================================================================

    api_prefix = "/api"

    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(books_router, prefix=api_prefix)
    app.include_router(orders_router, prefix=api_prefix)

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Bookstore Orders",
            "version": __version__,
            "status": "running",
            "docs": "/docs" if settings.debug else None,
        }

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check(request: Request) -> HealthResponse:
        """Health check endpoint."""
        services: ServiceContainer = request.app.state.services

        components = {}
        overall_healthy = True

        try:
            services.database.ping()
            components["database"] = "healthy"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            components["database"] = "unhealthy"
            overall_healthy = False

        return HealthResponse(
            status="healthy" if overall_healthy else "degraded",
            version=__version__,
            components=components,
        )

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "bookstore.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
