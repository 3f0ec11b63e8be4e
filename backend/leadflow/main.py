"""
Leadflow Automation - Main FastAPI Application

Hosts the automation scheduler for the lifetime of the process and exposes a
small operational API (health, scheduler status, manual runs, run ledger).
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import get_settings
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .repositories.mongo_client import create_indexes, close_connection, health_check
from .scheduler.automation_scheduler import get_active_scheduler, start_scheduler, stop_scheduler
from .utils.logger import setup_logging, get_logger

# Setup logging first
setup_logging()
logger = get_logger(__name__)
settings = get_settings()

VERSION = "1.0.0"


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Creates MongoDB indexes (including the run ledger pair index)
        - Starts the automation scheduler when automation_enabled is set

    Shutdown:
        - Stops scheduler
        - Closes database connections
    """
    logger.info("Starting Leadflow automation service...")

    try:
        create_indexes()
    except Exception as e:
        logger.error(f"Failed to create indexes: {e}")

    if settings.automation_enabled:
        try:
            start_scheduler()
        except Exception as e:
            logger.error(f"Failed to start automation scheduler: {e}", exc_info=True)
    else:
        logger.info("Automation scheduler disabled by configuration")

    yield

    logger.info("Shutting down...")
    stop_scheduler()
    close_connection()
    logger.info("Application shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    application = FastAPI(
        title="Leadflow Automation",
        description="Rule-driven lead automation engine",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.debug else None,
    )

    allow_all = settings.cors_origins.strip() == "*"
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )
    application.add_middleware(CorrelationIdMiddleware)

    register_error_handlers(application)

    application.include_router(api_router, prefix="/api/v1")

    @application.get("/health", tags=["Health"])
    async def health():
        """Database connectivity and scheduler state"""
        mongo_health = health_check()
        scheduler = get_active_scheduler()
        return {
            "status": "healthy" if mongo_health.get("status") == "healthy" else "degraded",
            "version": VERSION,
            "environment": settings.environment,
            "mongo": mongo_health,
            "scheduler": scheduler.status() if scheduler else {"running": False},
        }

    return application


# Create the application instance
app = create_app()
