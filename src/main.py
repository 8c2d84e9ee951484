"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from src.api.middleware.error_handler import APIError, api_error_exception_handler, error_handler_middleware
from src.api.middleware.request_logging import request_logging_middleware
from src.api.middleware.request_size import request_size_limit_middleware
from src.api.routes import auth, checkout, contact, health, orders, products, webhooks
from src.core.config import get_settings
from src.core.stripe import configure_stripe
from src.core.supabase import Database

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the database handle and configures Stripe on startup; closes the
    handle on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to the application.
    """
    # Startup
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    db = Database(settings)
    db.open()
    app.state.db = db

    configure_stripe()
    logger.info("Stripe SDK configured (api_version=%s)", settings.stripe_api_version)

    try:
        yield
    finally:
        # Shutdown
        db.close()
        logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="LuxLather API",
        description="Storefront backend: catalog, Stripe checkout and order reconciliation",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # APIError raised in routes and dependencies
    app.add_exception_handler(APIError, api_error_exception_handler)

    # Add error handler middleware (catches anything that escapes the handlers)
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)

    # Add access logging middleware
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_logging_middleware)

    # Add request size limit middleware (rejects oversized requests early)
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_size_limit_middleware)

    # Mount health routes at root level (no prefix)
    app.include_router(health.router)

    # Create API v1 router for versioned endpoints
    api_v1_router = APIRouter(prefix="/api/v1")

    api_v1_router.include_router(auth.router)
    api_v1_router.include_router(products.router)
    api_v1_router.include_router(checkout.router)
    api_v1_router.include_router(orders.router)
    api_v1_router.include_router(contact.router)

    # Stripe webhook at /api/v1/stripe/webhook
    api_v1_router.include_router(webhooks.router)

    app.include_router(api_v1_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
