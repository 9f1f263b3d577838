"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.api.middleware.error_handler import (
    error_handler_middleware,
    request_validation_exception_handler,
)
from storefront.api.middleware.latency_logging import latency_logging_middleware
from storefront.api.middleware.request_size import request_size_limit_middleware
from storefront.api.routes import health, products
from storefront.api.routes.checkout import orders_router, router as checkout_router
from storefront.core.config import get_settings
from storefront.core.supabase import create_supabase_client
from storefront.services.notification_service import NotificationDispatcher

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Seconds to wait for in-flight order emails at shutdown
NOTIFICATION_DRAIN_TIMEOUT = 10.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Creates the store client and the notification dispatcher at startup and
    releases them at shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to the application.
    """
    # Startup
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    app.state.supabase = create_supabase_client(settings)
    logger.info("Supabase client initialized")

    app.state.notifications = NotificationDispatcher()
    if not settings.email_enabled:
        logger.warning("Resend API key not configured. Order emails will fail and be logged.")
    logger.info("Notification dispatcher initialized")

    yield
    # Shutdown
    await app.state.notifications.drain(timeout=NOTIFICATION_DRAIN_TIMEOUT)
    app.state.notifications = None
    logger.info("Notification dispatcher drained")
    app.state.supabase = None
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    # API docs are never served in production, even with debug on
    docs_enabled = settings.debug and not settings.is_production

    app = FastAPI(
        title="Storefront API",
        description="Single-product storefront with simulated payment outcomes",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handler middleware (formats errors raised by route handlers)
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)

    # Add latency logging middleware (tracks request timing)
    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)

    # Add request size limit middleware (rejects oversized requests early)
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_size_limit_middleware)

    # Body/query validation errors use the same error shape as APIError
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    # Mount health routes at root level (no prefix)
    app.include_router(health.router)

    api_router = APIRouter(prefix="/api")
    api_router.include_router(products.router)
    api_router.include_router(checkout_router)
    api_router.include_router(orders_router)

    app.include_router(api_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
