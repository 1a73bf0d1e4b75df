"""
Application factory for FastAPI.

This module provides the create_app() function that creates and configures
the FastAPI application instance.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from api.v1 import api_router
from app.routes import root_router, health_router
from core.config import settings
from core.exceptions import BookingError
from core.lifespan import lifespan
from core.middleware import CorrelationIdMiddleware
from core.rate_limit import limiter

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "validation": status.HTTP_400_BAD_REQUEST,
}


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Map booking core errors to HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_400_BAD_REQUEST)
    logger.info(
        f"{request.method} {request.url.path} -> {status_code} | "
        f"{exc.kind}:{exc.code}"
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application with all necessary
    middleware, routes, and instrumentation.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.api.app_name,
        version=settings.api.app_version,
        description="Home tech-support visits: public requests, volunteer scheduling and visit slots",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(BookingError, booking_error_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Correlation-ID"],
        expose_headers=["X-Correlation-ID"],
    )

    app.add_middleware(CorrelationIdMiddleware)

    # Include routers
    app.include_router(root_router)
    app.include_router(health_router)
    app.include_router(api_router, prefix=settings.api.api_v1_prefix)

    # Prometheus exposition
    if settings.monitoring.enable_metrics:
        app.mount("/metrics", make_asgi_app())

    return app
