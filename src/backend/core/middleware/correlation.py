"""
Correlation ID middleware.

Every response carries an X-Correlation-ID header, taken from the request
when the client sent one. The id is also available to log calls made while
the request is being handled.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

HEADER_NAME = "X-Correlation-ID"

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = logging.getLogger(__name__)


def get_correlation_id() -> str:
    """Correlation ID of the current request, or "" outside a request."""
    return correlation_id_var.get("")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Reads or generates the correlation ID and echoes it in the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(HEADER_NAME) or str(uuid.uuid4())
        token = correlation_id_var.set(correlation_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)

        response.headers[HEADER_NAME] = correlation_id
        if response.status_code >= 500:
            logger.warning(
                f"{request.method} {request.url.path} -> {response.status_code} | "
                f"Correlation ID: {correlation_id}"
            )
        return response
