"""
Middleware for request correlation ID tracking.

Operator HTTP requests get an 8-character correlation ID so that a command
can be followed from the API call through the dispatcher log lines.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# Context variable for storing correlation ID per request
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to operator requests.

    This middleware:
    - Extracts correlation ID from X-Correlation-ID header or generates new 8-char UUID
    - Stores correlation ID in request.state.request_id
    - Stores correlation ID in context variable for access in logging
    - Adds correlation ID to response headers for client tracking
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        """
        Process request and add correlation ID.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            Response with X-Correlation-ID header added.
        """
        cid = request.headers.get("X-Correlation-ID", str(uuid.uuid4())[:8])
        cid = cid[:8]

        request.state.request_id = cid
        token = correlation_id.set(cid)

        try:
            response = await call_next(request)
        finally:
            correlation_id.reset(token)

        response.headers["X-Correlation-ID"] = cid

        return response


def get_correlation_id() -> str:
    """
    Get the correlation ID for the current request context.

    Returns:
        The correlation ID string, or empty string if not set.
    """
    return correlation_id.get()
