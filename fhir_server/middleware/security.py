"""
HTTP middleware for the FHIR server.

Tags each request with a correlation id, enforces request size limits,
and adds security headers to every response.
"""

import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from fhir_server.config.logging import get_logger, set_request_id
from fhir_server.errors import PayloadTooLargeError
from fhir_server.negotiation import negotiate_error_format
from fhir_server.responses import fhir_response, operation_outcome

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a correlation id to each request.

    An inbound X-Request-ID header is reused; otherwise a new id is generated.
    The id is stamped on every log event and echoed in the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        started = time.perf_counter()

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.debug(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware that enforces request body size limits.

    Oversized requests are rejected with a 413 OperationOutcome in the
    format the client asked for.
    """

    def __init__(self, app, max_body_size: int = 1024 * 1024) -> None:
        """
        Initialize the middleware.

        Args:
            app: The ASGI application
            max_body_size: Maximum allowed request body size in bytes (default 1MB)
        """
        super().__init__(app)
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_body_size:
            error = PayloadTooLargeError(self.max_body_size)
            logger.warning("Rejected oversized request", content_length=int(content_length))
            return fhir_response(
                operation_outcome(error.issues()),
                negotiate_error_format(request),
                status_code=error.status_code,
            )

        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds security headers to responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"

        return response
