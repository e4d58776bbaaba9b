"""
Request/response logging middleware.
"""
import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging_config import request_id_context

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each request and its response status and duration.

    Request bodies are never logged: they carry learners' answers. The
    request id is taken from ``X-Request-ID`` when the caller sends one and
    echoed back on the response.
    """

    # Paths hit by load balancers every few seconds
    QUIET_PATHS = ("/v1/health",)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id_context.set(request_id)

        method = request.method
        path = str(request.url.path)
        client_host = request.client.host if request.client else "unknown"
        quiet = path in self.QUIET_PATHS

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            response.headers["X-Request-ID"] = request_id

            extra_fields = {
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_host": client_host,
            }
            if response.status_code >= 500:
                logger.error("Server error response", extra=extra_fields)
            elif response.status_code >= 400:
                logger.warning("Client error response", extra=extra_fields)
            elif not quiet:
                logger.info("Request completed", extra=extra_fields)
            return response
        finally:
            request_id_context.reset(token)
