"""
Request Logging Middleware

Binds request-scoped log fields for the lifetime of one request and
logs its completion.

Bound fields:
    request_id  - From the X-Request-ID header, or a fresh UUID
    method      - HTTP method
    path        - URL path

The same request id is echoed back in the X-Request-ID response header.
"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from stratum.shared.core.logging import clear_log_context, get_logger, log_context


REQUEST_ID_HEADER = "X-Request-ID"

logger = get_logger("stratum.request")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Attach request_id/method/path to every log line of a request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        clear_log_context()
        log_context(request_id=request_id, method=request.method, path=request.url.path)

        started = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.info("Request completed", status_code=response.status_code, duration_ms=duration_ms)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_log_context()
