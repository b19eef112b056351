"""
API Middleware

Custom middleware for the FastAPI application.

Components:
===========
- error_handler: Global exception handling and the failure envelope
- request_logging: Request-scoped log context and X-Request-ID

Usage:
======
    from stratum.api.middleware import setup_exception_handlers, RequestLoggingMiddleware

    app = FastAPI()
    setup_exception_handlers(app)
    app.add_middleware(RequestLoggingMiddleware)
"""

from stratum.api.middleware.error_handler import setup_exception_handlers
from stratum.api.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "setup_exception_handlers",
    "RequestLoggingMiddleware",
]
