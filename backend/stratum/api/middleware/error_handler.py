"""
Error Handler Middleware

Global exception handling for the API.

Provides consistent error responses across all endpoints by catching
exceptions and converting them to the failure envelope.

Error Response Format:
======================
    {
        "success": false,
        "error": "Cluster with id 'abc-123' not found",
        "error_code": "NOT_FOUND",
        "errors": ["..."],                         # optional
        "field_errors": {"name": ["can't be blank"]}  # optional
    }

Exception Handling:
===================
1. StratumException subclasses → Use their status_code and to_dict()
2. RequestValidationError       → 422 for body field errors,
                                  400 for path/query/malformed JSON
3. Starlette HTTPException      → Same status, wrapped in the envelope
4. Other exceptions             → 500 with generic message (details hidden)

Usage:
======
    from stratum.api.middleware.error_handler import setup_exception_handlers

    app = FastAPI()
    setup_exception_handlers(app)
"""

from typing import Any, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stratum.shared.core.exceptions import BadRequestError, InternalError, StratumException, ValidationError
from stratum.shared.core.logging import logger


_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def _field_name(loc: Sequence[Any]) -> str:
    # ("body", "name") → "name"; ("query", "page") → "page"
    parts = [str(p) for p in loc[1:]] or [str(p) for p in loc]
    return ".".join(parts)


def _is_body_field_error(error: dict[str, Any]) -> bool:
    loc = error.get("loc") or ()
    if not loc or loc[0] != "body":
        return False
    return error.get("type") not in ("json_invalid", "value_error.jsondecode")


def translate_validation_errors(errors: Sequence[dict[str, Any]]) -> StratumException:
    """
    Map FastAPI request validation errors onto our exception types.

    Every error located in a parsed body field → ValidationError (422).
    Anything else (path, query, header, unparseable JSON) → BadRequestError (400).
    """
    field_errors: dict[str, list[str]] = {}
    for error in errors:
        field_errors.setdefault(_field_name(error.get("loc") or ()), []).append(str(error.get("msg", "is invalid")))

    if errors and all(_is_body_field_error(e) for e in errors):
        return ValidationError(field_errors=field_errors)

    messages = [f"{field}: {msg}" for field, msgs in field_errors.items() for msg in msgs]
    return BadRequestError("Malformed request", errors=messages, field_errors=field_errors)


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Set up global exception handlers.

    Should be called during application initialization to register
    exception handlers for all routes.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(StratumException)
    async def stratum_exception_handler(
        request: Request,
        exc: StratumException,
    ) -> JSONResponse:
        """
        Handle Stratum-specific exceptions.

        All custom exceptions inherit from StratumException and carry
        status_code, error_code, message and optional errors/field_errors.
        """
        logger.warning(
            "Application error",
            error_code=exc.error_code,
            message=exc.message,
            status_code=exc.status_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """
        Handle request parsing errors.

        Body field errors are 422; bad path/query values and malformed JSON are 400.
        """
        translated = translate_validation_errors(exc.errors())
        logger.warning(
            "Request validation error",
            error_code=translated.error_code,
            field_errors=translated.field_errors,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=translated.status_code,
            content=translated.to_dict(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        """Wrap framework HTTP errors (unknown route, wrong method) in the envelope."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": str(exc.detail),
                "error_code": _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Handle unexpected exceptions.

        Catches any unhandled exception and returns a generic error.
        Full error details are logged but not exposed to clients.
        """
        logger.error(
            "Unexpected error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            exc_info=True,
        )
        error = InternalError()
        return JSONResponse(status_code=error.status_code, content=error.to_dict())
