"""API middleware: CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing, structured request logging (via structlog), and automatic
conversion of ``Where2PlayError`` subclasses into JSON ``ErrorResponse``
bodies.  Request validation failures (missing or out-of-range query
parameters) are answered with 400 rather than FastAPI's default 422.

Starlette middleware is a stack (last added, first executed).  main.py adds
ErrorHandlingMiddleware before RequestLoggingMiddleware, so the request
flows RequestLogging -> ErrorHandling -> route handler and the access log
sees the final status code, including the ones ErrorHandling produced.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from where2play.api.schemas import ErrorResponse
from where2play.utils.errors import (
    ConfigurationError,
    ProviderError,
    Where2PlayError,
)
from where2play.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]`` for
        development; override with specific origins in production.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                query=str(request.url.query),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def status_for_error(exc: Where2PlayError) -> int:
    """HTTP status for an application error that escaped a route."""
    if isinstance(exc, ConfigurationError):
        return 503
    if isinstance(exc, ProviderError):
        return 502
    return 500


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``Where2PlayError`` subclasses and return structured JSON errors.

    A missing credential (``ConfigurationError``) becomes a 503 carrying the
    descriptive message; upstream failures become 502.  Stack traces are
    logged server-side only and never reach the client.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except Where2PlayError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
            )
            return JSONResponse(
                status_code=status_for_error(exc),
                content=body.model_dump(),
            )


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


def describe_validation_error(exc: RequestValidationError) -> str:
    """One-line message for the first invalid or missing parameter."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("query", "path")]
    name = ".".join(loc) or "request"
    if first.get("type") == "missing":
        return f"Query parameter '{name}' is required"
    return f"Invalid value for '{name}': {first.get('msg', 'invalid')}"


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer a missing or malformed query parameter with 400 instead of 422."""
    detail = describe_validation_error(exc)
    _logger.info("request_validation_failed", path=str(request.url.path), detail=detail)
    body = ErrorResponse(error="InvalidParameter", detail=detail)
    return JSONResponse(status_code=400, content=body.model_dump())


def configure_error_handlers(app: FastAPI) -> None:
    """Register the exception handlers the middleware stack does not cover."""
    app.add_exception_handler(RequestValidationError, validation_error_handler)
