"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Every failure, including FastAPI request validation, reaches the client
in one envelope carrying the request ID; path and method are added outside
production.

Failure classes used by the aggregation pipeline:

    InvalidInputError         fatal, rejected before any upstream call
    UpstreamUnavailableError  fatal, the weather provider failed
    PartialDataUnavailable    non-fatal, a best-effort sub-fetch failed
    GenerationFailure         non-fatal for reports, fatal for /ask and /improve

Usage:
    from livability.app.core.errors import (
        InvalidInputError,
        UpstreamUnavailableError,
        register_error_handlers,
    )

    raise InvalidInputError("city query param required", field="city")
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from livability.app.core.config import Settings
from livability.app.core.logging_config import get_request_context

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class LivabilityError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class InvalidInputError(LivabilityError):
    """Request input rejected before any upstream call (422)."""

    def __init__(self, message: str, *, field: Optional[str] = None, **details: Any):
        d = {**details}
        if field:
            d["field"] = field
        super().__init__(
            message=message,
            status_code=422,
            error_code="INVALID_INPUT",
            details=d,
        )


class UpstreamUnavailableError(LivabilityError):
    """The primary weather provider failed (502). Never retried."""

    def __init__(self, service: str, message: str = "", **details: Any):
        super().__init__(
            message=f"Upstream '{service}' unavailable: {message}",
            status_code=502,
            error_code="UPSTREAM_UNAVAILABLE",
            details={"service": service, **details},
        )


class PartialDataUnavailable(LivabilityError):
    """
    A best-effort sub-fetch (geo, stats, seismic) failed.

    The aggregator catches this and leaves the matching report fields
    empty; it only reaches a client through endpoints that expose the
    sub-fetch directly.
    """

    def __init__(self, source: str, message: str = "", **details: Any):
        super().__init__(
            message=f"Data source '{source}' unavailable: {message}",
            status_code=502,
            error_code="PARTIAL_DATA_UNAVAILABLE",
            details={"source": source, **details},
        )
        self.source = source


class GenerationFailure(LivabilityError):
    """Text generation failed (502)."""

    def __init__(self, message: str = "", **details: Any):
        super().__init__(
            message=message or "text generation failed",
            status_code=502,
            error_code="GENERATION_FAILURE",
            details=details,
        )


# ═══════════════════════════════════════════════════════════════════════════
# Response envelope
# ═══════════════════════════════════════════════════════════════════════════

# Client mistakes and upstream outages are expected traffic, not app faults.
_LOG_LEVELS = {
    InvalidInputError: logging.INFO,
    UpstreamUnavailableError: logging.WARNING,
    PartialDataUnavailable: logging.WARNING,
    GenerationFailure: logging.WARNING,
}


def error_body(
    exc: LivabilityError,
    request: Optional[Request] = None,
    include_request: bool = True,
) -> Dict[str, Any]:
    """
    ``{"error": {"code", "message", "status", "details"?, "request_id"?,
    "path"?, "method"?}}``
    """
    error: Dict[str, Any] = {
        "code": exc.error_code,
        "message": exc.message,
        "status": exc.status_code,
    }
    if exc.details:
        error["details"] = exc.details

    request_id = get_request_context().get("request_id")
    if request_id:
        error["request_id"] = request_id

    if request is not None and include_request:
        error["path"] = request.url.path
        error["method"] = request.method
    return {"error": error}


def _validation_error(exc: RequestValidationError) -> InvalidInputError:
    problems = exc.errors()
    first = problems[0] if problems else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query"))
    return InvalidInputError(
        first.get("msg", "invalid request"),
        field=field or None,
        errors=[{"loc": list(p.get("loc", ())), "msg": p.get("msg")} for p in problems],
    )


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Render every failure in the same JSON envelope."""
    include_request = not settings.is_production

    def respond(exc: LivabilityError, request: Request) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc, request, include_request),
        )

    @app.exception_handler(LivabilityError)
    async def handle_livability_error(request: Request, exc: LivabilityError):
        logger.log(
            _LOG_LEVELS.get(type(exc), logging.ERROR),
            "%s %s failed [%s]: %s",
            request.method, request.url.path, exc.error_code, exc.message,
            extra={"status_code": exc.status_code, "endpoint": request.url.path},
        )
        return respond(exc, request)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return respond(_validation_error(exc), request)

    @app.exception_handler(ValueError)
    async def handle_value_error(request: Request, exc: ValueError):
        logger.warning("ValueError on %s: %s", request.url.path, exc)
        return respond(InvalidInputError(str(exc)), request)

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical("Unhandled exception on %s", request.url.path, exc_info=exc)
        details = (
            {"traceback": traceback.format_exception(type(exc), exc, exc.__traceback__)}
            if settings.DEBUG else None
        )
        internal = LivabilityError(
            str(exc) if settings.DEBUG else "Internal server error",
            details=details,
        )
        return respond(internal, request)
