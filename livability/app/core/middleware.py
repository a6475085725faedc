"""
Request middleware — correlation IDs, timing and one access line per request.

Every response carries:
    X-Request-ID     caller's ID when it sent a usable one, else a fresh one
    X-Process-Time   wall time spent in the app, e.g. "412.7ms"

While the request runs, the ID, client address, path and (for report
requests) the queried city sit in the logging context, so the WARNING lines
written by degraded sub-fetches can be tied back to the report they belong
to.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from livability.app.core.logging_config import bind_request_context, reset_request_context

logger = logging.getLogger(__name__)

# Probes and docs are served without an access line.
_QUIET_PREFIXES = ("/docs", "/redoc", "/openapi", "/favicon", "/health")

MAX_REQUEST_ID_LENGTH = 64


def _request_id(request: Request) -> str:
    incoming = request.headers.get("X-Request-ID", "").strip()
    if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH and incoming.isprintable():
        return incoming
    return uuid.uuid4().hex[:16]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind request context, time the call, tag the response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _request_id(request)
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        context = {
            "request_id": request_id,
            "client_ip": client_ip,
            "endpoint": path,
            "method": request.method,
        }
        city = request.query_params.get("city")
        if city:
            context["city"] = city
        token = bind_request_context(**context)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s crashed after %.1fms",
                request.method, path, (time.perf_counter() - start) * 1000,
                extra={"status_code": 500, "endpoint": path},
            )
            raise
        finally:
            reset_request_context(token)

        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed_ms:.1f}ms"

        if not path.startswith(_QUIET_PREFIXES):
            logger.log(
                logging.WARNING if response.status_code >= 400 else logging.INFO,
                "%s %s → %d (%.1fms) [%s]",
                request.method, path, response.status_code, elapsed_ms, request_id,
                extra={
                    "duration_ms": round(elapsed_ms, 1),
                    "status_code": response.status_code,
                    "endpoint": path,
                },
            )
        return response
