"""
TechNotes Backend - Access Log Middleware
==========================================

What:  One line on the `technotes.access` logger per handled request.
How:   Times the downstream call, then logs the outcome together with the
       request ID set by RequestIDMiddleware.

Example line:
    PATCH /users/{user_id}/notes/{note_id} → 409 in 3.2ms [a1b2c3d4] from 10.0.0.7

The route template is logged instead of the concrete path when a route
matched, so lines for different users and notes group together. Unmatched
paths are logged as requested.

Level by status class:
    5xx → ERROR
    4xx → WARNING (404 on unmatched paths → INFO, crawlers produce many)
    other → INFO

Bodies are never logged: user payloads carry passwords.
"""

import logging
import time
from typing import Any, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from technotes.middleware.request_id import request_id_var

logger = logging.getLogger("technotes.access")

# Polled every few seconds by orchestrators
QUIET_PATHS = frozenset({"/health"})


def access_level(status: int, matched: bool) -> int:
    if status >= 500:
        return logging.ERROR
    if status == 404 and not matched:
        return logging.INFO
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes the access log; see the module docstring for the format."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        route = request.scope.get("route")
        target = getattr(route, "path", None) or request.url.path
        fields: Dict[str, Any] = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "route": target,
            "status": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "client_ip": request.client.host if request.client else "unknown",
        }

        logger.log(
            access_level(response.status_code, matched=route is not None),
            "%(method)s %(route)s → %(status)d in %(duration_ms).1fms [%(request_id)s] from %(client_ip)s",
            fields,
            extra=fields,
        )
        return response
