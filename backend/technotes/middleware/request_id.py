"""
TechNotes Backend - Request ID Middleware
==========================================

What:  Gives every request a correlation ID, echoed as X-Request-ID.
How:   A client-supplied X-Request-ID is reused when it looks like an ID
       (1-64 characters of letters, digits, '-', '_' or '.'); anything else
       is replaced by a fresh 8-character ID, so raw header text never
       reaches the logs. The ID lives in `request_id_var` for loggers and
       exception handlers and in `request.state.request_id` for handlers.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Per-coroutine: concurrent requests on one event loop never see each other's ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def accepted_client_id(header_value: Optional[str]) -> Optional[str]:
    """The client's ID if it is safe to log and echo, else None."""
    if header_value and _CLIENT_ID_PATTERN.match(header_value):
        return header_value
    return None


def current_request_id(request: Request) -> str:
    """
    The ID of `request`, also outside RequestIDMiddleware.

    Handlers for Exception run in ServerErrorMiddleware, after
    RequestIDMiddleware has unwound and reset `request_id_var`; the copy
    on `request.state` is still there.
    """
    return request_id_var.get("") or getattr(request.state, "request_id", "")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Outermost of the app's own middleware: everything after it can log the request ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = accepted_client_id(request.headers.get(REQUEST_ID_HEADER)) or new_request_id()
        request.state.request_id = rid

        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
