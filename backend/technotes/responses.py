"""
TechNotes Backend - Response Contract
======================================

What:  The closed set of HTTP response shapes every handler answers with.
How:   Each helper is a pure function of (payload or message) returning a
       Starlette response. Route handlers return exactly one of these; the
       global exception handlers in main.py do the same for failures.

    Helper                 Status   Body
    ok_with_content        200      payload
    created_with_content   201      payload
    bad_request            400      {"message": ...}
    not_found              404      {"message": ...}
    conflict               409      {"message": ...}
    no_content             204      (empty)
    server_error           500      {"message": ...}

Payloads may be Pydantic models (or lists of them); they are encoded with
their aliases, so records go out as `_id`, `createdAt`, `updatedAt`.
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response


def _json(status_code: int, content: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content, by_alias=True))


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def ok_with_content(content: Any) -> JSONResponse:
    return _json(200, content)


def created_with_content(content: Any) -> JSONResponse:
    return _json(201, content)


def bad_request(message: str) -> JSONResponse:
    return _message(400, message)


def not_found(message: str) -> JSONResponse:
    return _message(404, message)


def conflict(message: str) -> JSONResponse:
    return _message(409, message)


def no_content() -> Response:
    return Response(status_code=204)


def server_error(message: str = "An unexpected error occurred. Please try again later.") -> JSONResponse:
    """Generic 5xx body; callers must never pass internal error detail."""
    return _message(500, message)
