"""
TechNotes Backend - FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn technotes.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware Chain:                                   │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐         │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │         │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘         │
    │                                                      │
    │  Routes:                                             │
    │  ┌──────────┐ ┌──────────────────┐ ┌──────────────┐  │
    │  │ /users   │ │ /users/{id}/notes│ │ /health  /   │  │
    │  └──────────┘ └──────────────────┘ └──────────────┘  │
    │  Static: /public                                     │
    │                                                      │
    │  Exception Handlers:                                 │
    │  ┌────────────────────────────────────────────────┐  │
    │  │ Validation→400 │ NotFound→404 │ Conflict→409   │  │
    │  │ Database→500   │ no route→negotiated 404       │  │
    │  └────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Create the tables (SQL storage only)
    3. Log the listening address

    Shutdown:
    1. Dispose database engine (close all connections)
    2. Log shutdown complete
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from technotes import __version__
from technotes.config import settings
from technotes.database import dispose_engine, init_models
from technotes.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from technotes.middleware.logging import RequestLoggingMiddleware
from technotes.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDMiddleware,
    current_request_id,
    request_id_var,
)
from technotes.repositories.memory import MemoryStore
from technotes.responses import bad_request, conflict, not_found, server_error
from technotes.routes import health, notes, root, users
from technotes.routes.root import PUBLIC_DIR, not_found_page

logger = logging.getLogger(__name__)

MALFORMED_BODY = "Malformed request body."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s

    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Access lines come from technotes.access instead
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, schema creation, ready message.
    Shutdown: dispose the database engine.

    A store that cannot be reached at startup aborts the process.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("TechNotes Backend starting up (storage: %s)...", settings.storage_backend)

    if settings.uses_sql_storage:
        await init_models()
        logger.info("Database schema ready")

    logger.info("Server running on port %d", settings.port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.port)
    logger.info("=" * 60)

    yield

    logger.info("TechNotes Backend shutting down...")
    if settings.uses_sql_storage:
        await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Translate exceptions into the response contract.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        RequestValidationError  → 400 Bad Request ("Malformed request body.")
        NotFoundError           → 404 Not Found
        ConflictError           → 409 Conflict
        DatabaseError           → 500 Internal Server Error
        HTTPException 404/405   → negotiated 404 (HTML, JSON or text)
        Exception (fallback)    → 500 Internal Server Error

    Responses never carry stack traces or SQL; details are logged server-side.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return bad_request(exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.info("[%s] Malformed request: %s", request_id_var.get(""), exc.errors())
        return bad_request(MALFORMED_BODY)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return not_found(exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.info("[%s] Conflict: %s", request_id_var.get(""), exc.message)
        return conflict(exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return server_error()

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # Unmatched path or unsupported method
        if exc.status_code in (404, 405):
            return not_found_page(request)
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        # Runs outside RequestIDMiddleware, which therefore cannot add the header
        rid = current_request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        response = server_error()
        if rid:
            response.headers[REQUEST_ID_HEADER] = rid
        return response


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Tests build a fresh instance per test; with STORAGE_BACKEND=memory each
    instance gets its own empty store.
    """
    app = FastAPI(
        title="TechNotes API",
        description="Users and their technical notes, with role lists and completion tracking.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    if not settings.uses_sql_storage:
        app.state.memory_store = MemoryStore()

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")
    app.include_router(users.router)
    app.include_router(notes.router)
    app.include_router(health.router)
    app.include_router(root.router)

    return app


# uvicorn imports `technotes.main:app`
app = create_app()
