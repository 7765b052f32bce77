"""
Student API — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn student_api.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────┐ ┌─────────────────┐                       │
    │  │ Req ID   │→│  Logging        │                       │
    │  └──────────┘ └─────────────────┘                       │
    │                                                         │
    │  Routes:                                                │
    │  /insert  /documents  /document/{id}  /changes          │
    │  /upload  /file/{docID}/{filename}  /health  /swagger/* │
    │                                                         │
    │  Exception Handlers:                                    │
    │  Validation→400 │ NotFound→404 │ Store→500 │ other→500  │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Build the shared CouchDB client
    3. Create the `student` database if it is missing; any failure here
       aborts startup and the process exits
    Shutdown:
    1. Close the CouchDB client's connection pool
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from student_api import __version__
from student_api.config import settings
from student_api.database import bootstrap_database, create_couch_client
from student_api.exceptions import (
    NotFoundError,
    StoreError,
    StudentApiError,
    ValidationError,
)
from student_api.middleware.logging import RequestLoggingMiddleware
from student_api.middleware.request_id import RequestIDMiddleware, request_id_var
from student_api.routes import documents, files, health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging once, before anything else at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from the server and the HTTP client
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Own the CouchDB client for the lifetime of the process.

    The client is stored on `app.state.couch` and reaches handlers through
    the `get_couch` dependency.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Student API %s starting up...", __version__)

    couch = create_couch_client(settings)
    try:
        await bootstrap_database(couch)
    except StudentApiError as e:
        logger.critical(
            "Cannot prepare database '%s' at %s: %s",
            settings.couchdb_database,
            settings.couchdb_url,
            e.message,
        )
        await couch.aclose()
        raise

    app.state.couch = couch
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info(
        "API docs: http://%s:%d/swagger/index.html",
        settings.backend_host,
        settings.backend_port,
    )

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Student API shutting down...")
    await couch.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError       → 400 Bad Request
        NotFoundError         → 404 Not Found
        StoreError            → 500 (message carries the store's error text)
        StudentApiError       → 500
        Exception (fallback)  → 500, traceback logged server-side only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        rid = request_id_var.get("")
        logger.error("[%s] Store error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "store_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StudentApiError)
    async def handle_app_error(request: Request, exc: StudentApiError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers."""
    app = FastAPI(
        title="Student API",
        description="A simple API to interact with CouchDB and perform CRUD operations.",
        version=__version__,
        docs_url="/swagger/index.html",
        redoc_url=None,
        openapi_url="/swagger/doc.json",
        lifespan=lifespan,
    )

    # Last added executes first: RequestID → Logging → route
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(documents.router)
    app.include_router(files.router)
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "student_api.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
