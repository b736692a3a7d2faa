"""FastAPI application factory.

Learn: App factory pattern. create_app() returns a configured FastAPI
instance. Lifespan creates missing tables at startup and disposes the
engine at shutdown. Middleware, CORS, error rendering, and routers are
all registered here.

Every error leaves the app as JSON with an "error" field:
- HTTPException (raised by routes/dependencies) → {"error": detail}
- request validation → 400 {"error": ..., "errors": {field: [msg, ...]}}
- anything unhandled → 500 {"error": "An unexpected error occurred."}
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pondobro import __version__
from pondobro.api import api_router
from pondobro.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    from pondobro.db.engine import create_tables, engine, ensure_sqlite_directory

    logger.info(
        "pondobro.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    ensure_sqlite_directory(settings.database_url)
    await create_tables(engine)
    logger.info("pondobro.schema_ready")

    yield

    logger.info("pondobro.shutdown")
    await engine.dispose()


# ─── Error rendering ─────────────────────────────────────


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p != "body"]
    return ".".join(parts) or "body"


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        errors.setdefault(_field_name(tuple(err.get("loc", ()))), []).append(err["msg"])
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("pondobro.unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "An unexpected error occurred."},
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="PondoBro API",
        description="Personal finance tracker: accounts, sessions, transactions, dashboard",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from pondobro.middleware.request_id import RequestIdMiddleware
    from pondobro.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: pondobro.main:app)
app = create_app()
