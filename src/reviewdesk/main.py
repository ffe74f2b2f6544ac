"""FastAPI application factory.

Learn: App factory pattern: create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (schema, admin seeding,
engine disposal). Middleware, CORS, exception handlers and routers are
all registered here.

Every failure leaves the server in the same shape:
    {"success": false, "error": {"message": "..."}}
with the HTTP status carrying the kind (400/401/403/404/409/500).
"""

import traceback
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from reviewdesk import __version__
from reviewdesk.api import api_router
from reviewdesk.config import settings
from reviewdesk.errors import ReviewDeskError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. A failed admin seed is logged; the server still starts.
    """
    logger.info(
        "reviewdesk.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        storage_backend=settings.storage_backend,
    )

    from reviewdesk.db.engine import async_session_factory, create_schema, engine
    from reviewdesk.services.accounts import AccountDirectory
    from reviewdesk.services.seed import ensure_default_admin

    await create_schema()

    try:
        async with async_session_factory() as db:
            await ensure_default_admin(AccountDirectory(db), settings)
    except Exception as e:
        logger.error("reviewdesk.seed_failed", error=str(e))

    yield

    logger.info("reviewdesk.shutdown")
    await engine.dispose()


# ─── Error envelope ──────────────────────────────────────


def error_response(status_code: int, message: str, exc: Exception = None, headers=None):
    """Render the failure envelope. The traceback is only exposed in debug."""
    error = {"message": message}
    if settings.debug and exc is not None:
        error["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )


async def handle_reviewdesk_error(request: Request, exc: ReviewDeskError):
    if exc.status_code >= 500:
        logger.error("request.failed", status=exc.status_code, error=exc.message)
    return error_response(exc.status_code, exc.message, exc, exc.headers)


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message, exc, getattr(exc, "headers", None))


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", message)
    logger.info("request.invalid", path=request.url.path, error=message)
    return error_response(400, message, exc)


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("request.unhandled_error", path=request.url.path)
    return error_response(500, "Internal Server Error", exc)


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="ReviewDesk",
        description="Access control and document delivery for the PDF review service",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from reviewdesk.middleware.request_id import RequestIdMiddleware
    from reviewdesk.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ReviewDeskError, handle_reviewdesk_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: reviewdesk.main:app)
app = create_app()
