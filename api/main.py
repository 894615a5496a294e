"""
api/main.py -- FastAPI application entry point for the Judgment Notes API.

Run with:  python main.py serve
           uvicorn api.main:app --reload   (migrations must already be applied)

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- all origins, methods and headers; 204 preflight
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan opens the shared SQLAlchemy engine, builds the stores on app.state,
and disposes the engine on shutdown. Migrations are NOT run here: main.py
applies them before the listener opens, so a failed migration never leaves a
half-started server accepting requests.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Receive, Scope, Send

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.judgments import router as judgments_router
from api.routes.users import router as users_router
from auth.store import UserStore
from core.config import get_settings
from core.database import make_engine
from core.errors import AppError
from judgments.store import JudgmentStore

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("judgmentnotes.api")

API_VERSION = "1.0.0"


class UTF8JSONResponse(JSONResponse):
    """JSONResponse that states its charset explicitly."""

    media_type = "application/json; charset=utf-8"


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that answers every OPTIONS request with 204 No Content.

    A real preflight (Access-Control-Request-Method present) goes through
    Starlette's checks and has its 200 "OK" rewritten to 204. Any other
    OPTIONS request, for any path, gets 204 with the simple CORS headers
    instead of reaching the router.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["method"] == "OPTIONS":
            if "access-control-request-method" not in Headers(scope=scope):
                await Response(status_code=204, headers=dict(self.simple_headers))(scope, receive, send)
                return
        await super().__call__(scope, receive, send)

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {k: v for k, v in response.headers.items() if k not in ("content-length", "content-type")}
        return Response(status_code=204, headers=headers)


# ---------------------------------------------------------------------------
# Lifespan -- engine and stores
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the process-wide engine for the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown, even if a request handler raised.
    """
    logger.info("Judgment Notes API starting up")
    engine = make_engine(_settings.database_url)
    app.state.engine = engine
    app.state.user_store = UserStore(engine)
    app.state.judgment_store = JudgmentStore(engine)
    logger.info("Database engine initialized (%s)", engine.url.get_backend_name())

    yield

    engine.dispose()
    logger.info("Judgment Notes API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Judgment Notes API",
    description="Judgment note records with JWT authentication and role-based access control.",
    version=API_VERSION,
    lifespan=lifespan,
    default_response_class=UTF8JSONResponse,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() wraps the existing stack, so the LAST registered
# middleware is the outermost. Register innermost first: SlowAPI -> CORS ->
# TrustedHost.
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler; wall-clock time around call_next gives per-request latency.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(judgments_router, prefix="/api", tags=["Judgments"])
app.include_router(users_router, prefix="/api", tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error leaves as {"error": "<message>", "code": ..., "detail": ...};
# only the status code differs.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> UTF8JSONResponse:
    return UTF8JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, code=code, detail=detail).model_dump(),
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map service-layer error kinds to their HTTP status."""
    return _error(exc.status_code, exc.code, exc.message, exc.detail)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    slowapi stores the retry window on the exception as exc.retry_after
    when it knows it; fall back to a minute.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON, wrong types, bad dates: 400 like any other invalid input."""
    return _error(400, "validation_error", "invalid payload", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing-level errors (404 unknown path, 405 wrong method) in the same envelope."""
    response = _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store failures the services did not classify (conflicts are classified).

    The raw driver message is included only in DEBUG mode; in production it is
    written to the log, never to the response body.
    """
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "database error", str(exc) if _settings.debug else None)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Registered on the app itself, outside the /api routers. Not rate limited.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    """Liveness check."""
    return HealthResponse()
