"""
api/main.py -- FastAPI application entry point for TaskGuard.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. log_requests          -- method, path, status, latency per request

Authentication is not an ASGI middleware: it runs as router-level
dependencies (auth/dependencies.py) so public routes stay public and the
admin role gate can be stacked after it per router.

Lifespan assembles the object graph once at startup and tears it down
symmetrically:
  Settings -> AccountStore / TaskStore -> PasswordHasher -> TokenService
  -> AccountService / TaskService, all placed on app.state.
The signing secret reaches TokenService here and nowhere else.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.models import ErrorResponse, HealthResponse
from api.routes.v1.auth import admin_router as account_admin_router
from api.routes.v1.auth import router as auth_router
from api.routes.v1.tasks import admin_router as task_admin_router
from api.routes.v1.tasks import router as tasks_router
from auth.accounts import AccountService
from auth.passwords import PasswordHasher
from auth.store import AccountStore
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import AuthenticationFailure, TaskGuardError
from tasks.service import TaskService
from tasks.store import TaskStore

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("taskguard.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build stores and services on startup, close the stores on shutdown.

    A failure to open the database raises out of startup and stops the
    process -- the only fatal condition in TaskGuard.
    """
    settings = get_settings()
    logger.info("TaskGuard API starting up")
    app.state.settings = settings
    app.state.account_store = AccountStore(settings.database_url)
    app.state.task_store = TaskStore(settings.database_url)
    logger.info("Stores initialized")

    app.state.token_service = TokenService(
        settings.secret_key,
        lifetime=timedelta(seconds=settings.token_lifetime_seconds),
    )
    app.state.accounts = AccountService(
        app.state.account_store,
        PasswordHasher(rounds=settings.bcrypt_rounds),
        app.state.token_service,
        timeout=settings.operation_timeout_seconds,
    )
    app.state.tasks = TaskService(app.state.task_store, timeout=settings.operation_timeout_seconds)
    logger.info("Auth initialized (operation timeout %.1fs)", settings.operation_timeout_seconds)

    yield

    app.state.account_store.close()
    app.state.task_store.close()
    logger.info("TaskGuard API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="TaskGuard API",
    description="Task management API guarded by bearer tokens and role-based access control.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


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

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(account_admin_router, prefix="/api/v1", tags=["Admin"])
app.include_router(tasks_router, prefix="/api/v1", tags=["Tasks"])
app.include_router(task_admin_router, prefix="/api/v1", tags=["Admin"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error leaves as {"error": "<message>"} so clients parse one shape.
# ---------------------------------------------------------------------------


@app.exception_handler(TaskGuardError)
async def domain_error_handler(request: Request, exc: TaskGuardError) -> JSONResponse:
    """Render a domain error with its own status code and client-safe message."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationFailure) else None
    if exc.status_code >= 500:
        logger.error("%s on %s %s", type(exc).__name__, request.method, request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or path params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(error="Request validation failed.", detail=str(exc.errors())).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return the common envelope for HTTP exceptions, unknown routes and methods included."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="An unexpected error occurred.").model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No authentication.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and database reachability.

    A plain def: FastAPI runs it in the threadpool, so the blocking pings
    never stall the event loop.
    """
    db_ok = request.app.state.account_store.ping() and request.app.state.task_store.ping()
    return HealthResponse(
        version=VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
