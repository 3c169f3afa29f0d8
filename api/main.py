"""
api/main.py -- FastAPI application entry point for LedgerGate.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins

Lifespan handles startup (stores, billing source, login engine, captcha) and
shutdown (dispose connections, close HTTP sessions) symmetrically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from api.captcha import RecaptchaVerifier
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.authentication import router as authentication_router
from auth.engine import LoginEngine
from auth.store import CredentialStore
from billing.client import BillingApiClient
from billing.resolver import BillingStatusResolver
from billing.store import SubscriptionStore
from core.config import get_settings

API_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("ledgergate.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.

    Startup order matters:
      1. Settings first -- an invalid SECRET_KEY must stop the server before
         anything else is opened.
      2. Stores and billing source -- the engine depends on both.
      3. Login engine last.
    """
    settings = get_settings()
    logger.info("LedgerGate API starting up")

    app.state.login_config = settings.login_config()
    app.state.credential_store = CredentialStore(settings.database_url)

    if settings.billing_api_url:
        app.state.subscription_source = BillingApiClient(
            settings.billing_api_url,
            timeout=settings.billing_timeout_seconds,
            api_key=settings.billing_api_key,
        )
    else:
        app.state.subscription_source = SubscriptionStore(settings.database_url)
    billing = BillingStatusResolver(app.state.subscription_source) if settings.billing_enabled else None

    app.state.login_engine = LoginEngine(app.state.credential_store, app.state.login_config, billing=billing)
    app.state.captcha = (
        RecaptchaVerifier(settings.recaptcha_secret, timeout=settings.recaptcha_timeout_seconds)
        if settings.recaptcha_secret
        else None
    )
    logger.info(
        "Login initialized (billing_enabled=%s, billing_source=%s, captcha=%s)",
        settings.billing_enabled,
        type(app.state.subscription_source).__name__,
        app.state.captcha is not None,
    )

    yield

    # Shutdown
    if app.state.captcha is not None:
        app.state.captcha.close()
    app.state.subscription_source.close()
    app.state.credential_store.close()
    logger.info("LedgerGate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="LedgerGate API",
    description="Password login with account selection and subscription-aware login tokens.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=["localhost", "127.0.0.1", "*.localhost"],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
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

app.include_router(authentication_router, prefix="/api/v1", tags=["Authentication"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when the request body fails validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with a dict detail; that dict is used
    directly as the error field rather than stringified.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
async def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    store: CredentialStore = request.app.state.credential_store
    database = "ok" if store.ping() else "error"
    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": database},
    )
