"""
api/routes/v1/authentication.py -- Login REST endpoints.

Routes:
  POST /api/v1/authentication/login  -- password login; returns a login token
  GET  /api/v1/authentication/me     -- claims of the caller's token (requires auth)

Security:
  Captcha is verified before the engine runs (when RECAPTCHA_SECRET is set).
  Unknown email and wrong password share one 403 response so the endpoint
  cannot be used to enumerate accounts.
  Unsupported subscription statuses return a generic 501; detail goes to the
  alert log only.
  Cache-Control: no-store on every login response.
"""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, LinkedUser, LoginRequest, LoginResponse, MeResponse
from auth.dependencies import get_current_claims
from auth.engine import LoginEngine
from auth.errors import FailureKind
from auth.models import (
    Authenticated,
    AuthenticatedNeedsSubscription,
    Disambiguation,
    Failure,
    Outcome,
    TokenClaims,
)
from auth.tokens import TOKEN_LIFETIME
from core.config import get_settings

# Auth policy:
# - POST /api/v1/authentication/login: public -- login endpoint must be unauthenticated
# - GET  /api/v1/authentication/me:    requires a login token (get_current_claims)
router = APIRouter()

_FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.INVALID_INPUT: 400,
    FailureKind.INVALID_CREDENTIALS: 403,
    FailureKind.NO_LINKED_ACCOUNTS: 403,
    FailureKind.UNSUPPORTED_BILLING_STATUS: 501,
    FailureKind.INFRASTRUCTURE: 500,
}


@router.post("/authentication/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Declared as a plain def: the engine does blocking DB, billing and KDF
    work, so FastAPI runs it in the thread pool.
    """
    captcha = request.app.state.captcha
    if captcha is not None:
        remote_ip = request.client.host if request.client else None
        if not captcha.verify(body.captcha, remote_ip):
            return _error_response(400, "captcha_required", "valid ReCAPTCHA is required")

    engine: LoginEngine = request.app.state.login_engine
    deadline = time.monotonic() + get_settings().login_timeout_seconds
    outcome = engine.login(body.email, body.password, deadline=deadline)
    return _outcome_response(outcome)


@router.get("/authentication/me", response_model=MeResponse)
async def me(claims: TokenClaims = Depends(get_current_claims)) -> MeResponse:
    """Return the verified claims of the caller's login token."""
    return MeResponse.from_claims(claims)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _outcome_response(outcome: Outcome) -> JSONResponse:
    if isinstance(outcome, Failure):
        return _error_response(_FAILURE_STATUS[outcome.kind], outcome.kind.value, outcome.message)

    if isinstance(outcome, Authenticated):
        body = LoginResponse(token=outcome.token)
    elif isinstance(outcome, AuthenticatedNeedsSubscription):
        body = LoginResponse(token=outcome.token, next_url=outcome.next_url)
    elif isinstance(outcome, Disambiguation):
        body = LoginResponse(token=outcome.token, users=[LinkedUser.from_user(u) for u in outcome.users])
    else:
        raise HTTPException(
            status_code=500,
            detail={"code": "internal_error", "message": "Unhandled login outcome."},
        )

    resp = JSONResponse(status_code=200, content=body.model_dump(by_alias=True, exclude_none=True))
    _set_auth_cookie(resp, outcome.token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(exclude_none=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _set_auth_cookie(response: JSONResponse, token: str) -> None:
    """Write the login token as an httpOnly cookie that expires with the token.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation.
    secure: only sent over HTTPS when SECURE_COOKIES=true.
    """
    response.set_cookie(
        "access_token",
        value=token,
        httponly=True,
        samesite="lax",
        secure=get_settings().secure_cookies,
        max_age=int(TOKEN_LIFETIME.total_seconds()),
    )
