"""
auth/dependencies.py -- FastAPI Depends() helpers for token authentication.

Two token locations are checked in priority order:
  1. Authorization: Bearer <token> header -- API clients.
  2. JWT cookie ("access_token") -- set by POST /authentication/login.

try_get_claims() is the soft variant (returns None on failure).
get_current_claims() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: may import from fastapi because this module is part of the
FastAPI dependency injection system. The LoginConfig used for verification
is read from app.state, never from ambient settings.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import LoginConfig, TokenClaims
from auth.tokens import decode_login_token


def try_get_claims(request: Request) -> TokenClaims | None:
    """Return the verified claims of the request's login token, or None."""
    config: LoginConfig = request.app.state.login_config

    token: str | None = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:]
    if not token:
        token = request.cookies.get("access_token")

    if not token:
        return None
    return decode_login_token(token, config)


def get_current_claims(request: Request) -> TokenClaims:
    """Require a valid login token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: TokenClaims = Depends(get_current_claims)): ...
    """
    claims = try_get_claims(request)
    if claims is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return claims
