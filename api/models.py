"""
API request and response models for LedgerGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Wire field names are camelCase (token, nextUrl, userId, ...) for clients of
the existing login API; Python attributes stay snake_case via alias_generator.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import TokenClaims, User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/authentication/login.

    Only shape is validated here. Trimming, lowercasing and the password
    length rule belong to the login engine so every caller gets them.
    """

    email: str = Field(default="", max_length=255)
    password: str = ""
    captcha: Optional[str] = Field(default=None, max_length=4096)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class LinkedUser(_CamelModel):
    """One login <-> account binding offered for account selection."""

    user_id: int
    login_id: int
    account_id: int

    @classmethod
    def from_user(cls, user: User) -> "LinkedUser":
        return cls(user_id=user.id, login_id=user.login_id, account_id=user.account_id)


class LoginResponse(_CamelModel):
    """Response body for a successful login.

    next_url is present only when the account needs a subscription; users
    only when the login must pick an account.
    """

    token: str
    next_url: Optional[str] = None
    users: Optional[list[LinkedUser]] = None


class MeResponse(_CamelModel):
    """Response for GET /api/v1/authentication/me -- the verified token claims."""

    login_id: int
    user_id: int
    account_id: int
    sub_status: bool
    expires_at: int

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "MeResponse":
        return cls(
            login_id=claims.login_id,
            user_id=claims.user_id,
            account_id=claims.account_id,
            sub_status=claims.authorized,
            expires_at=claims.expires_at,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
