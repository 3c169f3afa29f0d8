"""
auth/tokens.py -- Login token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with LoginConfig.signing_secret
       (SECRET_KEY) and carry loginId, userId, accountId and subStatus next to
       the registered claims. Lifetime is fixed at 31 days.

  Claims are built as a TokenClaims dataclass and mapped to the wire payload
  in one place (_claims_to_payload / _payload_to_claims), so issuer and
  verifier cannot drift apart on key names.

  Verification returns None on any failure -- the route layer turns that into
  a 401.

  A signing failure is a misconfiguration, never a user error: it is raised as
  TokenSigningError and surfaced by the engine as an infrastructure failure.

Layer rule: no imports from api/ or core/. Configuration arrives as a
LoginConfig argument.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.errors import TokenSigningError
from auth.models import LoginConfig, TokenClaims

logger = logging.getLogger("ledgergate.auth")

_ALGORITHM = "HS256"

TOKEN_LIFETIME = timedelta(days=31)
TOKEN_SUBJECT = "ledgergate"


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------


def build_claims(
    login_id: int,
    user_id: int,
    account_id: int,
    authorized: bool,
    config: LoginConfig,
    now: datetime | None = None,
) -> TokenClaims:
    """Return the claims for a freshly issued login token."""
    issued = int((now or datetime.now(timezone.utc)).timestamp())
    return TokenClaims(
        login_id=login_id,
        user_id=user_id,
        account_id=account_id,
        authorized=authorized,
        audience=config.api_domain,
        issuer=config.api_domain,
        subject=TOKEN_SUBJECT,
        issued_at=issued,
        not_before=issued,
        expires_at=issued + int(TOKEN_LIFETIME.total_seconds()),
    )


def _claims_to_payload(claims: TokenClaims) -> dict:
    return {
        "loginId": claims.login_id,
        "userId": claims.user_id,
        "accountId": claims.account_id,
        "subStatus": claims.authorized,
        "aud": [claims.audience],
        "iss": claims.issuer,
        "sub": claims.subject,
        "iat": claims.issued_at,
        "nbf": claims.not_before,
        "exp": claims.expires_at,
    }


def _payload_to_claims(payload: dict) -> TokenClaims:
    audience = payload["aud"]
    if isinstance(audience, list):
        audience = audience[0]
    return TokenClaims(
        login_id=int(payload["loginId"]),
        user_id=int(payload["userId"]),
        account_id=int(payload["accountId"]),
        authorized=bool(payload["subStatus"]),
        audience=audience,
        issuer=payload["iss"],
        subject=payload["sub"],
        issued_at=int(payload["iat"]),
        not_before=int(payload["nbf"]),
        expires_at=int(payload["exp"]),
    )


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def sign_claims(claims: TokenClaims, config: LoginConfig) -> str:
    """Sign an already-built TokenClaims. Raises TokenSigningError on misconfiguration."""
    if not config.signing_secret:
        raise TokenSigningError("token signing key is not configured")
    try:
        return jwt.encode(_claims_to_payload(claims), config.signing_secret, algorithm=_ALGORITHM)
    except JWTError as exc:
        raise TokenSigningError(f"failed to sign token: {exc}") from exc


def issue_login_token(
    login_id: int,
    user_id: int,
    account_id: int,
    authorized: bool,
    config: LoginConfig,
    now: datetime | None = None,
) -> str:
    """Build and sign a login token.

    Args:
        login_id:   ID of the authenticated login.
        user_id:    Selected user, or 0 for the account-selection token.
        account_id: Selected account, or 0 for the account-selection token.
        authorized: False when billing is enabled and the account has no
                    active subscription.
        config:     Supplies the API domain (aud/iss) and the signing key.
        now:        Issue time override, for tests.
    """
    claims = build_claims(login_id, user_id, account_id, authorized, config, now=now)
    return sign_claims(claims, config)


def decode_login_token(token: str, config: LoginConfig) -> TokenClaims | None:
    """Verify a login token and return its claims, or None on any failure.

    Checks signature, exp/nbf/iat, audience, issuer and subject.
    """
    try:
        payload = jwt.decode(
            token,
            config.signing_secret,
            algorithms=[_ALGORITHM],
            audience=config.api_domain,
            issuer=config.api_domain,
            subject=TOKEN_SUBJECT,
        )
        return _payload_to_claims(payload)
    except JWTError:
        return None
    except (KeyError, TypeError, ValueError, IndexError):
        logger.warning("Login token with valid signature is missing required claims")
        return None
