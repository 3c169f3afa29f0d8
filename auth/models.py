"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores return these,
the engine branches on them, and api/ maps them onto response models.

Layer rule: no imports from api/, core/, or billing/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from auth.errors import FailureKind


@dataclass
class User:
    """A usable account binding for a login.

    A login with exactly one User authenticates straight into that account;
    a login with several must pick one in a follow-up request.
    """

    id: int
    login_id: int
    account_id: int


@dataclass
class Principal:
    """A login record (the authentication anchor) with its linked users.

    identifier is the normalized email address. digest is the stored
    credential digest produced by auth.hashing.hash_credential().
    """

    id: int
    identifier: str
    digest: str
    users: list[User] = field(default_factory=list)


@dataclass(frozen=True)
class LoginConfig:
    """Explicit configuration for the login engine and token issuer.

    Built once from core.config.Settings.login_config(); tests construct it
    directly so nothing in auth/ reads ambient settings.
    """

    billing_enabled: bool
    api_domain: str
    signing_secret: bytes
    credential_pepper: str = ""
    kdf_rounds: int = 50


@dataclass(frozen=True)
class TokenClaims:
    """Claims carried by a login token.

    user_id and account_id are 0 on the scoped token issued when a login has
    several users. Timestamps are UNIX seconds.
    """

    login_id: int
    user_id: int
    account_id: int
    authorized: bool
    audience: str
    issuer: str
    subject: str
    issued_at: int
    not_before: int
    expires_at: int


# ---------------------------------------------------------------------------
# Login outcomes -- exactly one is returned per login attempt
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Authenticated:
    token: str


@dataclass(frozen=True)
class AuthenticatedNeedsSubscription:
    """Valid login whose account has no active subscription.

    The token is issued with authorized=False; next_url points the client at
    the subscribe page.
    """

    token: str
    next_url: str = "/account/subscribe"


@dataclass(frozen=True)
class Disambiguation:
    """Scoped token plus every linked user so the client can pick an account."""

    token: str
    users: list[User]


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str


Outcome = Union[Authenticated, AuthenticatedNeedsSubscription, Disambiguation, Failure]
