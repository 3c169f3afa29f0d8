"""
auth/errors.py -- Failure taxonomy for the login flow.

FailureKind is the closed set of reasons a login can fail. Mapping a kind to
an HTTP status is the route layer's job (api/routes/v1/authentication.py).

LoginFailure is raised inside the engine and caught at its boundary, where it
becomes a Failure outcome. CredentialStoreError and TokenSigningError are
infrastructure errors: their detail is logged, never returned to the caller.

Layer rule: stdlib only.
"""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    INVALID_CREDENTIALS = "invalid_credentials"
    NO_LINKED_ACCOUNTS = "no_linked_accounts"
    UNSUPPORTED_BILLING_STATUS = "unsupported_billing_status"
    INFRASTRUCTURE = "infrastructure"


class LoginFailure(Exception):
    """A user-facing login failure. message is safe to return verbatim."""

    def __init__(self, kind: FailureKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class CredentialStoreError(Exception):
    """The credential store could not complete a read."""


class TokenSigningError(Exception):
    """The token could not be signed (missing or unusable key)."""
