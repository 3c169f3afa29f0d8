"""
auth/engine.py -- The login decision engine.

Flow for one attempt:

  1. Validate input   -- lowercase/trim the email, trim the password; reject
                         passwords shorter than 8 characters before any lookup.
  2. Authenticate     -- hash the credential, look the login up. Unknown email
                         and wrong password produce the same failure.
  3. Branch on users  -- 0: no_linked_accounts
                         1: authorize into that account (billing permitting)
                         2+: scoped token (user/account 0) plus the user list
  4. Issue token      -- sign the resolved (login, user, account, authorized).

Every error is translated into exactly one Failure outcome at the login()
boundary. The engine holds no per-request state, so one instance is shared by
all requests.

Layer rule: may import from billing/ (the resolver). No imports from api/ or
core/.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from auth.errors import CredentialStoreError, FailureKind, LoginFailure, TokenSigningError
from auth.hashing import hash_credential
from auth.models import (
    Authenticated,
    AuthenticatedNeedsSubscription,
    Disambiguation,
    Failure,
    LoginConfig,
    Outcome,
    Principal,
)
from auth.tokens import issue_login_token
from billing.errors import BillingUnavailableError
from billing.models import BillingState
from billing.resolver import BillingStatusResolver

logger = logging.getLogger("ledgergate.auth")
_alert_logger = logging.getLogger("ledgergate.alerts")

MIN_PASSWORD_LENGTH = 8

_MSG_INVALID_CREDENTIALS = "invalid email and password"
_MSG_INFRASTRUCTURE = "failed to authenticate"


def _log_alert(message: str) -> None:
    _alert_logger.error(message)


class LoginEngine:
    """Authenticate a credential and decide which login outcome applies.

    Args:
        store:   Anything with find_principal(identifier, digest) -> Principal | None.
        config:  Explicit LoginConfig (billing switch, API domain, signing key).
        billing: Resolver consulted for single-user logins when billing is
                 enabled. Required in that case.
        alert:   Operational alert sink, called when a subscription status
                 is not recognized. Defaults to an ERROR on ledgergate.alerts.
    """

    def __init__(
        self,
        store,
        config: LoginConfig,
        billing: BillingStatusResolver | None = None,
        alert: Callable[[str], None] | None = None,
    ) -> None:
        if config.billing_enabled and billing is None:
            raise ValueError("billing is enabled but no BillingStatusResolver was provided")
        self._store = store
        self._config = config
        self._billing = billing
        self._alert = alert or _log_alert

    def login(self, identifier: str, secret: str, deadline: float | None = None) -> Outcome:
        """Run one login attempt and return its Outcome.

        deadline is an optional time.monotonic() value; once it passes, the
        attempt stops before the next external call and no token is issued.
        """
        try:
            return self._login(identifier, secret, deadline)
        except LoginFailure as exc:
            return Failure(kind=exc.kind, message=exc.message)
        except (CredentialStoreError, BillingUnavailableError, TokenSigningError) as exc:
            logger.error("Login aborted by infrastructure error: %s", exc)
            return Failure(kind=FailureKind.INFRASTRUCTURE, message=_MSG_INFRASTRUCTURE)

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def _login(self, identifier: str, secret: str, deadline: float | None) -> Outcome:
        identifier = identifier.strip().lower()
        secret = secret.strip()
        if len(secret) < MIN_PASSWORD_LENGTH:
            raise LoginFailure(
                FailureKind.INVALID_INPUT,
                f"password must be at least {MIN_PASSWORD_LENGTH} characters",
            )

        principal = self._authenticate(identifier, secret, deadline)

        if not principal.users:
            raise LoginFailure(FailureKind.NO_LINKED_ACCOUNTS, "user has no accounts")

        if len(principal.users) > 1:
            # The scoped token only reaches account-selection endpoints; billing
            # is checked once an account is chosen.
            _check_deadline(deadline)
            token = issue_login_token(principal.id, 0, 0, True, self._config)
            return Disambiguation(token=token, users=list(principal.users))

        user = principal.users[0]
        authorized = self._authorize(user.account_id, deadline)

        _check_deadline(deadline)
        token = issue_login_token(principal.id, user.id, user.account_id, authorized, self._config)
        if authorized:
            return Authenticated(token=token)
        return AuthenticatedNeedsSubscription(token=token)

    def _authenticate(self, identifier: str, secret: str, deadline: float | None) -> Principal:
        digest = hash_credential(
            identifier,
            secret,
            pepper=self._config.credential_pepper,
            rounds=self._config.kdf_rounds,
        )
        _check_deadline(deadline)
        # No stored login can hold an email that is not valid UTF-8.
        principal = self._store.find_principal(identifier, digest) if _is_utf8(identifier) else None
        if principal is None:
            raise LoginFailure(FailureKind.INVALID_CREDENTIALS, _MSG_INVALID_CREDENTIALS)
        return principal

    def _authorize(self, account_id: int, deadline: float | None) -> bool:
        if not self._config.billing_enabled:
            return True

        _check_deadline(deadline)
        state = self._billing.resolve(account_id)
        if state is BillingState.ACTIVE:
            return True
        if state is BillingState.INACTIVE:
            return False

        self._alert(f"invalid subscription status for account {account_id}")
        raise LoginFailure(
            FailureKind.UNSUPPORTED_BILLING_STATUS,
            "invalid subscription status, contact support",
        )


def _check_deadline(deadline: float | None) -> None:
    if deadline is not None and time.monotonic() >= deadline:
        logger.warning("Login attempt exceeded its deadline")
        raise LoginFailure(FailureKind.INFRASTRUCTURE, _MSG_INFRASTRUCTURE)


def _is_utf8(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True
