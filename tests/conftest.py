"""
tests/conftest.py -- Shared test fixtures for LedgerGate.

This module provides:
  - make_config(): a fixed LoginConfig with a cheap KDF round count
  - seed_login(): creates a login with N linked accounts in a CredentialStore
  - credential_store / subscription_store: isolated in-memory stores
  - api_client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
API fixture because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format shares one in-memory instance
across all connections in the same process.

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import itertools
import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set DEBUG before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.engine import LoginEngine
from auth.hashing import hash_credential
from auth.models import LoginConfig
from auth.store import CredentialStore
from billing.store import SubscriptionStore

SIGNING_SECRET = b"test-signing-secret-for-ledgergate-0123456789"
API_DOMAIN = "api.ledgergate.test"
PASSWORD = "correct horse battery"

_email_counter = itertools.count(1)


def make_config(billing_enabled: bool = False, signing_secret: bytes = SIGNING_SECRET) -> LoginConfig:
    """LoginConfig for tests. kdf_rounds=4 keeps bcrypt.kdf fast."""
    return LoginConfig(
        billing_enabled=billing_enabled,
        api_domain=API_DOMAIN,
        signing_secret=signing_secret,
        credential_pepper="test-pepper",
        kdf_rounds=4,
    )


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}{next(_email_counter)}@example.com"


@dataclass
class SeededLogin:
    email: str
    password: str
    login_id: int
    account_ids: list[int]
    user_ids: list[int]


def seed_login(
    store: CredentialStore,
    config: LoginConfig,
    accounts: int = 1,
    email: str | None = None,
    password: str = PASSWORD,
) -> SeededLogin:
    """Create a login with `accounts` linked users, hashed the way the engine hashes."""
    email = email or unique_email()
    digest = hash_credential(email, password, pepper=config.credential_pepper, rounds=config.kdf_rounds)
    login_id = store.create_login(email, digest)
    account_ids: list[int] = []
    user_ids: list[int] = []
    for _ in range(accounts):
        account_id = store.create_account()
        account_ids.append(account_id)
        user_ids.append(store.link_user(login_id, account_id))
    return SeededLogin(email, password, login_id, account_ids, user_ids)


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> LoginConfig:
    return make_config()


@pytest.fixture
def credential_store() -> Generator[CredentialStore, None, None]:
    store = CredentialStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def subscription_store() -> Generator[SubscriptionStore, None, None]:
    store = SubscriptionStore("sqlite:///:memory:")
    yield store
    store.close()


# ---------------------------------------------------------------------------
# API fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@dataclass
class ApiEnv:
    client: TestClient
    store: CredentialStore
    subscriptions: SubscriptionStore
    config: LoginConfig


def _patch_lifespan(store: CredentialStore, subscriptions: SubscriptionStore, config: LoginConfig):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores and a fixed LoginConfig into app.state so
    routes see isolated test DBs and a known signing key. Billing is disabled
    and captcha is off; individual tests swap app.state entries to cover the
    other branches.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.login_config = config
        app.state.credential_store = store
        app.state.subscription_source = subscriptions
        app.state.login_engine = LoginEngine(store, config)
        app.state.captcha = None
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiEnv, None, None]:
    """Yield an ApiEnv for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use isolated in-memory stores. base_url uses
    localhost so TrustedHostMiddleware accepts the requests.
    """
    suffix = request.module.__name__.rsplit(".", 1)[-1]
    db_url = f"sqlite:///file:test_ledgergate_{suffix}?mode=memory&cache=shared&uri=true"
    store = CredentialStore(db_url)
    subscriptions = SubscriptionStore(db_url)
    config = make_config()

    app.router.lifespan_context = _patch_lifespan(store, subscriptions, config)

    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        yield ApiEnv(client, store, subscriptions, config)

    subscriptions.close()
    store.close()
