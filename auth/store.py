"""
auth/store.py -- SQLAlchemy Core persistence layer for logins, accounts and users.

Pattern: Repository + Data Mapper.
CredentialStore is the repository; _row_to_user is the
mapper. Engine and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  find_principal() selects by email and then compares the digest with
  hmac.compare_digest() rather than matching password_hash in the WHERE
  clause, so the comparison runs in constant time.

Consistency:
  find_principal() reads the login row and its users inside one
  engine.begin() transaction. Under WAL journaling that transaction sees a
  single snapshot, so a concurrent link/unlink cannot produce a half-joined
  result.

Schema:
  logins   -- one row per credential (email is unique, stored lowercase)
  accounts -- authorization boundary
  users    -- login <-> account bindings (a login may have 0..N)

Layer rule: no imports from api/, core/, or billing/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from auth.errors import CredentialStoreError
from auth.hashing import digests_match
from auth.models import Principal, User

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent.parent / 'ledgergate.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_logins = Table(
    "logins",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),  # auth.hashing digest
    Column("created_at", String(32), nullable=False),
)

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("created_at", String(32), nullable=False),
)

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("login_id", Integer, ForeignKey("logins.id"), nullable=False, index=True),
    Column("account_id", Integer, ForeignKey("accounts.id"), nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for logins, accounts and their linked users.

    Usage:
        store = CredentialStore()
        login_id = store.create_login("me@example.com", hash_credential("me@example.com", "hunter2hunter2"))
        account_id = store.create_account()
        store.link_user(login_id, account_id)
        principal = store.find_principal("me@example.com", digest)
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync route handlers in a thread pool, so the same
            # pooled connection may be used from several threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_principal(self, identifier: str, digest: str) -> Principal | None:
        """Return the login matching (identifier, digest) with its linked users.

        Returns None when the email is unknown or the digest does not match --
        the two cases are deliberately indistinguishable. A matched login with
        no users comes back as a Principal with an empty users list.

        Raises CredentialStoreError on any database failure.
        """
        try:
            with self.engine.begin() as conn:
                row = conn.execute(_logins.select().where(_logins.c.email == identifier)).fetchone()
                if row is None or not digests_match(row.password_hash, digest):
                    return None
                user_rows = conn.execute(
                    select(_users)
                    .join(_accounts, _accounts.c.id == _users.c.account_id)
                    .where(_users.c.login_id == row.id)
                    .order_by(_users.c.id)
                ).fetchall()
        except SQLAlchemyError as exc:
            raise CredentialStoreError(f"failed to look up login: {exc}") from exc
        return Principal(
            id=row.id,
            identifier=row.email,
            digest=row.password_hash,
            users=[_row_to_user(r) for r in user_rows],
        )

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    # ------------------------------------------------------------------
    # Seeding (operator scripts and tests; not exposed over HTTP)
    # ------------------------------------------------------------------

    def create_login(self, email: str, password_hash: str) -> int:
        """Insert a login and return its ID.

        email must already be normalized (trimmed, lowercase) and
        password_hash computed with the same pepper and round count the
        engine uses. Raises sqlalchemy.exc.IntegrityError on a duplicate email.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _logins.insert().values(email=email, password_hash=password_hash, created_at=_now_iso())
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def create_account(self) -> int:
        """Insert an account and return its ID."""
        with self.engine.connect() as conn:
            result = conn.execute(_accounts.insert().values(created_at=_now_iso()))
            conn.commit()
            return result.inserted_primary_key[0]

    def link_user(self, login_id: int, account_id: int) -> int:
        """Bind a login to an account and return the new user ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(login_id=login_id, account_id=account_id, created_at=_now_iso())
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(id=row.id, login_id=row.login_id, account_id=row.account_id)
