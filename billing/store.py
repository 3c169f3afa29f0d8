"""
billing/store.py -- Local mirror of provider subscriptions (SQLAlchemy Core).

The billing provider's webhooks keep this table current; the login flow only
reads it. Used as the SubscriptionSource when BILLING_API_URL is not set.

Layer rule: no imports from api/, auth/, or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from billing.errors import BillingUnavailableError
from billing.models import Subscription

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent.parent / 'ledgergate.db'}"

_metadata = MetaData()

_subscriptions = Table(
    "subscriptions",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account_id", Integer, nullable=False, index=True),
    Column("status", String(30), nullable=False),  # provider vocabulary, stored verbatim
    Column("created_at", String(32), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


class SubscriptionStore:
    """Repository for Subscription records.

    Usage:
        subs = SubscriptionStore()
        subs.set_subscription(account_id, "active")
        sub = subs.get_active_subscription(account_id)
        subs.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def get_active_subscription(self, account_id: int) -> Optional[Subscription]:
        """Return the newest subscription for the account, or None if it never had one.

        Raises BillingUnavailableError on any database failure.
        """
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    _subscriptions.select()
                    .where(_subscriptions.c.account_id == account_id)
                    .order_by(_subscriptions.c.id.desc())
                    .limit(1)
                ).fetchone()
        except SQLAlchemyError as exc:
            raise BillingUnavailableError(f"failed to read subscription for account {account_id}: {exc}") from exc
        return _row_to_subscription(row) if row is not None else None

    def set_subscription(self, account_id: int, status: str) -> int:
        """Record the account's current provider status and return the row ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _subscriptions.insert().values(
                    account_id=account_id,
                    status=status,
                    created_at=datetime.now(timezone.utc).isoformat(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def close(self) -> None:
        self.engine.dispose()


def _row_to_subscription(row) -> Subscription:
    return Subscription(id=row.id, account_id=row.account_id, status=row.status, created_at=row.created_at)
