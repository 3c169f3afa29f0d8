"""
billing/resolver.py -- Map provider subscription statuses onto BillingState.

Provider statuses are never branched on outside this module. Every status the
login flow understands is listed explicitly below; anything else maps to
BillingState.UNKNOWN, which the login engine treats as fatal. A new provider
status therefore fails closed instead of silently granting (or revoking)
access.

A missing subscription maps to INACTIVE: "never subscribed" and "lapsed" are
handled the same way.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from billing.models import BillingState, Subscription

logger = logging.getLogger("ledgergate.billing")

# Stripe subscription status vocabulary.
_ACTIVE_STATUSES = frozenset({"active", "trialing"})
_INACTIVE_STATUSES = frozenset({"past_due", "unpaid", "canceled", "incomplete", "incomplete_expired"})


class SubscriptionSource(Protocol):
    def get_active_subscription(self, account_id: int) -> Optional[Subscription]: ...


def map_subscription_status(status: Optional[str]) -> BillingState:
    """Translate a provider status (or None for no subscription) to BillingState."""
    if status is None:
        return BillingState.INACTIVE
    if status in _ACTIVE_STATUSES:
        return BillingState.ACTIVE
    if status in _INACTIVE_STATUSES:
        return BillingState.INACTIVE
    return BillingState.UNKNOWN


class BillingStatusResolver:
    """Resolve an account's BillingState through a SubscriptionSource.

    Source errors (BillingUnavailableError) propagate to the caller.
    """

    def __init__(self, source: SubscriptionSource) -> None:
        self._source = source

    def resolve(self, account_id: int) -> BillingState:
        subscription = self._source.get_active_subscription(account_id)
        status = subscription.status if subscription is not None else None
        state = map_subscription_status(status)
        if state is BillingState.UNKNOWN:
            logger.warning("Account %d has unrecognized subscription status %r", account_id, status)
        return state
