"""
billing/models.py -- Domain types for subscription state.

Subscription mirrors one record from the billing provider. status keeps the
provider's own vocabulary; billing/resolver.py is the only place that
interprets it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BillingState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"  # unrecognized provider status; never treated as inactive


@dataclass
class Subscription:
    account_id: int
    status: str  # provider vocabulary, e.g. "active", "trialing", "past_due"
    id: int | None = None
    created_at: str | None = None
