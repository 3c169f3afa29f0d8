"""
billing/client.py -- HTTP client for an external billing service.

Used as the SubscriptionSource when BILLING_API_URL is set. Contract:

  GET {base_url}/accounts/{account_id}/subscription
    200 {"status": "<provider status>", ...}  -> Subscription
    404                                        -> None (never subscribed)
    anything else / network failure            -> BillingUnavailableError

Unlike the best-effort enrichment fetchers elsewhere, failures here are not
swallowed: returning None would be read as "inactive" and issue a token.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from billing.errors import BillingUnavailableError
from billing.models import Subscription

logger = logging.getLogger("ledgergate.billing")


class BillingApiClient:
    def __init__(self, base_url: str, timeout: float = 5.0, api_key: str = "") -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        # Known internal service -- no reason to follow long redirect chains.
        self._session.max_redirects = 3
        if api_key:
            self._session.headers["Authorization"] = f"Bearer {api_key}"

    def get_active_subscription(self, account_id: int) -> Optional[Subscription]:
        url = f"{self.base_url}/accounts/{account_id}/subscription"
        try:
            resp = self._session.get(url, timeout=self.timeout)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Billing lookup failed for account %d: %s", account_id, exc)
            raise BillingUnavailableError(f"billing lookup failed for account {account_id}") from exc

        status = data.get("status") if isinstance(data, dict) else None
        if not isinstance(status, str):
            raise BillingUnavailableError(f"billing response for account {account_id} has no status")
        return Subscription(account_id=account_id, status=status, created_at=data.get("created_at"))

    def close(self) -> None:
        self._session.close()
