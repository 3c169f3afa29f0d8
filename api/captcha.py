"""
api/captcha.py -- Google reCAPTCHA verification for the login endpoint.

Runs before the login engine. Enabled only when RECAPTCHA_SECRET is set; the
API lifespan leaves app.state.captcha as None otherwise.

Fails closed: a network error or malformed response counts as a failed
captcha, logged at WARNING.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

logger = logging.getLogger("ledgergate.captcha")

RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class RecaptchaVerifier:
    def __init__(self, secret: str, timeout: float = 5.0) -> None:
        self._secret = secret
        self.timeout = timeout
        self._session = requests.Session()
        self._session.max_redirects = 3

    def verify(self, response_token: Optional[str], remote_ip: Optional[str] = None) -> bool:
        """Return True if Google accepts the client's captcha response."""
        if not response_token:
            return False
        data = {"secret": self._secret, "response": response_token}
        if remote_ip:
            data["remoteip"] = remote_ip
        try:
            resp = self._session.post(RECAPTCHA_VERIFY_URL, data=data, timeout=self.timeout)
            resp.raise_for_status()
            result = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("ReCAPTCHA verification request failed: %s", e)
            return False
        if not result.get("success", False):
            logger.info("ReCAPTCHA rejected: %s", result.get("error-codes", []))
            return False
        return True

    def close(self) -> None:
        self._session.close()
