"""Unit tests for auth/tokens.py -- login token issuance and verification.

Covers:
- Claims construction (aud/iss/sub, iat == nbf, 31-day expiry)
- Round trip: decode with the same key returns the exact claims
- Decode failures: wrong key, wrong audience, expired, garbage
- Signing misconfiguration raises TokenSigningError
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import TokenSigningError
from auth.tokens import (
    TOKEN_LIFETIME,
    TOKEN_SUBJECT,
    build_claims,
    decode_login_token,
    issue_login_token,
    sign_claims,
)
from tests.conftest import API_DOMAIN, make_config


class TestBuildClaims:
    def test_registered_claims(self):
        config = make_config()
        now = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        claims = build_claims(7, 8, 9, True, config, now=now)
        assert claims.audience == API_DOMAIN
        assert claims.issuer == API_DOMAIN
        assert claims.subject == TOKEN_SUBJECT
        assert claims.issued_at == int(now.timestamp())
        assert claims.not_before == claims.issued_at

    def test_expiry_is_exactly_31_days(self):
        claims = build_claims(1, 2, 3, True, make_config())
        assert claims.expires_at - claims.issued_at == 31 * 24 * 60 * 60
        assert TOKEN_LIFETIME == timedelta(days=31)

    def test_identity_fields(self):
        claims = build_claims(1, 0, 0, False, make_config())
        assert (claims.login_id, claims.user_id, claims.account_id, claims.authorized) == (1, 0, 0, False)


class TestRoundTrip:
    def test_decode_returns_exact_claims(self):
        config = make_config()
        claims = build_claims(11, 22, 33, True, config)
        token = sign_claims(claims, config)
        assert decode_login_token(token, config) == claims

    def test_unauthorized_flag_survives_round_trip(self):
        config = make_config()
        claims = build_claims(11, 22, 33, False, config)
        decoded = decode_login_token(sign_claims(claims, config), config)
        assert decoded is not None
        assert decoded.authorized is False

    def test_wire_claim_names(self):
        config = make_config()
        token = issue_login_token(1, 2, 3, True, config)
        payload = jwt.get_unverified_claims(token)
        assert payload["loginId"] == 1
        assert payload["userId"] == 2
        assert payload["accountId"] == 3
        assert payload["subStatus"] is True
        assert payload["aud"] == [API_DOMAIN]
        assert payload["sub"] == TOKEN_SUBJECT

    def test_header_algorithm_is_hs256(self):
        token = issue_login_token(1, 2, 3, True, make_config())
        assert jwt.get_unverified_header(token)["alg"] == "HS256"


class TestDecodeFailures:
    def test_different_key_fails(self):
        token = issue_login_token(1, 2, 3, True, make_config())
        other = make_config(signing_secret=b"another-signing-secret-0123456789abcdef")
        assert decode_login_token(token, other) is None

    def test_different_audience_fails(self):
        config = make_config()
        token = issue_login_token(1, 2, 3, True, config)
        assert decode_login_token(token, replace(config, api_domain="other.example.com")) is None

    def test_expired_token_fails(self):
        config = make_config()
        issued = datetime.now(timezone.utc) - TOKEN_LIFETIME - timedelta(minutes=5)
        token = issue_login_token(1, 2, 3, True, config, now=issued)
        assert decode_login_token(token, config) is None

    def test_garbage_fails(self):
        assert decode_login_token("not-a-jwt", make_config()) is None

    def test_missing_custom_claims_fails(self):
        config = make_config()
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"aud": [API_DOMAIN], "iss": API_DOMAIN, "sub": TOKEN_SUBJECT, "iat": now, "nbf": now, "exp": now + 60},
            config.signing_secret,
            algorithm="HS256",
        )
        assert decode_login_token(token, config) is None


class TestSigningErrors:
    def test_missing_key_raises(self):
        config = make_config(signing_secret=b"")
        with pytest.raises(TokenSigningError):
            issue_login_token(1, 2, 3, True, config)
