"""Unit tests for auth/hashing.py -- deterministic credential digests."""

import re

from auth.hashing import digests_match, hash_credential

_ROUNDS = 4


def _hash(identifier: str, secret: str, pepper: str = "pepper") -> str:
    return hash_credential(identifier, secret, pepper=pepper, rounds=_ROUNDS)


class TestHashCredential:
    def test_repeated_calls_return_same_digest(self):
        assert _hash("a@example.com", "password123") == _hash("a@example.com", "password123")

    def test_identifier_changes_digest_for_same_secret(self):
        assert _hash("a@example.com", "password123") != _hash("b@example.com", "password123")

    def test_secret_changes_digest(self):
        assert _hash("a@example.com", "password123") != _hash("a@example.com", "password124")

    def test_pepper_changes_digest(self):
        assert _hash("a@example.com", "password123", pepper="one") != _hash("a@example.com", "password123", pepper="two")

    def test_rounds_change_digest(self):
        low = hash_credential("a@example.com", "password123", rounds=2)
        high = hash_credential("a@example.com", "password123", rounds=3)
        assert low != high

    def test_identifier_and_secret_boundary_is_unambiguous(self):
        """("ab", "c") and ("a", "bc") must not collide."""
        assert _hash("ab", "cdefghij") != _hash("a", "bcdefghij")

    def test_digest_format(self):
        digest = _hash("a@example.com", "password123")
        assert re.fullmatch(r"bkdf1\$[0-9a-f]{64}", digest)

    def test_empty_inputs_are_accepted(self):
        digest = _hash("", "")
        assert digest.startswith("bkdf1$")
        assert digest == _hash("", "")

    def test_empty_pepper_is_accepted(self):
        assert hash_credential("a@example.com", "password123", rounds=_ROUNDS).startswith("bkdf1$")

    def test_unicode_inputs(self):
        assert _hash("zoë@example.com", "pässwörd-ünïcode") == _hash("zoë@example.com", "pässwörd-ünïcode")

    def test_lone_surrogates_are_hashed(self):
        digest = _hash("a@example.com", "\ud800password")
        assert re.fullmatch(r"bkdf1\$[0-9a-f]{64}", digest)
        assert digest != _hash("a@example.com", "password")

class TestDigestsMatch:
    def test_equal_digests_match(self):
        digest = _hash("a@example.com", "password123")
        assert digests_match(digest, _hash("a@example.com", "password123"))

    def test_different_digests_do_not_match(self):
        assert not digests_match(_hash("a@example.com", "password123"), _hash("a@example.com", "password999"))

    def test_different_lengths_do_not_match(self):
        assert not digests_match("bkdf1$abcd", "bkdf1$abcdef")
