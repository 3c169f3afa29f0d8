"""
auth/hashing.py -- Deterministic credential digests.

Security design:
  The store looks a login up by email and compares digests, so the digest must
  be deterministic: bcrypt.hashpw() with a random salt cannot be used here.
  Instead the derivation is bcrypt-pbkdf (bcrypt.kdf), which keeps bcrypt's
  cost-per-guess while letting us choose the salt.

  Salt is HMAC-SHA256(pepper, identifier). Binding the identifier into the
  salt means two logins with the same password never share a digest, and the
  pepper (CREDENTIAL_PEPPER, never stored in the DB) means a leaked table
  alone is not enough to run an offline guess.

  The key material joins identifier and secret with a NUL byte so the input
  to bcrypt.kdf is never empty, even for an empty identifier and secret.

  Digest format: "bkdf1$" + 64 lowercase hex chars (32 derived bytes).

Layer rule: stdlib + bcrypt only.
"""

from __future__ import annotations

import hashlib
import hmac

import bcrypt

DEFAULT_KDF_ROUNDS = 50

_DIGEST_PREFIX = "bkdf1$"
_DIGEST_BYTES = 32


def hash_credential(identifier: str, secret: str, *, pepper: str = "", rounds: int = DEFAULT_KDF_ROUNDS) -> str:
    """Return the credential digest for (identifier, secret).

    Callers normalize first: the login engine lowercases and trims the
    identifier and trims the secret before hashing.
    """
    salt = hmac.new(_encode(pepper), _encode(identifier), hashlib.sha256).digest()
    material = b"\x00".join((_encode(identifier), _encode(secret)))
    # Round counts below bcrypt's recommended 50 are allowed so test suites
    # can run quickly; production uses Settings.credential_kdf_rounds.
    derived = bcrypt.kdf(
        password=material,
        salt=salt,
        desired_key_bytes=_DIGEST_BYTES,
        rounds=rounds,
        ignore_few_rounds=True,
    )
    return _DIGEST_PREFIX + derived.hex()


def digests_match(stored: str, candidate: str) -> bool:
    """Constant-time digest comparison."""
    return hmac.compare_digest(stored.encode("utf-8"), candidate.encode("utf-8"))


def _encode(text: str) -> bytes:
    # Lone surrogates cannot come from a JSON body but can from direct callers.
    return text.encode("utf-8", errors="surrogatepass")
