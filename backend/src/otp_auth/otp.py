"""One-time passcode generation and hashing.

Codes are never persisted in plaintext: each record stores a random salt
and the SHA-256 digest of ``salt + code``. Verification re-hashes the
submitted code and compares digests with ``hmac.compare_digest`` so the
comparison time does not depend on where the inputs differ.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import string
import uuid

from otp_auth.config import OTP_LENGTH

_SALT_BYTES = 16


def generate_code(length: int = OTP_LENGTH) -> str:
    """Return a cryptographically random numeric code.

    Leading zeros are allowed, so every value in ``0 .. 10**length - 1``
    is equally likely.
    """
    digits = string.digits
    return "".join(secrets.choice(digits) for _ in range(length))


def generate_salt() -> str:
    return secrets.token_hex(_SALT_BYTES)


def hash_code(code: str, salt: str) -> str:
    """Return the hex SHA-256 digest of ``salt`` followed by ``code``."""
    return hashlib.sha256(f"{salt}{code}".encode("utf-8")).hexdigest()


def constant_time_equals(left: str, right: str) -> bool:
    """Compare two strings without short-circuiting on the first mismatch."""
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


def verify_code(code: str, code_hash: str, salt: str) -> bool:
    """Check ``code`` against a stored salted digest."""
    return constant_time_equals(hash_code(code, salt), code_hash)


def generate_challenge_id() -> str:
    return str(uuid.uuid4())
