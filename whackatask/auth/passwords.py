"""Password hashing for the local identity service.

We never store raw passwords, only a salted PBKDF2-SHA256 digest. The
stored form is "<iterations>$<salt hex>$<digest hex>" so the iteration count
can be raised later without invalidating existing hashes.
"""

import hashlib
import hmac
import os
import secrets

PASSWORD_HASH_ITERATIONS = int(os.getenv("PASSWORD_HASH_ITERATIONS", "200000"))


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_password(password: str, iterations: int = PASSWORD_HASH_ITERATIONS) -> str:
    """Hash a password for storage."""
    salt = secrets.token_bytes(16)
    digest = _derive(password, salt, iterations)
    return f"{iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Check a password against a stored hash (constant-time compare)."""
    try:
        iterations_str, salt_hex, digest_hex = stored.split("$", 2)
        iterations = int(iterations_str)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
    except ValueError:
        return False
    return hmac.compare_digest(_derive(password, salt, iterations), expected)
