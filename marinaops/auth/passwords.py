"""PBKDF2 password hashing for portal users."""

import hashlib
import secrets
from typing import Optional

ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 390000


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Return ``pbkdf2_sha256$<salt>$<hex digest>``; a fresh salt unless given."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), ITERATIONS)
    return f"{ALGORITHM}${salt}${digest.hex()}"


def verify_password(stored: Optional[str], provided: str) -> bool:
    if not stored:
        return False
    try:
        algorithm, salt, hex_digest = stored.split("$")
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    candidate = hashlib.pbkdf2_hmac("sha256", provided.encode(), salt.encode(), ITERATIONS)
    return secrets.compare_digest(candidate.hex(), hex_digest)
