"""Password hashing helpers (pbkdf2_hmac)."""
from __future__ import annotations

from typing import Tuple
import hashlib
import secrets

from ..errors import ValidationError

MIN_PASSWORD_LENGTH = 8
ITERATIONS = 100_000


def hash_password(password: str, salt: str | None = None, iterations: int = ITERATIONS) -> Tuple[str, str]:
    salt = salt or secrets.token_hex(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return dk.hex(), salt


def verify_password(password: str, stored_hash: str, salt: str, iterations: int = ITERATIONS) -> bool:
    dk, _ = hash_password(password, salt=salt, iterations=iterations)
    return secrets.compare_digest(dk, stored_hash)


def make_password_hash(password: str) -> str:
    """``<hex digest>:<salt>`` as stored on the user row."""
    check_password_strength(password)
    digest, salt = hash_password(password)
    return f"{digest}:{salt}"


def check_password(password: str, stored: str) -> bool:
    if not password or ":" not in (stored or ""):
        return False
    digest, salt = stored.split(":", 1)
    return verify_password(password, digest, salt)


def check_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
