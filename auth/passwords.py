"""
auth/passwords.py -- Password hashing and strength classification.

bcrypt is used directly (no passlib wrapper): passlib's wrap-bug detection
hashes a >72-byte test password that bcrypt 4.x rejects.

Cost factor is fixed at 10.
Each hash call draws a fresh salt, which bcrypt embeds in the digest.
"""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 10

# bcrypt accepts at most 72 bytes of input.
MAX_PASSWORD_LENGTH = 72

STRONG = "Strong"
MEDIUM = "Medium"
WEAK = "Weak"


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError if the UTF-8 encoding exceeds MAX_PASSWORD_LENGTH bytes.
    """
    if password_too_long(plain):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_LENGTH} bytes")
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def password_too_long(plain: str) -> bool:
    return len(plain.encode("utf-8")) > MAX_PASSWORD_LENGTH


def verify_password(plain: str, hashed: str | None) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Never raises: a missing, empty or malformed digest simply fails, as does
    a plaintext too long to have been hashed.
    """
    if not hashed or password_too_long(plain):
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


def _character_classes(password: str) -> int:
    has_upper = has_lower = has_digit = has_other = False
    for ch in password:
        if ch.isupper():
            has_upper = True
        elif ch.islower():
            has_lower = True
        elif ch.isdigit():
            has_digit = True
        else:
            has_other = True
    return sum((has_upper, has_lower, has_digit, has_other))


def is_strong_password(password: str | None) -> bool:
    """At least 8 characters drawing on 3 of: upper, lower, digit, other."""
    return password is not None and len(password) >= 8 and _character_classes(password) >= 3


def password_strength(password: str | None) -> str:
    """Classify a password as "Strong", "Medium" or "Weak".

    Advisory only -- shown next to the password field, never enforced at login.
    """
    if password is None or len(password) < 6:
        return WEAK
    if is_strong_password(password):
        return STRONG
    return MEDIUM
