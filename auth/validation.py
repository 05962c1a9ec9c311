"""
auth/validation.py -- Format checks for the registration and profile forms.

These run in the UI before AuthService.register() is called. The service
itself only enforces uniqueness and the bcrypt input limit.
"""

import re

from auth.passwords import MAX_PASSWORD_LENGTH, password_too_long

_EMAIL_RE = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,6}$")
_PHONE_RE = re.compile(r"^[0-9]{10}$|^\+[0-9]{1,3}[0-9]{10}$")
_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,20}$")
_PHONE_NOISE_RE = re.compile(r"[\s()-]")


def is_valid_email(email: str | None) -> bool:
    return email is not None and _EMAIL_RE.match(email) is not None


def is_valid_username(username: str | None) -> bool:
    """3-20 characters: letters, digits and underscore."""
    return username is not None and _USERNAME_RE.match(username) is not None


def is_valid_phone(phone: str | None) -> bool:
    """Ten digits, optionally with a +country prefix. Spaces, dashes and parentheses are ignored."""
    if phone is None:
        return False
    return _PHONE_RE.match(_PHONE_NOISE_RE.sub("", phone)) is not None


def registration_errors(username: str, email: str, password: str, phone: str | None = None) -> list[str]:
    """Return human-readable problems with a registration form, empty if none."""
    errors: list[str] = []
    if not is_valid_username(username):
        errors.append("Username must be 3-20 letters, digits or underscores.")
    if not is_valid_email(email):
        errors.append("Email address is not valid.")
    if not password:
        errors.append("Password is required.")
    elif password_too_long(password):
        errors.append(f"Password must be at most {MAX_PASSWORD_LENGTH} bytes.")
    if phone and not is_valid_phone(phone):
        errors.append("Phone number is not valid.")
    return errors
