"""
auth/errors.py -- Exceptions raised by the auth core.

The UI catches AuthError subclasses and turns them into user-facing messages.
Token problems are never raised: TokenIssuer.validate() returns None instead,
because an expired or tampered token is a normal steady-state condition.

PersistenceUnavailableError is defined in core.database (both stores raise
it) and re-exported here so callers can catch every auth-core error from one
module.

Layer rule: no imports from operations/ or console/.
"""

from __future__ import annotations

from core.database import PersistenceUnavailableError

__all__ = [
    "AuthError",
    "InvalidCredentialsError",
    "AccountInactiveError",
    "DuplicateUsernameError",
    "DuplicateEmailError",
    "UserNotFoundError",
    "PasswordTooLongError",
    "PersistenceUnavailableError",
]


class AuthError(Exception):
    """Base class for every error surfaced by the auth core."""


class InvalidCredentialsError(AuthError):
    """Unknown username or wrong password.

    Both causes share this one type so a caller cannot tell which check failed.
    """

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class AccountInactiveError(AuthError):
    def __init__(self, message: str = "User account is not active") -> None:
        super().__init__(message)


class DuplicateUsernameError(AuthError):
    def __init__(self, username: str) -> None:
        super().__init__(f"Username already exists: {username}")
        self.username = username


class DuplicateEmailError(AuthError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Email already exists: {email}")
        self.email = email


class UserNotFoundError(AuthError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class PasswordTooLongError(AuthError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"Password must be at most {limit} bytes")
        self.limit = limit
