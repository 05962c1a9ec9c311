"""
auth/service.py -- Login, logout, registration and password change.

AuthService is the only place that combines the credential store, the token
issuer and the session. It is a small state machine:

    Anonymous --authenticate()--> Authenticated --logout()--> Anonymous

authenticate() runs its checks in a fixed order and stops at the first
failure:
  (a) user lookup          -> InvalidCredentialsError
  (b) status == active     -> AccountInactiveError
  (c) password verify      -> InvalidCredentialsError (same type as (a))
  (d) issue token
  (e) stamp last_login     -- best effort, logged on failure
  (f) session.login()

Unknown usernames still pay for one bcrypt check against a dummy hash, so
response time does not reveal whether a username exists.

No retries: a failed login needs the user to submit the form again.
"""

from __future__ import annotations

import logging

from auth.errors import (
    AccountInactiveError,
    DuplicateEmailError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    PasswordTooLongError,
    PersistenceUnavailableError,
    UserNotFoundError,
)
from auth.models import STATUS_ACTIVE, User
from auth.passwords import MAX_PASSWORD_LENGTH, hash_password, password_too_long, verify_password
from auth.session import SessionState
from auth.store import UserStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("backoffice.auth")

# Timing equalization dummy hash. Computed once at import so the first
# failed login is not measurably slower than later ones.
_DUMMY_HASH: str = hash_password("backoffice_timing_dummy")


class AuthService:
    """Orchestrates authentication for the interactive client.

    Usage:
        service = AuthService(store, TokenIssuer.from_settings(settings),
                              SessionState.from_settings(settings))
        user = service.authenticate("staff1", "password123")
        service.has_permission("orders.create")
        service.logout()
    """

    def __init__(self, store: UserStore, issuer: TokenIssuer, session: SessionState) -> None:
        self.store = store
        self.issuer = issuer
        self.session = session

    # ------------------------------------------------------------------
    # Login / logout
    # ------------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> User:
        """Log username in and return the User with its token attached.

        Raises InvalidCredentialsError, AccountInactiveError, or
        PersistenceUnavailableError if the lookup itself fails.
        """
        user = self.store.get_by_username(username)
        if user is None:
            verify_password(password, _DUMMY_HASH)
            logger.info("Login failed for %r: unknown username", username)
            raise InvalidCredentialsError()

        if not user.is_active():
            logger.info("Login refused for %r: account status is %s", username, user.status)
            raise AccountInactiveError()

        if not verify_password(password, user.password_hash):
            logger.info("Login failed for %r: wrong password", username)
            raise InvalidCredentialsError()

        token = self.issuer.issue(user)
        user.token = token

        try:
            self.store.update_last_login(user.id)
        except PersistenceUnavailableError:
            logger.warning("Could not record last login for user %s", user.id, exc_info=True)

        self.session.login(user, token)
        logger.info("User %r logged in (role=%s)", user.username, user.role_name or "-")
        return user

    def logout(self) -> None:
        """Clear the session. Safe to call when nobody is logged in."""
        if self.session.is_logged_in():
            user = self.session.current_user()
            logger.info("User %r logged out", user.username if user else None)
        self.session.logout()

    # ------------------------------------------------------------------
    # Account management
    # ------------------------------------------------------------------

    def register(self, user: User, password: str) -> int:
        """Create a new active account and return its ID.

        Username uniqueness is checked before email. A password over
        MAX_PASSWORD_LENGTH bytes is refused with PasswordTooLongError before
        anything is written. The plaintext password is hashed here;
        user.password_hash, user.status and user.id are updated in place.
        """
        if self.store.username_exists(user.username):
            raise DuplicateUsernameError(user.username)
        if self.store.email_exists(user.email):
            raise DuplicateEmailError(user.email)
        if password_too_long(password):
            raise PasswordTooLongError(MAX_PASSWORD_LENGTH)

        user.password_hash = hash_password(password)
        user.status = STATUS_ACTIVE
        user.id = self.store.create_user(user)
        logger.info("Registered user %r (id=%s)", user.username, user.id)
        return user.id

    def change_password(self, user_id: int, old_password: str, new_password: str) -> None:
        """Replace a user's password after checking the current one.

        Tokens already issued stay valid until they expire.
        """
        user = self.store.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        if not verify_password(old_password, user.password_hash):
            logger.info("Password change refused for user %s: current password incorrect", user_id)
            raise InvalidCredentialsError("Current password is incorrect")
        if password_too_long(new_password):
            raise PasswordTooLongError(MAX_PASSWORD_LENGTH)
        if not self.store.update_password(user_id, hash_password(new_password)):
            raise UserNotFoundError(user_id)
        logger.info("Password changed for user %s", user_id)

    # ------------------------------------------------------------------
    # Session pass-throughs for the UI
    # ------------------------------------------------------------------

    def is_logged_in(self) -> bool:
        return self.session.is_logged_in()

    def current_user(self) -> User | None:
        return self.session.current_user()

    def has_permission(self, name: str) -> bool:
        return self.session.has_permission(name)

    def has_role(self, role_name: str) -> bool:
        return self.session.has_role(role_name)
